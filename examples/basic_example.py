#!/usr/bin/env python3
"""
Example script demonstrating the usage of cliarg with a dataclass target.

Try:
    python basic_example.py sim-1 500 --temperature 30.5 --verbose
    python basic_example.py --temperature=hot extra1 extra2 extra3
"""

import logging
import sys
from dataclasses import dataclass, field

from cliarg import CLIParser, CLISpec


@dataclass
class SimulationConfig:
    """Configuration for simulation parameters."""

    name: str = field(metadata={"help": "Name of the simulation", "index": 0})
    num_simulations: int = field(
        default=100, metadata={"help": "Number of simulations to run", "index": 1}
    )
    temperature: float = field(
        default=27.0, metadata={"help": "Temperature in Celsius", "short": "t"}
    )
    output_dir: str = field(
        default="/tmp/output", metadata={"help": "Output directory path", "short": "o"}
    )
    verbose: bool = field(
        default=False, metadata={"help": "Enable verbose output", "short": "v"}
    )


def main() -> None:
    """Main function demonstrating the parser."""
    logging.basicConfig(level=logging.WARNING)

    spec = CLISpec.from_dataclass(SimulationConfig)
    parser = CLIParser(spec, sys.argv, 1).parse()

    if parser.has_error():
        print(parser.get_errors_as_string(), file=sys.stderr)
        sys.exit(2)

    config = parser.target
    print("Simulation Configuration:")
    print(f"  Name: {config.name}")
    print(f"  Number of simulations: {config.num_simulations}")
    print(f"  Temperature: {config.temperature}°C")
    print(f"  Output directory: {config.output_dir}")
    print(f"  Verbose: {config.verbose}")


if __name__ == "__main__":
    main()
