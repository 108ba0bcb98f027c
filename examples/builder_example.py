#!/usr/bin/env python3
"""
Example script building a CLISpec by hand for a plain (non-dataclass) target.

Structured values use YAML flow syntax, brackets optional:
    python builder_example.py input.csv --columns id,name --limits rows=10,cols=3
    python builder_example.py input.csv --columns "[id, name]" --strict false
"""

import sys

from result import Err

from cliarg import CLISpec, parse_args


class ExportJob:
    def __init__(self) -> None:
        self.source = None
        self.columns: list[str] = []
        self.limits: dict[str, int] = {}
        self.strict = True


SPEC = (
    CLISpec.builder(ExportJob)
    .indexed("source", str, required=True, description="Input file")
    .option("columns", list[str], short_name="c", description="Columns to export")
    .option("limits", dict[str, int], description="Per-dimension limits")
    .option("strict", bool, description="Fail on malformed rows")
    .build()
)


def main() -> None:
    outcome = parse_args(SPEC, sys.argv, 1).to_result()
    if isinstance(outcome, Err):
        print(outcome.err_value, file=sys.stderr)
        sys.exit(2)

    job = outcome.ok_value
    print(f"source={job.source} columns={job.columns} limits={job.limits} strict={job.strict}")


if __name__ == "__main__":
    main()
