"""
cliarg - Bind command-line arguments to typed objects.

This package parses raw argument strings against a declarative CLISpec of
named options and ordered positional parameters, coerces each value to the
declared field type and collects missing, unexpected and malformed arguments
into a single error report instead of stopping at the first problem.
"""

from .coerce import NO_MATCH, RootShape, ValueCoercer, coerce_primitive, decode_structured
from .errors import CLIArgError, CoercionError, SpecError
from .parser import CLIParser, parse_args
from .spec import CLISpec, CLISpecBuilder, Param, Property

__version__ = "1.0.0"
__all__ = [
    "CLIArgError",
    "CLIParser",
    "CLISpec",
    "CLISpecBuilder",
    "CoercionError",
    "NO_MATCH",
    "Param",
    "Property",
    "RootShape",
    "SpecError",
    "ValueCoercer",
    "coerce_primitive",
    "decode_structured",
    "parse_args",
]
