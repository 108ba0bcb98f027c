"""
CLIParser - binds command-line tokens to a target object described by a CLISpec.

The parser walks the token list once, left to right. Tokens starting with
``--`` or ``-`` are options (``name value`` or ``name=value``), anything else
fills the next positional slot. Problems are collected instead of raised, so a
single pass reports every missing, unexpected and malformed argument:

    parser = CLIParser(spec, sys.argv, 1).parse()
    if parser.has_error():
        print(parser.get_errors_as_string())
"""

import logging
from typing import Any, Generic, Optional, Sequence, TypeVar

from result import Err, Ok, Result

from .coerce import ValueCoercer
from .spec import CLISpec, Param

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BOOLEAN_LITERALS = ("true", "false")


class CLIParser(Generic[T]):
    """
    One parse session over a token sequence.

    Args:
        spec: The parameter specification.
        args: The full token sequence.
        arg_index: Offset of the first token to parse; earlier tokens are
            assumed to be consumed by the caller (e.g. the program name).
        target: Instance to populate. When omitted, the spec's default
            instance is created before parsing starts.
        coercer: Value coercion chain. Defaults to ``ValueCoercer()``.

    Raises:
        SpecError: If no target is given and the spec cannot create one.
    """

    def __init__(
        self,
        spec: CLISpec,
        args: Sequence[str],
        arg_index: int = 0,
        target: Optional[T] = None,
        coercer: Optional[ValueCoercer] = None,
    ) -> None:
        self.spec = spec
        self.args: tuple[str, ...] = tuple(args)
        self.arg_index = arg_index
        self.target: T = spec.create_default_instance() if target is None else target
        self.coercer = coercer or ValueCoercer()
        self.param_index = 0
        self.missing_params: list[str] = list(spec.required_params)
        self.extra_args: list[str] = []
        self.error_messages: dict[str, str] = {}

    def parse(self) -> "CLIParser[T]":
        """Consume every remaining token and return self."""
        while self.arg_index < len(self.args):
            arg = self.args[self.arg_index]
            next_arg = (
                self.args[self.arg_index + 1]
                if self.arg_index + 1 < len(self.args)
                else None
            )
            if self._parse_arg(arg, next_arg):
                self.arg_index += 1
            self.arg_index += 1

        logger.debug(
            "Parsed %d argument(s): missing=%s extra=%s errors=%s",
            len(self.args),
            self.missing_params,
            self.extra_args,
            self.error_messages,
        )
        return self

    def _parse_arg(self, arg: str, next_arg: Optional[str]) -> bool:
        """Classify one token. Returns True when ``next_arg`` was consumed."""
        if arg.startswith("--"):
            return self._parse_option(arg[2:], next_arg)
        if arg.startswith("-"):
            return self._parse_option(arg[1:], next_arg)
        self._parse_positional(arg)
        return False

    def _parse_option(self, option: str, next_arg: Optional[str]) -> bool:
        if "=" in option:
            name, value = option.split("=", 1)  # Split only on first =
            self._parse_name_value(name, value)
            return False
        return self._parse_name_value(option, next_arg)

    def _parse_name_value(self, name: str, value: Optional[str]) -> bool:
        param = self.spec.get_option_param_by_name(name)
        if param is None:
            logger.debug("Unexpected option: %s", name)
            self.extra_args.append(name)
            return False

        self._mark_seen(param)

        if param.is_boolean_type():
            # Only the exact literals are taken as the flag's value; anything
            # else is left for the next step and presence means true.
            if value in _BOOLEAN_LITERALS:
                param.property.set(self.target, value == "true")
                return True
            param.property.set(self.target, True)
            return False

        if value is None:
            self._record_error(param, "Missing value")
            return False

        self._assign(param, value)
        return True

    def _parse_positional(self, arg: str) -> None:
        if self.param_index >= len(self.spec.indexed_params):
            logger.debug("Unexpected argument: %s", arg)
            self.extra_args.append(arg)
            return
        param = self.spec.indexed_params[self.param_index]
        self.param_index += 1
        self._mark_seen(param)
        self._assign(param, arg)

    def _mark_seen(self, param: Param) -> None:
        if param.name in self.missing_params:
            self.missing_params.remove(param.name)

    def _assign(self, param: Param, text: str) -> None:
        """Coerce ``text`` and set it on the target; the field is untouched on failure."""
        result = self.coercer.coerce(text, param.type)
        if isinstance(result, Err):
            self._record_error(param, result.err_value)
            return
        param.property.set(self.target, result.ok_value)

    def _record_error(self, param: Param, message: str) -> None:
        logger.error("Error parsing parameter: %s: %s", param.name, message)
        self.error_messages[param.name] = message

    def has_error(self) -> bool:
        return bool(self.missing_params or self.extra_args or self.error_messages)

    def get_errors_as_string(self) -> str:
        """Human-readable summary of every problem found, one section per line."""
        sections = []
        if self.missing_params:
            sections.append(
                "Missing required arguments: " + ", ".join(self.missing_params)
            )
        if self.extra_args:
            sections.append("Unexpected arguments: " + ", ".join(self.extra_args))
        if self.error_messages:
            sections.append(
                "Error parsing following arguments: "
                + "; ".join(f"{k}: {v}" for k, v in self.error_messages.items())
            )
        return "\n".join(sections)

    def to_result(self) -> Result[T, str]:
        """
        Returns:
            Result[T, str]:
                - Ok with the populated target when there were no errors,
                - Err with the error summary otherwise.
        """
        if self.has_error():
            return Err(self.get_errors_as_string())
        return Ok(self.target)


def parse_args(
    spec: CLISpec,
    args: Sequence[str],
    arg_index: int = 0,
    target: Optional[Any] = None,
    coercer: Optional[ValueCoercer] = None,
) -> CLIParser[Any]:
    """Build a CLIParser for ``args`` and run it."""
    return CLIParser(spec, args, arg_index, target, coercer).parse()
