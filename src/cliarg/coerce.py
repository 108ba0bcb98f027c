"""
Conversion of raw argument text into typed values.

Coercion runs through an ordered chain of strategies. Each strategy takes the
raw text and the declared type and either returns the converted value or
``NO_MATCH`` to let the next strategy try. The default chain is:

1. ``coerce_primitive``: scalars such as str, int, float, bool, enums, dates,
   paths, decimals and Literal choices.
2. ``decode_structured_strategy``: lists, tuples, sets, dicts and nested
   dataclasses, decoded from YAML flow syntax (a lenient superset of JSON).
   Every decoded leaf stays text until it reaches ``coerce_primitive``.
"""

import collections.abc
import dataclasses
import datetime
import decimal
import enum
import logging
import pathlib
import types
import typing
from typing import Any, Callable, Literal, Optional, Union

import yaml
from result import Err, Ok, Result

from .errors import CoercionError

logger = logging.getLogger(__name__)


def get_optional_inner_type(type_hint: Any) -> Optional[Any]:
    """
    If type_hint is Optional[T] (i.e., Union[T, None]), return T.
    Otherwise, return None.
    """
    origin = typing.get_origin(type_hint)
    if origin is Union or origin is getattr(types, "UnionType", Union):
        args = type_hint.__args__
        # Optional[T] is Union[T, None], so we check for exactly two args with one being NoneType
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1 and type(None) in args:
            return non_none_args[0]
    return None


class _NoMatch:
    """Marker returned by a strategy that does not handle a type."""

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH: Any = _NoMatch()

Strategy = Callable[[str, Any], Any]

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_NULL_LITERALS = ("null", "~")


class RootShape(enum.Enum):
    """Shape of the outermost value expected by the structured decoder."""

    ARRAY = "array"
    MAP = "map"

    @classmethod
    def for_type(cls, arg_type: Any) -> "RootShape":
        arg_type = _unwrap_optional(arg_type)
        origin = typing.get_origin(arg_type) or arg_type
        if origin in _SEQUENCE_ORIGINS:
            return cls.ARRAY
        return cls.MAP


class _FlowLoader(yaml.BaseLoader):
    """Flow-syntax loader that leaves every scalar as text."""


def _unwrap_optional(arg_type: Any) -> Any:
    inner_type = get_optional_inner_type(arg_type)
    return arg_type if inner_type is None else inner_type


def _type_name(arg_type: Any) -> str:
    return getattr(arg_type, "__name__", None) or repr(arg_type)


def _strict_bool(value: str) -> bool:
    """
    Parse a string to a boolean value strictly.

    Only accepts 'True', 'true', 'False', 'false', '1', '0' as valid values.
    Raises ValueError for any other string.
    """
    if value in ("True", "true", "1"):
        return True
    elif value in ("False", "false", "0"):
        return False
    else:
        raise ValueError(
            f"Invalid boolean value: '{value}'. Must be one of: True, true, False, false, 1, 0"
        )


def _parse_enum(value: str, enum_type: typing.Type[enum.Enum]) -> enum.Enum:
    if value in enum_type.__members__:
        return enum_type[value]
    for member in enum_type:
        if str(member.value) == value:
            return member
    choices = ", ".join(enum_type.__members__)
    raise ValueError(f"Invalid {enum_type.__name__} value: '{value}'. Must be one of: {choices}")


def coerce_primitive(text: str, arg_type: Any) -> Any:
    """
    Convert ``text`` to a simple scalar of ``arg_type``.

    Returns:
        The converted value, or NO_MATCH when ``arg_type`` is not a scalar type.

    Raises:
        ValueError: If ``arg_type`` is a scalar type but ``text`` is malformed.
    """
    inner_type = get_optional_inner_type(arg_type)
    if inner_type is not None:
        return coerce_primitive(text, inner_type)

    if arg_type is Any or arg_type is object:
        return text

    origin = typing.get_origin(arg_type)
    if origin is Literal:
        choices = typing.get_args(arg_type)
        for choice in choices:
            if str(choice) == text:
                return choice
        raise ValueError(
            f"Invalid choice: '{text}'. Must be one of: {', '.join(str(c) for c in choices)}"
        )
    if origin is not None or not isinstance(arg_type, type):
        return NO_MATCH

    # bool is a subclass of int and datetime a subclass of date, so order matters
    if arg_type is str:
        return text
    if arg_type is bool:
        return _strict_bool(text)
    if arg_type is int:
        return int(text)
    if arg_type is float:
        return float(text)
    if issubclass(arg_type, decimal.Decimal):
        try:
            return arg_type(text)
        except decimal.InvalidOperation:
            raise ValueError(f"Invalid decimal value: '{text}'")
    if issubclass(arg_type, pathlib.PurePath):
        return arg_type(text)
    if issubclass(arg_type, enum.Enum):
        return _parse_enum(text, arg_type)
    if issubclass(arg_type, datetime.datetime):
        return arg_type.fromisoformat(text)
    if issubclass(arg_type, datetime.date):
        return arg_type.fromisoformat(text)
    if issubclass(arg_type, datetime.time):
        return arg_type.fromisoformat(text)
    return NO_MATCH


def is_structured_type(arg_type: Any) -> bool:
    """True for container and dataclass types handled by the structured decoder."""
    arg_type = _unwrap_optional(arg_type)
    origin = typing.get_origin(arg_type) or arg_type
    if origin in _SEQUENCE_ORIGINS or origin in _MAPPING_ORIGINS:
        return True
    return dataclasses.is_dataclass(arg_type) and isinstance(arg_type, type)


def _is_key_value_pair(pair: str) -> bool:
    """True when ``pair`` reads as ``key=value`` rather than ``key: value``."""
    equals = pair.find("=")
    if equals < 0:
        return False
    separator = pair.find(": ")
    return separator < 0 or equals < separator


def _parse_key_value_pairs(text: str) -> dict[str, str]:
    """Parse ``key=value,key2=value2``; values may contain ':' but not ','."""
    pairs = [pair.strip() for pair in text.split(",") if pair.strip()]
    result = {}
    for pair in pairs:
        if "=" not in pair:
            raise CoercionError(f"Invalid key=value format: '{pair}' (missing '=')")
        key, value = pair.split("=", 1)  # Split only on first =
        result[key.strip()] = value.strip()
    return result


def decode_structured(text: str, arg_type: Any, root_shape: RootShape) -> Any:
    """
    Decode ``text`` as a list- or map-shaped value and convert it to ``arg_type``.

    Text that does not already open with the bracket of ``root_shape`` is
    wrapped in one, so ``1,2,3`` reads as a list and ``a: 1, b: 2`` as a map.
    Bracket-free map text may also use ``key=value`` pairs, detected from the
    first pair, so values such as ``URL=http://host:80`` keep their colons.
    Leaves are loaded as text and converted by ``coerce_primitive``, so
    ``010`` stays ``"010"`` for a str element and parses as 10 for an int.

    Raises:
        CoercionError: If the decoded data does not fit ``arg_type``.
        yaml.YAMLError: If the text is not valid flow syntax.
    """
    body = text.strip()
    if root_shape is RootShape.ARRAY:
        if not body.startswith("["):
            body = f"[{body}]"
    elif not body.startswith("{"):
        if _is_key_value_pair(body.split(",", 1)[0]):
            return convert_value(_parse_key_value_pairs(body), arg_type)
        body = f"{{{body}}}"

    data = yaml.load(body, Loader=_FlowLoader)
    return convert_value(data, arg_type)


def decode_structured_strategy(text: str, arg_type: Any) -> Any:
    if not is_structured_type(arg_type):
        return NO_MATCH
    return decode_structured(text, arg_type, RootShape.for_type(arg_type))


def _expect(value: Any, expected: Union[type, tuple[type, ...]], arg_type: Any) -> None:
    if not isinstance(value, expected):
        raise CoercionError(
            f"Expected {_type_name(arg_type)}, got {type(value).__name__}: {value!r}"
        )


def convert_value(value: Any, arg_type: Any) -> Any:
    """
    Convert decoded data (lists, dicts, scalars) into an instance of ``arg_type``.

    Raises:
        CoercionError: If ``value`` does not match the shape or type expected.
    """
    if arg_type is Any or arg_type is object:
        return value

    inner_type = get_optional_inner_type(arg_type)
    if inner_type is not None:
        if value is None or value in _NULL_LITERALS:
            return None
        return convert_value(value, inner_type)

    origin = typing.get_origin(arg_type) or arg_type
    args = typing.get_args(arg_type)

    if origin is tuple:
        _expect(value, (list, tuple), arg_type)
        if not args:
            return tuple(value)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple(convert_value(v, args[0]) for v in value)
        if len(value) != len(args):
            raise CoercionError(f"Expected {len(args)} values, got {len(value)}")
        return tuple(convert_value(v, t) for v, t in zip(value, args))

    if origin in _SEQUENCE_ORIGINS:
        _expect(value, list, arg_type)
        elem_type = args[0] if args else Any
        items = [convert_value(v, elem_type) for v in value]
        if origin is frozenset:
            return frozenset(items)
        if origin in (set, collections.abc.Set, collections.abc.MutableSet):
            return set(items)
        return items

    if origin in _MAPPING_ORIGINS:
        _expect(value, dict, arg_type)
        key_type = args[0] if len(args) >= 1 else Any
        value_type = args[1] if len(args) >= 2 else Any
        return {
            convert_value(k, key_type): convert_value(v, value_type)
            for k, v in value.items()
        }

    if dataclasses.is_dataclass(arg_type) and isinstance(arg_type, type):
        _expect(value, dict, arg_type)
        type_hints = typing.get_type_hints(arg_type)
        field_names = {f.name for f in dataclasses.fields(arg_type) if f.init}
        unknown = [k for k in value if k not in field_names]
        if unknown:
            raise CoercionError(
                f"Unknown fields for {arg_type.__name__}: {', '.join(map(str, unknown))}"
            )
        return arg_type(
            **{k: convert_value(v, type_hints.get(k, Any)) for k, v in value.items()}
        )

    return _convert_scalar(value, arg_type)


def _convert_scalar(value: Any, arg_type: Any) -> Any:
    if isinstance(value, str):
        result = coerce_primitive(value, arg_type)
        if result is NO_MATCH:
            raise CoercionError(f"Unsupported type: {_type_name(arg_type)}")
        return result

    if value is None or isinstance(value, (list, dict)):
        raise CoercionError(
            f"Expected {_type_name(arg_type)}, got {type(value).__name__}: {value!r}"
        )

    # Strict type validation for non-string scalars
    if arg_type is str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    if arg_type is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise CoercionError(f"Expected int, got {type(value).__name__}: {value!r}")
        return value
    if arg_type is float:
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise CoercionError(f"Expected float, got {type(value).__name__}: {value!r}")
        return float(value)
    if typing.get_origin(arg_type) is Literal:
        if value not in typing.get_args(arg_type):
            raise CoercionError(
                f"Expected one of {typing.get_args(arg_type)}, got {value!r}"
            )
        return value
    if isinstance(arg_type, type):
        if isinstance(value, arg_type):
            return value
        if issubclass(arg_type, enum.Enum):
            return _parse_enum(str(value), arg_type)
        if issubclass(arg_type, decimal.Decimal) and not isinstance(value, bool):
            return arg_type(str(value))
    raise CoercionError(
        f"Expected {_type_name(arg_type)}, got {type(value).__name__}: {value!r}"
    )


def _describe(error: Exception) -> str:
    return str(error) or type(error).__name__


class ValueCoercer:
    """
    Ordered chain of coercion strategies.

    Args:
        strategies: Strategies tried in order. Defaults to primitive coercion
            followed by structured decoding.
    """

    def __init__(self, strategies: Optional[list[Strategy]] = None) -> None:
        if strategies is None:
            strategies = [coerce_primitive, decode_structured_strategy]
        self.strategies: list[Strategy] = list(strategies)

    def register(self, strategy: Strategy, first: bool = False) -> "ValueCoercer":
        """Add a strategy at the end of the chain, or at the front with ``first``."""
        if first:
            self.strategies.insert(0, strategy)
        else:
            self.strategies.append(strategy)
        return self

    def coerce(self, text: str, arg_type: Any) -> Result[Any, str]:
        """
        Convert ``text`` to ``arg_type`` using the first strategy that claims it.

        Returns:
            Ok with the value, or Err with a message when a strategy fails or
            every strategy declines.
        """
        for strategy in self.strategies:
            try:
                value = strategy(text, arg_type)
            except Exception as e:
                logger.debug(
                    "Coercion of %r to %s failed", text, _type_name(arg_type), exc_info=True
                )
                return Err(_describe(e))
            if value is not NO_MATCH:
                return Ok(value)
        return Err(f"Unsupported parameter type: {_type_name(arg_type)}")
