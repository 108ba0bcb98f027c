"""
Declarative description of the parameters a command line binds to.

A CLISpec holds named "option" parameters (``--name value`` / ``-n value``) and
an ordered list of positional "indexed" parameters. Every parameter carries a
Property, an explicit accessor that reads and writes one field of the target
object, so the parser never has to introspect the target itself.

Example:
    spec = (
        CLISpec.builder(Config)
        .option("name", str, required=True, short_name="n")
        .indexed("count", int)
        .build()
    )
"""

import dataclasses
import typing
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Type

from .coerce import get_optional_inner_type
from .errors import SpecError


class Property:
    """Named accessor that gets and sets one field on a target instance."""

    def __init__(
        self,
        name: str,
        type: Any,
        getter: Callable[[Any], Any],
        setter: Callable[[Any, Any], None],
    ) -> None:
        self.name = name
        self.type = type
        self._getter = getter
        self._setter = setter

    @classmethod
    def attribute(cls, name: str, type: Any) -> "Property":
        """Accessor over a plain attribute of the target."""
        return cls(
            name,
            type,
            lambda target: getattr(target, name),
            lambda target, value: setattr(target, name, value),
        )

    @classmethod
    def item(cls, key: str, type: Any) -> "Property":
        """Accessor over a key of a mapping target."""

        def _set(target: Any, value: Any) -> None:
            target[key] = value

        return cls(key, type, lambda target: target.get(key), _set)

    def get(self, target: Any) -> Any:
        return self._getter(target)

    def set(self, target: Any, value: Any) -> None:
        self._setter(target, value)

    def __repr__(self) -> str:
        return f"Property({self.name!r}, {self.type!r})"


@dataclasses.dataclass(frozen=True)
class Param:
    """One parameter of a CLISpec, either a named option or a positional slot."""

    name: str
    property: Property
    required: bool = False
    index: Optional[int] = None
    short_name: Optional[str] = None
    description: str = ""

    @property
    def is_indexed(self) -> bool:
        return self.index is not None

    @property
    def type(self) -> Any:
        return self.property.type

    def is_boolean_type(self) -> bool:
        """True when the parameter only takes true/false and acts as a switch."""
        arg_type = self.property.type
        inner_type = get_optional_inner_type(arg_type)
        if inner_type is not None:
            arg_type = inner_type
        return arg_type is bool


class CLISpec:
    """
    Immutable catalog of the parameters for one target type.

    Args:
        factory: Zero-argument callable producing a default target instance.
        params: Parameter descriptors. Positional parameters are ordered by
            their ``index``; options are looked up by name and short name.

    Raises:
        SpecError: If option names collide or positional indexes are not
            unique and contiguous from zero.
    """

    def __init__(self, factory: Optional[Callable[[], Any]], params: typing.Iterable[Param]) -> None:
        self.factory = factory
        self.params: tuple[Param, ...] = tuple(params)

        options: dict[str, Param] = {}
        indexed: list[Param] = []
        for param in self.params:
            if param.is_indexed:
                indexed.append(param)
                continue
            option_names = [param.name]
            if param.short_name is not None and param.short_name != param.name:
                option_names.append(param.short_name)
            for option_name in option_names:
                if option_name in options:
                    raise SpecError(f"Option name conflict: {option_name}")
                options[option_name] = param

        indexed.sort(key=lambda p: p.index)
        if [p.index for p in indexed] != list(range(len(indexed))):
            raise SpecError(
                "Positional indexes must be unique and contiguous from 0, got "
                f"{[p.index for p in indexed]}"
            )

        self.option_params: Mapping[str, Param] = MappingProxyType(options)
        self.indexed_params: tuple[Param, ...] = tuple(indexed)
        self.required_params: tuple[str, ...] = tuple(
            p.name for p in self.params if p.required
        )
        if len(set(p.name for p in self.params)) != len(self.params):
            raise SpecError("Parameter names must be unique")

    @classmethod
    def builder(cls, factory: Optional[Callable[[], Any]] = None) -> "CLISpecBuilder":
        return CLISpecBuilder(factory)

    @classmethod
    def from_dataclass(cls, dataclass_type: Type[Any]) -> "CLISpec":
        """
        Build a spec from the fields of a dataclass.

        Field metadata may carry ``index`` (positional slot), ``short`` (short
        option alias), ``help`` (description) and ``required`` (overrides the
        rule that a field without a default is required).

        Raises:
            SpecError: If ``dataclass_type`` is not a mutable dataclass.
        """
        if not dataclasses.is_dataclass(dataclass_type) or not isinstance(
            dataclass_type, type
        ):
            raise SpecError(f"{dataclass_type!r} is not a dataclass type")
        if dataclass_type.__dataclass_params__.frozen:
            raise SpecError(f"{dataclass_type.__name__} is frozen and cannot be populated")

        type_hints = typing.get_type_hints(dataclass_type)
        builder = cls.builder(_dataclass_factory(dataclass_type))
        for field in dataclasses.fields(dataclass_type):
            arg_type = type_hints.get(field.name, str)
            required = field.metadata.get("required", not _has_default(field))
            description = field.metadata.get("help", "")
            if "index" in field.metadata:
                builder.param(
                    Param(
                        field.name,
                        Property.attribute(field.name, arg_type),
                        required=required,
                        index=field.metadata["index"],
                        description=description,
                    )
                )
                continue
            builder.option(
                field.name,
                arg_type,
                required=required,
                short_name=field.metadata.get("short"),
                description=description,
            )
        return builder.build()

    def get_option_param_by_name(self, name: str) -> Optional[Param]:
        return self.option_params.get(name)

    def create_default_instance(self) -> Any:
        """
        Produce the target instance used when the caller does not supply one.

        Raises:
            SpecError: If no factory is configured or the factory fails.
        """
        if self.factory is None:
            raise SpecError("CLISpec has no factory to create a default instance")
        try:
            return self.factory()
        except Exception as e:
            raise SpecError(f"Cannot create default instance: {e}") from e

    def __repr__(self) -> str:
        return f"CLISpec(params={[p.name for p in self.params]!r})"


class CLISpecBuilder:
    """Chainable registration of parameters for a CLISpec."""

    def __init__(self, factory: Optional[Callable[[], Any]] = None) -> None:
        self._factory = factory
        self._params: list[Param] = []

    def option(
        self,
        name: str,
        type: Any = str,
        *,
        required: bool = False,
        short_name: Optional[str] = None,
        description: str = "",
        property: Optional[Property] = None,
    ) -> "CLISpecBuilder":
        return self.param(
            Param(
                name,
                property or Property.attribute(name, type),
                required=required,
                short_name=short_name,
                description=description,
            )
        )

    def indexed(
        self,
        name: str,
        type: Any = str,
        *,
        required: bool = False,
        description: str = "",
        property: Optional[Property] = None,
    ) -> "CLISpecBuilder":
        index = sum(1 for p in self._params if p.is_indexed)
        return self.param(
            Param(
                name,
                property or Property.attribute(name, type),
                required=required,
                index=index,
                description=description,
            )
        )

    def param(self, param: Param) -> "CLISpecBuilder":
        self._params.append(param)
        return self

    def build(self) -> CLISpec:
        return CLISpec(self._factory, self._params)


def _has_default(field: dataclasses.Field) -> bool:
    return (
        field.default is not dataclasses.MISSING
        or field.default_factory is not dataclasses.MISSING
    )


def _dataclass_factory(dataclass_type: Type[Any]) -> Callable[[], Any]:
    """Factory that fills fields lacking a default with None."""

    def create() -> Any:
        values = {}
        for field in dataclasses.fields(dataclass_type):
            if not field.init or _has_default(field):
                continue
            values[field.name] = None
        return dataclass_type(**values)

    return create
