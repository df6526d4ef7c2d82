"""Schema definitions: what options a configuration may contain."""

from __future__ import annotations

from enum import Enum, IntFlag
from typing import Any, Callable, Iterable, Sequence

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator


class OptionKind(str, Enum):
    INT = "int"
    FLOAT = "float"
    STR = "str"
    BOOL = "bool"
    SECTION = "section"
    FUNCTION = "function"


class OptionFlag(IntFlag):
    NONE = 0
    MULTI = 1
    LIST = 2
    NOCASE = 4
    TITLE = 8
    RESET = 32


SCALAR_KINDS = {OptionKind.INT, OptionKind.FLOAT, OptionKind.STR, OptionKind.BOOL}


class OptionSpec(BaseModel):
    """Schema entry describing one option.

    ``parse_cb`` overrides the built-in coercion for scalar kinds and is
    called as ``parse_cb(ctx, spec, text)``. ``func`` is the callback of a
    function option, called as ``func(ctx, spec, args)``. ``binding`` is any
    object with a ``set(value)`` method; parsed values go there instead of
    into the tree.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: OptionKind
    flags: OptionFlag = OptionFlag.NONE
    default: Any = None
    options: list[OptionSpec] | None = None
    parse_cb: Callable[..., Any] | None = None
    func: Callable[..., Any] | None = None
    binding: Any = None

    @property
    def is_multi(self) -> bool:
        return bool(self.flags & OptionFlag.MULTI)

    @property
    def is_list(self) -> bool:
        return bool(self.flags & OptionFlag.LIST)

    @property
    def is_titled(self) -> bool:
        return bool(self.flags & OptionFlag.TITLE)

    @property
    def is_nocase(self) -> bool:
        return bool(self.flags & OptionFlag.NOCASE)

    @property
    def is_reset(self) -> bool:
        return bool(self.flags & OptionFlag.RESET)

    @model_validator(mode="after")
    def _check_consistency(self) -> OptionSpec:
        if self.kind is OptionKind.SECTION:
            if self.options is None:
                raise ValueError(f"section '{self.name}' needs a sub-schema")
            if self.default is not None:
                raise ValueError(f"section '{self.name}' cannot have a default value")
        elif self.options is not None:
            raise ValueError(f"only sections take a sub-schema, not '{self.name}'")
        if self.kind is OptionKind.FUNCTION:
            if self.func is None:
                raise ValueError(f"function '{self.name}' needs a callback")
        elif self.func is not None:
            raise ValueError(f"only function options take a callback, not '{self.name}'")
        if self.is_titled and self.kind is not OptionKind.SECTION:
            raise ValueError(f"only sections can be titled, not '{self.name}'")
        if self.is_list and self.kind not in SCALAR_KINDS:
            raise ValueError(f"only scalar options can be lists, not '{self.name}'")
        if self.binding is not None:
            if self.kind not in SCALAR_KINDS or self.flags & (OptionFlag.LIST | OptionFlag.MULTI):
                raise ValueError(f"option '{self.name}' cannot be bound to a simple value")
            if not callable(getattr(self.binding, "set", None)):
                raise ValueError(f"binding for '{self.name}' has no set() method")
        return self

    @field_validator("default")
    @classmethod
    def _check_default(cls, value: Any, info: ValidationInfo) -> Any:
        from cfgtree.coerce import check_value

        kind = info.data.get("kind")
        if value is None or kind not in SCALAR_KINDS:
            return value
        if not info.data.get("flags", OptionFlag.NONE) & OptionFlag.LIST:
            return check_value(kind, value)
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise ValueError(f"default of list option '{info.data.get('name')}' must be a sequence")
        return tuple(check_value(kind, item) for item in value)


OptionSpec.model_rebuild()


def _same_name(spec: OptionSpec, other: OptionSpec) -> bool:
    if spec.is_nocase or other.is_nocase:
        return spec.name.casefold() == other.name.casefold()
    return spec.name == other.name


def validate_schema(options: Iterable[OptionSpec]) -> list[OptionSpec]:
    """Check that names are unique at every level and return the options as a list."""
    options = list(options)
    for index, spec in enumerate(options):
        if not isinstance(spec, OptionSpec):
            raise ValueError(f"schema entries must be OptionSpec, got {type(spec).__name__}")
        if spec.name and any(_same_name(spec, other) for other in options[:index]):
            raise ValueError(f"option '{spec.name}' declared twice")
        if spec.options is not None:
            validate_schema(spec.options)
    return options


def names_match(declared: str, found: str, nocase: bool) -> bool:
    if nocase:
        return declared.casefold() == found.casefold()
    return declared == found


def find_option(options: Sequence[OptionSpec], name: str, nocase: bool = False) -> OptionSpec | None:
    for spec in options:
        if spec.name and names_match(spec.name, name, nocase or spec.is_nocase):
            return spec
    return None


# Builders -------------------------------------------------------------------
def int_option(name: str, default: int = 0, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.INT, default=default, flags=flags, parse_cb=parse_cb)


def int_list(name: str, default: Sequence[int] | None = None, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.INT, default=default, flags=flags | OptionFlag.LIST, parse_cb=parse_cb)


def float_option(name: str, default: float = 0.0, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.FLOAT, default=default, flags=flags, parse_cb=parse_cb)


def float_list(name: str, default: Sequence[float] | None = None, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.FLOAT, default=default, flags=flags | OptionFlag.LIST, parse_cb=parse_cb)


def str_option(name: str, default: str | None = None, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.STR, default=default, flags=flags, parse_cb=parse_cb)


def str_list(name: str, default: Sequence[str] | None = None, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.STR, default=default, flags=flags | OptionFlag.LIST, parse_cb=parse_cb)


def bool_option(name: str, default: bool = False, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.BOOL, default=default, flags=flags, parse_cb=parse_cb)


def bool_list(name: str, default: Sequence[bool] | None = None, flags: OptionFlag = OptionFlag.NONE, parse_cb=None) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.BOOL, default=default, flags=flags | OptionFlag.LIST, parse_cb=parse_cb)


def section(name: str, options: Sequence[OptionSpec], flags: OptionFlag = OptionFlag.NONE) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.SECTION, options=list(options), flags=flags)


def function(name: str, func: Callable[..., Any]) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.FUNCTION, func=func)


def simple_int(name: str, binding: Any) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.INT, default=0, binding=binding)


def simple_float(name: str, binding: Any) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.FLOAT, default=0.0, binding=binding)


def simple_str(name: str, binding: Any) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.STR, binding=binding)


def simple_bool(name: str, binding: Any) -> OptionSpec:
    return OptionSpec(name=name, kind=OptionKind.BOOL, default=False, binding=binding)


# Direct bindings ------------------------------------------------------------
class ValueSlot:
    """Holds the last value parsed for a simple option."""

    def __init__(self, value: Any = None):
        self.value = value

    def set(self, value: Any) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"ValueSlot({self.value!r})"


class AttrBinding:
    """Writes a simple option's value to an attribute of an existing object."""

    def __init__(self, target: Any, attribute: str):
        self.target = target
        self.attribute = attribute

    def set(self, value: Any) -> None:
        setattr(self.target, self.attribute, value)


__all__ = [
    "AttrBinding",
    "OptionFlag",
    "OptionKind",
    "OptionSpec",
    "ValueSlot",
    "bool_list",
    "bool_option",
    "find_option",
    "float_list",
    "float_option",
    "function",
    "int_list",
    "int_option",
    "names_match",
    "section",
    "simple_bool",
    "simple_float",
    "simple_int",
    "simple_str",
    "str_list",
    "str_option",
    "validate_schema",
]
