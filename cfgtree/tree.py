"""Typed value store produced by the parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Sequence

from cfgtree.coerce import check_value
from cfgtree.exceptions import OptionLookupError
from cfgtree.schema import SCALAR_KINDS, OptionKind, OptionSpec, find_option, names_match

ROOT_NAME = "root"


@dataclass(slots=True)
class OptionInstance:
    spec: OptionSpec
    values: list[Any] = field(default_factory=list)
    is_set: bool = False

    def effective_values(self) -> list[Any]:
        if self.is_set:
            return self.values
        default = self.spec.default
        if default is None:
            return []
        if self.spec.is_list:
            return list(default)
        return [default]

    def materialize(self) -> list[Any]:
        """Turn defaults into stored values so they can be edited in place."""
        if not self.is_set:
            self.values = self.effective_values()
            self.is_set = True
        return self.values


@dataclass(slots=True)
class ConfigNode:
    name: str
    options: list[OptionSpec]
    title: str | None = None
    filename: str | None = None
    line: int = 0
    nocase: bool = False
    instances: dict[str, OptionInstance] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.instances:
            for spec in self.options:
                if spec.kind is OptionKind.FUNCTION or spec.binding is not None:
                    continue
                self.instances[spec.name] = OptionInstance(spec)

    @classmethod
    def root(cls, options: Sequence[OptionSpec], nocase: bool = False) -> ConfigNode:
        return cls(name=ROOT_NAME, options=list(options), nocase=nocase)

    def child(self, spec: OptionSpec, title: str | None = None, line: int = 0) -> ConfigNode:
        return ConfigNode(
            name=spec.name,
            options=list(spec.options or []),
            title=title,
            filename=self.filename,
            line=line,
            nocase=self.nocase,
        )

    # Retrieval ---------------------------------------------------------------
    def get_option(self, name: str) -> OptionInstance:
        spec = find_option(self.options, name, self.nocase)
        if spec is None or spec.name not in self.instances:
            raise OptionLookupError(f"no such option '{name}' in section '{self.name}'")
        return self.instances[spec.name]

    def __contains__(self, name: str) -> bool:
        spec = find_option(self.options, name, self.nocase)
        return spec is not None and spec.name in self.instances

    def size(self, name: str) -> int:
        return len(self.get_option(name).effective_values())

    def get(self, name: str, index: int = 0) -> Any:
        return self.get_option(name).effective_values()[index]

    def _typed(self, name: str, kind: OptionKind, index: int) -> Any:
        instance = self.get_option(name)
        if instance.spec.kind is not kind:
            raise TypeError(f"option '{name}' is a {instance.spec.kind.value}, not a {kind.value}")
        values = instance.effective_values()
        if not values and index == 0:
            return None
        return values[index]

    def get_int(self, name: str, index: int = 0) -> int | None:
        return self._typed(name, OptionKind.INT, index)

    def get_float(self, name: str, index: int = 0) -> float | None:
        return self._typed(name, OptionKind.FLOAT, index)

    def get_str(self, name: str, index: int = 0) -> str | None:
        return self._typed(name, OptionKind.STR, index)

    def get_bool(self, name: str, index: int = 0) -> bool | None:
        return self._typed(name, OptionKind.BOOL, index)

    def get_section(self, name: str, index: int = 0) -> ConfigNode | None:
        return self._typed(name, OptionKind.SECTION, index)

    def sections(self, name: str) -> Iterator[ConfigNode]:
        instance = self.get_option(name)
        if instance.spec.kind is not OptionKind.SECTION:
            raise TypeError(f"option '{name}' is not a section")
        return iter(instance.values)

    def get_titled_section(self, name: str, title: str) -> ConfigNode | None:
        instance = self.get_option(name)
        if not instance.spec.is_titled:
            raise TypeError(f"section '{name}' has no titles")
        nocase = self.nocase or instance.spec.is_nocase
        for child in instance.values:
            if child.title is not None and names_match(child.title, title, nocase):
                return child
        return None

    # Mutation ----------------------------------------------------------------
    def _settable(self, name: str) -> OptionInstance:
        instance = self.get_option(name)
        if instance.spec.kind not in SCALAR_KINDS:
            raise TypeError(f"option '{name}' cannot be set to a value")
        return instance

    def set_value(self, name: str, value: Any, index: int = 0) -> None:
        instance = self._settable(name)
        if index > 0 and not instance.spec.is_list:
            raise IndexError(f"option '{name}' is not a list")
        value = check_value(instance.spec.kind, value)
        values = instance.materialize()
        if index == len(values):
            values.append(value)
        else:
            values[index] = value

    def set_list(self, name: str, values: Iterable[Any]) -> None:
        instance = self._list(name)
        instance.values = [check_value(instance.spec.kind, value) for value in values]
        instance.is_set = True

    def add_list(self, name: str, values: Iterable[Any]) -> None:
        instance = self._list(name)
        new_values = [check_value(instance.spec.kind, value) for value in values]
        instance.materialize().extend(new_values)

    def _list(self, name: str) -> OptionInstance:
        instance = self._settable(name)
        if not instance.spec.is_list:
            raise TypeError(f"option '{name}' is not a list")
        return instance

    def clear(self, name: str) -> None:
        """Forget parsed values so the option reads back its default again."""
        instance = self.get_option(name)
        instance.values = []
        instance.is_set = False


__all__ = ["ConfigNode", "OptionInstance", "ROOT_NAME"]
