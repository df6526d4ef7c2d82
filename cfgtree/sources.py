"""Character sources: in-memory text, open streams and included files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence, Union

from cfgtree.exceptions import LexicalError, SourceUnavailable
from cfgtree.schema import OptionSpec, function

if TYPE_CHECKING:
    from cfgtree.parser import ParseContext


class Readable(Protocol):
    def read(self) -> str | bytes: ...


Source = Union[str, Readable]


def decode_text(data: bytes, name: str | None = None) -> str:
    """Decode UTF-8 input; a bad byte sequence is a lexical error on the line it occurs."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        line = data.count(b"\n", 0, exc.start) + 1
        raise LexicalError(f"invalid UTF-8 text: {exc.reason}", name, line) from exc


def read_source(source: Source, name: str | None = None) -> str:
    """Return the whole text of a source. Streams are read from their current position and left open.

    Binary streams are decoded as UTF-8.
    """
    if isinstance(source, str):
        return source
    try:
        data = source.read()
    except UnicodeDecodeError as exc:
        raise LexicalError(f"invalid UTF-8 text: {exc.reason}", name) from exc
    if isinstance(data, bytes):
        return decode_text(data, name)
    return data


def source_name(source: Source, default: str | None = None) -> str:
    """Name used in diagnostics: a stream's own ``name``, else ``default``."""
    name = None if isinstance(source, str) else getattr(source, "name", None)
    if name is not None:
        return str(name)
    if default is not None:
        return default
    return "<string>" if isinstance(source, str) else "<stream>"


def expand_path(path: str | os.PathLike[str]) -> Path:
    return Path(os.path.expanduser(os.fspath(path)))


class FileResolver:
    """Include resolver reading files relative to ``base_dir``.

    Names are tilde-expanded first. The file is read whole and closed before
    the text is handed back, so the parser never holds a file handle.
    """

    def __init__(self, base_dir: str | os.PathLike[str] | None = None):
        self.base_dir = expand_path(base_dir) if base_dir is not None else None

    def resolve(self, name: str) -> Path:
        path = expand_path(name)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def __call__(self, name: str) -> str:
        path = self.resolve(name)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise SourceUnavailable(f"cannot read '{path}': {exc.strerror or exc}") from exc
        return decode_text(data, name)


def include(ctx: ParseContext, spec: OptionSpec, args: Sequence[str]) -> int:
    """Function callback splicing the named source into the current section."""
    if len(args) != 1:
        ctx.error(f"wrong number of arguments to {spec.name}()")
        return 1
    ctx.include(args[0])
    return 0


def include_option(name: str = "include") -> OptionSpec:
    return function(name, include)


__all__ = [
    "FileResolver",
    "Readable",
    "Source",
    "decode_text",
    "expand_path",
    "include",
    "include_option",
    "read_source",
    "source_name",
]
