"""Exceptions raised while parsing and reading configuration trees."""

from __future__ import annotations

from cfgtree.diagnostics import ErrorContext


class ConfigError(Exception):
    """Base exception for cfgtree operations."""


class SourceUnavailable(ConfigError):
    """A character source could not be obtained."""


class OptionLookupError(ConfigError, KeyError):
    """A name does not refer to an option stored in the tree."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class ParseError(ConfigError):
    def __init__(self, message: str, filename: str | None = None, line: int = 0, column: int = 0):
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column
        super().__init__(f"{filename or '<unknown>'}:{line}: {message}")

    @property
    def context(self) -> ErrorContext:
        return ErrorContext(self.filename, self.line)


class LexicalError(ParseError):
    """Malformed token: unterminated string or comment, bad number literal."""


class UnknownOption(ParseError):
    """Name not declared in the active schema."""


class DuplicateOption(ParseError):
    """Non-repeatable option given twice, or a repeated section title."""


class MissingTitle(ParseError):
    """Titled section without a title."""


class OptionTypeError(ParseError):
    """Value cannot be coerced to the option's kind."""


class UnexpectedEOF(ParseError):
    """Input ended inside a section or statement."""


class UnmatchedBrace(ParseError):
    """Closing brace at the top level."""


class UnexpectedToken(ParseError):
    """Token out of place for the grammar."""


class CallbackRejected(ParseError):
    """A coercion or function callback signalled failure."""
