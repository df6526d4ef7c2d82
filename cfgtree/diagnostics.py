"""Delivery of file/line tagged error messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from cfgtree.logger import Logger

if TYPE_CHECKING:
    from cfgtree.tree import ConfigNode


@dataclass(frozen=True, slots=True)
class ErrorContext:
    filename: str | None
    line: int


Reporter = Callable[[ErrorContext, str], None]


def format_message(context: ErrorContext, message: str) -> str:
    return f"{context.filename or '<unknown>'}:{context.line}: {message}"


# configured once at import; with no handler of its own, records go to the
# application's handlers, or to logging.lastResort when there are none
LOGGER = Logger(config={"name": "cfgtree", "level": logging.WARNING, "add_handler": False}).logger


class Diagnostics:
    """Hands messages to the caller's reporter, or logs them.

    The default logger is named ``cfgtree`` and logs at ERROR level, so any
    handler the application installs on that name (or the root logger) sees
    the same text exactly once.
    """

    def __init__(self, reporter: Reporter | None = None):
        self.reporter = reporter
        self.logger = LOGGER

    def report(self, context: ErrorContext, message: str) -> None:
        if self.reporter is not None:
            self.reporter(context, message)
            return
        self.logger.error(format_message(context, message))

    def error(self, node: ConfigNode, message: str) -> None:
        self.report(ErrorContext(node.filename, node.line), message)
