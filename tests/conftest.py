"""Test setup for cfgtree."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cfgtree import (  # noqa: E402
    ErrorContext,
    OptionFlag,
    bool_option,
    float_option,
    int_list,
    int_option,
    section,
    str_list,
    str_option,
)


class RecordingReporter:
    """Collects diagnostics instead of logging them."""

    def __init__(self) -> None:
        self.messages: list[tuple[ErrorContext, str]] = []

    def __call__(self, context: ErrorContext, message: str) -> None:
        self.messages.append((context, message))

    @property
    def texts(self) -> list[str]:
        return [message for _, message in self.messages]


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def server_schema() -> list:
    """Root schema with plain options, a list and a titled repeatable section."""
    return [
        int_option("a"),
        str_option("name", default="anonymous"),
        float_option("ratio", default=0.5),
        bool_option("verbose"),
        int_list("nums"),
        str_list("hosts", default=["localhost"]),
        section(
            "server",
            [int_option("port", default=80), str_list("aliases")],
            OptionFlag.MULTI | OptionFlag.TITLE,
        ),
    ]
