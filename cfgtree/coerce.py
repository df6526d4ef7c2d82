"""Conversion of raw tokens into typed option values."""

from __future__ import annotations

import os
import re
from typing import Any, Collection

from cfgtree.lexer import Token, TokenType, parse_number
from cfgtree.schema import OptionKind

INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

TRUE_WORDS = {"true", "on", "yes"}
FALSE_WORDS = {"false", "off", "no"}

ENV_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def parse_boolean(text: str) -> bool:
    word = text.lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean value '{text}'")


def expand_env(text: str, escaped: Collection[int] = ()) -> str:
    """Replace ``${NAME}`` with the environment value, or nothing if unset.

    Placeholders whose ``$`` sits at an offset listed in ``escaped`` are kept
    as written.
    """

    def replace(match: re.Match[str]) -> str:
        if match.start() in escaped:
            return match.group(0)
        return os.environ.get(match.group(1), "")

    return ENV_RE.sub(replace, text)


def token_text(token: Token) -> str:
    """Text a token stands for: expanded string content, or the raw source text."""
    if token.type is TokenType.STRING:
        return expand_env(str(token.value), token.escaped)
    return token.text


def to_int(token: Token) -> int:
    if token.type is TokenType.NUMBER:
        value = token.value
    else:
        try:
            value = parse_number(token_text(token).strip())
        except ValueError:
            raise ValueError(f"invalid integer value '{token.text}'") from None
    if not isinstance(value, int):
        raise ValueError(f"invalid integer value '{token.text}'")
    if not INT_MIN <= value <= INT_MAX:
        raise ValueError(f"integer value '{token.text}' out of range")
    return value


def to_float(token: Token) -> float:
    if token.type is TokenType.NUMBER:
        return float(token.value)  # type: ignore[arg-type]
    try:
        return float(parse_number(token_text(token).strip()))
    except ValueError:
        raise ValueError(f"invalid floating point value '{token.text}'") from None


def to_bool(token: Token) -> bool:
    if token.type is TokenType.NUMBER:
        raise ValueError(f"invalid boolean value '{token.text}'")
    return parse_boolean(token_text(token))


def coerce_token(kind: OptionKind, token: Token) -> Any:
    match kind:
        case OptionKind.INT:
            return to_int(token)
        case OptionKind.FLOAT:
            return to_float(token)
        case OptionKind.BOOL:
            return to_bool(token)
        case OptionKind.STR:
            return token_text(token)
        case _:
            raise ValueError(f"{kind.value} options do not take values")


def check_value(kind: OptionKind, value: Any) -> Any:
    """Validate a value supplied through the API rather than parsed from text."""
    match kind:
        case OptionKind.INT if isinstance(value, int) and not isinstance(value, bool):
            if not INT_MIN <= value <= INT_MAX:
                raise ValueError(f"integer value {value} out of range")
            return value
        case OptionKind.FLOAT if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        case OptionKind.BOOL if isinstance(value, bool):
            return value
        case OptionKind.STR if isinstance(value, str):
            return value
    raise ValueError(f"{value!r} is not a valid {kind.value} value")


__all__ = ["check_value", "coerce_token", "expand_env", "parse_boolean", "token_text"]
