"""Tokenizer for the configuration language."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, NotRequired, Optional, TypedDict

from cfgtree.exceptions import LexicalError
from cfgtree.logger import Logger
from cfgtree.utils import resolve_config


class TokenType(Enum):
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()
    OPEN_BRACE = auto()
    CLOSE_BRACE = auto()
    OPEN_PAREN = auto()
    CLOSE_PAREN = auto()
    COMMA = auto()
    SEMICOLON = auto()
    EQUALS = auto()
    EOF = auto()


@dataclass(slots=True)
class Token:
    type: TokenType
    value: str | int | float | None
    text: str
    line: int
    column: int
    # offsets of escaped "$" in a STRING value; those never start a ${NAME}
    escaped: tuple[int, ...] = ()


PUNCTUATION = {
    "{": TokenType.OPEN_BRACE,
    "}": TokenType.CLOSE_BRACE,
    "(": TokenType.OPEN_PAREN,
    ")": TokenType.CLOSE_PAREN,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "=": TokenType.EQUALS,
}

IDENTIFIER_START = {"_", "/", "~", "@", "$"}
IDENTIFIER_CHARS = {"_", "-", ".", "/", ":", "@", "~", "$"}

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "a": "\a",
    "e": "\x1b",
    "\n": "",
}

DECIMAL_RE = re.compile(r"[+-]?(0|[1-9][0-9]*)")
HEX_RE = re.compile(r"[+-]?0[xX][0-9a-fA-F]+")
OCTAL_RE = re.compile(r"[+-]?0[0-7]+")
FLOAT_RE = re.compile(r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?")


def parse_number(text: str) -> int | float:
    """Interpret ``text`` with the numeric grammar.

    Decimal, ``0x`` hexadecimal and ``0``-prefixed octal literals are
    integers; a literal with a fraction or an exponent is a float. Anything
    else raises ``ValueError``.
    """
    if DECIMAL_RE.fullmatch(text):
        return int(text, 10)
    if HEX_RE.fullmatch(text):
        return int(text, 16)
    if OCTAL_RE.fullmatch(text):
        return int(text, 8)
    match = FLOAT_RE.fullmatch(text)
    if match and ("." in text or match.group(2)):
        return float(text)
    raise ValueError(f"malformed number '{text}'")


class LexerConfig(TypedDict):
    enable_logger: NotRequired[bool]


class LexerConfigRequired(TypedDict):
    enable_logger: bool


DEFAULT_CONFIG: LexerConfigRequired = {
    "enable_logger": False,
}


class Lexer:
    def __init__(self, text: str, filename: Optional[str] = None, config: Optional[LexerConfig] = None):
        self.text = text
        self.filename = filename
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(config={"name": "cfgtree-lexer", "is_enabled": self.config["enable_logger"]}).logger
        self._pos = 0
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        return list(self.iter_tokens())

    def iter_tokens(self) -> Iterator[Token]:
        self.logger.info(f"Starting tokenization of {self.filename}")
        while True:
            self._skip_blanks()
            if self._is_eof:
                break
            token = self._next_token()
            self.logger.debug(f"Token {token.type.name} {token.text!r} at line {token.line}, column {token.column}")
            yield token
        self.logger.info("Tokenization complete")
        yield Token(TokenType.EOF, None, "", self._line, self._column)

    def _next_token(self) -> Token:
        char = self._peek()
        if char in PUNCTUATION:
            token = Token(PUNCTUATION[char], char, char, self._line, self._column)
            self._advance()
            return token
        if char == '"':
            return self._read_string()
        if char.isdigit() or (char in "+-." and (self._peek(1).isdigit() or self._peek(1) == ".")):
            return self._read_number()
        if char.isalpha() or char in IDENTIFIER_START:
            return self._read_identifier()
        raise self._error(f"unexpected character '{char}'", self._line, self._column)

    def _skip_blanks(self) -> None:
        while not self._is_eof:
            char = self._peek()
            if char.isspace():
                self._advance()
            elif char == "#" or (char == "/" and self._peek(1) == "/"):
                while not self._is_eof and self._peek() != "\n":
                    self._advance()
            elif char == "/" and self._peek(1) == "*":
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        start_line, start_col = self._line, self._column
        self._advance()
        self._advance()
        while not self._is_eof:
            if self._peek() == "*" and self._peek(1) == "/":
                self._advance()
                self._advance()
                return
            self._advance()
        raise self._error("unterminated comment", start_line, start_col)

    def _read_string(self) -> Token:
        start_line, start_col = self._line, self._column
        start = self._pos
        buffer: list[str] = []
        escaped: list[int] = []
        self._read_quoted(buffer, escaped)
        # "abc" "def" folds into one token
        while True:
            mark = (self._pos, self._line, self._column)
            while not self._is_eof and self._peek().isspace():
                self._advance()
            if self._peek() != '"':
                self._pos, self._line, self._column = mark
                break
            self._read_quoted(buffer, escaped)
        value = "".join(buffer)
        return Token(TokenType.STRING, value, self.text[start : self._pos], start_line, start_col, tuple(escaped))

    def _read_quoted(self, buffer: list[str], escaped: list[int]) -> None:
        """Append one quoted string's characters to ``buffer``, one entry per character."""
        start_line, start_col = self._line, self._column
        self._advance()
        while not self._is_eof:
            char = self._advance()
            if char == '"':
                return
            if char == "\\":
                if self._is_eof:
                    break
                char = self._advance()
                if char == "$":
                    escaped.append(len(buffer))
                if char in ESCAPES:
                    char = ESCAPES[char]
                    if not char:
                        continue
            buffer.append(char)
        raise self._error("unterminated string", start_line, start_col)

    def _read_number(self) -> Token:
        start_line, start_col = self._line, self._column
        start = self._pos
        self._advance()
        while not self._is_eof:
            char = self._peek()
            previous = self.text[self._pos - 1]
            is_hex = self.text[start : self._pos].lstrip("+-").lower().startswith("0x")
            if char.isalnum() or char == ".":
                self._advance()
            elif char in "+-" and previous in "eE" and not is_hex:
                self._advance()
            else:
                break
        text = self.text[start : self._pos]
        try:
            value = parse_number(text)
        except ValueError as exc:
            raise self._error(str(exc), start_line, start_col) from exc
        return Token(TokenType.NUMBER, value, text, start_line, start_col)

    def _read_identifier(self) -> Token:
        start_line, start_col = self._line, self._column
        start = self._pos
        while not self._is_eof and (self._peek().isalnum() or self._peek() in IDENTIFIER_CHARS):
            self._advance()
        word = self.text[start : self._pos]
        return Token(TokenType.IDENTIFIER, word, word, start_line, start_col)

    # Helpers -----------------------------------------------------------------
    def _error(self, message: str, line: int, column: int) -> LexicalError:
        return LexicalError(message, self.filename, line, column)

    @property
    def _is_eof(self) -> bool:
        return self._pos >= len(self.text)

    def _peek(self, ahead: int = 0) -> str:
        index = self._pos + ahead
        if index >= len(self.text):
            return "\0"
        return self.text[index]

    def _advance(self) -> str:
        char = self.text[self._pos]
        self._pos += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char


__all__ = ["Lexer", "LexerConfig", "Token", "TokenType", "parse_number"]
