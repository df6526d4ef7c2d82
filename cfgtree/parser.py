"""Schema-driven recursive-descent parser.

The parser walks the token stream one statement at a time. Each statement
starts with a name that is looked up in the schema of the innermost open
section; the matched option decides what follows (a value, a list, a titled
block or a function call). Sections are parsed by recursing with the
section's own sub-schema, so the shape of the resulting ``ConfigNode`` tree is
dictated entirely by the schema handed in at call time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, NotRequired, Optional, Sequence, TypedDict

from cfgtree.coerce import coerce_token, token_text
from cfgtree.diagnostics import Diagnostics, Reporter
from cfgtree.exceptions import (
    CallbackRejected,
    DuplicateOption,
    MissingTitle,
    OptionTypeError,
    ParseError,
    SourceUnavailable,
    UnexpectedEOF,
    UnexpectedToken,
    UnknownOption,
    UnmatchedBrace,
)
from cfgtree.lexer import Lexer, Token, TokenType
from cfgtree.logger import Logger
from cfgtree.schema import OptionKind, OptionSpec, find_option, names_match, validate_schema
from cfgtree.sources import FileResolver, Source, expand_path, read_source, source_name
from cfgtree.tree import ConfigNode
from cfgtree.utils import resolve_config

Resolver = Callable[[str], Source]

VALUE_TOKENS = [TokenType.NUMBER, TokenType.STRING, TokenType.IDENTIFIER]
TITLE_TOKENS = [TokenType.STRING, TokenType.IDENTIFIER]

DESCRIPTIONS = {
    TokenType.IDENTIFIER: "a name",
    TokenType.STRING: "a string",
    TokenType.NUMBER: "a number",
    TokenType.OPEN_BRACE: "'{'",
    TokenType.CLOSE_BRACE: "'}'",
    TokenType.OPEN_PAREN: "'('",
    TokenType.CLOSE_PAREN: "')'",
    TokenType.COMMA: "','",
    TokenType.SEMICOLON: "';'",
    TokenType.EQUALS: "'='",
    TokenType.EOF: "end of input",
}


class ParserConfig(TypedDict):
    enable_logger: NotRequired[bool]
    nocase: NotRequired[bool]
    reporter: NotRequired[Optional[Reporter]]
    resolver: NotRequired[Optional[Resolver]]


class ParserConfigRequired(TypedDict):
    enable_logger: bool
    nocase: bool
    reporter: Optional[Reporter]
    resolver: Optional[Resolver]


DEFAULT_CONFIG: ParserConfigRequired = {
    "enable_logger": False,
    "nocase": False,
    "reporter": None,
    "resolver": None,
}


class TokenStream:
    """One-token lookahead over a lexer."""

    def __init__(self, lexer: Lexer):
        self.filename = lexer.filename
        self._tokens = lexer.iter_tokens()
        self.current: Token = next(self._tokens)

    def advance(self) -> Token:
        token = self.current
        if token.type is not TokenType.EOF:
            self.current = next(self._tokens)
        return token

    def accept(self, token_type: TokenType) -> Token | None:
        if self.current.type is token_type:
            return self.advance()
        return None

    def consume(self, expected: TokenType | list[TokenType], what: str | None = None) -> Token:
        if not isinstance(expected, list):
            expected = [expected]
        token = self.current
        if token.type not in expected:
            what = what or " or ".join(DESCRIPTIONS[token_type] for token_type in expected)
            if token.type is TokenType.EOF:
                raise UnexpectedEOF(f"unexpected end of input, expected {what}", self.filename, token.line, token.column)
            raise UnexpectedToken(
                f"unexpected {DESCRIPTIONS[token.type]} '{token.text}', expected {what}",
                self.filename,
                token.line,
                token.column,
            )
        return self.advance()


@dataclass
class ParseState:
    """Bookkeeping shared by one parse call and every include it triggers."""

    seen: set[tuple[int, str]] = field(default_factory=set)
    added: set[int] = field(default_factory=set)
    including: list[str] = field(default_factory=list)


class ParseContext:
    """What callbacks get to see of a parse in progress."""

    def __init__(
        self,
        parser: Parser,
        state: ParseState,
        options: Sequence[OptionSpec],
        node: ConfigNode,
    ):
        self.parser = parser
        self.state = state
        self.options = options
        self.node = node

    @property
    def filename(self) -> str | None:
        return self.node.filename

    @property
    def line(self) -> int:
        return self.node.line

    def find(self, name: str) -> OptionSpec | None:
        return find_option(self.options, name, self.node.nocase)

    def error(self, message: str) -> None:
        self.parser.diagnostics.error(self.node, message)

    def include(self, name: str) -> None:
        """Parse another source into the current section, as if written inline."""
        if name in self.state.including:
            chain = " -> ".join([*self.state.including, name])
            raise CallbackRejected(f"include cycle: {chain}", self.filename, self.line)
        resolver = self.parser.config["resolver"]
        try:
            if resolver is None:
                raise SourceUnavailable(f"cannot include '{name}': no include resolver configured")
            source = resolver(name)
        except SourceUnavailable as exc:
            self.error(str(exc))
            raise
        saved = (self.node.filename, self.node.line)
        self.state.including.append(name)
        try:
            self.parser._parse_source(self.state, self.options, self.node, source, source_name(source, name))
        finally:
            self.state.including.pop()
            self.node.filename, self.node.line = saved


class Parser:
    def __init__(self, schema: Iterable[OptionSpec], config: Optional[ParserConfig] = None):
        self.schema = validate_schema(schema)
        self.config = resolve_config(config or {}, DEFAULT_CONFIG)
        self.logger = Logger(config={"name": "cfgtree-parser", "is_enabled": self.config["enable_logger"]}).logger
        self.diagnostics = Diagnostics(self.config["reporter"])

    def new_root(self) -> ConfigNode:
        return ConfigNode.root(self.schema, nocase=self.config["nocase"])

    def parse(self, source: Source, filename: str | None = None) -> ConfigNode:
        root = self.new_root()
        self.parse_into(root, source, filename)
        return root

    def parse_into(self, root: ConfigNode, source: Source, filename: str | None = None) -> None:
        """Parse ``source`` into an existing tree.

        Options seen for the first time in this call replace what earlier
        parses stored, unless they are repeatable (``MULTI``) without
        ``RESET``, in which case the new values are appended. On error the
        tree is left partially updated and should be discarded.
        """
        state = ParseState()
        try:
            self._parse_source(state, self.schema, root, source, filename or source_name(source))
        except ParseError as exc:
            self.logger.info(f"Parse failed: {exc}")
            self.diagnostics.report(exc.context, exc.message)
            raise

    def _parse_source(
        self,
        state: ParseState,
        options: Sequence[OptionSpec],
        node: ConfigNode,
        source: Source,
        filename: str | None,
    ) -> None:
        lexer = Lexer(read_source(source, filename), filename=filename, config={"enable_logger": self.config["enable_logger"]})
        node.filename = filename
        self.logger.info(f"Parsing {filename} into section '{node.name}'")
        self._parse_block(state, TokenStream(lexer), options, node, depth=0)

    def _parse_block(
        self,
        state: ParseState,
        stream: TokenStream,
        options: Sequence[OptionSpec],
        node: ConfigNode,
        depth: int,
    ) -> None:
        while True:
            token = stream.advance()
            node.line = token.line
            match token.type:
                case TokenType.EOF:
                    if depth > 0:
                        raise UnexpectedEOF(
                            f"unexpected end of input, section '{node.name}' is not closed",
                            stream.filename,
                            token.line,
                            token.column,
                        )
                    return
                case TokenType.CLOSE_BRACE:
                    if depth == 0:
                        raise UnmatchedBrace("unmatched '}'", stream.filename, token.line, token.column)
                    return
                case TokenType.SEMICOLON:
                    continue
                case TokenType.IDENTIFIER:
                    pass
                case _:
                    raise UnexpectedToken(
                        f"unexpected {DESCRIPTIONS[token.type]} '{token.text}', expected an option name",
                        stream.filename,
                        token.line,
                        token.column,
                    )

            spec = find_option(options, str(token.value), node.nocase)
            if spec is None:
                raise UnknownOption(
                    f"no such option '{token.value}'", stream.filename, token.line, token.column
                )
            self.logger.debug(f"Statement '{spec.name}' ({spec.kind.value}) at line {token.line}")
            match spec.kind:
                case OptionKind.SECTION:
                    self._parse_section(state, stream, spec, node, token, depth)
                case OptionKind.FUNCTION:
                    self._parse_function(state, stream, spec, options, node, token)
                case _:
                    self._parse_value(state, stream, spec, options, node, token)

    def _claim(self, state: ParseState, spec: OptionSpec, node: ConfigNode, token: Token, stream: TokenStream) -> None:
        key = (id(node), spec.name)
        if key in state.seen:
            if not spec.is_multi:
                raise DuplicateOption(
                    f"option '{spec.name}' specified more than once", stream.filename, token.line, token.column
                )
            return
        state.seen.add(key)
        instance = node.instances.get(spec.name)
        if instance is None:
            return
        if spec.is_reset or not spec.is_multi:
            instance.values = []
        instance.is_set = True

    def _parse_value(
        self,
        state: ParseState,
        stream: TokenStream,
        spec: OptionSpec,
        options: Sequence[OptionSpec],
        node: ConfigNode,
        name_token: Token,
    ) -> None:
        self._claim(state, spec, node, name_token, stream)
        stream.accept(TokenType.EQUALS)
        if stream.current.type in (TokenType.OPEN_BRACE, TokenType.OPEN_PAREN):
            if not spec.is_list:
                token = stream.current
                raise UnexpectedToken(
                    f"option '{spec.name}' is not a list", stream.filename, token.line, token.column
                )
            raw = self._parse_value_list(stream)
        else:
            raw = [stream.consume(VALUE_TOKENS, "a value")]

        ctx = ParseContext(self, state, options, node)
        values = [self._coerce(ctx, spec, token, stream) for token in raw]
        if spec.binding is not None:
            for value in values:
                spec.binding.set(value)
            return
        node.instances[spec.name].values.extend(values)

    def _parse_value_list(self, stream: TokenStream) -> list[Token]:
        opening = stream.advance()
        closing = TokenType.CLOSE_BRACE if opening.type is TokenType.OPEN_BRACE else TokenType.CLOSE_PAREN
        tokens: list[Token] = []
        while stream.accept(closing) is None:
            tokens.append(stream.consume(VALUE_TOKENS, "a value"))
            if stream.accept(TokenType.COMMA) is None:
                stream.consume(closing)
                break
        return tokens

    def _coerce(self, ctx: ParseContext, spec: OptionSpec, token: Token, stream: TokenStream) -> Any:
        if spec.parse_cb is not None:
            try:
                return spec.parse_cb(ctx, spec, token_text(token))
            except ValueError as exc:
                raise CallbackRejected(
                    f"value '{token.text}' rejected for option '{spec.name}': {exc}",
                    stream.filename,
                    token.line,
                    token.column,
                ) from exc
        try:
            return coerce_token(spec.kind, token)
        except ValueError as exc:
            raise OptionTypeError(
                f"{exc} for option '{spec.name}'", stream.filename, token.line, token.column
            ) from exc

    def _parse_section(
        self,
        state: ParseState,
        stream: TokenStream,
        spec: OptionSpec,
        node: ConfigNode,
        name_token: Token,
        depth: int,
    ) -> None:
        self._claim(state, spec, node, name_token, stream)
        instance = node.instances[spec.name]
        title: str | None = None
        replace_at: int | None = None
        if spec.is_titled:
            if stream.current.type not in TITLE_TOKENS:
                token = stream.current
                raise MissingTitle(f"section '{spec.name}' needs a title", stream.filename, token.line, token.column)
            title = str(stream.advance().value)
            nocase = node.nocase or spec.is_nocase
            for index, existing in enumerate(instance.values):
                if existing.title is None or not names_match(existing.title, title, nocase):
                    continue
                if id(existing) in state.added:
                    raise DuplicateOption(
                        f"section '{spec.name}' with title '{title}' specified more than once",
                        stream.filename,
                        name_token.line,
                        name_token.column,
                    )
                replace_at = index
        stream.consume(TokenType.OPEN_BRACE)

        child = node.child(spec, title=title, line=name_token.line)
        self._parse_block(state, stream, spec.options or [], child, depth + 1)
        state.added.add(id(child))
        if replace_at is None:
            instance.values.append(child)
        else:
            instance.values[replace_at] = child

    def _parse_function(
        self,
        state: ParseState,
        stream: TokenStream,
        spec: OptionSpec,
        options: Sequence[OptionSpec],
        node: ConfigNode,
        name_token: Token,
    ) -> None:
        stream.consume(TokenType.OPEN_PAREN)
        args: list[str] = []
        while stream.accept(TokenType.CLOSE_PAREN) is None:
            args.append(token_text_raw(stream.consume(VALUE_TOKENS, "an argument")))
            if stream.accept(TokenType.COMMA) is None:
                stream.consume(TokenType.CLOSE_PAREN)
                break

        ctx = ParseContext(self, state, options, node)
        try:
            status = spec.func(ctx, spec, args)  # type: ignore[misc]
        except ValueError as exc:
            raise CallbackRejected(
                f"function '{spec.name}' failed: {exc}", stream.filename, name_token.line, name_token.column
            ) from exc
        if status:
            raise CallbackRejected(
                f"function '{spec.name}' failed", stream.filename, name_token.line, name_token.column
            )


def token_text_raw(token: Token) -> str:
    """String content for quoted tokens, source text otherwise; no expansion."""
    if token.type is TokenType.STRING:
        return str(token.value)
    return token.text


def parse(
    schema: Iterable[OptionSpec],
    source: Source,
    *,
    filename: str | None = None,
    config: Optional[ParserConfig] = None,
) -> ConfigNode:
    return Parser(schema, config).parse(source, filename)


def parse_into(
    schema: Iterable[OptionSpec],
    root: ConfigNode,
    source: Source,
    *,
    filename: str | None = None,
    config: Optional[ParserConfig] = None,
) -> None:
    Parser(schema, config).parse_into(root, source, filename)


def parse_file(
    schema: Iterable[OptionSpec],
    path: str | os.PathLike[str],
    *,
    config: Optional[ParserConfig] = None,
) -> ConfigNode:
    """Parse a file, resolving includes relative to its directory.

    The path is tilde-expanded and the file is read as UTF-8. A file that
    cannot be opened raises ``SourceUnavailable``; the file is closed on
    every exit path.
    """
    config = dict(config or {})
    expanded = expand_path(path)
    config.setdefault("resolver", FileResolver(expanded.parent))
    try:
        handle = open(expanded, "rb")
    except OSError as exc:
        raise SourceUnavailable(f"cannot open '{expanded}': {exc.strerror or exc}") from exc
    with handle:
        return Parser(schema, config).parse(handle, str(path))


__all__ = [
    "ParseContext",
    "Parser",
    "ParserConfig",
    "Resolver",
    "TokenStream",
    "parse",
    "parse_file",
    "parse_into",
]
