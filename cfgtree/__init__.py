"""Schema-driven configuration file parsing."""

from .coerce import parse_boolean
from .diagnostics import Diagnostics, ErrorContext, Reporter
from .exceptions import (
    CallbackRejected,
    ConfigError,
    DuplicateOption,
    LexicalError,
    MissingTitle,
    OptionLookupError,
    OptionTypeError,
    ParseError,
    SourceUnavailable,
    UnexpectedEOF,
    UnexpectedToken,
    UnknownOption,
    UnmatchedBrace,
)
from .lexer import Lexer, Token, TokenType
from .parser import ParseContext, Parser, ParserConfig, parse, parse_file, parse_into
from .schema import (
    AttrBinding,
    OptionFlag,
    OptionKind,
    OptionSpec,
    ValueSlot,
    bool_list,
    bool_option,
    float_list,
    float_option,
    function,
    int_list,
    int_option,
    section,
    simple_bool,
    simple_float,
    simple_int,
    simple_str,
    str_list,
    str_option,
)
from .sources import FileResolver, include, include_option
from .tree import ConfigNode, OptionInstance

__all__ = [
    "AttrBinding",
    "CallbackRejected",
    "ConfigError",
    "ConfigNode",
    "Diagnostics",
    "DuplicateOption",
    "ErrorContext",
    "FileResolver",
    "LexicalError",
    "Lexer",
    "MissingTitle",
    "OptionFlag",
    "OptionInstance",
    "OptionKind",
    "OptionLookupError",
    "OptionSpec",
    "OptionTypeError",
    "ParseContext",
    "ParseError",
    "Parser",
    "ParserConfig",
    "Reporter",
    "SourceUnavailable",
    "Token",
    "TokenType",
    "UnexpectedEOF",
    "UnexpectedToken",
    "UnknownOption",
    "UnmatchedBrace",
    "ValueSlot",
    "bool_list",
    "bool_option",
    "float_list",
    "float_option",
    "function",
    "include",
    "include_option",
    "int_list",
    "int_option",
    "parse",
    "parse_boolean",
    "parse_file",
    "parse_into",
    "section",
    "simple_bool",
    "simple_float",
    "simple_int",
    "simple_str",
    "str_list",
    "str_option",
]
