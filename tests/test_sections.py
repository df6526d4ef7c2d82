"""Tests for nested and titled sections."""

from __future__ import annotations

import pytest

from cfgtree import (
    DuplicateOption,
    MissingTitle,
    OptionFlag,
    UnexpectedEOF,
    UnexpectedToken,
    UnknownOption,
    int_option,
    parse,
    parse_into,
    section,
    str_option,
)


class TestTitledSections:
    """Repeatable sections told apart by title."""

    def test_single_section(self, server_schema) -> None:
        """A titled section becomes a child node with its own options."""
        cfg = parse(server_schema, 'server "web1" { port=80; }')
        assert cfg.size("server") == 1
        web1 = cfg.get_section("server")
        assert web1.title == "web1"
        assert web1.name == "server"
        assert web1.get_int("port") == 80

    def test_same_title_is_duplicate(self, server_schema) -> None:
        """Two sections with one title conflict even when repeatable."""
        text = 'server "web1" { port=80; }\nserver "web1" { port=81; }'
        with pytest.raises(DuplicateOption, match="web1") as excinfo:
            parse(server_schema, text)
        assert excinfo.value.line == 2

    def test_different_titles(self, server_schema) -> None:
        """Different titles give separate instances in input order."""
        cfg = parse(server_schema, 'server "web1" { port=80; }\nserver "web2" { port=81; }')
        assert [node.title for node in cfg.sections("server")] == ["web1", "web2"]
        assert cfg.get_titled_section("server", "web2").get_int("port") == 81
        assert cfg.get_titled_section("server", "web3") is None

    def test_bare_word_title(self, server_schema) -> None:
        """Titles may be unquoted words."""
        cfg = parse(server_schema, "server backend { }")
        assert cfg.get_section("server").title == "backend"

    def test_missing_title(self, server_schema) -> None:
        """A titled section needs a title before its brace."""
        with pytest.raises(MissingTitle):
            parse(server_schema, "server { port = 1 }")

    def test_title_match_is_case_sensitive(self, server_schema) -> None:
        """Titles differing only in case are distinct by default."""
        cfg = parse(server_schema, 'server "Web" { }\nserver "web" { }')
        assert cfg.size("server") == 2
        assert cfg.get_titled_section("server", "web") is cfg.get_section("server", 1)

    def test_title_match_follows_nocase(self) -> None:
        """With NOCASE, titles compare case-insensitively."""
        schema = [section("server", [], OptionFlag.MULTI | OptionFlag.TITLE | OptionFlag.NOCASE)]
        with pytest.raises(DuplicateOption):
            parse(schema, 'server "Web" { }\nSERVER "web" { }')
        cfg = parse(schema, 'server "Web" { }')
        assert cfg.get_titled_section("server", "WEB").title == "Web"

    def test_reparse_replaces_same_title(self, server_schema) -> None:
        """A title from an earlier parse is replaced in place."""
        cfg = parse(server_schema, 'server "a" { port = 1 }\nserver "b" { port = 2 }')
        parse_into(server_schema, cfg, 'server "a" { port = 10 }\nserver "c" { port = 3 }')
        assert [node.title for node in cfg.sections("server")] == ["a", "b", "c"]
        assert cfg.get_titled_section("server", "a").get_int("port") == 10


class TestNesting:
    """Sections inside sections."""

    SCHEMA = [
        section(
            "outer",
            [
                int_option("depth", default=1),
                section("inner", [int_option("depth", default=2), str_option("leaf")]),
            ],
        ),
        int_option("depth", default=0),
    ]

    def test_nested_values(self) -> None:
        """Each level uses its own schema."""
        cfg = parse(self.SCHEMA, "outer { inner { leaf = x; depth = 5 } }\ndepth = 9")
        outer = cfg.get_section("outer")
        inner = outer.get_section("inner")
        assert cfg.get_int("depth") == 9
        assert outer.get_int("depth") == 1
        assert inner.get_int("depth") == 5
        assert inner.get_str("leaf") == "x"

    def test_child_options_not_visible_at_root(self) -> None:
        """Names of a sub-schema are unknown outside it."""
        with pytest.raises(UnknownOption):
            parse(self.SCHEMA, "leaf = x")

    def test_parent_options_not_visible_in_child(self) -> None:
        """Names of the parent schema are unknown inside a section."""
        with pytest.raises(UnknownOption):
            parse([section("s", []), int_option("a")], "s { a = 1 }")

    def test_unclosed_section(self) -> None:
        """End of input inside a section is an error."""
        with pytest.raises(UnexpectedEOF, match="'outer' is not closed"):
            parse(self.SCHEMA, "outer { inner { leaf = x }")

    def test_non_repeatable_section(self) -> None:
        """A plain section may appear once."""
        with pytest.raises(DuplicateOption):
            parse(self.SCHEMA, "outer { }\nouter { }")

    def test_section_needs_brace(self) -> None:
        """A section name must be followed by a block."""
        with pytest.raises(UnexpectedToken):
            parse(self.SCHEMA, "outer = 1")

    def test_absent_section(self) -> None:
        """Sections have no default; reading an absent one gives None."""
        cfg = parse(self.SCHEMA, "")
        assert cfg.size("outer") == 0
        assert cfg.get_section("outer") is None

    def test_child_records_position(self) -> None:
        """Child nodes remember the file and the line they started on."""
        cfg = parse(self.SCHEMA, "\n\nouter {\n}", filename="n.conf")
        outer = cfg.get_section("outer")
        assert outer.filename == "n.conf"
        assert outer.line >= 3
