"""Tests for coercion callbacks, function options and simple bindings."""

from __future__ import annotations

import pytest

from cfgtree import (
    AttrBinding,
    CallbackRejected,
    DuplicateOption,
    OptionFlag,
    OptionTypeError,
    ParseContext,
    ValueSlot,
    function,
    int_list,
    int_option,
    parse,
    simple_bool,
    simple_int,
    simple_str,
    str_option,
)

LEVELS = {"low": 1, "medium": 2, "high": 3}


def level_cb(ctx: ParseContext, spec, text: str) -> int:
    if text not in LEVELS:
        ctx.error(f"invalid value for option {spec.name}: {text}")
        raise ValueError(text)
    return LEVELS[text]


class TestCoercionCallback:
    """parse_cb replaces the built-in coercion."""

    def test_result_stored_verbatim(self) -> None:
        """The callback's return value becomes the option value."""
        cfg = parse([int_option("level", parse_cb=level_cb)], "level = medium")
        assert cfg.get_int("level") == 2

    def test_callback_per_list_element(self) -> None:
        """List options call back once per element."""
        cfg = parse([int_list("levels", parse_cb=level_cb)], "levels = {low, high}")
        assert cfg.get_option("levels").values == [1, 3]

    def test_rejection(self, reporter) -> None:
        """A ValueError from the callback rejects the value after it reported why."""
        with pytest.raises(CallbackRejected):
            parse([int_option("level", parse_cb=level_cb)], "level = extreme", config={"reporter": reporter})
        assert reporter.texts[0] == "invalid value for option level: extreme"

    def test_callback_sees_expanded_text(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Quoted text reaches the callback with placeholders expanded."""
        monkeypatch.setenv("CFGTREE_LEVEL", "high")
        cfg = parse([int_option("level", parse_cb=level_cb)], 'level = "${CFGTREE_LEVEL}"')
        assert cfg.get_int("level") == 3

    def test_parse_error_passes_through(self) -> None:
        """Callbacks may raise a specific parse error themselves."""

        def strict(ctx, spec, text):
            raise OptionTypeError(f"bad {text}", ctx.filename, ctx.line)

        with pytest.raises(OptionTypeError, match="bad x"):
            parse([str_option("s", parse_cb=strict)], "s = x")


class TestFunctionOptions:
    """Function-kind options invoke their callback with string arguments."""

    def test_arguments(self) -> None:
        """Arguments arrive as text in order."""
        calls = []

        def record(ctx, spec, args):
            calls.append((spec.name, list(args), ctx.line))

        parse([function("notify", record)], '\nnotify("ops", admin, 42)\nnotify()')
        assert calls == [("notify", ["ops", "admin", "42"], 2), ("notify", [], 3)]

    def test_nonzero_return_rejects(self) -> None:
        """A non-zero status aborts the parse."""
        with pytest.raises(CallbackRejected, match="function 'fail'"):
            parse([function("fail", lambda ctx, spec, args: 1)], "fail()")

    def test_function_sees_current_section(self) -> None:
        """The context points at the node being filled."""
        seen = []
        schema = [int_option("a"), function("peek", lambda ctx, spec, args: seen.append(ctx.node.get_int("a")))]
        parse(schema, "a = 5; peek()")
        assert seen == [5]

    def test_context_finds_sibling_options(self) -> None:
        """Callbacks can look up options of the schema being parsed."""
        found = []
        schema = [int_option("Port", flags=OptionFlag.NOCASE), function("peek", lambda ctx, spec, args: found.append(ctx.find(args[0])))]
        parse(schema, "peek(PORT); peek(missing)")
        assert [spec.name if spec else None for spec in found] == ["Port", None]

    def test_function_is_not_stored(self) -> None:
        """Function options have no place in the tree."""
        cfg = parse([function("noop", lambda ctx, spec, args: 0)], "noop()")
        assert "noop" not in cfg


class TestSimpleBindings:
    """Simple options write to a caller-owned location."""

    def test_value_slots(self) -> None:
        """Values go to the bound slot and not into the tree."""
        port, user, debug = ValueSlot(), ValueSlot("nobody"), ValueSlot()
        schema = [simple_int("port", port), simple_str("user", user), simple_bool("debug", debug)]
        cfg = parse(schema, 'port = 8080; user = "joe"; debug = on')
        assert (port.value, user.value, debug.value) == (8080, "joe", True)
        assert "port" not in cfg

    def test_untouched_slot_keeps_value(self) -> None:
        """Absent simple options leave their slot alone."""
        user = ValueSlot("nobody")
        parse([simple_str("user", user)], "")
        assert user.value == "nobody"

    def test_attr_binding(self) -> None:
        """Values can be written to an attribute."""

        class Settings:
            port = 0

        settings = Settings()
        parse([simple_int("port", AttrBinding(settings, "port"))], "port = 22")
        assert settings.port == 22

    def test_binding_duplicate(self) -> None:
        """Simple options are still single-occurrence."""
        with pytest.raises(DuplicateOption):
            parse([simple_int("port", ValueSlot())], "port = 1; port = 2")

    def test_binding_type_checked(self) -> None:
        """Coercion rules apply before writing through a binding."""
        with pytest.raises(OptionTypeError):
            parse([simple_int("port", ValueSlot())], "port = eighty")
