"""Tests for string escaping and native literal rendering."""

import pytest

from curl2code.errors import JsonReformatFailure
from curl2code.literals import (
    PHP_STYLE,
    POWERSHELL_STYLE,
    PYTHON_STYLE,
    RUBY_STYLE,
    RUST_STYLE,
    decode_json_body,
    indent_block,
    json_text,
    quote_double,
    quote_powershell,
    quote_rust,
    quote_single,
    quote_verbatim_single,
    render_literal,
)


class TestQuoting:
    """Tests for per-grammar string escaping."""

    def test_single(self):
        assert quote_single("it's a \\ path") == "'it\\'s a \\\\ path'"

    def test_single_control_chars(self):
        assert quote_single("a\nb\tc\x01") == "'a\\nb\\tc\\x01'"

    def test_double(self):
        assert quote_double('say "hi"\r\n') == '"say \\"hi\\"\\r\\n"'

    def test_double_control_char(self):
        assert quote_double("\x1b") == '"\\u001b"'

    def test_rust_control_char(self):
        assert quote_rust("\x1b") == '"\\u{1b}"'

    def test_verbatim_single_keeps_newlines(self):
        assert quote_verbatim_single("a'b\\\nc") == "'a\\'b\\\\\nc'"

    def test_powershell_doubles_quotes(self):
        assert quote_powershell("it's ‘x’") == "'it''s ‘‘x’’'"

    def test_powershell_leaves_dollar_alone(self):
        assert quote_powershell("$env:HOME") == "'$env:HOME'"


class TestDecodeJsonBody:
    """Tests for strict JSON decoding."""

    def test_valid(self):
        assert decode_json_body('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_invalid_raises(self):
        with pytest.raises(JsonReformatFailure):
            decode_json_body("{nope")

    def test_nan_rejected(self):
        with pytest.raises(JsonReformatFailure):
            decode_json_body('{"a": NaN}')

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            decode_json_body("")


class TestRenderLiteral:
    """Tests for native literal rendering."""

    def test_python_nested(self):
        value = {"a": [1, None], "b": {"c": True}}
        assert render_literal(value, PYTHON_STYLE) == (
            "{\n"
            "    'a': [\n"
            "        1,\n"
            "        None,\n"
            "    ],\n"
            "    'b': {\n"
            "        'c': True,\n"
            "    },\n"
            "}"
        )

    def test_scalars(self):
        assert render_literal("x'y", PYTHON_STYLE) == "'x\\'y'"
        assert render_literal(2.5, RUBY_STYLE) == "2.5"
        assert render_literal(None, RUBY_STYLE) == "nil"
        assert render_literal(False, POWERSHELL_STYLE) == "$false"

    def test_empty_containers(self):
        assert render_literal({}, PHP_STYLE) == "(object) []"
        assert render_literal([], PHP_STYLE) == "[]"
        assert render_literal({}, POWERSHELL_STYLE) == "@{}"

    def test_powershell_array_has_no_trailing_comma(self):
        assert render_literal([1, 2], POWERSHELL_STYLE) == "@(\n    1,\n    2\n)"

    def test_level_indents_closing_bracket(self):
        assert render_literal({"k": 1}, RUBY_STYLE, level=1) == "{\n    'k' => 1,\n  }"

    def test_key_order_preserved(self):
        text = render_literal({"z": 1, "a": 2}, PYTHON_STYLE)
        assert text.index("'z'") < text.index("'a'")

    def test_rust_uses_rust_string_escapes(self):
        value = {"name": "café", "ctl": "a\x0cb", "list": [None, True]}
        assert render_literal(value, RUST_STYLE) == (
            "{\n"
            '    "name": "café",\n'
            '    "ctl": "a\\u{c}b",\n'
            '    "list": [\n'
            "        null,\n"
            "        true\n"
            "    ]\n"
            "}"
        )


class TestJsonText:
    def test_keeps_non_ascii(self):
        assert json_text({"name": "café"}) == '{\n  "name": "café"\n}'


class TestIndentBlock:
    def test_prefixes_following_lines(self):
        assert indent_block("{\n  1\n}", "  ") == "{\n    1\n  }"
