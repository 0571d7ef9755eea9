"""String escaping and native literal rendering for the emitter targets.

Every string that ends up inside generated source goes through one of the
``quote_*`` helpers, so emitted literals are always well-formed for the
target grammar, whatever quotes or backslashes the input carries.
"""

from __future__ import annotations

import json
import logging
from collections import namedtuple
from typing import Any, Callable

from curl2code.errors import JsonReformatFailure

logger = logging.getLogger(__name__)

_C_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}

# PowerShell treats typographic single quotes as quote characters too.
_PS_QUOTES = ("'", "‘", "’", "‚", "‛")


def _escape_c_like(
    text: str, quote: str, control: Callable[[int], str]
) -> str:
    out = []
    for ch in text:
        if ch in _C_ESCAPES:
            out.append(_C_ESCAPES[ch])
        elif ch == quote:
            out.append("\\" + quote)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(control(ord(ch)))
        else:
            out.append(ch)
    return "".join(out)


def quote_single(text: str) -> str:
    """Single-quoted literal for Python and JavaScript."""
    return "'" + _escape_c_like(text, "'", lambda c: f"\\x{c:02x}") + "'"


def quote_double(text: str) -> str:
    """Double-quoted literal for Go, Java and C#."""
    return '"' + _escape_c_like(text, '"', lambda c: f"\\u{c:04x}") + '"'


def quote_rust(text: str) -> str:
    """Double-quoted Rust literal (``\\u{..}`` escapes)."""
    return '"' + _escape_c_like(text, '"', lambda c: f"\\u{{{c:x}}}") + '"'


def quote_verbatim_single(text: str) -> str:
    """Single-quoted literal for Ruby and PHP, where only ``\\`` and ``'`` escape."""
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def quote_powershell(text: str) -> str:
    """Single-quoted PowerShell literal; quotes are escaped by doubling."""
    out = []
    for ch in text:
        out.append(ch + ch if ch in _PS_QUOTES else ch)
    return "'" + "".join(out) + "'"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant {name}")


def decode_json_body(body: str) -> Any:
    """Decode a request body as strict JSON.

    Raises:
        JsonReformatFailure: If the body is not valid JSON.  ``NaN`` and
            ``Infinity`` are rejected since most targets cannot spell them.
    """
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except ValueError as exc:
        raise JsonReformatFailure(f"Body is not valid JSON: {exc}") from exc


def indent_block(text: str, prefix: str) -> str:
    """Prefix every line but the first, for literals placed mid-line."""
    return text.replace("\n", "\n" + prefix)


def json_text(value: Any) -> str:
    """Pretty JSON text, also valid as a JavaScript literal.

    Non-ASCII characters are kept as-is; control characters still use JSON
    escapes, which JavaScript accepts too.
    """
    return json.dumps(value, indent=2, ensure_ascii=False)


LiteralStyle = namedtuple(
    "LiteralStyle",
    (
        "quote",
        "null",
        "true",
        "false",
        "map_open",
        "map_close",
        "empty_map",
        "key_separator",
        "list_open",
        "list_close",
        "empty_list",
        "map_separator",
        "list_separator",
        "trailing_separator",
        "indent",
    ),
)

PYTHON_STYLE = LiteralStyle(
    quote_single, "None", "True", "False",
    "{", "}", "{}", ": ", "[", "]", "[]", ",", ",", True, "    ",
)
RUBY_STYLE = LiteralStyle(
    quote_verbatim_single, "nil", "true", "false",
    "{", "}", "{}", " => ", "[", "]", "[]", ",", ",", True, "  ",
)
PHP_STYLE = LiteralStyle(
    quote_verbatim_single, "null", "true", "false",
    "[", "]", "(object) []", " => ", "[", "]", "[]", ",", ",", True, "    ",
)
# Token layout of ``serde_json::json!``; strings are Rust literals, not JSON.
RUST_STYLE = LiteralStyle(
    quote_rust, "null", "true", "false",
    "{", "}", "{}", ": ", "[", "]", "[]", ",", ",", False, "    ",
)
POWERSHELL_STYLE = LiteralStyle(
    quote_powershell, "$null", "$true", "$false",
    "[ordered]@{", "}", "@{}", " = ", "@(", ")", "@()", "", ",", False, "    ",
)


def _scalar(value: Any, style: LiteralStyle) -> str:
    if value is None:
        return style.null
    if value is True:
        return style.true
    if value is False:
        return style.false
    if isinstance(value, str):
        return style.quote(value)
    return repr(value)


def render_literal(value: Any, style: LiteralStyle, level: int = 0) -> str:
    """Render a decoded JSON value in a target's native literal syntax.

    Containers are laid out one entry per line, indented one step deeper
    than ``level``; the closing bracket lines up with ``level``.
    """
    if isinstance(value, dict):
        if not value:
            return style.empty_map
        items = [
            style.quote(str(key)) + style.key_separator
            + render_literal(item, style, level + 1)
            for key, item in value.items()
        ]
        opening, closing, separator = (
            style.map_open, style.map_close, style.map_separator
        )
    elif isinstance(value, list):
        if not value:
            return style.empty_list
        items = [render_literal(item, style, level + 1) for item in value]
        opening, closing, separator = (
            style.list_open, style.list_close, style.list_separator
        )
    else:
        return _scalar(value, style)

    inner = style.indent * (level + 1)
    lines = []
    for idx, item in enumerate(items):
        last = idx == len(items) - 1
        sep = separator if (not last or style.trailing_separator) else ""
        lines.append(f"{inner}{item}{sep}")
    return opening + "\n" + "\n".join(lines) + "\n" + style.indent * level + closing
