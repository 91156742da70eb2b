"""Conversion between typed-in text and YAML scalar values."""

from __future__ import annotations

import re

# Python's int()/float() accept underscores, "inf" and "nan"; YAML input
# here is restricted to plain decimal notation.
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(
    r"[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?|[+-]?(inf|infinity|nan)",
    re.IGNORECASE | re.ASCII,
)

_QUOTES = ('"', "'")
_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


def escape_string(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def unescape_string(value: str) -> str:
    """Decode ``\\n \\t \\" \\\\``; any other escape keeps its backslash."""
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            out.append("\\")
        elif nxt in _ESCAPES:
            out.append(_ESCAPES[nxt])
        else:
            out.append("\\" + nxt)
    return "".join(out)


def parse_user_text(text: str) -> object:
    """Interpret *text* as a scalar: null, quoted string, bool, int, float or
    plain string, in that order. Never raises."""
    trimmed = text.strip()
    if not trimmed:
        return None
    if len(trimmed) >= 2 and trimmed[0] in _QUOTES and trimmed[-1] == trimmed[0]:
        return unescape_string(trimmed[1:-1])
    lower = trimmed.lower()
    if lower == "true":
        return True
    if lower == "false":
        return False
    if lower == "null":
        return None
    if _INT_RE.fullmatch(trimmed):
        return int(trimmed)
    if _FLOAT_RE.fullmatch(trimmed):
        return float(trimmed)
    return trimmed


def preview(value: object) -> str:
    """Single-line text for a value; containers preview as ``""``."""
    if isinstance(value, (dict, list)):
        return ""
    if isinstance(value, str):
        return f'"{escape_string(value)}"'
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)
