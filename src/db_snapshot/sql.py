"""Quoting helpers for SQL text written to dumps.

Usage:
    from db_snapshot.sql import quote_identifier, quote_text

    quote_identifier('a"b')   # '"a""b"'
    quote_text("it's")        # "'it''s'"
    quote_text("a\\nb")       # "E'a\\\\nb'"
"""

from db_snapshot.errors import EncodingError

# Escapes used inside E'...' strings
_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def quote_text(value: str) -> str:
    """Quote a string as a SQL literal.

    Plain strings use standard ``'...'`` syntax with quotes doubled. Strings
    containing backslashes or control characters use ``E'...'`` escape
    syntax so the literal is independent of ``standard_conforming_strings``
    and stays on one line.

    Raises:
        EncodingError: If the string contains NUL (PostgreSQL text cannot).
    """
    if "\x00" in value:
        raise EncodingError("Text values cannot contain NUL characters")
    if "\\" not in value and not any(_is_control(ch) for ch in value):
        return "'" + value.replace("'", "''") + "'"
    return "E'" + "".join(_escape_char(ch) for ch in value) + "'"


def quote_identifier(name: str) -> str:
    """Quote an identifier, doubling embedded double quotes."""
    if "\x00" in name:
        raise EncodingError("Identifiers cannot contain NUL characters")
    return '"' + name.replace('"', '""') + '"'


def comment_text(text: str) -> str:
    """Make text safe for a ``--`` comment line (no line breaks)."""
    return "".join("?" if _is_control(ch) else ch for ch in text)


def _is_control(ch: str) -> bool:
    return ord(ch) < 0x20 or ord(ch) == 0x7F


def _escape_char(ch: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    if _is_control(ch):
        return f"\\x{ord(ch):02x}"
    return ch
