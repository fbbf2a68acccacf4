"""Tests for value encoding and SQL quoting.

Verifies:
- Every value kind encodes to the expected PostgreSQL literal
- Strings round-trip through the literal form and never break out of it
- NUL and unknown types raise EncodingError / UnsupportedTypeError
- Identifiers and comments are neutralized
"""

import ipaddress
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest
from asyncpg.types import Range

from db_snapshot.dump.encoder import ValueKind, classify, encode
from db_snapshot.errors import EncodingError, UnsupportedTypeError
from db_snapshot.sql import comment_text, quote_identifier, quote_text


_E_ESCAPES = {"b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "\\": "\\", "'": "'"}


def read_string_literal(literal: str) -> str:
    """Decode a '...' or E'...' literal the way PostgreSQL reads it.

    Fails the test if the literal ends before the last character, i.e. if
    anything in the value escaped the quotes.
    """
    escaped = literal.startswith("E'")
    i = 2 if escaped else 1
    assert literal[i - 1] == "'"
    out = []
    while i < len(literal):
        ch = literal[i]
        if escaped and ch == "\\":
            nxt = literal[i + 1]
            if nxt == "x":
                out.append(chr(int(literal[i + 2 : i + 4], 16)))
                i += 4
            else:
                out.append(_E_ESCAPES[nxt])
                i += 2
            continue
        if ch == "'":
            if i + 1 < len(literal) and literal[i + 1] == "'":
                out.append("'")
                i += 2
                continue
            assert i == len(literal) - 1, f"literal closed early: {literal!r}"
            return "".join(out)
        out.append(ch)
        i += 1
    pytest.fail(f"unterminated literal: {literal!r}")


# ============================================================================
# Test: Scalar kinds
# ============================================================================


class TestScalars:
    """Verify literal forms of scalar values."""

    def test_null(self) -> None:
        assert encode(None) == "NULL"

    def test_booleans(self) -> None:
        assert encode(True) == "TRUE"
        assert encode(False) == "FALSE"

    def test_bool_classified_before_int(self) -> None:
        assert classify(True) is ValueKind.BOOL
        assert classify(1) is ValueKind.INT

    def test_integers(self) -> None:
        assert encode(0) == "0"
        assert encode(-42) == "-42"
        assert encode(2**63) == str(2**63)

    def test_float(self) -> None:
        assert encode(1.5) == "1.5"
        assert encode(0.1) == "0.1"

    def test_float_special_values_are_quoted(self) -> None:
        assert encode(float("nan")) == "'NaN'"
        assert encode(float("inf")) == "'Infinity'"
        assert encode(float("-inf")) == "'-Infinity'"

    def test_decimal_keeps_precision(self) -> None:
        assert encode(Decimal("12345678901234567890.000001")) == "12345678901234567890.000001"

    def test_decimal_nan(self) -> None:
        assert encode(Decimal("NaN")) == "'NaN'"

    def test_uuid(self) -> None:
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert encode(value) == "'12345678-1234-5678-1234-567812345678'"

    def test_network_values(self) -> None:
        assert encode(ipaddress.ip_address("10.0.0.1")) == "'10.0.0.1'"
        assert encode(ipaddress.ip_network("10.0.0.0/8")) == "'10.0.0.0/8'"


# ============================================================================
# Test: Text
# ============================================================================


class TestText:
    """Verify string literals, including hostile content."""

    def test_plain_string(self) -> None:
        assert encode("hello") == "'hello'"

    def test_single_quote_doubled(self) -> None:
        assert encode("O'Brien") == "'O''Brien'"

    def test_empty_string_is_not_null(self) -> None:
        assert encode("") == "''"

    def test_newline_uses_escape_string(self) -> None:
        literal = encode("a\nb")
        assert literal == "E'a\\nb'"
        assert "\n" not in literal

    def test_backslash_uses_escape_string(self) -> None:
        assert encode("C:\\temp") == "E'C:\\\\temp'"

    def test_other_control_chars_hex_escaped(self) -> None:
        assert encode("a\x01b") == "E'a\\x01b'"

    def test_unicode_passes_through(self) -> None:
        assert encode("naïve ☃") == "'naïve ☃'"

    def test_nul_rejected(self) -> None:
        with pytest.raises(EncodingError, match="NUL"):
            encode("a\x00b")

    @pytest.mark.parametrize(
        "value",
        [
            "'); DROP TABLE users; --",
            "\\'; DROP TABLE users; --",
            "it's\\",
            "''''",
            "\\",
            "line1\r\nline2\t'quoted'",
            "\x7f\x1b[31m",
        ],
    )
    def test_hostile_strings_stay_inside_literal(self, value: str) -> None:
        assert read_string_literal(encode(value)) == value


# ============================================================================
# Test: Binary, temporal, structured
# ============================================================================


class TestStructured:
    """Verify bytes, temporal, JSON and array literals."""

    def test_bytes_hex(self) -> None:
        assert encode(b"\x00\xff") == "decode('00ff', 'hex')"

    def test_memoryview(self) -> None:
        assert encode(memoryview(b"ab")) == "decode('6162', 'hex')"

    def test_empty_bytes(self) -> None:
        assert encode(b"") == "decode('', 'hex')"

    def test_date(self) -> None:
        assert encode(date(2024, 2, 29)) == "'2024-02-29'"

    def test_time(self) -> None:
        assert encode(time(13, 5, 0)) == "'13:05:00'"

    def test_aware_datetime_keeps_offset(self) -> None:
        value = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert encode(value) == "'2024-01-02 03:04:05+00:00'"

    def test_naive_datetime(self) -> None:
        assert encode(datetime(2024, 1, 2, 3, 4, 5, 6)) == "'2024-01-02 03:04:05.000006'"

    def test_interval(self) -> None:
        value = timedelta(days=1, seconds=30, microseconds=5)
        assert encode(value) == "'1 days 30 seconds 5 microseconds'::interval"

    def test_negative_interval(self) -> None:
        # timedelta normalizes to days=-1, seconds=86399
        assert encode(timedelta(seconds=-1)) == "'-1 days 86399 seconds 0 microseconds'::interval"

    def test_json_object(self) -> None:
        assert encode({"a": 1, "b": "x'y"}) == """'{"a": 1, "b": "x''y"}'"""

    def test_json_with_escaped_newline(self) -> None:
        literal = encode({"k": "a\nb"})
        assert literal.startswith("E'")
        assert read_string_literal(literal) == '{"k": "a\\nb"}'

    def test_array(self) -> None:
        assert encode([1, 2, None]) == """'{"1","2",NULL}'"""

    def test_all_null_array_is_untyped(self) -> None:
        assert encode([None, None]) == "'{NULL,NULL}'"

    def test_text_array(self) -> None:
        assert encode(["a", "b'c"]) == """'{"a","b''c"}'"""

    def test_text_array_quotes_and_backslashes(self) -> None:
        literal = encode(['say "hi"', "a\\b", "NULL", "x,y}"])
        assert read_string_literal(literal) == '{"say \\"hi\\"","a\\\\b","NULL","x,y}"}'

    def test_uuid_and_date_array(self) -> None:
        value = [UUID("592d9d22-0000-4000-8000-000000000001"), None]
        assert encode(value) == """'{"592d9d22-0000-4000-8000-000000000001",NULL}'"""
        assert encode([date(2024, 1, 2)]) == """'{"2024-01-02"}'"""

    def test_array_element_forms(self) -> None:
        value = [True, float("nan"), Decimal("1.5"), b"\x01", {"k": 1}]
        assert read_string_literal(encode(value)) == (
            '{"t","NaN","1.5","\\\\x01","{\\"k\\": 1}"}'
        )

    def test_empty_array(self) -> None:
        assert encode([]) == "'{}'"

    def test_nested_array(self) -> None:
        assert encode([[1, 2], [3, None]]) == """'{{"1","2"},{"3",NULL}}'"""

    def test_nul_inside_array(self) -> None:
        with pytest.raises(EncodingError):
            encode(["a\x00b"])

    def test_int_range(self) -> None:
        assert classify(Range(1, 5)) is ValueKind.RANGE
        assert encode(Range(1, 5)) == """'["1","5")'"""

    def test_unbounded_range(self) -> None:
        assert encode(Range(None, 10, lower_inc=False, upper_inc=True)) == """'(,"10"]'"""

    def test_empty_range(self) -> None:
        assert encode(Range(empty=True)) == "'empty'"

    def test_timestamp_range(self) -> None:
        value = Range(datetime(2024, 1, 1, tzinfo=timezone.utc), datetime(2024, 2, 1, tzinfo=timezone.utc))
        assert encode(value) == """'["2024-01-01 00:00:00+00:00","2024-02-01 00:00:00+00:00")'"""

    def test_range_array(self) -> None:
        assert read_string_literal(encode([Range(1, 2)])) == '{"[\\"1\\",\\"2\\")"}'


# ============================================================================
# Test: Unsupported values
# ============================================================================


class TestUnsupported:
    """Verify unknown types are rejected, not stringified."""

    def test_unsupported_type_raises(self) -> None:
        with pytest.raises(UnsupportedTypeError) as exc_info:
            encode(object())
        assert exc_info.value.value_type is object

    def test_unsupported_is_encoding_error(self) -> None:
        with pytest.raises(EncodingError):
            encode({1, 2})

    def test_unsupported_inside_array(self) -> None:
        with pytest.raises(UnsupportedTypeError):
            encode([1, object()])


# ============================================================================
# Test: Identifiers and comments
# ============================================================================


class TestQuoting:
    """Verify identifier and comment helpers."""

    def test_identifier_quoted(self) -> None:
        assert quote_identifier("users") == '"users"'

    def test_identifier_embedded_quote_doubled(self) -> None:
        assert quote_identifier('we"ird') == '"we""ird"'

    def test_identifier_keeps_case_and_spaces(self) -> None:
        assert quote_identifier("Order Items") == '"Order Items"'

    def test_identifier_nul_rejected(self) -> None:
        with pytest.raises(EncodingError):
            quote_identifier("a\x00")

    def test_comment_text_strips_line_breaks(self) -> None:
        assert comment_text("evil\nDROP TABLE x;") == "evil?DROP TABLE x;"

    def test_quote_text_matches_encode(self) -> None:
        assert quote_text("x") == encode("x")
