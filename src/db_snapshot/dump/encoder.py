"""PostgreSQL literal encoding for dumped values.

Every value written to a dump passes through ``encode()``; identifiers go
through ``db_snapshot.sql.quote_identifier()``. Raw row data never reaches
the output stream any other way.

Values are first tagged with a ``ValueKind`` by ``classify()``; ``encode()``
then matches exhaustively over the tags.

Usage:
    from db_snapshot.dump.encoder import encode

    encode(None)           # 'NULL'
    encode("it's")         # "'it''s'"
    encode(b"\\x00\\xff")    # "decode('00ff', 'hex')"
    encode([1, None])      # "'{\"1\",NULL}'"
"""

import enum
import ipaddress
import json
import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from asyncpg.types import Range

from db_snapshot.errors import EncodingError, UnsupportedTypeError
from db_snapshot.sql import quote_text

_NETWORK_TYPES = (
    ipaddress.IPv4Address,
    ipaddress.IPv6Address,
    ipaddress.IPv4Network,
    ipaddress.IPv6Network,
    ipaddress.IPv4Interface,
    ipaddress.IPv6Interface,
)


class ValueKind(enum.Enum):
    """Tag for a row value's literal form."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    NUMERIC = "numeric"
    TEXT = "text"
    BYTES = "bytes"
    TEMPORAL = "temporal"
    INTERVAL = "interval"
    UUID = "uuid"
    NETWORK = "network"
    JSON = "json"
    ARRAY = "array"
    RANGE = "range"


def classify(value: Any) -> ValueKind:
    """Tag a value with its ``ValueKind``.

    Raises:
        UnsupportedTypeError: If the value's type has no literal form.
    """
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, Decimal):
        return ValueKind.NUMERIC
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    if isinstance(value, (datetime, date, time)):
        return ValueKind.TEMPORAL
    if isinstance(value, timedelta):
        return ValueKind.INTERVAL
    if isinstance(value, UUID):
        return ValueKind.UUID
    if isinstance(value, _NETWORK_TYPES):
        return ValueKind.NETWORK
    if isinstance(value, dict):
        return ValueKind.JSON
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Range):
        return ValueKind.RANGE
    raise UnsupportedTypeError(value)


def encode(value: Any) -> str:
    """Encode a value as a PostgreSQL literal.

    Raises:
        UnsupportedTypeError: If the value's type is not recognized.
        EncodingError: If a recognized value cannot be represented
            (text containing NUL).
    """
    match classify(value):
        case ValueKind.NULL:
            return "NULL"
        case ValueKind.BOOL:
            return "TRUE" if value else "FALSE"
        case ValueKind.INT:
            return str(value)
        case ValueKind.FLOAT:
            return _encode_float(value)
        case ValueKind.NUMERIC:
            return _encode_decimal(value)
        case ValueKind.TEXT:
            return quote_text(value)
        case ValueKind.BYTES:
            return f"decode('{bytes(value).hex()}', 'hex')"
        case ValueKind.TEMPORAL:
            return quote_text(_isoformat(value))
        case ValueKind.INTERVAL:
            return (
                f"'{value.days} days {value.seconds} seconds "
                f"{value.microseconds} microseconds'::interval"
            )
        case ValueKind.UUID | ValueKind.NETWORK:
            return quote_text(str(value))
        case ValueKind.JSON:
            return quote_text(json.dumps(value, ensure_ascii=False, default=str))
        case ValueKind.ARRAY:
            return _encode_array(value)
        case ValueKind.RANGE:
            return quote_text(_range_text(value))


def _encode_float(value: float) -> str:
    if math.isnan(value):
        return "'NaN'"
    if math.isinf(value):
        return "'Infinity'" if value > 0 else "'-Infinity'"
    return repr(value)


def _encode_decimal(value: Decimal) -> str:
    if value.is_nan():
        return "'NaN'"
    if value.is_infinite():
        return "'Infinity'" if value > 0 else "'-Infinity'"
    return str(value)


def _isoformat(value: date | time) -> str:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value.isoformat()


def _encode_array(values: list | tuple) -> str:
    # A quoted '{...}' literal is untyped and takes the column's element type
    return quote_text(_array_text(values))


def _array_text(values: list | tuple) -> str:
    parts = []
    for value in values:
        if value is None:
            parts.append("NULL")
        elif isinstance(value, (list, tuple)):
            parts.append(_array_text(value))
        else:
            parts.append(_quote_element(_element_text(value)))
    return "{" + ",".join(parts) + "}"


def _range_text(value: Range) -> str:
    if value.isempty:
        return "empty"
    lower = "" if value.lower is None else _quote_element(_element_text(value.lower))
    upper = "" if value.upper is None else _quote_element(_element_text(value.upper))
    return (
        ("[" if value.lower_inc else "(")
        + f"{lower},{upper}"
        + ("]" if value.upper_inc else ")")
    )


def _quote_element(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _element_text(value: Any) -> str:
    """PostgreSQL input text of a non-NULL array element or range bound."""
    match classify(value):
        case ValueKind.BOOL:
            return "t" if value else "f"
        case ValueKind.INT | ValueKind.UUID | ValueKind.NETWORK:
            return str(value)
        case ValueKind.FLOAT:
            return _encode_float(value).strip("'")
        case ValueKind.NUMERIC:
            return _encode_decimal(value).strip("'")
        case ValueKind.TEXT:
            if "\x00" in value:
                raise EncodingError("Text values cannot contain NUL characters")
            return value
        case ValueKind.BYTES:
            return "\\x" + bytes(value).hex()
        case ValueKind.TEMPORAL:
            return _isoformat(value)
        case ValueKind.INTERVAL:
            return f"{value.days} days {value.seconds} seconds {value.microseconds} microseconds"
        case ValueKind.JSON:
            return json.dumps(value, ensure_ascii=False, default=str)
        case ValueKind.RANGE:
            return _range_text(value)
        case ValueKind.NULL | ValueKind.ARRAY:
            raise UnsupportedTypeError(value)
