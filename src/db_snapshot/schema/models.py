"""Pydantic models for schema introspection."""

from pydantic import BaseModel


class ColumnSchema(BaseModel):
    """One column as reported by ``information_schema.columns``.

    ``data_type`` is already a DDL-ready type (lengths, precision and
    array/user-defined element types resolved).

    Example:
        >>> col = ColumnSchema(name="id", data_type="integer", is_nullable=False)
        >>> col.default is None
        True
    """

    name: str
    data_type: str
    is_nullable: bool = True
    default: str | None = None
    ordinal: int = 0
