"""Catalog reader protocol definition.

Defines the ``CatalogReader`` Protocol that dump runs read table and
column metadata through. ``SchemaIntrospector`` implements it over
information_schema.

Usage:
    from db_snapshot.schema.base import CatalogReader

    async def column_names(catalog: CatalogReader, table: str) -> list[str]:
        async with catalog:
            return [c.name for c in await catalog.list_columns(table)]
"""

from typing import Any, Protocol

from db_snapshot.schema.models import ColumnSchema


class CatalogReader(Protocol):
    """Async context manager exposing a schema's tables and columns."""

    async def __aenter__(self) -> Any:
        """Open the catalog connection."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the catalog connection."""
        ...

    async def list_tables(self) -> list[str]:
        """Return the base tables of the schema, in catalog order.

        Raises:
            MetadataError: If the catalog cannot be read.
        """
        ...

    async def list_columns(self, table: str) -> list[ColumnSchema]:
        """Return ``table``'s columns ordered by ordinal position.

        Raises:
            UnknownTableError: If the table no longer exists.
            MetadataError: If the catalog cannot be read.
        """
        ...
