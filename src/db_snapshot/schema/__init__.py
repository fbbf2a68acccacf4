"""Schema introspection for dumps.

Usage:
    from db_snapshot.schema import SchemaIntrospector, ColumnSchema
"""

from db_snapshot.schema.base import CatalogReader
from db_snapshot.schema.introspector import SchemaIntrospector
from db_snapshot.schema.models import ColumnSchema

__all__ = [
    "CatalogReader",
    "SchemaIntrospector",
    "ColumnSchema",
]
