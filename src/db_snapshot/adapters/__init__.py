"""Row source adapters.

Provides the ``RowSource`` Protocol and the async PostgreSQL
implementation used by dump runs.

Usage:
    from db_snapshot.adapters import RowSource, AsyncPostgresAdapter
"""

from db_snapshot.adapters.base import RowSource
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

__all__ = [
    "RowSource",
    "AsyncPostgresAdapter",
]
