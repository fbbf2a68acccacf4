"""Row source protocol definition.

Defines the ``RowSource`` Protocol that dump sources must implement.
All methods are async -- the library is async-first.

Usage:
    from db_snapshot.adapters.base import RowSource

    async def count_rows(source: RowSource, table: str) -> int:
        n = 0
        async with source.snapshot():
            async for _row in source.stream_rows(table):
                n += 1
        await source.close()
        return n
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, AsyncIterator, Protocol


class RowSource(Protocol):
    """Forward-only row reader that dump runs pull table contents from."""

    def stream_rows(self, table: str) -> AsyncIterator[dict[str, Any]]:
        """Yield rows of ``table`` one at a time, in cursor order.

        Each row is a dict keyed by column name, in result column order.
        Rows are fetched through a bounded read-ahead, never the whole
        table at once.

        Raises:
            UnknownTableError: If the table does not exist.
            SourceError: On any other database failure.
        """
        ...

    def snapshot(self, enabled: bool = True) -> AbstractAsyncContextManager[None]:
        """Hold one read-only repeatable-read transaction while open.

        Every ``stream_rows`` call made inside the block reads from the
        same snapshot. With ``enabled=False`` the block is a no-op and each
        table is read in its own transaction.
        """
        ...

    async def close(self) -> None:
        """Close connections and clean up resources."""
        ...
