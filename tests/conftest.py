"""Shared fakes for dump tests.

The fakes stand in for ``SchemaIntrospector`` and ``AsyncPostgresAdapter``
so the writer and runner can be exercised without a database.
"""

from contextlib import asynccontextmanager
from typing import Any

import pytest

from db_snapshot.errors import UnknownTableError
from db_snapshot.schema.models import ColumnSchema


class FakeIntrospector:
    """In-memory catalog: table name -> columns."""

    def __init__(
        self,
        tables: dict[str, list[ColumnSchema]] | None = None,
        vanished: set[str] | None = None,
        list_error: Exception | None = None,
        connect_error: Exception | None = None,
    ) -> None:
        self.tables = tables or {}
        self.vanished = vanished or set()
        self.list_error = list_error
        self.connect_error = connect_error
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeIntrospector":
        if self.connect_error is not None:
            raise self.connect_error
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.exited = True

    async def list_tables(self) -> list[str]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.tables) + sorted(self.vanished)

    async def list_columns(self, table: str) -> list[ColumnSchema]:
        if table in self.vanished:
            raise UnknownTableError(table)
        return self.tables[table]


class FakeSource:
    """In-memory rows: table name -> list of row dicts."""

    def __init__(
        self,
        rows: dict[str, list[dict[str, Any]]] | None = None,
        errors: dict[str, Exception] | None = None,
        snapshot_exit_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.rows = rows or {}
        self.errors = errors or {}
        self.snapshot_exit_error = snapshot_exit_error
        self.close_error = close_error
        self.snapshot_calls: list[bool] = []
        self.streamed: list[str] = []
        self.closed = False

    @asynccontextmanager
    async def snapshot(self, enabled: bool = True):
        self.snapshot_calls.append(enabled)
        yield
        if self.snapshot_exit_error is not None:
            raise self.snapshot_exit_error

    async def stream_rows(self, table: str):
        self.streamed.append(table)
        for row in self.rows.get(table, []):
            yield row
        if table in self.errors:
            raise self.errors[table]

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


def cols(*names: str, data_type: str = "text") -> list[ColumnSchema]:
    """Build nullable columns of one type."""
    return [
        ColumnSchema(name=name, data_type=data_type, ordinal=i)
        for i, name in enumerate(names, start=1)
    ]


@pytest.fixture
def introspector() -> FakeIntrospector:
    return FakeIntrospector(
        tables={
            "users": [
                ColumnSchema(name="id", data_type="integer", is_nullable=False, ordinal=1),
                ColumnSchema(name="name", data_type="text", ordinal=2),
            ],
            "orders": cols("id", "total", data_type="numeric"),
        }
    )


@pytest.fixture
def source() -> FakeSource:
    return FakeSource(
        rows={
            "users": [{"id": 1, "name": "alice"}, {"id": 2, "name": "O'Brien"}],
            "orders": [],
        }
    )
