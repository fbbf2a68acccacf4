"""Dump writer: turns introspected tables and streamed rows into SQL text.

A run moves through ``DumpState``:

    START -> ENUMERATE_TABLES -> (EMIT_DDL -> STREAM_ROWS)* -> FINALIZE -> DONE

with ``ABORTED`` reachable from every step. Output goes to the sink as it
is produced; rows are never buffered per table.

Artifact layout::

    -- <tool> Database Backup
    -- <UTC timestamp>

    -- Table: <name>
    CREATE TABLE "<name>" (
      "<col>" <type>[ DEFAULT <expr>][ NOT NULL],
      ...
    );

    INSERT INTO "<name>" ("<col>", ...) VALUES (<literal>, ...);
    ...

Usage:
    writer = DumpWriter(introspector, source, sink, tool_name="Supabase")
    report = await writer.run()
"""

import asyncio
import enum
import logging
import time
from contextlib import aclosing
from datetime import datetime, timezone
from typing import Any, Callable

from db_snapshot.adapters.base import RowSource
from db_snapshot.dump.encoder import encode
from db_snapshot.dump.models import DumpReport, DumpWarning, EncodingErrorPolicy
from db_snapshot.dump.sink import ArtifactSink
from db_snapshot.errors import (
    DumpAbortedError,
    DumpCancelledError,
    EncodingError,
    UnknownTableError,
)
from db_snapshot.schema.base import CatalogReader
from db_snapshot.schema.models import ColumnSchema
from db_snapshot.sql import comment_text, quote_identifier

logger = logging.getLogger(__name__)


class DumpState(enum.Enum):
    """Steps of a dump run."""

    START = "start"
    ENUMERATE_TABLES = "enumerate_tables"
    EMIT_DDL = "emit_ddl"
    STREAM_ROWS = "stream_rows"
    FINALIZE = "finalize"
    DONE = "done"
    ABORTED = "aborted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Rendering
# ============================================================================


def render_header(tool_name: str, generated_at: datetime) -> str:
    """Header comment opening every artifact."""
    stamp = generated_at.isoformat(sep=" ", timespec="seconds")
    return f"-- {comment_text(tool_name)} Database Backup\n-- {stamp}\n\n"


def render_create_table(
    table: str,
    columns: list[ColumnSchema],
    dialect_hints: dict[str, str] | None = None,
) -> str:
    """Minimal ``CREATE TABLE`` for a table.

    Keys, indexes and constraints other than ``NOT NULL`` are not emitted.
    ``dialect_hints`` maps declared types (case-insensitive, quotes ignored)
    to the type written instead.

    Example:
        >>> cols = [ColumnSchema(name="id", data_type="integer", is_nullable=False)]
        >>> print(render_create_table("users", cols), end="")
        CREATE TABLE "users" (
          "id" integer NOT NULL
        );
    """
    hints = {_hint_key(k): v for k, v in (dialect_hints or {}).items()}
    clauses = []
    for col in columns:
        line = f"  {quote_identifier(col.name)} {hints.get(_hint_key(col.data_type), col.data_type)}"
        if col.default:
            line += f" DEFAULT {col.default}"
        if not col.is_nullable:
            line += " NOT NULL"
        clauses.append(line)

    body = ",\n".join(clauses)
    if body:
        body += "\n"
    return f"CREATE TABLE {quote_identifier(table)} (\n{body});\n"


def render_insert(table: str, row: dict[str, Any]) -> str:
    """One ``INSERT`` statement for a row, columns in row order.

    Raises:
        EncodingError: If any value cannot be encoded.
    """
    if not row:
        return f"INSERT INTO {quote_identifier(table)} DEFAULT VALUES;\n"
    cols = ", ".join(quote_identifier(name) for name in row)
    vals = ", ".join(encode(value) for value in row.values())
    return f"INSERT INTO {quote_identifier(table)} ({cols}) VALUES ({vals});\n"


def _hint_key(data_type: str) -> str:
    return data_type.replace('"', "").strip().lower()


# ============================================================================
# Writer
# ============================================================================


class DumpWriter:
    """Run one dump from an introspector and row source into a sink.

    Args:
        introspector: Connected ``CatalogReader`` such as ``SchemaIntrospector``.
        source: ``RowSource`` providing table rows.
        sink: ``ArtifactSink`` receiving the bytes.
        tool_name: Name written in the header comment.
        dialect_hints: Declared type -> DDL type overrides.
        on_encoding_error: ``"skip_row"`` skips the row, ``"skip_table"``
            stops the current table, ``"abort"`` aborts the run.
        sort_tables: Sort table names lexicographically before dumping.
        cancel_event: When set, the run is cancelled before the next row.
        clock: Returns the current (aware) time.
    """

    def __init__(
        self,
        introspector: CatalogReader,
        source: RowSource,
        sink: ArtifactSink,
        tool_name: str = "PostgreSQL",
        dialect_hints: dict[str, str] | None = None,
        on_encoding_error: EncodingErrorPolicy = "skip_row",
        sort_tables: bool = True,
        cancel_event: asyncio.Event | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._introspector = introspector
        self._source = source
        self._sink = sink
        self._tool_name = tool_name
        self._dialect_hints = dialect_hints or {}
        self._on_encoding_error = on_encoding_error
        self._sort_tables = sort_tables
        self._cancel_event = cancel_event
        self._clock = clock

        self._state = DumpState.START
        self._current_table: str | None = None
        self._warnings: list[DumpWarning] = []
        self._skipped_tables: list[str] = []
        self._rows_written = 0

    @property
    def state(self) -> DumpState:
        return self._state

    @property
    def warnings(self) -> list[DumpWarning]:
        return list(self._warnings)

    async def run(self) -> DumpReport:
        """Execute the run.

        Returns:
            DumpReport for the finalized artifact.

        Raises:
            DumpAbortedError: On any unrecoverable failure. The partial
                artifact has been discarded.
            asyncio.CancelledError: If the task was cancelled (artifact
                discarded first).
        """
        started_at = self._clock()
        started = time.monotonic()
        tables_count = 0

        try:
            self._state = DumpState.START
            self._sink.open()
            self._write(render_header(self._tool_name, started_at))

            self._state = DumpState.ENUMERATE_TABLES
            tables = await self._introspector.list_tables()
            if self._sort_tables:
                tables = sorted(tables)
            logger.info(
                "Found %d tables to back up",
                len(tables),
                extra={"event": "dump.tables", "tables_count": len(tables)},
            )

            for table in tables:
                self._check_cancelled()
                if await self._dump_table(table):
                    tables_count += 1
            self._current_table = None

            self._state = DumpState.FINALIZE
            info = self._sink.finalize()
        except asyncio.CancelledError:
            self._abort()
            raise
        except Exception as e:
            operation = self._state.value
            self._abort()
            raise DumpAbortedError(operation, e, table=self._current_table) from e

        self._state = DumpState.DONE
        return DumpReport(
            tables_count=tables_count,
            duration_seconds=round(time.monotonic() - started, 3),
            size_bytes=info.size_bytes,
            filename=info.filename,
            path=info.path,
            started_at=started_at,
            finished_at=self._clock(),
            rows_written=self._rows_written,
            skipped_tables=tuple(self._skipped_tables),
            warnings=tuple(self._warnings),
        )

    async def _dump_table(self, table: str) -> bool:
        """Emit DDL and rows for one table. Returns False if it was skipped."""
        self._current_table = table

        self._state = DumpState.EMIT_DDL
        try:
            columns = await self._introspector.list_columns(table)
        except UnknownTableError as e:
            self._warn(table, f"{e}; table skipped")
            self._skipped_tables.append(table)
            return False

        self._write(
            f"-- Table: {comment_text(table)}\n"
            + render_create_table(table, columns, self._dialect_hints)
            + "\n"
        )

        self._state = DumpState.STREAM_ROWS
        logger.info(
            "Backing up data for table: %s",
            table,
            extra={"event": "dump.table.start", "table": table},
        )
        rows = 0
        row_number = 0
        try:
            async with aclosing(self._source.stream_rows(table)) as stream:
                async for row in stream:
                    self._check_cancelled()
                    row_number += 1
                    try:
                        statement = render_insert(table, row)
                    except EncodingError as e:
                        if self._on_encoding_error == "abort":
                            raise
                        if self._on_encoding_error == "skip_table":
                            message = f"Row {row_number}: {e}; remaining rows not dumped"
                            self._warn(table, message)
                            self._write(f"-- WARNING: {comment_text(message)}\n")
                            break
                        self._warn(table, f"Row {row_number} skipped: {e}")
                        continue
                    self._write(statement)
                    rows += 1
        except UnknownTableError as e:
            self._warn(table, f"{e}; rows not dumped")

        self._write("\n")
        self._rows_written += rows
        logger.info(
            "Dumped table %s (%d rows)",
            table,
            rows,
            extra={"event": "dump.table.done", "table": table, "rows": rows},
        )
        return True

    def _write(self, text: str) -> None:
        self._sink.write(text.encode("utf-8"))

    def _warn(self, table: str | None, message: str) -> None:
        logger.warning(
            "%s: %s", table, message, extra={"event": "dump.warning", "table": table}
        )
        self._warnings.append(DumpWarning(table=table, message=message))

    def _check_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise DumpCancelledError("Dump cancelled")

    def _abort(self) -> None:
        self._state = DumpState.ABORTED
        self._sink.discard()
