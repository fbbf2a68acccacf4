"""PostgreSQL schema introspection via information_schema.

Lists the base tables of one schema and, per table, its columns in
catalog ordinal order (name, declared type, nullability, default).

Uses psycopg (v3) ``AsyncConnection`` for PostgreSQL connections.
"""

import logging

import psycopg

from db_snapshot.errors import MetadataError, UnknownTableError
from db_snapshot.schema.models import ColumnSchema
from db_snapshot.sql import quote_identifier

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """Introspects a PostgreSQL schema for dumping.

    Usage:
        async with SchemaIntrospector(database_url) as introspector:
            for table in await introspector.list_tables():
                columns = await introspector.list_columns(table)
    """

    # Tables to exclude from introspection (extension/system tables)
    EXCLUDED_TABLES_DEFAULT = {
        "schema_migrations",
        "pg_stat_statements",
        "spatial_ref_sys",
    }

    def __init__(
        self,
        database_url: str,
        schema_name: str = "public",
        excluded_tables: set[str] | None = None,
        connect_timeout: int = 10,
    ) -> None:
        """Initialize with database connection URL.

        Args:
            database_url: PostgreSQL connection URL
            schema_name: Schema to introspect (default: public)
            excluded_tables: Table names to skip. ``None`` uses
                ``EXCLUDED_TABLES_DEFAULT``; pass an empty set to keep all.
            connect_timeout: Connection timeout in seconds
        """
        self._database_url = database_url
        self._schema_name = schema_name
        self._excluded_tables = (
            set(self.EXCLUDED_TABLES_DEFAULT)
            if excluded_tables is None
            else set(excluded_tables)
        )
        self._connect_timeout = connect_timeout
        self._conn: psycopg.AsyncConnection | None = None

    @property
    def schema_name(self) -> str:
        return self._schema_name

    async def __aenter__(self) -> "SchemaIntrospector":
        """Open the connection."""
        try:
            self._conn = await psycopg.AsyncConnection.connect(
                self._database_url,
                connect_timeout=self._connect_timeout,
                autocommit=True,
            )
        except psycopg.Error as e:
            raise MetadataError(f"Failed to connect to database: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close the connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_connection(self) -> psycopg.AsyncConnection:
        if not self._conn:
            raise RuntimeError("Introspector not connected. Use async with statement.")
        return self._conn

    async def test_connection(self) -> bool:
        """Run ``SELECT 1`` against the open connection.

        Raises:
            ConnectionError: If the query fails.
        """
        conn = self._require_connection()
        try:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                row = await cur.fetchone()
                return row is not None and row[0] == 1
        except psycopg.Error as e:
            raise ConnectionError(f"Connection test failed: {e}") from e

    async def list_tables(self) -> list[str]:
        """Get base table names in the schema, ordered by name.

        Raises:
            MetadataError: If the catalog query fails.
        """
        conn = self._require_connection()
        query = """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name
        """
        try:
            async with conn.cursor() as cur:
                await cur.execute(query, (self._schema_name,))
                rows = await cur.fetchall()
        except psycopg.Error as e:
            raise MetadataError(f"Failed to list tables in '{self._schema_name}': {e}") from e

        return [row[0] for row in rows if row[0] not in self._excluded_tables]

    async def list_columns(self, table: str) -> list[ColumnSchema]:
        """Get columns for a table in ordinal order.

        Raises:
            MetadataError: If the catalog query fails.
            UnknownTableError: If the table no longer exists.
        """
        conn = self._require_connection()
        query = """
            SELECT
                column_name,
                data_type,
                is_nullable,
                column_default,
                udt_name,
                character_maximum_length,
                numeric_precision,
                numeric_scale,
                ordinal_position
            FROM information_schema.columns
            WHERE table_schema = %s
              AND table_name = %s
            ORDER BY ordinal_position
        """
        try:
            async with conn.cursor() as cur:
                await cur.execute(query, (self._schema_name, table))
                rows = await cur.fetchall()
        except psycopg.Error as e:
            raise MetadataError(f"Failed to list columns of '{table}': {e}") from e

        if not rows and not await self._table_exists(table):
            raise UnknownTableError(table)

        columns = []
        for row in rows:
            (
                col_name,
                data_type,
                is_nullable,
                default,
                udt_name,
                char_length,
                precision,
                scale,
                ordinal,
            ) = row
            columns.append(
                ColumnSchema(
                    name=col_name,
                    data_type=self._declared_type(
                        data_type, udt_name, char_length, precision, scale
                    ),
                    is_nullable=(is_nullable == "YES"),
                    default=default,
                    ordinal=ordinal,
                )
            )
        return columns

    async def _table_exists(self, table: str) -> bool:
        """Check whether a base table is still present (zero-column tables exist)."""
        conn = self._require_connection()
        query = """
            SELECT 1
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_name = %s
        """
        try:
            async with conn.cursor() as cur:
                await cur.execute(query, (self._schema_name, table))
                return await cur.fetchone() is not None
        except psycopg.Error as e:
            raise MetadataError(f"Failed to look up table '{table}': {e}") from e

    def _declared_type(
        self,
        data_type: str,
        udt_name: str | None,
        char_length: int | None,
        precision: int | None,
        scale: int | None,
    ) -> str:
        """Turn information_schema type columns into a DDL type.

        ``ARRAY`` and ``USER-DEFINED`` are not valid in DDL, so they are
        replaced by the (quoted) underlying udt name.
        """
        if data_type == "ARRAY" and udt_name:
            return f"{quote_identifier(udt_name.removeprefix('_'))}[]"
        if data_type == "USER-DEFINED" and udt_name:
            return quote_identifier(udt_name)
        if data_type in ("character varying", "character", "bit", "bit varying") and char_length:
            return f"{data_type}({char_length})"
        if data_type == "numeric" and precision is not None:
            return f"numeric({precision},{scale or 0})"
        return data_type
