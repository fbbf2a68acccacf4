"""db-snapshot: PostgreSQL schema + data dumps as plain SQL files.

Introspects a schema over information_schema, streams every table's rows,
and writes ``CREATE TABLE`` / ``INSERT`` statements to a timestamped
artifact. Multi-profile configuration, SMTP notification and a rich CLI.

Usage:
    from db_snapshot import run_dump, DumpConfig, SchemaIntrospector
    from db_snapshot import AsyncPostgresAdapter, FileSink, SmtpNotifier
    from db_snapshot import load_config, resolve_url
"""

__version__ = "0.1.0"

# Adapters
from db_snapshot.adapters.base import RowSource
from db_snapshot.adapters.postgres import AsyncPostgresAdapter

# Config
from db_snapshot.config.loader import load_config
from db_snapshot.config.models import DatabaseProfile, SnapshotConfig

# Dump engine
from db_snapshot.dump.encoder import encode
from db_snapshot.dump.models import DumpConfig, DumpReport, DumpResult, DumpWarning
from db_snapshot.dump.runner import run_dump
from db_snapshot.dump.sink import ArtifactSink, FileSink, GzipFileSink
from db_snapshot.dump.writer import DumpWriter

# Errors
from db_snapshot.errors import (
    DumpAbortedError,
    DumpError,
    EncodingError,
    MetadataError,
    UnknownTableError,
    UnsupportedTypeError,
)

# Factory
from db_snapshot.factory import ProfileNotFoundError, resolve_url

# Notifications
from db_snapshot.notifications.base import DumpNotifier
from db_snapshot.notifications.smtp import SmtpNotifier

# Schema
from db_snapshot.schema.base import CatalogReader
from db_snapshot.schema.introspector import SchemaIntrospector
from db_snapshot.schema.models import ColumnSchema

__all__ = [
    # Adapters
    "RowSource",
    "AsyncPostgresAdapter",
    # Config
    "load_config",
    "DatabaseProfile",
    "SnapshotConfig",
    # Dump engine
    "encode",
    "DumpConfig",
    "DumpReport",
    "DumpResult",
    "DumpWarning",
    "run_dump",
    "ArtifactSink",
    "FileSink",
    "GzipFileSink",
    "DumpWriter",
    # Errors
    "DumpError",
    "DumpAbortedError",
    "EncodingError",
    "MetadataError",
    "UnknownTableError",
    "UnsupportedTypeError",
    # Factory
    "ProfileNotFoundError",
    "resolve_url",
    # Notifications
    "DumpNotifier",
    "SmtpNotifier",
    # Schema
    "CatalogReader",
    "SchemaIntrospector",
    "ColumnSchema",
]
