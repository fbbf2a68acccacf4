"""Dump run models: configuration, warnings, report, and result.

Usage:
    from db_snapshot.dump.models import DumpConfig, DumpReport, DumpResult

    config = DumpConfig(destination="backups", dialect_hints={"citext": "text"})
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

EncodingErrorPolicy = Literal["skip_row", "skip_table", "abort"]


class DumpConfig(BaseModel):
    """Options for one dump run."""

    destination: str = "backups"                    # directory for artifacts
    filename_prefix: str = "db_backup"
    tool_name: str = "PostgreSQL"                   # used in the header comment
    schema_name: str = "public"
    excluded_tables: list[str] | None = None        # None = introspector defaults
    dialect_hints: dict[str, str] = Field(default_factory=dict)  # declared type -> DDL type
    on_encoding_error: EncodingErrorPolicy = "skip_row"
    sort_tables: bool = True
    consistent_snapshot: bool = True
    compress: bool = False
    fetch_size: int = Field(default=1000, gt=0)


class DumpWarning(BaseModel):
    """A recovered problem recorded during a run."""

    model_config = ConfigDict(frozen=True)

    table: str | None = None
    message: str


class DumpReport(BaseModel):
    """Summary of a successful run, handed to notifiers.

    Example:
        >>> report = DumpReport(
        ...     tables_count=0, duration_seconds=0.1, size_bytes=2_621_440,
        ...     filename="db_backup.sql", path="/tmp/db_backup.sql",
        ...     started_at=datetime(2025, 1, 1), finished_at=datetime(2025, 1, 1),
        ... )
        >>> report.size_mb
        2.5
    """

    model_config = ConfigDict(frozen=True)

    tables_count: int
    duration_seconds: float
    size_bytes: int
    filename: str
    path: str
    started_at: datetime
    finished_at: datetime
    rows_written: int = 0
    skipped_tables: tuple[str, ...] = ()
    warnings: tuple[DumpWarning, ...] = ()

    @property
    def size_mb(self) -> float:
        """Artifact size in MiB, rounded to 2 decimals."""
        return round(self.size_bytes / (1024 * 1024), 2)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


class DumpResult(BaseModel):
    """Outcome of ``run_dump()``: always success or failure, never both.

    Example:
        >>> result = DumpResult(success=False, error="connection refused")
        >>> result.report is None
        True
    """

    success: bool
    report: DumpReport | None = None
    error: str | None = None
    operation: str | None = None
    table: str | None = None
    notified: bool = False
    notification_error: str | None = None
