"""Trigger-facing entry point for dump runs.

``run_dump()`` wires a ``DumpWriter`` to its collaborators, owns their
lifetimes (introspector connection, snapshot transaction, row source) and
always returns a ``DumpResult``: dump failures are reported, never raised.

Usage:
    from db_snapshot.dump.runner import run_dump

    result = await run_dump(config, introspector, source, notifier=notifier)
    if result.success:
        print(result.report.path)
    else:
        print(f"Backup failed: {result.error}")
"""

import asyncio
import logging
from pathlib import Path

from db_snapshot.adapters.base import RowSource
from db_snapshot.dump.models import DumpConfig, DumpResult
from db_snapshot.dump.sink import ArtifactSink, FileSink, GzipFileSink
from db_snapshot.dump.writer import DumpWriter
from db_snapshot.errors import DumpAbortedError
from db_snapshot.notifications.base import DumpNotifier
from db_snapshot.schema.base import CatalogReader

logger = logging.getLogger(__name__)


def create_sink(config: DumpConfig) -> ArtifactSink:
    """Build the file sink described by ``config``."""
    sink_cls = GzipFileSink if config.compress else FileSink
    return sink_cls(config.destination, prefix=config.filename_prefix)


async def run_dump(
    config: DumpConfig,
    introspector: CatalogReader,
    source: RowSource,
    sink: ArtifactSink | None = None,
    notifier: DumpNotifier | None = None,
    cancel_event: asyncio.Event | None = None,
) -> DumpResult:
    """Run one dump and optionally notify on success.

    The introspector is entered as an async context manager, the source's
    snapshot is held for the whole run, and the source is closed on every
    exit path.

    Args:
        config: Dump options.
        introspector: Not-yet-connected ``CatalogReader``.
        source: Row source (closed when the run ends).
        sink: Artifact sink. Defaults to ``create_sink(config)``.
        notifier: Called with the report and artifact path on success only.
        cancel_event: Cancels the run between rows when set.

    Returns:
        DumpResult with ``success`` and either ``report`` or ``error``.

    Raises:
        asyncio.CancelledError: If the surrounding task is cancelled. The
            partial artifact is discarded first.
    """
    sink = sink or create_sink(config)
    logger.info(
        "Starting database backup process",
        extra={"event": "dump.start", "destination": config.destination},
    )

    report = None
    try:
        async with introspector:
            async with source.snapshot(enabled=config.consistent_snapshot):
                writer = DumpWriter(
                    introspector,
                    source,
                    sink,
                    tool_name=config.tool_name,
                    dialect_hints=config.dialect_hints,
                    on_encoding_error=config.on_encoding_error,
                    sort_tables=config.sort_tables,
                    cancel_event=cancel_event,
                )
                report = await writer.run()
    except DumpAbortedError as e:
        _log_failure(e, e.operation, e.table)
        return DumpResult(
            success=False,
            error=str(e),
            operation=e.operation,
            table=e.table,
        )
    except Exception as e:
        if report is None:
            # Connection or snapshot failures before the artifact was finalized
            sink.discard()
            _log_failure(e, "connect", None)
            return DumpResult(success=False, error=f"Backup failed: {e}", operation="connect")
        # The artifact is complete; only releasing a connection failed
        _log_cleanup_failure(e)
    finally:
        try:
            await source.close()
        except Exception as e:
            _log_cleanup_failure(e)

    logger.info(
        "Database backup completed successfully",
        extra={
            "event": "dump.done",
            "artifact": report.filename,
            "path": report.path,
            "size_bytes": report.size_bytes,
            "tables_count": report.tables_count,
            "duration_seconds": report.duration_seconds,
            "warning_count": report.warning_count,
        },
    )

    result = DumpResult(success=True, report=report)
    if notifier is not None:
        try:
            await asyncio.to_thread(notifier.notify, report, Path(report.path))
            result.notified = True
            logger.info("Backup notification sent", extra={"event": "dump.notified"})
        except Exception as e:
            result.notification_error = str(e)
            logger.error(
                "Backup notification failed: %s",
                e,
                extra={"event": "dump.notify_failed", "error": str(e)},
            )
    return result


def _log_cleanup_failure(error: Exception) -> None:
    logger.warning(
        "Releasing database connections failed: %s",
        error,
        extra={"event": "dump.cleanup_failed", "error": str(error)},
    )


def _log_failure(error: BaseException, operation: str, table: str | None) -> None:
    logger.error(
        "Database backup process failed: %s",
        error,
        exc_info=error,
        extra={
            "event": "dump.failed",
            "operation": operation,
            "table": table,
            "error": str(error),
        },
    )
