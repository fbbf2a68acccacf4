"""Dump engine: value encoding, artifact sinks, and the dump writer.

``run_dump`` lives in ``db_snapshot.dump.runner`` (it depends on the
notification package).

Usage:
    from db_snapshot.dump import DumpWriter, FileSink, encode
    from db_snapshot.dump.runner import run_dump
"""

from db_snapshot.dump.encoder import ValueKind, classify, encode
from db_snapshot.dump.models import DumpConfig, DumpReport, DumpResult, DumpWarning
from db_snapshot.dump.sink import ArtifactInfo, ArtifactSink, FileSink, GzipFileSink
from db_snapshot.dump.writer import (
    DumpState,
    DumpWriter,
    render_create_table,
    render_header,
    render_insert,
)

__all__ = [
    "ValueKind",
    "classify",
    "encode",
    "DumpConfig",
    "DumpReport",
    "DumpResult",
    "DumpWarning",
    "ArtifactInfo",
    "ArtifactSink",
    "FileSink",
    "GzipFileSink",
    "DumpState",
    "DumpWriter",
    "render_create_table",
    "render_header",
    "render_insert",
]
