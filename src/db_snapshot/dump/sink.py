"""Artifact sinks: durable destinations for the dump byte stream.

``FileSink`` writes to ``<name>.partial`` next to a reserved final name and
renames on ``finalize()``, so a finished artifact never appears half
written. ``discard()`` removes both files for aborted runs.

Usage:
    from db_snapshot.dump.sink import FileSink

    sink = FileSink("backups", prefix="db_backup")
    sink.open()
    sink.write(b"-- header\\n")
    info = sink.finalize()
    print(info.path, info.size_bytes)
"""

import gzip
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Callable, Protocol

from pydantic import BaseModel

from db_snapshot.errors import SinkError

logger = logging.getLogger(__name__)


class ArtifactInfo(BaseModel):
    """Where a finalized artifact lives and how big it is."""

    path: str
    filename: str
    size_bytes: int


class ArtifactSink(Protocol):
    """Append-only destination for a dump's bytes."""

    def open(self) -> None:
        """Create the storage location and prepare for writing."""
        ...

    def write(self, data: bytes) -> None:
        """Append ``data``. Raises ``SinkError`` on I/O failure."""
        ...

    def finalize(self) -> ArtifactInfo:
        """Flush, close, and make the artifact durable."""
        ...

    def discard(self) -> None:
        """Close and delete any partial output. Safe to call repeatedly."""
        ...


def artifact_name(prefix: str, started_at: datetime, suffix: str, attempt: int = 0) -> str:
    """Build a timestamp-qualified artifact filename.

    Example:
        >>> artifact_name("db_backup", datetime(2025, 1, 2, 3, 4, 5), ".sql")
        'db_backup_2025-01-02_03-04-05.sql'
        >>> artifact_name("db_backup", datetime(2025, 1, 2, 3, 4, 5), ".sql", 2)
        'db_backup_2025-01-02_03-04-05-2.sql'
    """
    stamp = started_at.strftime("%Y-%m-%d_%H-%M-%S")
    extra = f"-{attempt}" if attempt else ""
    return f"{prefix}_{stamp}{extra}{suffix}"


class FileSink:
    """Write the artifact to a timestamped file in a directory.

    Args:
        directory: Destination directory (created on ``open()``).
        prefix: Filename prefix.
        clock: Returns the timestamp used in the filename.
        max_attempts: Name collisions tolerated before giving up.
    """

    suffix = ".sql"

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "db_backup",
        clock: Callable[[], datetime] = datetime.now,
        max_attempts: int = 100,
    ) -> None:
        self._directory = Path(directory)
        self._prefix = prefix
        self._clock = clock
        self._max_attempts = max_attempts
        self._path: Path | None = None
        self._partial: Path | None = None
        self._file: BinaryIO | None = None
        self._finalized = False

    @property
    def path(self) -> Path | None:
        """Final artifact path, known once ``open()`` has run."""
        return self._path

    def open(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._path = self._reserve_path()
            self._partial = self._path.with_name(self._path.name + ".partial")
            self._file = self._open_stream(self._partial)
        except OSError as e:
            self.discard()
            raise SinkError(f"Failed to open artifact in {self._directory}: {e}") from e
        logger.debug("Writing artifact to %s", self._partial)

    def _reserve_path(self) -> Path:
        """Claim a unique final name by creating it exclusively."""
        started_at = self._clock()
        for attempt in range(self._max_attempts):
            candidate = self._directory / artifact_name(
                self._prefix, started_at, self.suffix, attempt
            )
            try:
                with open(candidate, "xb"):
                    pass
            except FileExistsError:
                continue
            return candidate
        raise SinkError(
            f"Could not reserve a unique artifact name in {self._directory}"
        )

    def _open_stream(self, path: Path) -> BinaryIO:
        return open(path, "wb")

    def write(self, data: bytes) -> None:
        if self._file is None:
            raise SinkError("Sink is not open")
        try:
            self._file.write(data)
        except OSError as e:
            raise SinkError(f"Failed to write artifact: {e}") from e

    def finalize(self) -> ArtifactInfo:
        if self._file is None or self._path is None or self._partial is None:
            raise SinkError("Sink is not open")
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
            self._file.close()
            self._file = None
            os.replace(self._partial, self._path)
            size = self._path.stat().st_size
        except OSError as e:
            raise SinkError(f"Failed to finalize artifact: {e}") from e
        self._finalized = True
        return ArtifactInfo(
            path=str(self._path.resolve()),
            filename=self._path.name,
            size_bytes=size,
        )

    def discard(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            except OSError as e:
                logger.warning("Failed to close partial artifact: %s", e)
            self._file = None
        if self._finalized:
            return
        for path in (self._partial, self._path):
            if path is not None:
                try:
                    path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Failed to remove partial artifact %s: %s", path, e)


class GzipFileSink(FileSink):
    """``FileSink`` that gzip-compresses the stream.

    ``size_bytes`` in the returned ``ArtifactInfo`` is the compressed size.
    """

    suffix = ".sql.gz"

    def __init__(self, *args, compresslevel: int = 6, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._compresslevel = compresslevel
        self._raw: BinaryIO | None = None

    def _open_stream(self, path: Path) -> BinaryIO:
        self._raw = open(path, "wb")
        return gzip.GzipFile(
            filename="", mode="wb", fileobj=self._raw, compresslevel=self._compresslevel
        )

    def finalize(self) -> ArtifactInfo:
        if self._file is None or self._raw is None:
            raise SinkError("Sink is not open")
        try:
            # Closing the gzip stream writes its trailer to the raw file
            self._file.close()
            self._file = self._raw
            self._raw = None
        except OSError as e:
            raise SinkError(f"Failed to finalize compressed artifact: {e}") from e
        return super().finalize()

    def discard(self) -> None:
        for stream in (self._file, self._raw):
            if stream is not None:
                try:
                    stream.close()
                except OSError as e:
                    logger.warning("Failed to close partial artifact: %s", e)
        self._file = None
        self._raw = None
        super().discard()
