"""Exception hierarchy for dump runs.

Fatal errors (``MetadataError``, ``SourceError``, ``SinkError``,
``DumpCancelledError``) move a run to the aborted state.
``UnknownTableError`` and ``EncodingError`` are recovered inside the
writer according to its configured policy.

Usage:
    from db_snapshot.errors import DumpAbortedError, SinkError
"""


class DumpError(Exception):
    """Base class for all dump errors."""

    pass


class MetadataError(DumpError):
    """Raised when the schema catalog cannot be queried."""

    pass


class UnknownTableError(DumpError):
    """Raised when a table disappeared between listing and use."""

    def __init__(self, table: str, message: str | None = None) -> None:
        self.table = table
        super().__init__(message or f"Table '{table}' no longer exists")


class EncodingError(DumpError):
    """Raised when a value cannot be rendered as a SQL literal."""

    pass


class UnsupportedTypeError(EncodingError):
    """Raised when a value's Python type has no literal encoding."""

    def __init__(self, value: object) -> None:
        self.value_type = type(value)
        super().__init__(
            f"Unsupported value type: {self.value_type.__module__}."
            f"{self.value_type.__qualname__}"
        )


class SourceError(DumpError):
    """Raised when row streaming fails (lost connection, permissions)."""

    pass


class SinkError(DumpError):
    """Raised on any I/O failure writing the artifact."""

    pass


class DumpCancelledError(DumpError):
    """Raised when a run is cancelled between rows."""

    pass


class DumpAbortedError(DumpError):
    """A run reached the aborted state.

    Attributes:
        operation: Writer step that failed (e.g. ``"stream_rows"``).
        table: Table being processed, if any.
        cause: Underlying exception.
    """

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        table: str | None = None,
    ) -> None:
        self.operation = operation
        self.table = table
        self.cause = cause
        where = f" (table '{table}')" if table else ""
        super().__init__(f"Dump aborted during {operation}{where}: {cause}")


class NotificationError(DumpError):
    """Raised when a notifier fails to deliver a report."""

    pass
