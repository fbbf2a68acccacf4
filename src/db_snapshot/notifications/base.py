"""Notifier protocol for finished dumps."""

from pathlib import Path
from typing import Protocol

from db_snapshot.dump.models import DumpReport


class DumpNotifier(Protocol):
    """Delivers a successful run's report (and artifact) somewhere."""

    def notify(self, report: DumpReport, artifact: Path) -> None:
        """Send ``report``; ``artifact`` is the readable finished file.

        Raises:
            NotificationError: If delivery fails.
        """
        ...
