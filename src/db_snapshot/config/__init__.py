"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from db_snapshot.config import load_config, DatabaseProfile, SnapshotConfig
"""

from db_snapshot.config.loader import load_config
from db_snapshot.config.models import (
    DatabaseProfile,
    NotifyConfig,
    SmtpSettings,
    SnapshotConfig,
)

__all__ = [
    "load_config",
    "DatabaseProfile",
    "NotifyConfig",
    "SmtpSettings",
    "SnapshotConfig",
]
