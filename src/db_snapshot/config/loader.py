"""TOML configuration loader."""

import tomllib
from pathlib import Path

from db_snapshot.config.models import DatabaseProfile, NotifyConfig, SnapshotConfig
from db_snapshot.dump.models import DumpConfig


def load_config(config_path: Path | None = None) -> SnapshotConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to db.toml (default: ``db.toml`` in the current
            working directory)

    Returns:
        SnapshotConfig with profiles, dump options and notify settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create db.toml with at least one [profiles.<name>] section."
        )

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    return SnapshotConfig(
        profiles=profiles,
        dump=DumpConfig(**data.get("dump", {})),
        notify=NotifyConfig(**data.get("notify", {})),
    )
