"""Pydantic models for db-snapshot configuration."""

from pydantic import BaseModel, Field

from db_snapshot.dump.models import DumpConfig


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"


class SmtpSettings(BaseModel):
    """``[notify.smtp]`` section."""

    host: str
    sender: str
    recipients: list[str]
    sender_name: str = "Database Backup System"
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_starttls: bool = True
    timeout: float = 30.0
    attach_artifact: bool = True


class NotifyConfig(BaseModel):
    """``[notify]`` section."""

    smtp: SmtpSettings | None = None


class SnapshotConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    dump: DumpConfig = Field(default_factory=DumpConfig)
    notify: NotifyConfig = Field(default_factory=NotifyConfig)
