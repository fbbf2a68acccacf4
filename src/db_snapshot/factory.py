"""Collaborator factory.

Turns a loaded ``SnapshotConfig`` into the objects ``run_dump()`` needs:
resolves the active profile (``--profile`` or ``{prefix}DB_PROFILE``),
substitutes the ``[YOUR-PASSWORD]`` placeholder, and builds the
introspector, row source and optional notifier.
"""

import os
from urllib.parse import quote

from db_snapshot.adapters.postgres import AsyncPostgresAdapter
from db_snapshot.config.models import DatabaseProfile, SmtpSettings, SnapshotConfig
from db_snapshot.notifications.smtp import SmtpNotifier
from db_snapshot.schema.introspector import SchemaIntrospector


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


# ============================================================================
# Profile resolution
# ============================================================================


def get_active_profile_name(profile_name: str | None = None, env_prefix: str = "") -> str:
    """Get active profile name from an explicit value or env var.

    Priority:
    1. ``profile_name`` argument (``--profile``)
    2. ``{env_prefix}DB_PROFILE`` env var
    3. Raise ProfileNotFoundError

    Args:
        profile_name: Explicit profile name, if any.
        env_prefix: Prefix for the env var (e.g. ``"APP_"`` reads ``APP_DB_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    if profile_name:
        return profile_name

    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_var}=<name> db-snapshot dump\n"
        "Or pass --profile <name> (or --database-url <url>)."
    )


def get_profile(config: SnapshotConfig, profile_name: str) -> DatabaseProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not in db.toml
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {available}"
        )
    return config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Collaborators
# ============================================================================


def create_introspector(database_url: str, config: SnapshotConfig) -> SchemaIntrospector:
    """Build a (not yet connected) introspector for ``database_url``."""
    return SchemaIntrospector(
        database_url,
        schema_name=config.dump.schema_name,
        excluded_tables=config.dump.excluded_tables,
    )


def create_source(database_url: str, config: SnapshotConfig) -> AsyncPostgresAdapter:
    """Build the row source for ``database_url``."""
    return AsyncPostgresAdapter(
        database_url,
        schema_name=config.dump.schema_name,
        fetch_size=config.dump.fetch_size,
    )


def create_notifier(settings: SmtpSettings | None) -> SmtpNotifier | None:
    """Build the SMTP notifier, or ``None`` when ``[notify.smtp]`` is absent."""
    if settings is None:
        return None
    return SmtpNotifier(
        settings.host,
        sender=settings.sender,
        recipients=settings.recipients,
        sender_name=settings.sender_name,
        port=settings.port,
        username=settings.username,
        password=settings.password,
        use_starttls=settings.use_starttls,
        timeout=settings.timeout,
        attach_artifact=settings.attach_artifact,
    )
