"""Connection and provider factory.

Resolves a database URL from either a direct ``--connection`` URL or a
db.toml profile, and builds the scripting provider (export source) and
replay connection (import target) for it.

Profile selection priority:
1. Explicit profile name (``--profile``)
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ProfileNotFoundError
"""

import os
from pathlib import Path
from urllib.parse import quote

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from db_voyager.adapters.base import SqlConnection
from db_voyager.adapters.postgres import AsyncPostgresConnection
from db_voyager.config.loader import load_db_config
from db_voyager.config.models import DatabaseConfig, DatabaseProfile
from db_voyager.scripting.postgres import PostgresSchemaProvider
from db_voyager.scripting.provider import SchemaProvider

SUPPORTED_PROVIDERS = ("postgres",)


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured or the name is unknown."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the environment variable
            (e.g. ``"APP_"`` reads ``APP_DB_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the variable is unset or empty
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Pass --connection URL or --profile NAME, or set {env_var}=<name>."
    )


def get_profile(
    profile_name: str,
    config: DatabaseConfig | None = None,
    config_path: Path | None = None,
) -> DatabaseProfile:
    """Look up *profile_name* in db.toml.

    Raises:
        FileNotFoundError: If db.toml doesn't exist (and no *config* given)
        ProfileNotFoundError: If the profile is not defined
    """
    if config is None:
        config = load_db_config(config_path)

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
        Connection URL with password substituted (URL-encoded)

    Example:
        >>> resolve_url(DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss"))
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def resolve_connection(
    connection_url: str | None = None,
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str, str]:
    """Resolve the URL and provider kind to use.

    A direct *connection_url* wins over any profile and assumes the
    ``postgres`` provider.

    Returns:
        Tuple of (url, provider)

    Raises:
        ProfileNotFoundError: If no URL or profile can be determined
        FileNotFoundError: If a profile is needed but db.toml is missing
    """
    if connection_url:
        return connection_url, "postgres"

    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)

    profile = get_profile(profile_name, config_path=config_path)
    return resolve_url(profile), profile.provider


def catalog_from_url(database_url: str) -> str | None:
    """Return the database name a URL points at, if it names one.

    Example:
        >>> catalog_from_url("postgresql://u:p@localhost:5432/shop")
        'shop'
    """
    try:
        return make_url(database_url).database or None
    except ArgumentError:
        return None


def _check_provider(provider: str) -> None:
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Unsupported provider '{provider}'. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )


def create_schema_provider(
    database_url: str,
    provider: str = "postgres",
    excluded_tables: set[str] | None = None,
) -> SchemaProvider:
    """Build the export-side scripting provider for *database_url*.

    Raises:
        ValueError: If *provider* is not supported
    """
    _check_provider(provider)
    return PostgresSchemaProvider(database_url, excluded_tables=excluded_tables)


def create_connection(database_url: str, provider: str = "postgres") -> SqlConnection:
    """Build the import-side replay connection for *database_url*.

    Raises:
        ValueError: If *provider* is not supported
    """
    _check_provider(provider)
    return AsyncPostgresConnection(database_url)
