"""Pydantic models for db.toml configuration."""

from pydantic import BaseModel, Field

from db_voyager.scripting.models import ExportSelection


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    provider: str = "postgres"  # Defaults to postgres


class ExportDefaults(BaseModel):
    """Defaults from the optional ``[export]`` table; CLI flags override them."""

    selection: ExportSelection = Field(default_factory=ExportSelection)
    rows_per_batch: int = Field(default=500, ge=1)
    write_manifest: bool = False
    strict: bool = False


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    export: ExportDefaults = Field(default_factory=ExportDefaults)
