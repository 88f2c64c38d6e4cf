"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from db_voyager.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from db_voyager.config.loader import load_db_config
from db_voyager.config.models import DatabaseConfig, DatabaseProfile, ExportDefaults

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "ExportDefaults"]
