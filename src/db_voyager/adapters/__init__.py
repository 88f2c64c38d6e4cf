"""Replay connection adapters package.

Provides the ``SqlConnection`` Protocol and the async PostgreSQL
implementation used as an import target.

Usage:
    from db_voyager.adapters import SqlConnection, AsyncPostgresConnection
"""

from db_voyager.adapters.base import SqlConnection
from db_voyager.adapters.postgres import AsyncPostgresConnection

__all__ = [
    "SqlConnection",
    "AsyncPostgresConnection",
]
