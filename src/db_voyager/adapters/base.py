"""Replay connection protocol definition.

Defines the ``SqlConnection`` Protocol that import targets must implement.
All methods are ``async def`` -- the library is async-first.

Usage:
    from db_voyager.adapters.base import SqlConnection

    async def replay(conn: SqlConnection, batches: list[str]) -> None:
        if not conn.is_open:
            await conn.open()
        for batch in batches:
            await conn.execute(batch)
        await conn.close()
"""

from typing import Protocol


class SqlConnection(Protocol):
    """Single database connection used to replay SQL batches.

    The connection is owned by one pipeline run for its whole lifetime
    and is never shared between concurrent runs.
    """

    @property
    def is_open(self) -> bool:
        """True once ``open()`` succeeded and ``close()`` was not called."""
        ...

    async def open(self) -> None:
        """Open the connection.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
        """
        ...

    async def execute(self, sql: str) -> None:
        """Execute one batch as a non-query command.

        The batch may hold several statements and is passed to the
        driver verbatim (no parameter substitution).

        Example:
            await conn.execute(
                "CREATE TABLE items (id int); INSERT INTO items VALUES (1);"
            )
        """
        ...

    async def close(self) -> None:
        """Close the connection and release pooled resources."""
        ...
