"""Schema-scripting provider protocol definition.

Defines the ``SchemaProvider`` Protocol the planner and export pipeline
depend on.  A provider introspects one database and emits SQL text for
individual objects; it owns the source connection for an export run.

Usage:
    from db_voyager.scripting.provider import SchemaProvider

    async def dump_tables(provider: SchemaProvider) -> str:
        await provider.connect()
        try:
            parts = []
            for table in await provider.list_objects(ObjectCategory.TABLES):
                if not table.is_system:
                    parts.append(await provider.script(table, ScriptingOptions()) or "")
            return "\\n".join(parts)
        finally:
            await provider.close()
"""

from typing import Protocol

from db_voyager.scripting.models import ObjectCategory, ObjectRef, ScriptingOptions


class SchemaProvider(Protocol):
    """Introspection and scripting interface for one source database."""

    async def connect(self) -> None:
        """Open the source connection.

        Raises:
            DatabaseConnectionError: If the database cannot be reached.
        """
        ...

    async def close(self) -> None:
        """Close the source connection."""
        ...

    async def current_catalog(self) -> str:
        """Return the name of the database the connection is bound to."""
        ...

    async def list_objects(self, category: ObjectCategory) -> list[ObjectRef]:
        """List objects of *category*, system objects flagged ``is_system``.

        Example:
            tables = await provider.list_objects(ObjectCategory.TABLES)
            names = [t.qualified_name for t in tables if not t.is_system]
        """
        ...

    async def script(self, obj: ObjectRef, options: ScriptingOptions) -> str | None:
        """Return SQL recreating *obj*, or ``None`` if there is nothing to emit.

        With ``options.script_data`` set (tables only), returns INSERT
        statements for the table's rows instead of DDL, grouped into
        ``GO``-separated batches of ``options.rows_per_batch`` rows.
        """
        ...
