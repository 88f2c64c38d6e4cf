"""Pydantic models for schema scripting.

This module contains scripting-domain models:
- ObjectCategory: classes of database objects, in scripting order
- ObjectRef: one in-scope object reported by a provider
- ScriptingOptions: toggles passed to the provider per script call
- ExportSelection: caller-held ignore-list and category toggles
"""

from enum import Enum

from pydantic import BaseModel, Field


# ============================================================================
# Object Categories
# ============================================================================


class ObjectCategory(str, Enum):
    """Database object categories, declared in schema scripting order."""

    SCHEMAS = "schemas"
    TYPES = "types"
    TABLES = "tables"
    INDEXES = "indexes"
    STATISTICS = "statistics"
    FOREIGN_KEYS = "foreign_keys"
    PROCEDURES = "procedures"
    FUNCTIONS = "functions"
    VIEWS = "views"
    TRIGGERS = "triggers"
    USERS = "users"


class ObjectRef(BaseModel):
    """Reference to a database object reported by a provider.

    Example:
        >>> ref = ObjectRef(category=ObjectCategory.TABLES, schema_name="public", name="orders")
        >>> ref.qualified_name
        'public.orders'
    """

    category: ObjectCategory
    schema_name: str = ""
    name: str
    parent: str | None = None        # owning table (indexes, FKs, triggers, statistics)
    references: str | None = None    # referenced table (FKs only), schema-qualified
    oid: int | None = None
    is_system: bool = False
    inline_with_parent: bool = False  # already emitted with the table definition

    @property
    def qualified_name(self) -> str:
        """``schema.name``, or just ``name`` for schema-less objects."""
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name

    @property
    def label(self) -> str:
        """Human-readable label used in comments and log lines."""
        if self.parent:
            return f"{self.qualified_name} ON {self.parent}"
        return self.qualified_name


# ============================================================================
# Options
# ============================================================================


class ScriptingOptions(BaseModel):
    """Toggles controlling the SQL a provider emits."""

    include_headers: bool = True
    schema_qualify: bool = True
    include_if_not_exists: bool = True
    script_schema: bool = True
    script_data: bool = False
    rows_per_batch: int = Field(default=500, ge=1)


class ExportSelection(BaseModel):
    """What to export: data ignore-list and schema category toggles.

    ``ignore_tables`` excludes tables from the data export only; their
    schema is still scripted.  Matching is case-insensitive against the
    table name or its ``schema.table`` form.

    Example:
        >>> selection = ExportSelection(ignore_tables=["orders"])
        >>> selection.is_ignored(ObjectRef(category=ObjectCategory.TABLES, schema_name="public", name="Orders"))
        True
    """

    ignore_tables: list[str] = Field(default_factory=list)

    script_schema: bool = True  # master switch for schema.sql content
    schemas: bool = True
    types: bool = True
    tables: bool = True
    indexes: bool = True
    statistics: bool = False
    foreign_keys: bool = True
    procedures: bool = True
    functions: bool = True
    views: bool = True
    triggers: bool = True
    users: bool = False

    def is_enabled(self, category: ObjectCategory) -> bool:
        """True if *category* should be written to ``schema.sql``."""
        return self.script_schema and bool(getattr(self, category.value))

    def is_ignored(self, table: ObjectRef) -> bool:
        """True if *table* is in the data ignore-list."""
        ignored = {name.casefold() for name in self.ignore_tables}
        return (
            table.name.casefold() in ignored
            or table.qualified_name.casefold() in ignored
        )
