"""Schema scripting: object model, provider protocol, dependency order.

The planner (``db_voyager.scripting.planner``) and the PostgreSQL
provider (``db_voyager.scripting.postgres``) are imported from their
modules directly.

Usage:
    from db_voyager.scripting import ExportSelection, ObjectCategory, SchemaProvider
    from db_voyager.scripting.planner import SchemaScriptPlanner
"""

from db_voyager.scripting.dependencies import build_dependency_graph, topological_sort
from db_voyager.scripting.models import (
    ExportSelection,
    ObjectCategory,
    ObjectRef,
    ScriptingOptions,
)
from db_voyager.scripting.provider import SchemaProvider

__all__ = [
    "ExportSelection",
    "ObjectCategory",
    "ObjectRef",
    "ScriptingOptions",
    "SchemaProvider",
    "build_dependency_graph",
    "topological_sort",
]
