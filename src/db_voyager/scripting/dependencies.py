"""Foreign-key dependency ordering for tables.

Builds a table dependency graph from foreign-key references and sorts
tables parents-first, so a data replay in that order never inserts a
child row before its parent.

Usage:
    from db_voyager.scripting.dependencies import (
        build_dependency_graph,
        topological_sort,
    )

    deps = build_dependency_graph(foreign_keys)
    order = topological_sort(deps, ["public.books", "public.authors"])
    # ["public.authors", "public.books"]
"""

from db_voyager.scripting.models import ObjectRef


def build_dependency_graph(foreign_keys: list[ObjectRef]) -> dict[str, set[str]]:
    """Map each table to the set of tables it references.

    Args:
        foreign_keys: Foreign-key ``ObjectRef`` entries whose ``parent`` is
            the referencing table and ``references`` the referenced one.

    Returns:
        Dict mapping table -> referenced tables.  Self references are
        dropped.

    Example:
        deps = build_dependency_graph(fks)
        # {"public.chapters": {"public.books"}}
    """
    dependencies: dict[str, set[str]] = {}
    for fk in foreign_keys:
        if not fk.parent or not fk.references:
            continue
        refs = dependencies.setdefault(fk.parent, set())
        if fk.references != fk.parent:  # Skip self-references
            refs.add(fk.references)
    return dependencies


def topological_sort(dependencies: dict[str, set[str]], tables: list[str]) -> list[str]:
    """Topological sort of tables based on FK dependencies.

    Returns tables in forward order: parent tables first, child tables last.
    Tables without dependencies keep their relative input order.

    Args:
        dependencies: FK dependency graph (table -> set of referenced tables).
        tables: List of table names to sort.

    Returns:
        Tables sorted so that parent tables come before child tables.
    """
    # Filter dependencies to only include relevant tables
    relevant = {t: dependencies.get(t, set()) & set(tables) for t in tables}

    sorted_tables: list[str] = []
    visited: set[str] = set()
    visiting: set[str] = set()  # For cycle detection

    def visit(table: str) -> None:
        if table in visited:
            return
        if table in visiting:
            # Cycle detected -- break it by just adding the table
            return
        visiting.add(table)
        for dep in sorted(relevant.get(table, set())):
            visit(dep)
        visiting.discard(table)
        visited.add(table)
        sorted_tables.append(table)

    for table in tables:
        visit(table)

    return sorted_tables
