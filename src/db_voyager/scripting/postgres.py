"""PostgreSQL schema and data scripting via pg_catalog.

This module queries the live database and renders SQL for:
- Schemas, enum and domain types
- Tables (columns, identity, defaults, owned sequences, PK/UNIQUE/CHECK)
- Standalone indexes and extended statistics
- Foreign keys (as ALTER TABLE ... ADD CONSTRAINT)
- Procedures, functions, views, materialized views, triggers
- Roles
- Table rows as INSERT statements

DDL text comes from the server's own ``pg_get_*def`` functions and row
literals from ``quote_nullable``, so no value formatting happens here.

Uses psycopg (v3) async connections.
"""

import logging
import re
from collections.abc import Awaitable, Callable
from typing import Any

import psycopg
from psycopg import AsyncConnection, sql

from db_voyager.errors import DatabaseConnectionError, ScriptingError
from db_voyager.replay.executor import BATCH_SEPARATOR
from db_voyager.scripting.models import ObjectCategory, ObjectRef, ScriptingOptions

logger = logging.getLogger(__name__)

# SQL predicates flagging objects that must never be scripted.
_SYSTEM_SCHEMA = "({ns}.nspname = 'information_schema' OR starts_with({ns}.nspname, 'pg_'))"
_EXTENSION_MEMBER = (
    "EXISTS (SELECT 1 FROM pg_depend d WHERE d.classid = '{catalog}'::regclass "
    "AND d.objid = {oid} AND d.deptype = 'e')"
)


def _system_table(ns: str, rel: str) -> str:
    """Predicate for a table that is system, extension-owned, or excluded."""
    return (
        f"({_SYSTEM_SCHEMA.format(ns=ns)} "
        f"OR {rel}.relname = ANY(%(excluded)s) "
        f"OR {_EXTENSION_MEMBER.format(catalog='pg_class', oid=rel + '.oid')})"
    )


def libpq_url(database_url: str) -> str:
    """Strip a SQLAlchemy driver suffix so libpq accepts the URL.

    Example:
        >>> libpq_url("postgresql+psycopg://u@db/shop")
        'postgresql://u@db/shop'
    """
    url = re.sub(r"^postgresql\+\w+://", "postgresql://", database_url)
    if "connect_timeout" not in url:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}connect_timeout=10"
    return url


def single_line_literal(literal: str) -> str:
    """Rewrite a ``quote_nullable`` literal so it spans a single line.

    Values holding CR or LF become ``E''`` escape strings, so no line of
    a data script can be mistaken for a ``GO`` separator.

    Example:
        >>> single_line_literal("'a\\nGO'")
        "E'a\\\\nGO'"
    """
    if "\n" not in literal and "\r" not in literal:
        return literal
    if literal.startswith("E'"):
        # already an escape string; backslashes are doubled
        body = literal[1:]
    else:
        body = literal.replace("\\", "\\\\")
    return "E" + body.replace("\n", "\\n").replace("\r", "\\r")


def guard_duplicate(statement: str) -> str:
    """Wrap *statement* so re-running it against an existing object is a no-op."""
    body = statement.strip().rstrip(";")
    return (
        "DO $voyager$\n"
        "BEGIN\n"
        f"    {body};\n"
        "EXCEPTION\n"
        "    WHEN duplicate_object THEN NULL;\n"
        "END\n"
        "$voyager$;"
    )


class PostgresSchemaProvider:
    """Scripts a PostgreSQL database object by object.

    Implements the ``SchemaProvider`` protocol.  Works with any PostgreSQL
    12+ database (RDS, Supabase, local).

    Usage:
        provider = PostgresSchemaProvider(database_url, excluded_tables={"audit_log"})
        await provider.connect()
        try:
            for table in await provider.list_objects(ObjectCategory.TABLES):
                print(await provider.script(table, ScriptingOptions()))
        finally:
            await provider.close()

    Args:
        database_url: PostgreSQL connection URL.
        excluded_tables: Table names reported as system objects, so they
            are neither scripted nor exported.
    """

    def __init__(self, database_url: str, excluded_tables: set[str] | None = None):
        self._database_url = database_url
        self._excluded = sorted(excluded_tables or ())
        self._conn: AsyncConnection | None = None

        self._listers: dict[ObjectCategory, Callable[[], Awaitable[list[ObjectRef]]]] = {
            ObjectCategory.SCHEMAS: self._list_schemas,
            ObjectCategory.TYPES: self._list_types,
            ObjectCategory.TABLES: self._list_tables,
            ObjectCategory.INDEXES: self._list_indexes,
            ObjectCategory.STATISTICS: self._list_statistics,
            ObjectCategory.FOREIGN_KEYS: self._list_foreign_keys,
            ObjectCategory.PROCEDURES: lambda: self._list_routines(ObjectCategory.PROCEDURES, "p"),
            ObjectCategory.FUNCTIONS: lambda: self._list_routines(ObjectCategory.FUNCTIONS, "f"),
            ObjectCategory.VIEWS: self._list_views,
            ObjectCategory.TRIGGERS: self._list_triggers,
            ObjectCategory.USERS: self._list_roles,
        }
        self._scripters: dict[
            ObjectCategory, Callable[[ObjectRef, ScriptingOptions], Awaitable[str | None]]
        ] = {
            ObjectCategory.SCHEMAS: self._script_schema,
            ObjectCategory.TYPES: self._script_type,
            ObjectCategory.TABLES: self._script_table,
            ObjectCategory.INDEXES: self._script_index,
            ObjectCategory.STATISTICS: self._script_statistics,
            ObjectCategory.FOREIGN_KEYS: self._script_foreign_key,
            ObjectCategory.PROCEDURES: self._script_routine,
            ObjectCategory.FUNCTIONS: self._script_routine,
            ObjectCategory.VIEWS: self._script_view,
            ObjectCategory.TRIGGERS: self._script_trigger,
            ObjectCategory.USERS: self._script_role,
        }

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        if self._conn is not None and not self._conn.closed:
            return
        try:
            self._conn = await psycopg.AsyncConnection.connect(
                libpq_url(self._database_url), autocommit=True
            )
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def current_catalog(self) -> str:
        rows = await self._fetch("SELECT current_database()")
        return rows[0][0]

    # ------------------------------------------------------------------
    # Protocol entry points
    # ------------------------------------------------------------------

    async def list_objects(self, category: ObjectCategory) -> list[ObjectRef]:
        return await self._listers[category]()

    async def script(self, obj: ObjectRef, options: ScriptingOptions) -> str | None:
        if options.script_data:
            if obj.category != ObjectCategory.TABLES:
                raise ScriptingError(f"Data scripting is only supported for tables, not {obj.category.value}")
            return await self._script_table_data(obj, options)
        return await self._scripters[obj.category](obj, options)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_conn(self) -> AsyncConnection:
        if not self._conn:
            raise RuntimeError("Provider not connected. Call connect() first.")
        return self._conn

    async def _fetch(self, query: str, params: Any = None) -> list[tuple]:
        conn = self._require_conn()
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            return await cur.fetchall()

    async def _fetch_one(self, query: str, params: Any = None) -> tuple:
        rows = await self._fetch(query, params)
        if not rows:
            raise ScriptingError("Object no longer exists")
        return rows[0]

    def _ident(self, *parts: str) -> str:
        return sql.Identifier(*parts).as_string(self._require_conn())

    def _qualified(self, schema_name: str, name: str, options: ScriptingOptions) -> str:
        if options.schema_qualify and schema_name:
            return self._ident(schema_name, name)
        return self._ident(name)

    async def _refs(self, category: ObjectCategory, query: str, params: Any = None) -> list[ObjectRef]:
        """Map rows of (oid, schema, name, parent, references, is_system, inline)."""
        rows = await self._fetch(query, params)
        return [
            ObjectRef(
                category=category,
                oid=oid,
                schema_name=schema_name or "",
                name=name,
                parent=parent,
                references=references,
                is_system=bool(is_system),
                inline_with_parent=bool(inline),
            )
            for oid, schema_name, name, parent, references, is_system, inline in rows
        ]

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def _list_schemas(self) -> list[ObjectRef]:
        query = f"""
            SELECT n.oid, NULL, n.nspname, NULL, NULL,
                   {_SYSTEM_SCHEMA.format(ns='n')}
                   OR {_EXTENSION_MEMBER.format(catalog='pg_namespace', oid='n.oid')},
                   false
            FROM pg_namespace n
            ORDER BY n.nspname
        """
        return await self._refs(ObjectCategory.SCHEMAS, query)

    async def _list_types(self) -> list[ObjectRef]:
        query = f"""
            SELECT t.oid, n.nspname, t.typname, NULL, NULL,
                   {_SYSTEM_SCHEMA.format(ns='n')}
                   OR {_EXTENSION_MEMBER.format(catalog='pg_type', oid='t.oid')},
                   false
            FROM pg_type t
            JOIN pg_namespace n ON n.oid = t.typnamespace
            WHERE t.typtype IN ('e', 'd')
            ORDER BY n.nspname, t.typname
        """
        return await self._refs(ObjectCategory.TYPES, query)

    async def _list_tables(self) -> list[ObjectRef]:
        query = f"""
            SELECT c.oid, n.nspname, c.relname, NULL, NULL,
                   {_system_table('n', 'c')},
                   false
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relkind = 'r'
            ORDER BY n.nspname, c.relname
        """
        return await self._refs(ObjectCategory.TABLES, query, {"excluded": self._excluded})

    async def _list_indexes(self) -> list[ObjectRef]:
        query = f"""
            SELECT i.oid, n.nspname, i.relname, n.nspname || '.' || t.relname, NULL,
                   {_system_table('n', 't')},
                   EXISTS (
                       SELECT 1 FROM pg_constraint con
                       WHERE con.conindid = i.oid AND con.contype IN ('p', 'u', 'x')
                   )
            FROM pg_index ix
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_class t ON t.oid = ix.indrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE t.relkind = 'r'
            ORDER BY n.nspname, t.relname, i.relname
        """
        return await self._refs(ObjectCategory.INDEXES, query, {"excluded": self._excluded})

    async def _list_statistics(self) -> list[ObjectRef]:
        query = f"""
            SELECT s.oid, sn.nspname, s.stxname, n.nspname || '.' || t.relname, NULL,
                   {_system_table('n', 't')},
                   false
            FROM pg_statistic_ext s
            JOIN pg_namespace sn ON sn.oid = s.stxnamespace
            JOIN pg_class t ON t.oid = s.stxrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            ORDER BY sn.nspname, s.stxname
        """
        return await self._refs(ObjectCategory.STATISTICS, query, {"excluded": self._excluded})

    async def _list_foreign_keys(self) -> list[ObjectRef]:
        query = f"""
            SELECT con.oid, n.nspname, con.conname,
                   n.nspname || '.' || t.relname,
                   rn.nspname || '.' || r.relname,
                   {_system_table('n', 't')},
                   false
            FROM pg_constraint con
            JOIN pg_class t ON t.oid = con.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_class r ON r.oid = con.confrelid
            JOIN pg_namespace rn ON rn.oid = r.relnamespace
            WHERE con.contype = 'f'
              AND con.conparentid = 0
            ORDER BY n.nspname, t.relname, con.conname
        """
        return await self._refs(ObjectCategory.FOREIGN_KEYS, query, {"excluded": self._excluded})

    async def _list_routines(self, category: ObjectCategory, prokind: str) -> list[ObjectRef]:
        """List routines of one kind.

        Note: prokind 'f' excludes aggregates ('a') and window functions ('w').
        Names carry the identity arguments so overloads stay distinct.
        """
        query = f"""
            SELECT p.oid, n.nspname,
                   p.proname || '(' || pg_get_function_identity_arguments(p.oid) || ')',
                   NULL, NULL,
                   {_SYSTEM_SCHEMA.format(ns='n')}
                   OR {_EXTENSION_MEMBER.format(catalog='pg_proc', oid='p.oid')},
                   false
            FROM pg_proc p
            JOIN pg_namespace n ON n.oid = p.pronamespace
            WHERE p.prokind = %(prokind)s
            ORDER BY n.nspname, p.proname, p.oid
        """
        return await self._refs(category, query, {"prokind": prokind})

    async def _list_views(self) -> list[ObjectRef]:
        # oid order approximates creation order, so views on views come later
        query = f"""
            SELECT c.oid, n.nspname, c.relname, NULL, NULL,
                   {_SYSTEM_SCHEMA.format(ns='n')}
                   OR {_EXTENSION_MEMBER.format(catalog='pg_class', oid='c.oid')},
                   false
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE c.relkind IN ('v', 'm')
            ORDER BY c.oid
        """
        return await self._refs(ObjectCategory.VIEWS, query)

    async def _list_triggers(self) -> list[ObjectRef]:
        query = f"""
            SELECT tg.oid, n.nspname, tg.tgname, n.nspname || '.' || t.relname, NULL,
                   {_system_table('n', 't')},
                   false
            FROM pg_trigger tg
            JOIN pg_class t ON t.oid = tg.tgrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE NOT tg.tgisinternal
            ORDER BY n.nspname, t.relname, tg.tgname
        """
        return await self._refs(ObjectCategory.TRIGGERS, query, {"excluded": self._excluded})

    async def _list_roles(self) -> list[ObjectRef]:
        # oid 10 is the bootstrap superuser
        query = """
            SELECT r.oid, NULL, r.rolname, NULL, NULL,
                   starts_with(r.rolname, 'pg_') OR r.oid = 10,
                   false
            FROM pg_roles r
            ORDER BY r.rolname
        """
        return await self._refs(ObjectCategory.USERS, query)

    # ------------------------------------------------------------------
    # Schema scripting
    # ------------------------------------------------------------------

    async def _script_schema(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        guard = "IF NOT EXISTS " if options.include_if_not_exists else ""
        return f"CREATE SCHEMA {guard}{self._ident(obj.name)};"

    async def _script_type(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        typtype, labels, base_type, not_null, default, checks = await self._fetch_one(
            """
            SELECT t.typtype,
                   (SELECT string_agg(quote_literal(e.enumlabel), ', ' ORDER BY e.enumsortorder)
                    FROM pg_enum e WHERE e.enumtypid = t.oid),
                   format_type(t.typbasetype, t.typtypmod),
                   t.typnotnull,
                   t.typdefault,
                   (SELECT string_agg('CONSTRAINT ' || quote_ident(c.conname) || ' '
                                      || pg_get_constraintdef(c.oid), ' ' ORDER BY c.conname)
                    FROM pg_constraint c WHERE c.contypid = t.oid)
            FROM pg_type t
            WHERE t.oid = %s
            """,
            (obj.oid,),
        )
        name = self._qualified(obj.schema_name, obj.name, options)

        if typtype == "e":
            statement = f"CREATE TYPE {name} AS ENUM ({labels or ''});"
        else:
            statement = f"CREATE DOMAIN {name} AS {base_type}"
            if default is not None:
                statement += f" DEFAULT {default}"
            if not_null:
                statement += " NOT NULL"
            if checks:
                statement += f" {checks}"
            statement += ";"

        return guard_duplicate(statement) if options.include_if_not_exists else statement

    async def _script_table(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        table = self._qualified(obj.schema_name, obj.name, options)
        statements: list[str] = []

        sequences = await self._fetch(
            """
            SELECT sn.nspname, sc.relname, a.attname,
                   format_type(s.seqtypid, NULL), s.seqstart, s.seqincrement,
                   s.seqmin, s.seqmax, s.seqcycle
            FROM pg_depend d
            JOIN pg_class sc ON sc.oid = d.objid AND sc.relkind = 'S'
            JOIN pg_namespace sn ON sn.oid = sc.relnamespace
            JOIN pg_sequence s ON s.seqrelid = sc.oid
            JOIN pg_attribute a ON a.attrelid = d.refobjid AND a.attnum = d.refobjsubid
            WHERE d.classid = 'pg_class'::regclass
              AND d.refobjid = %s
              AND d.deptype = 'a'
            ORDER BY sc.relname
            """,
            (obj.oid,),
        )
        guard = "IF NOT EXISTS " if options.include_if_not_exists else ""
        for seq_schema, seq_name, _, seq_type, start, increment, min_value, max_value, cycle in sequences:
            statements.append(
                f"CREATE SEQUENCE {guard}{self._qualified(seq_schema, seq_name, options)} "
                f"AS {seq_type} START WITH {start} INCREMENT BY {increment} "
                f"MINVALUE {min_value} MAXVALUE {max_value} {'CYCLE' if cycle else 'NO CYCLE'};"
            )

        columns = await self._fetch(
            """
            SELECT a.attname,
                   format_type(a.atttypid, a.atttypmod),
                   a.attnotnull,
                   pg_get_expr(ad.adbin, ad.adrelid),
                   a.attidentity,
                   a.attgenerated
            FROM pg_attribute a
            LEFT JOIN pg_attrdef ad ON ad.adrelid = a.attrelid AND ad.adnum = a.attnum
            WHERE a.attrelid = %s
              AND a.attnum > 0
              AND NOT a.attisdropped
            ORDER BY a.attnum
            """,
            (obj.oid,),
        )
        lines: list[str] = []
        for col_name, data_type, not_null, default, identity, generated in columns:
            line = f"    {self._ident(col_name)} {data_type}"
            if generated == "s":
                line += f" GENERATED ALWAYS AS ({default}) STORED"
            elif identity == "a":
                line += " GENERATED ALWAYS AS IDENTITY"
            elif identity == "d":
                line += " GENERATED BY DEFAULT AS IDENTITY"
            elif default is not None:
                line += f" DEFAULT {default}"
            if not_null:
                line += " NOT NULL"
            lines.append(line)

        constraints = await self._fetch(
            """
            SELECT conname, pg_get_constraintdef(oid)
            FROM pg_constraint
            WHERE conrelid = %s
              AND contype IN ('p', 'u', 'c', 'x')
            ORDER BY contype <> 'p', conname
            """,
            (obj.oid,),
        )
        for con_name, definition in constraints:
            lines.append(f"    CONSTRAINT {self._ident(con_name)} {definition}")

        body = ",\n".join(lines)
        statements.append(f"CREATE TABLE {guard}{table} (\n{body}\n);")

        for seq_schema, seq_name, col_name, *_ in sequences:
            statements.append(
                f"ALTER SEQUENCE {self._qualified(seq_schema, seq_name, options)} "
                f"OWNED BY {table}.{self._ident(col_name)};"
            )

        return "\n".join(statements)

    async def _script_index(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        (definition,) = await self._fetch_one("SELECT pg_get_indexdef(%s)", (obj.oid,))
        if options.include_if_not_exists:
            definition = re.sub(
                r"^CREATE (UNIQUE )?INDEX ", r"CREATE \1INDEX IF NOT EXISTS ", definition, count=1
            )
        return f"{definition};"

    async def _script_statistics(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        (definition,) = await self._fetch_one("SELECT pg_get_statisticsobjdef(%s)", (obj.oid,))
        if options.include_if_not_exists:
            definition = definition.replace(
                "CREATE STATISTICS ", "CREATE STATISTICS IF NOT EXISTS ", 1
            )
        return f"{definition};"

    async def _script_foreign_key(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        schema_name, table_name, definition = await self._fetch_one(
            """
            SELECT n.nspname, t.relname, pg_get_constraintdef(con.oid)
            FROM pg_constraint con
            JOIN pg_class t ON t.oid = con.conrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE con.oid = %s
            """,
            (obj.oid,),
        )
        statement = (
            f"ALTER TABLE {self._qualified(schema_name, table_name, options)} "
            f"ADD CONSTRAINT {self._ident(obj.name)} {definition};"
        )
        return guard_duplicate(statement) if options.include_if_not_exists else statement

    async def _script_routine(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        (definition,) = await self._fetch_one("SELECT pg_get_functiondef(%s)", (obj.oid,))
        if not options.include_if_not_exists:
            definition = definition.replace("CREATE OR REPLACE ", "CREATE ", 1)
        return definition.rstrip() + ";"

    async def _script_view(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        relkind, definition = await self._fetch_one(
            "SELECT relkind, pg_get_viewdef(oid, true) FROM pg_class WHERE oid = %s",
            (obj.oid,),
        )
        name = self._qualified(obj.schema_name, obj.name, options)
        query = definition.strip().rstrip(";")

        if relkind == "m":
            # Rows are not loaded yet when the schema replays; REFRESH after import
            guard = "IF NOT EXISTS " if options.include_if_not_exists else ""
            return f"CREATE MATERIALIZED VIEW {guard}{name} AS\n{query}\nWITH NO DATA;"

        create = "CREATE OR REPLACE VIEW" if options.include_if_not_exists else "CREATE VIEW"
        return f"{create} {name} AS\n{query};"

    async def _script_trigger(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        schema_name, table_name, definition = await self._fetch_one(
            """
            SELECT n.nspname, t.relname, pg_get_triggerdef(tg.oid, true)
            FROM pg_trigger tg
            JOIN pg_class t ON t.oid = tg.tgrelid
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE tg.oid = %s
            """,
            (obj.oid,),
        )
        statement = f"{definition};"
        if options.include_if_not_exists:
            table = self._qualified(schema_name, table_name, options)
            statement = f"DROP TRIGGER IF EXISTS {self._ident(obj.name)} ON {table};\n{statement}"
        return statement

    async def _script_role(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        """Script a role without its password; passwords never leave the server."""
        row = await self._fetch_one(
            """
            SELECT rolcanlogin, rolsuper, rolinherit, rolcreaterole,
                   rolcreatedb, rolreplication, rolconnlimit
            FROM pg_roles
            WHERE oid = %s
            """,
            (obj.oid,),
        )
        can_login, superuser, inherit, create_role, create_db, replication, conn_limit = row
        flags = [
            "LOGIN" if can_login else "NOLOGIN",
            "SUPERUSER" if superuser else "NOSUPERUSER",
            "INHERIT" if inherit else "NOINHERIT",
            "CREATEROLE" if create_role else "NOCREATEROLE",
            "CREATEDB" if create_db else "NOCREATEDB",
            "REPLICATION" if replication else "NOREPLICATION",
            f"CONNECTION LIMIT {conn_limit}",
        ]
        statement = f"CREATE ROLE {self._ident(obj.name)} WITH {' '.join(flags)};"
        return guard_duplicate(statement) if options.include_if_not_exists else statement

    # ------------------------------------------------------------------
    # Data scripting
    # ------------------------------------------------------------------

    async def _script_table_data(self, obj: ObjectRef, options: ScriptingOptions) -> str:
        """Render the table's rows as INSERT batches, then restore sequences."""
        conn = self._require_conn()

        columns = await self._fetch(
            """
            SELECT attname, attidentity
            FROM pg_attribute
            WHERE attrelid = %s
              AND attnum > 0
              AND NOT attisdropped
              AND attgenerated = ''
            ORDER BY attnum
            """,
            (obj.oid,),
        )
        if not columns:
            return ""

        names = [name for name, _ in columns]
        overriding = " OVERRIDING SYSTEM VALUE" if any(i == "a" for _, i in columns) else ""
        table = self._qualified(obj.schema_name, obj.name, options)
        column_list = ", ".join(self._ident(n) for n in names)
        prefix = f"INSERT INTO {table} ({column_list}){overriding} VALUES ("

        select = sql.SQL("SELECT {} FROM {}").format(
            sql.SQL(", ").join(
                sql.SQL("quote_nullable({})").format(sql.Identifier(n)) for n in names
            ),
            sql.Identifier(obj.schema_name, obj.name),
        )

        parts: list[str] = []
        rows_in_batch = 0
        total = 0
        async with conn.cursor() as cur:
            async for row in cur.stream(select):
                parts.append(prefix + ", ".join(single_line_literal(v) for v in row) + ");\n")
                rows_in_batch += 1
                total += 1
                if rows_in_batch >= options.rows_per_batch:
                    parts.append(f"{BATCH_SEPARATOR}\n")
                    rows_in_batch = 0

        if rows_in_batch:
            parts.append(f"{BATCH_SEPARATOR}\n")

        sequences = await self._fetch(
            """
            SELECT quote_literal(quote_ident(ps.schemaname) || '.' || quote_ident(ps.sequencename)),
                   ps.last_value
            FROM pg_depend d
            JOIN pg_class sc ON sc.oid = d.objid AND sc.relkind = 'S'
            JOIN pg_namespace sn ON sn.oid = sc.relnamespace
            JOIN pg_sequences ps ON ps.schemaname = sn.nspname AND ps.sequencename = sc.relname
            WHERE d.classid = 'pg_class'::regclass
              AND d.refobjid = %s
              AND d.deptype IN ('a', 'i')
              AND ps.last_value IS NOT NULL
            ORDER BY 1
            """,
            (obj.oid,),
        )
        if sequences:
            for sequence, last_value in sequences:
                parts.append(f"SELECT setval({sequence}, {last_value}, true);\n")
            parts.append(f"{BATCH_SEPARATOR}\n")

        logger.debug(f"Scripted {total} rows from {obj.qualified_name}")
        return "".join(parts)
