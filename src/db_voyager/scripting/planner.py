"""Schema script planning: category order, banners, and object scripting.

``SchemaScriptPlanner`` walks ``CATEGORY_PLANS`` in order and writes one
``schema.sql``.  Each enabled category gets a banner block, each in-scope
object an identifying comment, the provider's SQL, and a ``GO`` line:

    /*****************************************************************************
     * TABLES                                                                    *
     *****************************************************************************/
    /******  Object:  Table public.orders  ******/
    CREATE TABLE IF NOT EXISTS public.orders (...);
    GO

Failure policy: an error while *listing* a category is structural and
raises ``ScriptingError``; an error while scripting one object is logged,
recorded in the ``ScriptReport``, and the object is skipped.

Usage:
    planner = SchemaScriptPlanner(provider, ExportSelection(users=True))
    report = await planner.write(layout.schema_file_path)
    for error in report.errors:
        print(error.target, error.message)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from db_voyager.errors import OperationCancelledError, ScriptingError
from db_voyager.pipeline.cancellation import Cancellation, ensure_cancellation
from db_voyager.pipeline.models import PipelineError
from db_voyager.replay.executor import BATCH_SEPARATOR
from db_voyager.scripting.models import (
    ExportSelection,
    ObjectCategory,
    ObjectRef,
    ScriptingOptions,
)
from db_voyager.scripting.provider import SchemaProvider

logger = logging.getLogger(__name__)

BANNER_WIDTH = 78


@dataclass(frozen=True)
class CategoryPlan:
    """How one category is scripted.

    The ``ExportSelection`` toggle for a plan is the field named after
    ``category.value``.
    """

    category: ObjectCategory
    title: str                 # banner text
    object_label: str          # word used in "Object:" comments
    skip_inline: bool = False  # skip objects emitted with their parent table


CATEGORY_PLANS: tuple[CategoryPlan, ...] = (
    CategoryPlan(ObjectCategory.SCHEMAS, "Schemas", "Schema"),
    CategoryPlan(ObjectCategory.TYPES, "User-defined types", "Type"),
    CategoryPlan(ObjectCategory.TABLES, "Tables", "Table"),
    CategoryPlan(ObjectCategory.INDEXES, "Indexes", "Index", skip_inline=True),
    CategoryPlan(ObjectCategory.STATISTICS, "Statistics", "Statistics"),
    CategoryPlan(ObjectCategory.FOREIGN_KEYS, "Foreign keys", "ForeignKey"),
    CategoryPlan(ObjectCategory.PROCEDURES, "Stored procedures", "StoredProcedure"),
    CategoryPlan(ObjectCategory.FUNCTIONS, "User-defined functions", "UserDefinedFunction"),
    CategoryPlan(ObjectCategory.VIEWS, "Views", "View"),
    CategoryPlan(ObjectCategory.TRIGGERS, "Triggers", "Trigger"),
    CategoryPlan(ObjectCategory.USERS, "Users", "User"),
)


def banner(title: str) -> str:
    """Return the three-line comment block that opens a category."""
    top = "/" + "*" * (BANNER_WIDTH - 1)
    middle = f" * {title.upper()}".ljust(BANNER_WIDTH - 1) + "*"
    bottom = " " + "*" * (BANNER_WIDTH - 2) + "/"
    return f"{top}\n{middle}\n{bottom}\n"


def object_comment(plan: CategoryPlan, obj: ObjectRef) -> str:
    """Return the ``/******  Object: ...  ******/`` line for *obj*."""
    return f"/******  Object:  {plan.object_label} {obj.label}  ******/\n"


@dataclass
class ScriptReport:
    """Counts and per-object errors from one planner run."""

    scripted: int = 0
    skipped: int = 0
    categories: list[ObjectCategory] = field(default_factory=list)
    errors: list[PipelineError] = field(default_factory=list)


class SchemaScriptPlanner:
    """Writes the schema script for the enabled categories.

    Args:
        provider: Connected ``SchemaProvider``.
        selection: Category toggles (``script_schema`` is the master switch).
        options: Base scripting options; ``script_data`` is always forced
            off and ``script_schema`` on for schema objects.
    """

    def __init__(
        self,
        provider: SchemaProvider,
        selection: ExportSelection | None = None,
        options: ScriptingOptions | None = None,
    ) -> None:
        self._provider = provider
        self._selection = selection or ExportSelection()
        base = options or ScriptingOptions()
        self._options = base.model_copy(update={"script_schema": True, "script_data": False})

    def enabled_plans(self) -> list[CategoryPlan]:
        """Plans whose category is switched on, in scripting order."""
        return [p for p in CATEGORY_PLANS if self._selection.is_enabled(p.category)]

    async def write(
        self,
        path: Path,
        cancellation: Cancellation | None = None,
    ) -> ScriptReport:
        """Write the schema script to *path*.

        The file is always created, and left empty when ``script_schema``
        is off or no category is enabled.

        Raises:
            ScriptingError: If a category cannot be listed.
            OperationCancelledError: If cancellation is requested between
                categories or objects.
        """
        cancellation = ensure_cancellation(cancellation)
        report = ScriptReport()

        with open(path, "w", encoding="utf-8", newline="\n") as out:
            for plan in self.enabled_plans():
                cancellation.raise_if_cancelled(f"scripting {plan.category.value}")
                await self._write_category(plan, out, report, cancellation)

        logger.info(
            f"Schema script written: {report.scripted} objects, "
            f"{len(report.errors)} errors"
        )
        return report

    async def _write_category(
        self,
        plan: CategoryPlan,
        out: TextIO,
        report: ScriptReport,
        cancellation: Cancellation,
    ) -> None:
        try:
            objects = await self._provider.list_objects(plan.category)
        except (ScriptingError, OperationCancelledError):
            raise
        except Exception as e:
            raise ScriptingError(f"Failed to list {plan.category.value}: {e}") from e

        report.categories.append(plan.category)
        if self._options.include_headers:
            out.write(banner(plan.title))

        for obj in objects:
            if obj.is_system or (plan.skip_inline and obj.inline_with_parent):
                report.skipped += 1
                continue

            cancellation.raise_if_cancelled(f"scripting {obj.label}")
            try:
                sql = await self._provider.script(obj, self._options)
            except OperationCancelledError:
                raise
            except Exception as e:
                error = ScriptingError(f"Failed to script {plan.object_label} {obj.label}: {e}")
                logger.error(str(error))
                report.errors.append(
                    PipelineError(kind=type(error).__name__, message=str(error), target=obj.label)
                )
                continue

            if not sql or not sql.strip():
                logger.debug(f"Nothing to script for {obj.label}")
                report.skipped += 1
                continue

            if self._options.include_headers:
                out.write(object_comment(plan, obj))
            out.write(sql.rstrip("\n") + "\n")
            out.write(f"{BATCH_SEPARATOR}\n")
            report.scripted += 1
