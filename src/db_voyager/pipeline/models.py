"""Pipeline options, states, and structured outcomes.

Export and import return a ``PipelineOutcome`` instead of raising, so
callers decide how strict to be.  Non-fatal problems (a table that could
not be scripted, a batch that failed to replay) are recorded in
``errors`` while the outcome still reports ``completed``.

Usage:
    from db_voyager.pipeline.models import ExportOptions, PipelineOutcome

    outcome = await ExportPipeline(provider).run("out/db.dvo", catalog="shop")
    if outcome.errors:
        for error in outcome.errors:
            print(error.kind, error.target, error.message)
    sys.exit(outcome.exit_code)
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from db_voyager.scripting.models import ExportSelection, ScriptingOptions


# ============================================================================
# States
# ============================================================================


class ExportState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    STAGED = "staged"
    SCHEMA_WRITTEN = "schema_written"
    DATA_WRITTEN = "data_written"
    ARCHIVED = "archived"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ImportState(str, Enum):
    IDLE = "idle"
    UNPACKED = "unpacked"
    CONNECTED = "connected"
    SCHEMA_APPLIED = "schema_applied"
    DATA_APPLIED = "data_applied"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


# ============================================================================
# Options
# ============================================================================


class ExportOptions(BaseModel):
    """Export behaviour beyond the object selection.

    Attributes:
        selection: Ignore-list and category toggles.
        scripting: Options passed to the provider; ``rows_per_batch``
            also sets the INSERT statements per ``GO`` batch in ``data.sql``.
        write_manifest: Add ``manifest.json`` with a dependency-safe
            table order.
        strict: Treat any recorded non-fatal error as a failed run.
    """

    selection: ExportSelection = Field(default_factory=ExportSelection)
    scripting: ScriptingOptions = Field(default_factory=ScriptingOptions)
    write_manifest: bool = False
    strict: bool = False


class ImportOptions(BaseModel):
    """Import behaviour.

    Attributes:
        strict: Treat any recorded non-fatal error as a failed run.
        stop_on_error: Abort replay on the first failing batch.
        use_manifest_order: Replay tables in manifest order when the
            package carries one.
    """

    strict: bool = False
    stop_on_error: bool = False
    use_manifest_order: bool = True


# ============================================================================
# Outcome
# ============================================================================


class PipelineError(BaseModel):
    """One error recorded during a run."""

    kind: str                  # error class name, e.g. "ScriptingError"
    message: str
    target: str | None = None  # object, table, or batch the error relates to
    fatal: bool = False


class PipelineOutcome(BaseModel):
    """Result of an export or import run.

    Example:
        >>> outcome = PipelineOutcome(operation="export", status="completed", state="done")
        >>> outcome.success, outcome.exit_code
        (True, 0)
    """

    operation: Literal["export", "import"]
    status: Literal["completed", "failed", "cancelled"] = "completed"
    state: str = "idle"
    package_path: str | None = None
    tables: list[str] = Field(default_factory=list)
    errors: list[PipelineError] = Field(default_factory=list)

    @property
    def fatal(self) -> bool:
        """True if a fatal error aborted the run."""
        return any(e.fatal for e in self.errors)

    @property
    def success(self) -> bool:
        return self.status == "completed"

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 completed, 1 failed, 130 cancelled."""
        if self.status == "completed":
            return 0
        if self.status == "cancelled":
            return 130
        return 1

    def record(
        self,
        error: Exception,
        target: str | None = None,
        fatal: bool = False,
    ) -> PipelineError:
        """Append *error* to ``errors`` and return the recorded entry."""
        entry = PipelineError(
            kind=type(error).__name__,
            message=str(error),
            target=target,
            fatal=fatal,
        )
        self.errors.append(entry)
        return entry
