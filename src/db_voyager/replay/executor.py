"""SQL batch splitting and sequential replay.

A script is split on standalone ``GO`` lines (the interactive-tool batch
separator, matched case-insensitively after trimming the line).  Each
non-empty batch runs in source order on one connection.  A failing
batch is logged and recorded, and replay continues with the next one
unless ``stop_on_error`` is set.

Usage:
    from db_voyager.replay.executor import SqlBatchExecutor, split_batches

    report = await SqlBatchExecutor(conn).execute(script)
    if report.failed:
        print(f"{report.failed} of {report.total} batches failed")
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

from db_voyager.adapters.base import SqlConnection
from db_voyager.errors import BatchExecutionError
from db_voyager.pipeline.cancellation import Cancellation, ensure_cancellation
from db_voyager.pipeline.models import PipelineError

logger = logging.getLogger(__name__)

BATCH_SEPARATOR = "GO"


def is_separator(line: str) -> bool:
    """True if *line* is a standalone ``GO`` batch separator."""
    return line.strip().upper() == BATCH_SEPARATOR


def split_batches(script: str) -> list[str]:
    """Split *script* on standalone ``GO`` lines.

    Every segment is returned, including empty ones, so the result always
    has one more entry than there are separator lines.

    Examples:
        >>> split_batches("SELECT 1\\nGO\\nSELECT 2\\n")
        ['SELECT 1\\n', 'SELECT 2\\n']
        >>> split_batches("")
        ['']
        >>> len(split_batches("go\\n  GO  \\n"))
        3
    """
    batches: list[str] = []
    current: list[str] = []

    for line in script.splitlines(keepends=True):
        if is_separator(line):
            batches.append("".join(current))
            current = []
        else:
            current.append(line)

    batches.append("".join(current))
    return batches


def iter_batches(script: str) -> Iterator[str]:
    """Yield the non-blank batches of *script* in source order."""
    for batch in split_batches(script):
        if batch.strip():
            yield batch


@dataclass
class BatchReport:
    """Counts and errors from one script replay."""

    executed: int = 0
    failed: int = 0
    errors: list[PipelineError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.executed + self.failed


class SqlBatchExecutor:
    """Replays SQL scripts batch by batch on an open connection.

    Args:
        connection: Connection implementing ``SqlConnection``.  Opened
            before the first batch if it is not open yet.
        stop_on_error: Raise ``BatchExecutionError`` on the first failing
            batch instead of continuing.
    """

    def __init__(self, connection: SqlConnection, stop_on_error: bool = False) -> None:
        self._connection = connection
        self._stop_on_error = stop_on_error

    async def execute(
        self,
        script: str,
        cancellation: Cancellation | None = None,
        source: str = "script",
    ) -> BatchReport:
        """Execute every non-blank batch of *script* in order.

        Args:
            script: Raw SQL text with optional ``GO`` separators.
            cancellation: Checked before each batch.
            source: Label for log lines and recorded errors
                (e.g. ``"schema.sql"``).

        Returns:
            ``BatchReport`` with executed/failed counts.

        Raises:
            OperationCancelledError: If cancellation is requested between
                batches.
            BatchExecutionError: On the first failure when
                ``stop_on_error`` is set.
        """
        cancellation = ensure_cancellation(cancellation)
        report = BatchReport()

        batches = list(iter_batches(script))
        if not batches:
            logger.debug(f"{source}: no batches to execute")
            return report

        if not self._connection.is_open:
            await self._connection.open()

        for number, batch in enumerate(batches, start=1):
            cancellation.raise_if_cancelled(f"batch {number} of {source}")
            target = f"{source}#{number}"
            try:
                await self._connection.execute(batch)
                report.executed += 1
            except Exception as e:
                report.failed += 1
                error = BatchExecutionError(f"Batch {number} of {source} failed: {e}")
                logger.error(str(error))
                if self._stop_on_error:
                    raise error from e
                report.errors.append(
                    PipelineError(
                        kind=type(error).__name__,
                        message=str(error),
                        target=target,
                    )
                )

        logger.info(
            f"{source}: {report.executed} batches executed, {report.failed} failed"
        )
        return report
