"""Import pipeline: package file -> temp directory -> target database.

The package is unpacked into ``<package-dir>/_temp``, ``schema.sql`` is
replayed first, then every table directory's ``data.sql`` in ordinal
name order (or manifest order, when the package carries a manifest).
Failing batches are recorded and replay continues; nothing is wrapped
in a transaction.

Usage:
    from db_voyager.pipeline.importer import ImportPipeline

    conn = AsyncPostgresConnection("postgresql://localhost/shop_copy")
    outcome = await ImportPipeline(conn).run("exports/shop.dvo")
    for error in outcome.errors:
        print(error.target, error.message)
"""

import logging
import shutil
from pathlib import Path

from db_voyager.adapters.base import SqlConnection
from db_voyager.errors import (
    ArchiveError,
    DatabaseConnectionError,
    OperationCancelledError,
    StagingError,
    VoyagerError,
)
from db_voyager.package.archive import extract_archive
from db_voyager.package.layout import DATA_FILE_NAME, SCHEMA_FILE_NAME, PackageLayout
from db_voyager.package.manifest import read_manifest
from db_voyager.pipeline.cancellation import Cancellation, ensure_cancellation
from db_voyager.pipeline.models import ImportOptions, ImportState, PipelineOutcome
from db_voyager.replay.executor import SqlBatchExecutor

logger = logging.getLogger(__name__)

ANSI_ENCODING = "cp1252"


def read_script(path: Path) -> str:
    """Read a SQL script written as UTF-8 (with or without BOM) or ANSI.

    ANSI means Windows-1252, the code page legacy tools write by default.

    Raises:
        ArchiveError: If the file is neither valid UTF-8 nor Windows-1252.
    """
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning(f"{path} is not UTF-8; decoding as {ANSI_ENCODING}")
    try:
        return raw.decode(ANSI_ENCODING)
    except UnicodeDecodeError as e:
        raise ArchiveError(f"Cannot decode {path} as UTF-8 or {ANSI_ENCODING}: {e}") from e


class ImportPipeline:
    """Replays a package file into a target database.

    Args:
        connection: Target connection; opened and closed by the pipeline.
        options: Strictness and ordering options.
    """

    def __init__(self, connection: SqlConnection, options: ImportOptions | None = None) -> None:
        self._connection = connection
        self._options = options or ImportOptions()

    @property
    def options(self) -> ImportOptions:
        return self._options

    async def run(
        self,
        package_path: str | Path,
        cancellation: Cancellation | None = None,
    ) -> PipelineOutcome:
        """Import *package_path* into the target database.

        Returns:
            ``PipelineOutcome`` listing the replayed table directories and
            every recorded error.

        Raises:
            InvalidPathError: If *package_path* has no directory component.
        """
        layout = PackageLayout.for_import(package_path)
        cancellation = ensure_cancellation(cancellation)
        outcome = PipelineOutcome(operation="import", package_path=str(layout.package_path))
        state = ImportState.IDLE
        staged = False

        try:
            cancellation.raise_if_cancelled("unpacking")
            if not layout.package_path.is_file():
                raise ArchiveError(f"Package file not found: {layout.package_path}")
            staged = True
            self._unpack(layout)
            state = ImportState.UNPACKED

            cancellation.raise_if_cancelled("connecting")
            await self._connect()
            state = ImportState.CONNECTED

            executor = SqlBatchExecutor(self._connection, stop_on_error=self._options.stop_on_error)

            cancellation.raise_if_cancelled("applying schema")
            report = await executor.execute(
                read_script(layout.schema_file_path), cancellation, source=SCHEMA_FILE_NAME
            )
            outcome.errors.extend(report.errors)
            state = ImportState.SCHEMA_APPLIED

            for table in self._table_order(layout, outcome):
                cancellation.raise_if_cancelled(f"importing {table}")
                data_path = layout.table_data_path(table)
                try:
                    script = read_script(data_path)
                except ArchiveError as e:
                    logger.error(str(e))
                    outcome.record(e, target=f"{table}/{DATA_FILE_NAME}")
                    continue
                report = await executor.execute(
                    script,
                    cancellation,
                    source=f"{table}/{DATA_FILE_NAME}",
                )
                outcome.errors.extend(report.errors)
                outcome.tables.append(table)
            state = ImportState.DATA_APPLIED

            state = ImportState.DONE

        except OperationCancelledError as e:
            logger.warning(f"Import cancelled in state '{state.value}': {e}")
            outcome.record(e)
            outcome.status = "cancelled"
            state = ImportState.CANCELLED
        except (VoyagerError, OSError) as e:
            logger.error(f"Import failed in state '{state.value}': {e}")
            outcome.record(e, target=str(layout.package_path), fatal=True)
            outcome.status = "failed"
            state = ImportState.FAILED
        finally:
            await self._close_connection()
            if staged and outcome.status != "cancelled":
                self._cleanup(layout, outcome)

        if outcome.status == "completed" and self._options.strict and outcome.errors:
            logger.error(f"Strict mode: {len(outcome.errors)} recorded errors fail the import")
            outcome.status = "failed"

        outcome.state = state.value
        logger.info(
            f"Import {outcome.status}: {len(outcome.tables)} tables, "
            f"{len(outcome.errors)} errors"
        )
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _unpack(self, layout: PackageLayout) -> None:
        staging = layout.staging_path
        if staging.exists():
            logger.warning(f"Removing stale temp directory {staging}")
            try:
                shutil.rmtree(staging)
            except OSError as e:
                raise StagingError(f"Failed to remove stale temp directory {staging}: {e}") from e

        extract_archive(layout.package_path, staging)

        if not layout.schema_file_path.is_file():
            raise ArchiveError(f"Package has no {SCHEMA_FILE_NAME}: {layout.package_path}")

    async def _connect(self) -> None:
        try:
            await self._connection.open()
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to connect to target database: {e}") from e

    def _table_order(self, layout: PackageLayout, outcome: PipelineOutcome) -> list[str]:
        """Table directories to replay, in replay order.

        Directories are sorted by ordinal name comparison.  A valid
        manifest reorders them, with unlisted directories appended.
        """
        directories: list[str] = []
        for path in sorted(layout.staging_path.iterdir(), key=lambda p: p.name):
            if not path.is_dir():
                continue
            if not (path / DATA_FILE_NAME).is_file():
                logger.warning(f"Skipping directory without {DATA_FILE_NAME}: {path.name}")
                continue
            directories.append(path.name)

        if not self._options.use_manifest_order:
            return directories

        try:
            manifest = read_manifest(layout.staging_path)
        except ArchiveError as e:
            logger.warning(f"Ignoring manifest: {e}")
            outcome.record(e, target=str(layout.manifest_file_path))
            return directories
        if manifest is None:
            return directories

        available = set(directories)
        ordered = [t for t in manifest.tables if t in available]
        listed = set(ordered)
        ordered.extend(d for d in directories if d not in listed)
        logger.debug(f"Using manifest table order: {ordered}")
        return ordered

    async def _close_connection(self) -> None:
        try:
            await self._connection.close()
        except Exception as e:
            logger.warning(f"Failed to close target connection: {e}")

    def _cleanup(self, layout: PackageLayout, outcome: PipelineOutcome) -> None:
        staging = layout.staging_path
        if not staging.exists():
            return
        try:
            shutil.rmtree(staging)
        except OSError as e:
            error = StagingError(f"Failed to remove temp directory {staging}: {e}")
            logger.warning(str(error))
            outcome.record(error, target=str(staging))
