"""Export pipeline: database -> staging directory -> package file.

Steps, each preceded by a cancellation checkpoint:

1. Connect and verify the provider is bound to the requested catalog.
2. Recreate ``<package-dir>/_build``.
3. Write ``schema.sql`` with ``SchemaScriptPlanner``.
4. Write ``<table>/data.sql`` for every exported table.
5. Optionally write ``manifest.json``.
6. Compress ``_build`` and publish it as the package file.
7. Delete ``_build``.

Fatal errors end the run with a ``failed`` outcome; per-object and
per-table errors are recorded and the run continues.

Usage:
    from db_voyager.pipeline.export import ExportPipeline

    pipeline = ExportPipeline(provider, ExportSelection(ignore_tables=["audit_log"]))
    outcome = await pipeline.run("exports/shop.dvo", catalog="shop")
    print(outcome.status, outcome.tables)
"""

import logging
import shutil
from pathlib import Path

from db_voyager.errors import (
    DatabaseConnectionError,
    OperationCancelledError,
    PackageCollisionError,
    ScriptingError,
    StagingError,
    VoyagerError,
)
from db_voyager.package.archive import compress_directory, publish_archive
from db_voyager.package.layout import (
    MANIFEST_FILE_NAME,
    SCHEMA_FILE_NAME,
    PackageLayout,
)
from db_voyager.package.manifest import PackageManifest, write_manifest
from db_voyager.pipeline.cancellation import Cancellation, ensure_cancellation
from db_voyager.pipeline.models import ExportOptions, ExportState, PipelineOutcome
from db_voyager.scripting.dependencies import build_dependency_graph, topological_sort
from db_voyager.scripting.models import ExportSelection, ObjectCategory, ObjectRef
from db_voyager.scripting.planner import SchemaScriptPlanner
from db_voyager.scripting.provider import SchemaProvider

logger = logging.getLogger(__name__)

_RESERVED_NAMES = {"", ".", "..", SCHEMA_FILE_NAME, MANIFEST_FILE_NAME}


def is_valid_directory_name(name: str) -> bool:
    """True if a table name can be used verbatim as a package directory."""
    return name not in _RESERVED_NAMES and "/" not in name and "\\" not in name


class ExportPipeline:
    """Exports one database into a package file.

    Args:
        provider: Scripting provider for the source database.  The
            pipeline connects and closes it.
        selection: Ignore-list and category toggles; overrides
            ``options.selection`` when given.
        options: Scripting, manifest, and strictness options.
    """

    def __init__(
        self,
        provider: SchemaProvider,
        selection: ExportSelection | None = None,
        options: ExportOptions | None = None,
    ) -> None:
        options = options or ExportOptions()
        if selection is not None:
            options = options.model_copy(update={"selection": selection})
        self._provider = provider
        self._options = options

    @property
    def options(self) -> ExportOptions:
        return self._options

    async def run(
        self,
        package_path: str | Path,
        catalog: str,
        cancellation: Cancellation | None = None,
    ) -> PipelineOutcome:
        """Export the database bound to *catalog* into *package_path*.

        Args:
            package_path: Package file to create; must include a directory
                component and must not exist yet.
            catalog: Database name the provider is expected to be bound to.
            cancellation: Checked between steps.

        Returns:
            ``PipelineOutcome`` with status, final state, exported table
            directories, and recorded errors.

        Raises:
            InvalidPathError: If *package_path* has no directory component.
        """
        layout = PackageLayout.for_export(package_path)
        cancellation = ensure_cancellation(cancellation)
        outcome = PipelineOutcome(operation="export", package_path=str(layout.package_path))
        state = ExportState.IDLE
        connect_attempted = False

        try:
            cancellation.raise_if_cancelled("connecting")
            self._check_collision(layout)

            connect_attempted = True
            await self._connect(catalog)
            state = ExportState.CONNECTED

            cancellation.raise_if_cancelled("staging")
            self._prepare_staging(layout)
            state = ExportState.STAGED

            cancellation.raise_if_cancelled("writing schema")
            await self._write_schema(layout, outcome, cancellation)
            state = ExportState.SCHEMA_WRITTEN

            exported = await self._write_data(layout, outcome, cancellation)
            state = ExportState.DATA_WRITTEN

            if self._options.write_manifest:
                cancellation.raise_if_cancelled("writing manifest")
                await self._write_manifest(layout, catalog, exported)

            cancellation.raise_if_cancelled("archiving")
            self._archive(layout)
            state = ExportState.ARCHIVED

            cancellation.raise_if_cancelled("cleanup")
            self._cleanup(layout, outcome)
            state = ExportState.DONE

        except OperationCancelledError as e:
            logger.warning(f"Export cancelled in state '{state.value}': {e}")
            outcome.record(e)
            outcome.status = "cancelled"
            state = ExportState.CANCELLED
        except (VoyagerError, OSError) as e:
            logger.error(f"Export failed in state '{state.value}': {e}")
            outcome.record(e, target=str(layout.package_path), fatal=True)
            outcome.status = "failed"
            state = ExportState.FAILED
        finally:
            if connect_attempted:
                await self._close_provider()

        if outcome.status == "completed" and self._options.strict and outcome.errors:
            logger.error(f"Strict mode: {len(outcome.errors)} recorded errors fail the export")
            outcome.status = "failed"

        outcome.state = state.value
        logger.info(
            f"Export {outcome.status}: {len(outcome.tables)} tables, "
            f"{len(outcome.errors)} errors"
        )
        return outcome

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_collision(self, layout: PackageLayout) -> None:
        if layout.package_path.exists():
            raise PackageCollisionError(f"Package file already exists: {layout.package_path}")

    async def _connect(self, catalog: str) -> None:
        try:
            await self._provider.connect()
            current = await self._provider.current_catalog()
        except DatabaseConnectionError:
            raise
        except Exception as e:
            raise DatabaseConnectionError(f"Failed to connect to source database: {e}") from e

        if current != catalog:
            raise DatabaseConnectionError(
                f"Connected to catalog '{current}', expected '{catalog}'"
            )
        logger.info(f"Connected to catalog '{current}'")

    def _prepare_staging(self, layout: PackageLayout) -> None:
        staging = layout.staging_path
        try:
            if staging.exists():
                logger.debug(f"Removing previous staging directory {staging}")
                shutil.rmtree(staging)
            staging.mkdir(parents=True)
        except OSError as e:
            raise StagingError(f"Failed to prepare staging directory {staging}: {e}") from e

    async def _write_schema(
        self,
        layout: PackageLayout,
        outcome: PipelineOutcome,
        cancellation: Cancellation,
    ) -> None:
        planner = SchemaScriptPlanner(
            self._provider, self._options.selection, self._options.scripting
        )
        report = await planner.write(layout.schema_file_path, cancellation)
        outcome.errors.extend(report.errors)

    async def _write_data(
        self,
        layout: PackageLayout,
        outcome: PipelineOutcome,
        cancellation: Cancellation,
    ) -> list[ObjectRef]:
        """Write one ``data.sql`` per exported table and return those tables."""
        selection = self._options.selection
        data_options = self._options.scripting.model_copy(
            update={"script_data": True, "script_schema": False}
        )

        try:
            tables = await self._provider.list_objects(ObjectCategory.TABLES)
        except Exception as e:
            raise ScriptingError(f"Failed to list tables: {e}") from e

        exported: list[ObjectRef] = []
        directories: dict[str, str] = {}  # casefolded directory name -> qualified table

        for table in tables:
            if table.is_system:
                continue
            if selection.is_ignored(table):
                logger.info(f"Skipping data for ignored table {table.qualified_name}")
                continue

            cancellation.raise_if_cancelled(f"exporting {table.qualified_name}")

            if not is_valid_directory_name(table.name):
                error = ScriptingError(
                    f"Table name '{table.name}' cannot be used as a package directory"
                )
                logger.error(str(error))
                outcome.record(error, target=table.qualified_name)
                continue

            key = table.name.casefold()
            if key in directories:
                error = ScriptingError(
                    f"Table {table.qualified_name} shares directory '{table.name}' "
                    f"with {directories[key]}; data skipped"
                )
                logger.error(str(error))
                outcome.record(error, target=table.qualified_name)
                continue
            directories[key] = table.qualified_name

            try:
                script = await self._provider.script(table, data_options)
            except OperationCancelledError:
                raise
            except Exception as e:
                error = ScriptingError(f"Failed to script data for {table.qualified_name}: {e}")
                logger.error(str(error))
                outcome.record(error, target=table.qualified_name)
                continue

            data_path = layout.table_data_path(table.name)
            try:
                data_path.parent.mkdir()
                data_path.write_text(script or "", encoding="utf-8", newline="\n")
            except OSError as e:
                raise StagingError(f"Failed to write {data_path}: {e}") from e

            logger.debug(f"Wrote data for {table.qualified_name}")
            exported.append(table)
            outcome.tables.append(table.name)

        logger.info(f"Exported data for {len(exported)} tables")
        return exported

    async def _write_manifest(
        self,
        layout: PackageLayout,
        catalog: str,
        exported: list[ObjectRef],
    ) -> None:
        try:
            foreign_keys = await self._provider.list_objects(ObjectCategory.FOREIGN_KEYS)
        except Exception as e:
            raise ScriptingError(f"Failed to list foreign keys: {e}") from e

        dependencies = build_dependency_graph([fk for fk in foreign_keys if not fk.is_system])
        names = {t.qualified_name: t.name for t in exported}
        order = topological_sort(dependencies, [t.qualified_name for t in exported])

        manifest = PackageManifest(
            catalog=catalog,
            selection=self._options.selection,
            tables=[names[qualified] for qualified in order],
        )
        write_manifest(layout.staging_path, manifest)
        logger.debug(f"Wrote manifest with {len(manifest.tables)} tables")

    def _archive(self, layout: PackageLayout) -> None:
        self._check_collision(layout)
        intermediate = layout.archive_intermediate_path
        compress_directory(layout.staging_path, intermediate)
        try:
            publish_archive(intermediate, layout.package_path)
        except VoyagerError:
            intermediate.unlink(missing_ok=True)
            raise
        logger.info(f"Package written: {layout.package_path}")

    def _cleanup(self, layout: PackageLayout, outcome: PipelineOutcome) -> None:
        try:
            shutil.rmtree(layout.staging_path)
        except OSError as e:
            error = StagingError(f"Failed to remove staging directory {layout.staging_path}: {e}")
            logger.warning(str(error))
            outcome.record(error, target=str(layout.staging_path))

    async def _close_provider(self) -> None:
        try:
            await self._provider.close()
        except Exception as e:
            logger.warning(f"Failed to close source connection: {e}")
