"""db-voyager: Portable database packages -- export, archive, replay.

Exports a database's schema and data into a single zip package file and
replays such packages into a target database.

Usage:
    from db_voyager import ExportPipeline, ImportPipeline
    from db_voyager import PostgresSchemaProvider, AsyncPostgresConnection
    from db_voyager import ExportSelection, PipelineOutcome, validate_package
"""

__version__ = "0.1.0"

# Adapters
from db_voyager.adapters.base import SqlConnection
from db_voyager.adapters.postgres import AsyncPostgresConnection

# Config
from db_voyager.config.loader import load_db_config
from db_voyager.config.models import DatabaseConfig, DatabaseProfile, ExportDefaults

# Errors
from db_voyager.errors import (
    ArchiveError,
    BatchExecutionError,
    DatabaseConnectionError,
    InvalidPathError,
    OperationCancelledError,
    PackageCollisionError,
    ScriptingError,
    StagingError,
    VoyagerError,
)

# Package format
from db_voyager.package.layout import PackageLayout
from db_voyager.package.manifest import PackageManifest, validate_package

# Pipelines
from db_voyager.pipeline.cancellation import Cancellation
from db_voyager.pipeline.export import ExportPipeline
from db_voyager.pipeline.importer import ImportPipeline
from db_voyager.pipeline.models import (
    ExportOptions,
    ImportOptions,
    PipelineError,
    PipelineOutcome,
)

# Replay
from db_voyager.replay.executor import SqlBatchExecutor, split_batches

# Scripting
from db_voyager.scripting.models import (
    ExportSelection,
    ObjectCategory,
    ObjectRef,
    ScriptingOptions,
)
from db_voyager.scripting.planner import SchemaScriptPlanner
from db_voyager.scripting.postgres import PostgresSchemaProvider
from db_voyager.scripting.provider import SchemaProvider

# Factory
from db_voyager.factory import (
    ProfileNotFoundError,
    create_connection,
    create_schema_provider,
    resolve_url,
)

__all__ = [
    # Adapters
    "SqlConnection",
    "AsyncPostgresConnection",
    # Config
    "load_db_config",
    "DatabaseConfig",
    "DatabaseProfile",
    "ExportDefaults",
    # Errors
    "VoyagerError",
    "InvalidPathError",
    "DatabaseConnectionError",
    "StagingError",
    "ScriptingError",
    "ArchiveError",
    "PackageCollisionError",
    "BatchExecutionError",
    "OperationCancelledError",
    # Package format
    "PackageLayout",
    "PackageManifest",
    "validate_package",
    # Pipelines
    "Cancellation",
    "ExportPipeline",
    "ImportPipeline",
    "ExportOptions",
    "ImportOptions",
    "PipelineError",
    "PipelineOutcome",
    # Replay
    "SqlBatchExecutor",
    "split_batches",
    # Scripting
    "ExportSelection",
    "ObjectCategory",
    "ObjectRef",
    "ScriptingOptions",
    "SchemaScriptPlanner",
    "PostgresSchemaProvider",
    "SchemaProvider",
    # Factory
    "ProfileNotFoundError",
    "create_connection",
    "create_schema_provider",
    "resolve_url",
]
