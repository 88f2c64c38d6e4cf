"""Error taxonomy for export and import runs.

Fatal kinds abort a pipeline run and surface as a ``failed`` outcome.
Non-fatal kinds are logged and recorded on the outcome, and the run
continues.

Usage:
    from db_voyager.errors import ArchiveError, StagingError

    try:
        layout = PackageLayout.for_export("package.dvo")
    except InvalidPathError as e:
        print(e)
"""


class VoyagerError(Exception):
    """Base class for all db-voyager errors."""

    pass


class InvalidPathError(VoyagerError):
    """Raised when a package path has no directory component."""

    pass


class DatabaseConnectionError(VoyagerError):
    """Raised when the database cannot be reached (fatal)."""

    pass


class StagingError(VoyagerError):
    """Raised when the staging/temp directory cannot be prepared or removed."""

    pass


class ScriptingError(VoyagerError):
    """Raised when the provider cannot produce SQL.

    Per-object failures are recorded and skipped; a failure while listing
    a whole category is fatal.
    """

    pass


class ArchiveError(VoyagerError):
    """Raised when compressing, publishing, or extracting a package fails."""

    pass


class PackageCollisionError(ArchiveError):
    """Raised when the destination package file already exists."""

    pass


class BatchExecutionError(VoyagerError):
    """Raised when a single SQL batch fails during replay (strict mode only)."""

    pass


class OperationCancelledError(VoyagerError):
    """Raised at a checkpoint once cancellation has been requested."""

    pass
