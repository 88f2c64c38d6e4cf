"""Canonical paths for a package file and its staging directory.

Pure path computation -- no I/O.  Export stages under
``<package-dir>/_build``; import unpacks under ``<package-dir>/_temp``.

Usage:
    from db_voyager.package.layout import PackageLayout

    layout = PackageLayout.for_export("out/package.dvo")
    layout.staging_path               # out/_build
    layout.archive_intermediate_path  # out/package.zip
    layout.schema_file_path           # out/_build/schema.sql
"""

import os
from dataclasses import dataclass
from pathlib import Path

from db_voyager.errors import InvalidPathError

SCHEMA_FILE_NAME = "schema.sql"
DATA_FILE_NAME = "data.sql"
MANIFEST_FILE_NAME = "manifest.json"

BUILD_DIR_NAME = "_build"
TEMP_DIR_NAME = "_temp"
ARCHIVE_SUFFIX = ".zip"


def _parent_directory(package_path: str | Path) -> Path:
    """Return the directory part of *package_path*.

    Raises:
        InvalidPathError: If the path is empty or a bare file name.
    """
    raw = os.fspath(package_path).strip()
    if not raw:
        raise InvalidPathError("Package path is empty")

    directory, file_name = os.path.split(raw)
    if not file_name:
        raise InvalidPathError(f"Package path '{raw}' does not name a file")
    if not directory:
        raise InvalidPathError(
            f"Package path '{raw}' has no directory component "
            f"(use e.g. './{file_name}')"
        )
    return Path(directory)


@dataclass(frozen=True)
class PackageLayout:
    """Paths derived from a package file path.

    Attributes:
        package_path: Final package file (export target or import source).
        directory: Parent directory of the package file.
        staging_path: ``_build`` (export) or ``_temp`` (import) directory.
    """

    package_path: Path
    directory: Path
    staging_path: Path

    @classmethod
    def for_export(cls, package_path: str | Path) -> "PackageLayout":
        directory = _parent_directory(package_path)
        return cls(Path(package_path), directory, directory / BUILD_DIR_NAME)

    @classmethod
    def for_import(cls, package_path: str | Path) -> "PackageLayout":
        directory = _parent_directory(package_path)
        return cls(Path(package_path), directory, directory / TEMP_DIR_NAME)

    @property
    def archive_intermediate_path(self) -> Path:
        """Package path with its extension replaced by ``.zip``.

        A package that already ends in ``.zip`` gets ``.partial.zip`` so
        the intermediate never coincides with the final file.
        """
        if self.package_path.suffix.lower() == ARCHIVE_SUFFIX:
            return self.package_path.with_suffix(".partial" + ARCHIVE_SUFFIX)
        return self.package_path.with_suffix(ARCHIVE_SUFFIX)

    @property
    def schema_file_path(self) -> Path:
        return self.staging_path / SCHEMA_FILE_NAME

    @property
    def manifest_file_path(self) -> Path:
        return self.staging_path / MANIFEST_FILE_NAME

    def table_directory(self, table_name: str) -> Path:
        return self.staging_path / table_name

    def table_data_path(self, table_name: str) -> Path:
        return self.table_directory(table_name) / DATA_FILE_NAME
