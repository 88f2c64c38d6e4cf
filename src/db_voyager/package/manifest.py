"""Package manifest and offline package validation.

``manifest.json`` is optional and only written when the exporter is asked
for it.  It records when and from which catalog the package was built,
the category toggles used, and the table directories in an order where
parents precede children, so an import can replay data FK-safely.

Usage:
    from db_voyager.package.manifest import read_manifest, validate_package

    manifest = read_manifest(layout.staging_path)
    if manifest is not None:
        order = manifest.tables

    # Validate (sync -- local zip read only)
    report = validate_package("exports/shop.dvo")
    if not report["valid"]:
        print(report["errors"])
"""

import logging
import zipfile
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from db_voyager.errors import ArchiveError
from db_voyager.package.layout import (
    DATA_FILE_NAME,
    MANIFEST_FILE_NAME,
    SCHEMA_FILE_NAME,
)
from db_voyager.scripting.models import ExportSelection

logger = logging.getLogger(__name__)

MANIFEST_FORMAT_VERSION = "1.0"


class PackageManifest(BaseModel):
    """Contents of ``manifest.json``."""

    format_version: str = MANIFEST_FORMAT_VERSION
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    catalog: str
    selection: ExportSelection = Field(default_factory=ExportSelection)
    tables: list[str] = Field(default_factory=list)  # directory names, parents first


def write_manifest(staging_path: Path, manifest: PackageManifest) -> Path:
    """Write *manifest* into the staging directory and return its path."""
    path = Path(staging_path) / MANIFEST_FILE_NAME
    path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
    return path


def read_manifest(staging_path: Path) -> PackageManifest | None:
    """Read ``manifest.json`` from an unpacked package.

    Returns:
        The manifest, or ``None`` if the package has none.

    Raises:
        ArchiveError: If the file exists but is not a valid manifest.
    """
    path = Path(staging_path) / MANIFEST_FILE_NAME
    if not path.is_file():
        return None
    try:
        return PackageManifest.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        raise ArchiveError(f"Invalid {MANIFEST_FILE_NAME}: {e}") from e


def validate_package(package_path: str | Path) -> dict:
    """Validate a package file's layout without touching a database.

    Checks that the file is a readable zip archive holding ``schema.sql``,
    that every root directory holds ``data.sql``, that the root has no
    other files (besides an optional ``manifest.json``), and that a
    manifest's table list matches the directories.

    This function is **sync** -- it only reads a local archive.

    Args:
        package_path: Path to the package file.

    Returns:
        Dict with ``valid`` (bool), ``errors`` (list[str]),
        ``warnings`` (list[str]) and ``tables`` (list[str]).

    Example:
        report = validate_package("exports/shop.dvo")
        if report["errors"]:
            raise ValueError("Package is invalid")
    """
    errors: list[str] = []
    warnings: list[str] = []
    tables: list[str] = []

    def result() -> dict:
        return {"valid": not errors, "errors": errors, "warnings": warnings, "tables": tables}

    path = Path(package_path)
    if not path.is_file():
        errors.append(f"Package file not found: {path}")
        return result()

    try:
        with zipfile.ZipFile(path) as zf:
            names = zf.namelist()
            manifest_text = (
                zf.read(MANIFEST_FILE_NAME).decode("utf-8")
                if MANIFEST_FILE_NAME in names
                else None
            )
    except (zipfile.BadZipFile, OSError) as e:
        errors.append(f"Not a readable package archive: {e}")
        return result()

    root_files: set[str] = set()
    directories: dict[str, set[str]] = {}
    for name in names:
        head, _, rest = name.partition("/")
        if not rest and not name.endswith("/"):
            root_files.add(head)
            continue
        entries = directories.setdefault(head, set())
        if rest:
            entries.add(rest)

    if SCHEMA_FILE_NAME not in root_files:
        errors.append(f"Missing required file: {SCHEMA_FILE_NAME}")

    for extra in sorted(root_files - {SCHEMA_FILE_NAME, MANIFEST_FILE_NAME}):
        errors.append(f"Unexpected file at package root: {extra}")

    for directory, entries in sorted(directories.items()):
        if DATA_FILE_NAME not in entries:
            errors.append(f"Table directory {directory} has no {DATA_FILE_NAME}")
            continue
        tables.append(directory)
        for extra in sorted(entries - {DATA_FILE_NAME}):
            warnings.append(f"Unexpected entry in {directory}: {extra}")

    if not tables:
        warnings.append("Package contains no table data")

    if manifest_text is not None:
        try:
            manifest = PackageManifest.model_validate_json(manifest_text)
        except ValidationError as e:
            errors.append(f"Invalid {MANIFEST_FILE_NAME}: {e}")
        else:
            if manifest.format_version != MANIFEST_FORMAT_VERSION:
                errors.append(
                    f"Unsupported manifest version '{manifest.format_version}' "
                    f"(expected '{MANIFEST_FORMAT_VERSION}')"
                )
            listed = set(manifest.tables)
            for missing in sorted(listed - set(tables)):
                errors.append(f"Manifest lists table without data: {missing}")
            for unlisted in sorted(set(tables) - listed):
                warnings.append(f"Table not listed in manifest: {unlisted}")

    logger.debug(f"Validated {path}: {len(errors)} errors, {len(warnings)} warnings")
    return result()
