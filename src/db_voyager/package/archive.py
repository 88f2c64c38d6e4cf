"""Zip archiving for package files.

Compresses a staging directory into a flat archive (no enclosing root
folder), publishes it to its final name without ever overwriting, and
extracts packages back into a directory.

Usage:
    from db_voyager.package.archive import (
        compress_directory,
        extract_archive,
        publish_archive,
    )

    compress_directory(layout.staging_path, layout.archive_intermediate_path)
    publish_archive(layout.archive_intermediate_path, layout.package_path)
    extract_archive(layout.package_path, layout.staging_path)
"""

import logging
import os
import zipfile
from pathlib import Path

from db_voyager.errors import ArchiveError, PackageCollisionError

logger = logging.getLogger(__name__)


def compress_directory(
    source_dir: str | Path,
    archive_path: str | Path,
    overwrite: bool = False,
) -> Path:
    """Compress the contents of *source_dir* into a zip file.

    Entries are stored relative to *source_dir*, so the archive root holds
    the directory's children directly.  Directories are written as
    explicit entries to keep empty table folders.

    Args:
        source_dir: Directory to compress.
        archive_path: Zip file to create.
        overwrite: Replace an existing *archive_path* instead of failing.

    Returns:
        Path to the created archive.

    Raises:
        ArchiveError: If the source is missing, the target exists and
            *overwrite* is off, or writing fails.
    """
    source = Path(source_dir)
    target = Path(archive_path)

    if not source.is_dir():
        raise ArchiveError(f"Directory to compress not found: {source}")
    if target.exists() and not overwrite:
        raise ArchiveError(f"Archive already exists: {target}")

    logger.info(f"Compressing {source} to {target}")

    try:
        with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zf:
            for path in sorted(source.rglob("*")):
                arcname = path.relative_to(source).as_posix()
                if path.is_dir():
                    zf.write(path, arcname + "/")
                else:
                    zf.write(path, arcname)
                logger.debug(f"  Added: {arcname}")
    except OSError as e:
        target.unlink(missing_ok=True)
        raise ArchiveError(f"Failed to compress {source}: {e}") from e

    logger.debug(f"Created archive: {target} ({target.stat().st_size} bytes)")
    return target


def publish_archive(intermediate_path: str | Path, package_path: str | Path) -> Path:
    """Move the intermediate archive to its final package name.

    Uses a hard link followed by an unlink so an existing destination is
    never replaced, even if it appears between check and move.

    Raises:
        PackageCollisionError: If *package_path* already exists.
        ArchiveError: If the move fails for any other reason.
    """
    source = Path(intermediate_path)
    target = Path(package_path)

    try:
        os.link(source, target)
    except FileExistsError as e:
        raise PackageCollisionError(
            f"Package file already exists: {target}"
        ) from e
    except OSError as e:
        raise ArchiveError(f"Failed to publish {source} as {target}: {e}") from e

    source.unlink()
    logger.debug(f"Published package: {target}")
    return target


def extract_archive(
    archive_path: str | Path,
    target_dir: str | Path,
    overwrite: bool = False,
) -> Path:
    """Extract a package archive into *target_dir*.

    Args:
        archive_path: Package file to read.
        target_dir: Directory to extract into (created if missing).
        overwrite: Allow extracting into a non-empty directory.

    Returns:
        Path to *target_dir*.

    Raises:
        ArchiveError: If the archive is missing or not a valid zip file,
            the target is non-empty and *overwrite* is off, or an entry
            would land outside *target_dir*.
    """
    source = Path(archive_path)
    target = Path(target_dir)

    if not source.is_file():
        raise ArchiveError(f"Package file not found: {source}")
    if target.exists() and any(target.iterdir()) and not overwrite:
        raise ArchiveError(f"Extraction directory is not empty: {target}")

    logger.info(f"Unpacking {source} to {target}")

    try:
        with zipfile.ZipFile(source, "r") as zf:
            root = target.resolve()
            for name in zf.namelist():
                destination = (target / name).resolve()
                if destination != root and root not in destination.parents:
                    raise ArchiveError(f"Unsafe entry in package: {name}")
            target.mkdir(parents=True, exist_ok=True)
            zf.extractall(target)
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"'{source}' is not a valid package file: {e}") from e
    except OSError as e:
        raise ArchiveError(f"Failed to extract {source}: {e}") from e

    return target
