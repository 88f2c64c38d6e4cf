"""Package file format: layout, zip archiving, manifest, validation.

Usage:
    from db_voyager.package import PackageLayout, validate_package
    from db_voyager.package import compress_directory, extract_archive
"""

from db_voyager.package.archive import (
    compress_directory,
    extract_archive,
    publish_archive,
)
from db_voyager.package.layout import PackageLayout
from db_voyager.package.manifest import (
    PackageManifest,
    read_manifest,
    validate_package,
    write_manifest,
)

__all__ = [
    "PackageLayout",
    "compress_directory",
    "publish_archive",
    "extract_archive",
    "PackageManifest",
    "read_manifest",
    "write_manifest",
    "validate_package",
]
