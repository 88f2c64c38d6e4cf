"""Tests for package path computation (no I/O)."""

from pathlib import Path

import pytest

from db_voyager.errors import InvalidPathError
from db_voyager.package.layout import PackageLayout


class TestExportLayout:
    """Export stages under <dir>/_build."""

    def test_paths_derived_from_package(self):
        layout = PackageLayout.for_export("/data/exports/shop.dvo")
        assert layout.package_path == Path("/data/exports/shop.dvo")
        assert layout.directory == Path("/data/exports")
        assert layout.staging_path == Path("/data/exports/_build")
        assert layout.archive_intermediate_path == Path("/data/exports/shop.zip")
        assert layout.schema_file_path == Path("/data/exports/_build/schema.sql")

    def test_table_data_path(self):
        layout = PackageLayout.for_export("/data/shop.dvo")
        assert layout.table_data_path("orders") == Path("/data/_build/orders/data.sql")

    def test_zip_package_gets_partial_intermediate(self):
        layout = PackageLayout.for_export("/data/shop.zip")
        assert layout.archive_intermediate_path == Path("/data/shop.partial.zip")
        assert layout.archive_intermediate_path != layout.package_path

    def test_relative_path_with_dot_directory(self):
        layout = PackageLayout.for_export("./shop.dvo")
        assert layout.directory == Path(".")
        assert layout.staging_path == Path("_build")


class TestImportLayout:
    """Import unpacks under <dir>/_temp."""

    def test_staging_is_temp(self):
        layout = PackageLayout.for_import("/data/shop.dvo")
        assert layout.staging_path == Path("/data/_temp")
        assert layout.manifest_file_path == Path("/data/_temp/manifest.json")


class TestInvalidPaths:
    """Bare file names and empty paths are rejected."""

    @pytest.mark.parametrize("path", ["shop.dvo", "", "   "])
    def test_rejected(self, path):
        with pytest.raises(InvalidPathError):
            PackageLayout.for_export(path)

    def test_trailing_separator_rejected(self):
        with pytest.raises(InvalidPathError):
            PackageLayout.for_import("/data/exports/")

    def test_error_suggests_dot_prefix(self):
        with pytest.raises(InvalidPathError, match=r"\./shop\.dvo"):
            PackageLayout.for_import("shop.dvo")
