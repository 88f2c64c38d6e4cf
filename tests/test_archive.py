"""Tests for zip compress/publish/extract."""

import zipfile

import pytest

from db_voyager.errors import ArchiveError, PackageCollisionError
from db_voyager.package.archive import compress_directory, extract_archive, publish_archive


def _make_tree(root):
    (root / "orders").mkdir(parents=True)
    (root / "schema.sql").write_text("CREATE TABLE orders (id int);\n")
    (root / "orders" / "data.sql").write_text("INSERT INTO orders VALUES (1);\n")
    (root / "empty").mkdir()


class TestCompressDirectory:
    def test_archive_root_is_flattened(self, tmp_path):
        source = tmp_path / "_build"
        _make_tree(source)

        archive = compress_directory(source, tmp_path / "shop.zip")

        with zipfile.ZipFile(archive) as zf:
            names = set(zf.namelist())
        assert "schema.sql" in names
        assert "orders/data.sql" in names
        assert "empty/" in names
        assert not any(n.startswith("_build") for n in names)

    def test_existing_archive_not_overwritten(self, tmp_path):
        source = tmp_path / "_build"
        _make_tree(source)
        target = tmp_path / "shop.zip"
        target.write_text("keep me")

        with pytest.raises(ArchiveError):
            compress_directory(source, target)
        assert target.read_text() == "keep me"

    def test_missing_source(self, tmp_path):
        with pytest.raises(ArchiveError):
            compress_directory(tmp_path / "nope", tmp_path / "x.zip")


class TestPublishArchive:
    def test_moves_to_final_name(self, tmp_path):
        intermediate = tmp_path / "shop.zip"
        intermediate.write_bytes(b"PK")

        result = publish_archive(intermediate, tmp_path / "shop.dvo")

        assert result.read_bytes() == b"PK"
        assert not intermediate.exists()

    def test_collision_keeps_both_files(self, tmp_path):
        intermediate = tmp_path / "shop.zip"
        intermediate.write_bytes(b"new")
        package = tmp_path / "shop.dvo"
        package.write_bytes(b"old")

        with pytest.raises(PackageCollisionError):
            publish_archive(intermediate, package)
        assert package.read_bytes() == b"old"
        assert intermediate.exists()


class TestExtractArchive:
    def test_round_trip(self, tmp_path):
        source = tmp_path / "_build"
        _make_tree(source)
        archive = compress_directory(source, tmp_path / "shop.zip")

        target = extract_archive(archive, tmp_path / "_temp")

        assert (target / "schema.sql").read_text() == "CREATE TABLE orders (id int);\n"
        assert (target / "orders" / "data.sql").exists()
        assert (target / "empty").is_dir()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ArchiveError, match="not found"):
            extract_archive(tmp_path / "missing.dvo", tmp_path / "_temp")

    def test_not_a_zip(self, tmp_path):
        bogus = tmp_path / "shop.dvo"
        bogus.write_text("plain text")
        with pytest.raises(ArchiveError, match="not a valid package"):
            extract_archive(bogus, tmp_path / "_temp")

    def test_non_empty_target_rejected(self, tmp_path):
        source = tmp_path / "_build"
        _make_tree(source)
        archive = compress_directory(source, tmp_path / "shop.zip")
        target = tmp_path / "_temp"
        target.mkdir()
        (target / "stale.txt").write_text("x")

        with pytest.raises(ArchiveError, match="not empty"):
            extract_archive(archive, target)

    def test_unsafe_entry_rejected(self, tmp_path):
        archive = tmp_path / "evil.dvo"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.sql", "DROP TABLE orders;")

        with pytest.raises(ArchiveError, match="Unsafe entry"):
            extract_archive(archive, tmp_path / "_temp")
        assert not (tmp_path / "escape.sql").exists()
