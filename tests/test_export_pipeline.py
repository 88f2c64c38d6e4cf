"""Tests for the export pipeline."""

import json
import zipfile
from unittest.mock import AsyncMock

import pytest

from db_voyager.errors import DatabaseConnectionError, InvalidPathError
from db_voyager.pipeline.cancellation import Cancellation
from db_voyager.pipeline.export import ExportPipeline, is_valid_directory_name
from db_voyager.pipeline.models import ExportOptions
from db_voyager.scripting.models import ExportSelection, ObjectCategory
from fakes import FakeSchemaProvider, make_object, make_table


def _entries(path) -> set[str]:
    with zipfile.ZipFile(path) as zf:
        return set(zf.namelist())


class TestExportHappyPath:
    async def test_package_layout(self, provider, tmp_path):
        package = tmp_path / "shop.dvo"

        outcome = await ExportPipeline(provider).run(package, catalog="shop")

        assert outcome.status == "completed"
        assert outcome.state == "done"
        assert outcome.exit_code == 0
        assert outcome.tables == ["customers", "orders"]
        entries = _entries(package)
        assert "schema.sql" in entries
        assert "customers/data.sql" in entries
        assert "orders/data.sql" in entries
        assert not any("pg_class" in e for e in entries)
        assert "manifest.json" not in entries

    async def test_staging_and_intermediate_removed(self, provider, tmp_path):
        await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="shop")

        assert not (tmp_path / "_build").exists()
        assert not (tmp_path / "shop.zip").exists()

    async def test_provider_closed(self, provider, tmp_path):
        await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="shop")
        assert provider.close_calls == 1

    async def test_data_requested_with_data_options(self, provider, tmp_path):
        options = ExportOptions()
        options.scripting.rows_per_batch = 50

        await ExportPipeline(provider, options=options).run(tmp_path / "shop.dvo", catalog="shop")

        data_calls = [o for label, o in provider.script_calls if o.script_data]
        assert len(data_calls) == 2
        assert all(o.rows_per_batch == 50 for o in data_calls)

    async def test_stale_build_directory_replaced(self, provider, tmp_path):
        stale = tmp_path / "_build" / "old_table"
        stale.mkdir(parents=True)
        (stale / "data.sql").write_text("stale")
        package = tmp_path / "shop.dvo"

        await ExportPipeline(provider).run(package, catalog="shop")

        assert not any(e.startswith("old_table") for e in _entries(package))


class TestIgnoreList:
    """Ignored tables lose their data, not their schema."""

    async def test_ignore_is_case_insensitive_and_data_only(self, provider, tmp_path):
        package = tmp_path / "shop.dvo"
        selection = ExportSelection(ignore_tables=["ORDERS"])

        outcome = await ExportPipeline(provider, selection).run(package, catalog="shop")

        assert outcome.tables == ["customers"]
        entries = _entries(package)
        assert not any(e.startswith("orders") for e in entries)
        with zipfile.ZipFile(package) as zf:
            schema = zf.read("schema.sql").decode()
        assert "-- tables public.orders" in schema


class TestExportFailures:
    async def test_collision_fails_before_connecting(self, provider, tmp_path):
        package = tmp_path / "shop.dvo"
        package.write_bytes(b"existing")

        outcome = await ExportPipeline(provider).run(package, catalog="shop")

        assert outcome.status == "failed"
        assert outcome.exit_code == 1
        assert outcome.errors[-1].kind == "PackageCollisionError"
        assert outcome.errors[-1].fatal
        assert package.read_bytes() == b"existing"
        assert provider.connect_calls == 0
        assert not (tmp_path / "_build").exists()

    async def test_collision_appearing_mid_run(self, provider, tmp_path):
        package = tmp_path / "shop.dvo"

        def create_competitor(obj, options):
            if options.script_data and not package.exists():
                package.write_bytes(b"competitor")

        provider.on_script = create_competitor

        outcome = await ExportPipeline(provider).run(package, catalog="shop")

        assert outcome.status == "failed"
        assert outcome.errors[-1].kind == "PackageCollisionError"
        assert package.read_bytes() == b"competitor"

    async def test_catalog_mismatch_is_fatal(self, provider, tmp_path):
        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="billing")

        assert outcome.status == "failed"
        assert outcome.errors[-1].kind == "DatabaseConnectionError"
        assert "billing" in outcome.errors[-1].message
        assert provider.close_calls == 1

    async def test_connect_failure_wrapped(self, provider, tmp_path):
        provider.connect_error = OSError("connection refused")

        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="shop")

        assert outcome.status == "failed"
        assert outcome.errors[-1].kind == "DatabaseConnectionError"
        assert not (tmp_path / "shop.dvo").exists()

    async def test_structural_scripting_failure_is_fatal(self, provider, tmp_path):
        provider.failing_categories.add(ObjectCategory.VIEWS)

        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="shop")

        assert outcome.status == "failed"
        assert outcome.errors[-1].kind == "ScriptingError"
        assert not (tmp_path / "shop.dvo").exists()

    async def test_table_data_failure_recorded(self, provider, tmp_path):
        provider.failing_data.add("public.orders")
        package = tmp_path / "shop.dvo"

        outcome = await ExportPipeline(provider).run(package, catalog="shop")

        assert outcome.status == "completed"
        assert outcome.tables == ["customers"]
        assert outcome.errors[0].target == "public.orders"
        assert not outcome.errors[0].fatal
        assert package.exists()

    async def test_strict_mode_fails_on_recorded_error(self, provider, tmp_path):
        provider.failing_objects.add("public.customers")
        options = ExportOptions(strict=True)

        outcome = await ExportPipeline(provider, options=options).run(
            tmp_path / "shop.dvo", catalog="shop"
        )

        assert outcome.status == "failed"
        assert outcome.state == "done"
        assert outcome.exit_code == 1

    async def test_invalid_path_raises(self, provider):
        with pytest.raises(InvalidPathError):
            await ExportPipeline(provider).run("shop.dvo", catalog="shop")
        assert provider.connect_calls == 0

    async def test_close_error_only_logged(self, provider, tmp_path):
        provider.close = AsyncMock(side_effect=RuntimeError("already closed"))

        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", catalog="shop")

        assert outcome.status == "completed"


class TestDuplicateDirectoryNames:
    async def test_same_name_in_two_schemas(self, tmp_path):
        provider = FakeSchemaProvider(objects={
            ObjectCategory.TABLES: [make_table("orders"), make_table("orders", schema="sales")],
        })
        package = tmp_path / "shop.dvo"

        outcome = await ExportPipeline(provider).run(package, catalog="shop")

        assert outcome.status == "completed"
        assert outcome.tables == ["orders"]
        assert outcome.errors[0].target == "sales.orders"
        with zipfile.ZipFile(package) as zf:
            assert "public.orders" in zf.read("orders/data.sql").decode()

    @pytest.mark.parametrize("name", ["schema.sql", "a/b", "..", ""])
    def test_unusable_directory_names(self, name):
        assert not is_valid_directory_name(name)


class TestCancellation:
    async def test_cancel_before_start_creates_nothing(self, provider, tmp_path):
        cancellation = Cancellation()
        cancellation.cancel()

        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", "shop", cancellation)

        assert outcome.status == "cancelled"
        assert outcome.exit_code == 130
        assert list(tmp_path.iterdir()) == []
        assert provider.connect_calls == 0

    async def test_cancel_mid_run_leaves_staging(self, provider, tmp_path):
        cancellation = Cancellation()

        def cancel_on_data(obj, options):
            if options.script_data:
                cancellation.cancel()

        provider.on_script = cancel_on_data

        outcome = await ExportPipeline(provider).run(tmp_path / "shop.dvo", "shop", cancellation)

        assert outcome.status == "cancelled"
        assert outcome.state == "cancelled"
        assert (tmp_path / "_build" / "schema.sql").exists()
        assert not (tmp_path / "shop.dvo").exists()
        assert provider.close_calls == 1


class TestManifest:
    async def test_manifest_lists_parents_first(self, tmp_path):
        provider = FakeSchemaProvider(objects={
            ObjectCategory.TABLES: [make_table("a_orders"), make_table("b_customers")],
            ObjectCategory.FOREIGN_KEYS: [
                make_object(
                    ObjectCategory.FOREIGN_KEYS,
                    "fk",
                    parent="public.a_orders",
                    references="public.b_customers",
                ),
            ],
        })
        package = tmp_path / "shop.dvo"

        await ExportPipeline(provider, options=ExportOptions(write_manifest=True)).run(
            package, catalog="shop"
        )

        with zipfile.ZipFile(package) as zf:
            manifest = json.loads(zf.read("manifest.json"))
        assert manifest["catalog"] == "shop"
        assert manifest["tables"] == ["b_customers", "a_orders"]
        assert manifest["format_version"] == "1.0"
