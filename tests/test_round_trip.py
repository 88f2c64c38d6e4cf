"""Export a fake database, then import the package into a recording target."""

from db_voyager.package.manifest import validate_package
from db_voyager.pipeline.export import ExportPipeline
from db_voyager.pipeline.importer import ImportPipeline
from db_voyager.pipeline.models import ExportOptions
from db_voyager.scripting.models import ExportSelection, ObjectCategory
from fakes import FakeSchemaProvider, RecordingConnection, make_object, make_table


def _executed_text(connection: RecordingConnection) -> list[str]:
    return [b.strip() for b in connection.executed]


class TestRoundTrip:
    async def test_schema_replayed_before_data(self, provider, connection, tmp_path):
        package = tmp_path / "shop.dvo"

        exported = await ExportPipeline(provider).run(package, catalog="shop")
        imported = await ImportPipeline(connection).run(package)

        assert exported.success
        assert imported.success
        assert imported.tables == exported.tables == ["customers", "orders"]

        batches = _executed_text(connection)
        schema_batches = [b for b in batches if not b.startswith("INSERT")]
        data_batches = [b for b in batches if b.startswith("INSERT")]
        assert batches == schema_batches + data_batches
        assert data_batches == [
            "INSERT INTO public.customers VALUES (1);",
            "INSERT INTO public.orders VALUES (1);",
        ]
        # inline index and system objects are not replayed
        assert not any("orders_pkey" in b for b in batches)
        assert not any("pg_catalog" in b for b in batches)
        assert any("ix_orders_customer" in b for b in batches)

    async def test_package_validates(self, provider, tmp_path):
        package = tmp_path / "shop.dvo"

        await ExportPipeline(provider).run(package, catalog="shop")
        report = validate_package(package)

        assert report["valid"], report["errors"]
        assert report["tables"] == ["customers", "orders"]

    async def test_manifest_order_drives_import(self, connection, tmp_path):
        provider = FakeSchemaProvider(
            objects={
                ObjectCategory.TABLES: [make_table("a_lines"), make_table("b_orders")],
                ObjectCategory.FOREIGN_KEYS: [
                    make_object(
                        ObjectCategory.FOREIGN_KEYS,
                        "fk_lines_order",
                        parent="public.a_lines",
                        references="public.b_orders",
                    ),
                ],
            },
        )
        package = tmp_path / "shop.dvo"

        await ExportPipeline(provider, options=ExportOptions(write_manifest=True)).run(
            package, catalog="shop"
        )
        imported = await ImportPipeline(connection).run(package)

        assert imported.tables == ["b_orders", "a_lines"]
        assert _executed_text(connection)[-2:] == [
            "INSERT INTO public.b_orders VALUES (1);",
            "INSERT INTO public.a_lines VALUES (1);",
        ]

    async def test_schema_only_categories_disabled(self, provider, connection, tmp_path):
        package = tmp_path / "shop.dvo"
        selection = ExportSelection(script_schema=False)

        await ExportPipeline(provider, selection).run(package, catalog="shop")
        imported = await ImportPipeline(connection).run(package)

        assert imported.success
        assert all(b.startswith("INSERT") for b in _executed_text(connection))
