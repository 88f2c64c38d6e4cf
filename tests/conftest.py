"""Shared fixtures: a small fake database and a recording target."""

import pytest

from db_voyager.scripting.models import ObjectCategory
from fakes import FakeSchemaProvider, RecordingConnection, make_object, make_table


@pytest.fixture
def provider() -> FakeSchemaProvider:
    """Fake ``shop`` database with two user tables, one FK, one system table."""
    return FakeSchemaProvider(
        objects={
            ObjectCategory.SCHEMAS: [
                make_object(ObjectCategory.SCHEMAS, "public", schema=""),
                make_object(ObjectCategory.SCHEMAS, "pg_catalog", schema="", is_system=True),
            ],
            ObjectCategory.TABLES: [
                make_table("customers"),
                make_table("orders"),
                make_table("pg_class", schema="pg_catalog", is_system=True),
            ],
            ObjectCategory.INDEXES: [
                make_object(
                    ObjectCategory.INDEXES,
                    "orders_pkey",
                    parent="public.orders",
                    inline_with_parent=True,
                ),
                make_object(ObjectCategory.INDEXES, "ix_orders_customer", parent="public.orders"),
            ],
            ObjectCategory.FOREIGN_KEYS: [
                make_object(
                    ObjectCategory.FOREIGN_KEYS,
                    "fk_orders_customer",
                    parent="public.orders",
                    references="public.customers",
                ),
            ],
        },
    )


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()
