import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

INITIAL_REVISION = "20261019_0001"
CORE_TABLES = {
    "users",
    "revoked_tokens",
    "products",
    "customers",
    "sales_orders",
    "sales_order_items",
    "inventory_movements",
    "system_settings",
}


@pytest.fixture()
def pg_engine():
    url = os.getenv("TEST_POSTGRES_DATABASE_URL")
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run Postgres integration tests.")
    engine = create_engine(url, pool_pre_ping=True)
    yield engine
    engine.dispose()


def _alembic_config() -> Config:
    project_root = Path(__file__).resolve().parents[1]
    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("script_location", str(project_root / "alembic"))
    return config


@pytest.mark.integration
def test_migrated_schema_has_stock_guards(pg_engine):
    inspector = inspect(pg_engine)
    assert CORE_TABLES <= set(inspector.get_table_names())

    checks = {check["name"] for check in inspector.get_check_constraints("products")}
    assert "ck_products_stock_non_negative" in checks

    item_fks = inspector.get_foreign_keys("sales_order_items")
    order_fk = next(fk for fk in item_fks if fk["referred_table"] == "sales_orders")
    assert order_fk["options"].get("ondelete") == "CASCADE"

    movement_fks = inspector.get_foreign_keys("inventory_movements")
    assert any(fk["referred_table"] == "products" for fk in movement_fks)


@pytest.mark.integration
def test_negative_stock_is_refused_by_the_database(pg_engine):
    with pg_engine.connect() as conn:
        trans = conn.begin()
        try:
            conn.execute(
                text(
                    "INSERT INTO products (id, name, category, sku, price, cost, stock, min_stock, max_stock, unit, status) "
                    "VALUES ('pg-guard', 'Guard', 'Test', 'PG-GUARD', 1, 1, 0, 0, 0, 'pc', 'active')"
                )
            )
            with pytest.raises(IntegrityError):
                with conn.begin_nested():
                    conn.execute(text("UPDATE products SET stock = stock - 1 WHERE id = 'pg-guard'"))
        finally:
            trans.rollback()


@pytest.mark.integration
def test_alembic_upgrade_downgrade_smoke(pg_engine):
    if os.getenv("ALLOW_DESTRUCTIVE_MIGRATION_TESTS") != "1":
        pytest.skip("Set ALLOW_DESTRUCTIVE_MIGRATION_TESTS=1 for downgrade smoke test.")

    url = pg_engine.url.render_as_string(hide_password=False)
    alembic_cfg = _alembic_config()

    previous_database_url = os.environ.get("DATABASE_URL")
    os.environ["DATABASE_URL"] = url
    try:
        command.upgrade(alembic_cfg, "head")
        with pg_engine.connect() as conn:
            assert conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one() == INITIAL_REVISION

        command.downgrade(alembic_cfg, "base")
        assert not CORE_TABLES & set(inspect(pg_engine).get_table_names())

        command.upgrade(alembic_cfg, "head")
        assert CORE_TABLES <= set(inspect(pg_engine).get_table_names())
    finally:
        if previous_database_url is None:
            os.environ.pop("DATABASE_URL", None)
        else:
            os.environ["DATABASE_URL"] = previous_database_url
