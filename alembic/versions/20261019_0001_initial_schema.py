"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def _index_exists(inspector: sa.Inspector, table_name: str, index_name: str) -> bool:
    return index_name in {index["name"] for index in inspector.get_indexes(table_name)}


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
    ]


def _create_indexes(table_name: str, indexes: list[tuple[str, list, bool]]) -> None:
    inspector = sa.inspect(op.get_bind())
    for index_name, columns, unique in indexes:
        if not _index_exists(inspector, table_name, index_name):
            op.create_index(index_name, table_name, columns, unique=unique)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("hashed_password", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=60), nullable=False),
            sa.Column("department", sa.String(length=100), nullable=False),
            sa.Column("phone", sa.String(length=40), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            sa.Column("permissions", sa.JSON(), nullable=False),
            sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes(
        "users",
        [
            ("ix_users_email", ["email"], True),
            ("ux_users_email_lower", [sa.text("lower(email)")], True),
        ],
    )

    if not _table_exists(inspector, "revoked_tokens"):
        op.create_table(
            "revoked_tokens",
            sa.Column("jti", sa.String(length=36), nullable=False),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("jti"),
        )
    _create_indexes(
        "revoked_tokens",
        [
            ("ix_revoked_tokens_user_id", ["user_id"], False),
            ("ix_revoked_tokens_expires_at", ["expires_at"], False),
        ],
    )

    if not _table_exists(inspector, "products"):
        op.create_table(
            "products",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("category", sa.String(length=100), nullable=False),
            sa.Column("sku", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("price", sa.Numeric(12, 2), nullable=False),
            sa.Column("cost", sa.Numeric(12, 2), nullable=False),
            sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("min_stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("max_stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("unit", sa.String(length=30), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            sa.Column("image", sa.String(length=500), nullable=True),
            *_timestamps(),
            sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku"),
        )
    _create_indexes(
        "products",
        [
            ("ix_products_category", ["category"], False),
            ("ix_products_status_created_at", ["status", "created_at"], False),
        ],
    )

    if not _table_exists(inspector, "customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("contact", sa.String(length=120), nullable=False),
            sa.Column("phone", sa.String(length=40), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("address", sa.String(length=255), nullable=False),
            sa.Column("tax_number", sa.String(length=60), nullable=True),
            sa.Column("credit_limit", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("payment_terms", sa.Integer(), nullable=False, server_default="30"),
            sa.Column("customer_type", sa.String(length=30), nullable=False, server_default="retail"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
            sa.Column("total_orders", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_spent", sa.Numeric(12, 2), nullable=False, server_default="0"),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes(
        "customers",
        [
            ("ix_customers_phone", ["phone"], False),
            ("ix_customers_email", ["email"], False),
            ("ix_customers_name_created_at", ["name", "created_at"], False),
            ("ix_customers_type_status", ["customer_type", "status"], False),
        ],
    )

    if not _table_exists(inspector, "sales_orders"):
        op.create_table(
            "sales_orders",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("customer_id", sa.String(length=36), nullable=False),
            sa.Column("customer_name", sa.String(length=120), nullable=False),
            sa.Column("order_date", sa.Date(), nullable=False),
            sa.Column("delivery_date", sa.Date(), nullable=False),
            sa.Column("subtotal", sa.Numeric(12, 2), nullable=False),
            sa.Column("discount", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("tax", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("total", sa.Numeric(12, 2), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("notes", sa.String(length=500), nullable=True),
            *_timestamps(),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes(
        "sales_orders",
        [
            ("ix_sales_orders_customer_id", ["customer_id"], False),
            ("ix_sales_orders_status_created_at", ["status", "created_at"], False),
            ("ix_sales_orders_order_date", ["order_date"], False),
        ],
    )

    if not _table_exists(inspector, "sales_order_items"):
        op.create_table(
            "sales_order_items",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("order_id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_name", sa.String(length=255), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("price", sa.Numeric(12, 2), nullable=False),
            sa.Column("total", sa.Numeric(12, 2), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["order_id"], ["sales_orders.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes(
        "sales_order_items",
        [
            ("ix_sales_order_items_order_id", ["order_id"], False),
            ("ix_sales_order_items_product_id", ["product_id"], False),
        ],
    )

    if not _table_exists(inspector, "inventory_movements"):
        op.create_table(
            "inventory_movements",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("product_name", sa.String(length=255), nullable=False),
            sa.Column("movement_type", sa.String(length=20), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("reference", sa.String(length=100), nullable=True),
            sa.Column("notes", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
    _create_indexes(
        "inventory_movements",
        [
            ("ix_inventory_movements_product_id", ["product_id"], False),
            ("ix_inventory_movements_product_created_at", ["product_id", "created_at"], False),
            ("ix_inventory_movements_type_created_at", ["movement_type", "created_at"], False),
        ],
    )

    if not _table_exists(inspector, "system_settings"):
        op.create_table(
            "system_settings",
            sa.Column("key", sa.String(length=100), nullable=False),
            sa.Column("value", sa.Text(), nullable=False),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("key"),
        )


def downgrade() -> None:
    op.drop_table("system_settings")
    op.drop_table("inventory_movements")
    op.drop_table("sales_order_items")
    op.drop_table("sales_orders")
    op.drop_table("customers")
    op.drop_table("products")
    op.drop_table("revoked_tokens")
    op.drop_table("users")
