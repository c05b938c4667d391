"""Products: pre-built PCs and order lines that point at them.

Revision ID: 002_products
Revises: 001_initial
Create Date: 2026-10-18

Adds the products table. order_items gains product_id; component_id becomes
nullable and a check constraint keeps exactly one of the two set.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "002_products"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("short_description", sa.Text, nullable=True),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("stock_quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(10), nullable=False, server_default="DRAFT"),
        sa.Column("is_configurable", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("weight_kg", sa.Numeric(8, 3), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_product_stock_non_negative"),
        sa.CheckConstraint("base_price >= 0", name="ck_product_price_non_negative"),
    )

    op.add_column(
        "order_items",
        sa.Column("product_id", UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=True),
    )
    op.alter_column("order_items", "component_id", nullable=True)
    op.create_check_constraint(
        "ck_order_item_one_target", "order_items",
        "(component_id IS NULL) <> (product_id IS NULL)",
    )


def downgrade() -> None:
    # Product lines have no component to fall back to.
    op.execute("DELETE FROM order_items WHERE product_id IS NOT NULL")
    op.drop_constraint("ck_order_item_one_target", "order_items", type_="check")
    op.alter_column("order_items", "component_id", nullable=False)
    op.drop_column("order_items", "product_id")
    op.drop_table("products")
