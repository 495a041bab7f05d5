"""initial reorder schema

Revision ID: 3a1f0c2d9b7e
Revises:
Create Date: 2026-10-12
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3a1f0c2d9b7e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
PO_STATUS = sa.Enum("pending", "received", name="po_status")
PENDING_ONLY = sa.text("status = 'pending'")


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", PK, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
    )

    op.create_table(
        "warehouses",
        sa.Column("id", PK, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("capacity >= 0", name="ck_warehouse_capacity_nonneg"),
    )

    op.create_table(
        "products",
        sa.Column("id", PK, primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("quantity_in_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reorder_threshold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "default_supplier_id",
            PK,
            sa.ForeignKey("suppliers.id", ondelete="SET NULL"),
        ),
        sa.Column(
            "warehouse_id",
            PK,
            sa.ForeignKey("warehouses.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.CheckConstraint("quantity_in_stock >= 0", name="ck_product_stock_nonneg"),
        sa.CheckConstraint("reorder_threshold >= 0", name="ck_product_threshold_nonneg"),
    )
    op.create_index("ix_products_warehouse_id", "products", ["warehouse_id"])

    op.create_table(
        "purchase_orders",
        sa.Column("id", PK, primary_key=True),
        sa.Column("product_id", PK, sa.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supplier_id", PK, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("warehouse_id", PK, sa.ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity_ordered", sa.Integer(), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("expected_arrival_date", sa.Date(), nullable=False),
        sa.Column("status", PO_STATUS, nullable=False, server_default="pending"),
        sa.Column("capacity_issue", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("received_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("quantity_ordered >= 0", name="ck_po_qty_nonneg"),
    )
    op.create_index("ix_purchase_orders_status", "purchase_orders", ["status"])

    # Invariant : au plus un PO pending par (product, warehouse)
    op.create_index(
        "uq_purchase_orders_one_pending",
        "purchase_orders",
        ["product_id", "warehouse_id"],
        unique=True,
        postgresql_where=PENDING_ONLY,
        sqlite_where=PENDING_ONLY,
    )


def downgrade() -> None:
    op.drop_index("uq_purchase_orders_one_pending", table_name="purchase_orders")
    op.drop_index("ix_purchase_orders_status", table_name="purchase_orders")
    op.drop_table("purchase_orders")
    op.drop_index("ix_products_warehouse_id", table_name="products")
    op.drop_table("products")
    op.drop_table("warehouses")
    op.drop_table("suppliers")
    PO_STATUS.drop(op.get_bind(), checkfirst=True)
