"""create production order tables

Revision ID: e6d91b4a27c8
Revises: c2a7f09e5b13
Create Date: 2026-10-09 10:26:18.340771

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'e6d91b4a27c8'
down_revision: Union[str, Sequence[str], None] = 'c2a7f09e5b13'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "production_orders",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 4), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="Pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("creation_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("planned_material_cost", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("planned_overhead_cost", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("actual_material_cost", sa.Numeric(18, 2), nullable=True),
        sa.Column("actual_overhead_cost", sa.Numeric(18, 2), nullable=True),
        sa.Column("total_production_cost", sa.Numeric(18, 2), nullable=True),
        sa.Column("journal_voucher_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["bom_id"], ["boms.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["journal_voucher_id"], ["journal_vouchers.id"], ondelete="RESTRICT"),
        sa.CheckConstraint(
            "status in ('Pending','InProgress','Completed','Cancelled')",
            name="ck_production_orders_status_valid",
        ),
        sa.CheckConstraint(
            "(status = 'Completed' AND completion_date IS NOT NULL) "
            "OR (status <> 'Completed' AND completion_date IS NULL)",
            name="ck_production_orders_completion_date_consistent",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_production_orders_quantity_positive"),
    )
    op.create_index("ix_production_orders_id", "production_orders", ["id"], unique=False)
    op.create_index("ix_production_orders_company_id", "production_orders", ["company_id"], unique=False)
    op.create_index("ix_production_orders_product_id", "production_orders", ["product_id"], unique=False)
    op.create_index("ix_production_orders_bom_id", "production_orders", ["bom_id"], unique=False)
    op.create_index("ix_production_orders_status", "production_orders", ["status"], unique=False)

    op.create_table(
        "production_order_costs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=False),
        sa.Column("bom_overhead_id", sa.Integer(), nullable=True),
        sa.Column("cost_type", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("gl_account_code", sa.String(length=32), nullable=True),
        sa.ForeignKeyConstraint(["production_order_id"], ["production_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["bom_overhead_id"], ["bom_overheads.id"], ondelete="SET NULL"),
        sa.CheckConstraint("amount >= 0", name="ck_production_order_costs_amount_nonnegative"),
    )
    op.create_index("ix_production_order_costs_id", "production_order_costs", ["id"], unique=False)
    op.create_index(
        "ix_production_order_costs_production_order_id",
        "production_order_costs",
        ["production_order_id"],
        unique=False,
    )

    op.create_table(
        "production_order_consumption",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("production_order_id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=False),
        sa.Column("quantity_consumed", sa.Numeric(18, 6), nullable=False),
        sa.Column("unit_cost_at_consumption", sa.Numeric(18, 4), nullable=False),
        sa.Column("total_cost", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["production_order_id"], ["production_orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["material_id"], ["raw_materials.id"], ondelete="RESTRICT"),
    )
    op.create_index("ix_production_order_consumption_id", "production_order_consumption", ["id"], unique=False)
    op.create_index(
        "ix_production_order_consumption_production_order_id",
        "production_order_consumption",
        ["production_order_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(
        "ix_production_order_consumption_production_order_id",
        table_name="production_order_consumption",
    )
    op.drop_index("ix_production_order_consumption_id", table_name="production_order_consumption")
    op.drop_table("production_order_consumption")

    op.drop_index("ix_production_order_costs_production_order_id", table_name="production_order_costs")
    op.drop_index("ix_production_order_costs_id", table_name="production_order_costs")
    op.drop_table("production_order_costs")

    op.drop_index("ix_production_orders_status", table_name="production_orders")
    op.drop_index("ix_production_orders_bom_id", table_name="production_orders")
    op.drop_index("ix_production_orders_product_id", table_name="production_orders")
    op.drop_index("ix_production_orders_company_id", table_name="production_orders")
    op.drop_index("ix_production_orders_id", table_name="production_orders")
    op.drop_table("production_orders")
