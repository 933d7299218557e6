"""create items and bom tables

Revision ID: c2a7f09e5b13
Revises: 8b4e2d6c1a57
Create Date: 2026-10-07 14:03:55.661092

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c2a7f09e5b13'
down_revision: Union[str, Sequence[str], None] = '8b4e2d6c1a57'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "raw_materials",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("unit_of_measure", sa.String(), nullable=True),
        sa.Column("quantity_on_hand", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("average_unit_cost", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_raw_materials_id", "raw_materials", ["id"], unique=False)
    op.create_index("ix_raw_materials_company_id", "raw_materials", ["company_id"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("sku", sa.String(), nullable=True),
        sa.Column("unit_of_measure", sa.String(), nullable=True),
        sa.Column("quantity_on_hand", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("average_unit_cost", sa.Numeric(18, 4), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_products_id", "products", ["id"], unique=False)
    op.create_index("ix_products_company_id", "products", ["company_id"], unique=False)

    op.create_table(
        "boms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("finished_good_id", sa.Integer(), nullable=False),
        sa.Column("bom_code", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("batch_size", sa.Numeric(18, 4), nullable=False, server_default="1"),
        sa.Column("scrap_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["finished_good_id"], ["products.id"], ondelete="RESTRICT"),
        sa.UniqueConstraint("company_id", "finished_good_id", "version", name="uq_boms_company_good_version"),
        sa.CheckConstraint("status in ('active','inactive')", name="ck_boms_status_valid"),
        sa.CheckConstraint(
            "scrap_percentage >= 0 AND scrap_percentage <= 100",
            name="ck_boms_scrap_percentage_range",
        ),
        sa.CheckConstraint("batch_size > 0", name="ck_boms_batch_size_positive"),
    )
    op.create_index("ix_boms_id", "boms", ["id"], unique=False)
    op.create_index("ix_boms_company_id", "boms", ["company_id"], unique=False)
    op.create_index("ix_boms_finished_good_id", "boms", ["finished_good_id"], unique=False)

    op.create_table(
        "bom_components",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("material_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("unit_of_measure", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["bom_id"], ["boms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["material_id"], ["raw_materials.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("quantity > 0", name="ck_bom_components_quantity_positive"),
    )
    op.create_index("ix_bom_components_id", "bom_components", ["id"], unique=False)
    op.create_index("ix_bom_components_bom_id", "bom_components", ["bom_id"], unique=False)

    op.create_table(
        "bom_overheads",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("cost_category", sa.String(), nullable=True),
        sa.Column("allocation_method", sa.String(), nullable=False),
        sa.Column("cost", sa.Numeric(18, 4), nullable=False),
        sa.Column("gl_account_code", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["bom_id"], ["boms.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "allocation_method in ('per_unit','per_batch','percentage_of_material')",
            name="ck_bom_overheads_allocation_method_valid",
        ),
        sa.CheckConstraint("cost >= 0", name="ck_bom_overheads_cost_nonnegative"),
    )
    op.create_index("ix_bom_overheads_id", "bom_overheads", ["id"], unique=False)
    op.create_index("ix_bom_overheads_bom_id", "bom_overheads", ["bom_id"], unique=False)

    op.create_table(
        "bom_operations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("bom_id", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["bom_id"], ["boms.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_bom_operations_id", "bom_operations", ["id"], unique=False)
    op.create_index("ix_bom_operations_bom_id", "bom_operations", ["bom_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_bom_operations_bom_id", table_name="bom_operations")
    op.drop_index("ix_bom_operations_id", table_name="bom_operations")
    op.drop_table("bom_operations")

    op.drop_index("ix_bom_overheads_bom_id", table_name="bom_overheads")
    op.drop_index("ix_bom_overheads_id", table_name="bom_overheads")
    op.drop_table("bom_overheads")

    op.drop_index("ix_bom_components_bom_id", table_name="bom_components")
    op.drop_index("ix_bom_components_id", table_name="bom_components")
    op.drop_table("bom_components")

    op.drop_index("ix_boms_finished_good_id", table_name="boms")
    op.drop_index("ix_boms_company_id", table_name="boms")
    op.drop_index("ix_boms_id", table_name="boms")
    op.drop_table("boms")

    op.drop_index("ix_products_company_id", table_name="products")
    op.drop_index("ix_products_id", table_name="products")
    op.drop_table("products")

    op.drop_index("ix_raw_materials_company_id", table_name="raw_materials")
    op.drop_index("ix_raw_materials_id", table_name="raw_materials")
    op.drop_table("raw_materials")
