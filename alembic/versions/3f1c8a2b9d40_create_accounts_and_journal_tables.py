"""create accounts and journal tables

Revision ID: 3f1c8a2b9d40
Revises:
Create Date: 2026-10-05 09:12:41.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c8a2b9d40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("account_class", sa.String(), nullable=False),
        sa.Column("system_role", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("company_id", "code", name="uq_accounts_company_code"),
        sa.CheckConstraint(
            "account_class in ('Asset','Liability','Equity','Revenue','Expense','CostOfGoodsSold')",
            name="ck_accounts_account_class_valid",
        ),
    )
    op.create_index("ix_accounts_id", "accounts", ["id"], unique=False)
    op.create_index("ix_accounts_company_id", "accounts", ["company_id"], unique=False)
    op.create_index(
        "uq_accounts_company_system_role_active",
        "accounts",
        ["company_id", "system_role"],
        unique=True,
        postgresql_where=sa.text("is_active AND system_role IS NOT NULL"),
    )

    op.create_table(
        "journal_vouchers",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("voucher_number", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=False),
        sa.Column("reference_id", sa.String(), nullable=True),
        sa.Column("narration", sa.Text(), nullable=False, server_default=""),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("total_debits", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("total_credits", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("company_id", "voucher_number", name="uq_journal_vouchers_company_number"),
        sa.CheckConstraint("status in ('draft','posted')", name="ck_journal_vouchers_status_valid"),
        sa.CheckConstraint(
            "status <> 'posted' OR (total_debits = total_credits AND total_debits > 0)",
            name="ck_journal_vouchers_posted_balanced",
        ),
    )
    op.create_index("ix_journal_vouchers_id", "journal_vouchers", ["id"], unique=False)
    op.create_index("ix_journal_vouchers_company_id", "journal_vouchers", ["company_id"], unique=False)
    op.create_index("ix_journal_vouchers_source", "journal_vouchers", ["source"], unique=False)
    op.create_index("ix_journal_vouchers_reference_id", "journal_vouchers", ["reference_id"], unique=False)
    op.create_index(
        "ix_journal_vouchers_company_entry_date",
        "journal_vouchers",
        ["company_id", "entry_date", "id"],
        unique=False,
    )

    op.create_table(
        "journal_voucher_lines",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("voucher_id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("account_code", sa.String(length=32), nullable=False),
        sa.Column("debit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("credit", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("payee_reference", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["voucher_id"], ["journal_vouchers.id"], ondelete="CASCADE"),
        sa.CheckConstraint("debit >= 0", name="ck_journal_voucher_lines_debit_nonnegative"),
        sa.CheckConstraint("credit >= 0", name="ck_journal_voucher_lines_credit_nonnegative"),
        sa.CheckConstraint(
            "(debit > 0 AND credit = 0) OR (credit > 0 AND debit = 0)",
            name="ck_journal_voucher_lines_one_side",
        ),
    )
    op.create_index("ix_journal_voucher_lines_id", "journal_voucher_lines", ["id"], unique=False)
    op.create_index("ix_journal_voucher_lines_voucher_id", "journal_voucher_lines", ["voucher_id"], unique=False)
    op.create_index(
        "ix_journal_voucher_lines_company_account",
        "journal_voucher_lines",
        ["company_id", "account_code"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_journal_voucher_lines_company_account", table_name="journal_voucher_lines")
    op.drop_index("ix_journal_voucher_lines_voucher_id", table_name="journal_voucher_lines")
    op.drop_index("ix_journal_voucher_lines_id", table_name="journal_voucher_lines")
    op.drop_table("journal_voucher_lines")

    op.drop_index("ix_journal_vouchers_company_entry_date", table_name="journal_vouchers")
    op.drop_index("ix_journal_vouchers_reference_id", table_name="journal_vouchers")
    op.drop_index("ix_journal_vouchers_source", table_name="journal_vouchers")
    op.drop_index("ix_journal_vouchers_company_id", table_name="journal_vouchers")
    op.drop_index("ix_journal_vouchers_id", table_name="journal_vouchers")
    op.drop_table("journal_vouchers")

    op.drop_index("uq_accounts_company_system_role_active", table_name="accounts")
    op.drop_index("ix_accounts_company_id", table_name="accounts")
    op.drop_index("ix_accounts_id", table_name="accounts")
    op.drop_table("accounts")
