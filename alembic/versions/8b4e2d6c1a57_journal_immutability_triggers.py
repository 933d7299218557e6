"""journal immutability triggers

Revision ID: 8b4e2d6c1a57
Revises: 3f1c8a2b9d40
Create Date: 2026-10-05 11:47:03.915276

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b4e2d6c1a57'
down_revision: Union[str, Sequence[str], None] = '3f1c8a2b9d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute(
        """
        CREATE OR REPLACE FUNCTION journal_voucher_lines_block_update()
        RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'journal_voucher_lines are immutable';
        END;
        $$ LANGUAGE plpgsql;

        DROP TRIGGER IF EXISTS trg_journal_voucher_lines_block_update ON journal_voucher_lines;
        CREATE TRIGGER trg_journal_voucher_lines_block_update
        BEFORE UPDATE ON journal_voucher_lines
        FOR EACH ROW
        EXECUTE FUNCTION journal_voucher_lines_block_update();

        CREATE OR REPLACE FUNCTION journal_voucher_lines_block_posted_delete()
        RETURNS trigger AS $$
        BEGIN
            IF EXISTS (
                SELECT 1 FROM journal_vouchers v
                WHERE v.id = OLD.voucher_id AND v.status = 'posted'
            ) THEN
                RAISE EXCEPTION 'lines of posted journal voucher % are immutable', OLD.voucher_id;
            END IF;
            RETURN OLD;
        END;
        $$ LANGUAGE plpgsql;

        DROP TRIGGER IF EXISTS trg_journal_voucher_lines_block_posted_delete ON journal_voucher_lines;
        CREATE TRIGGER trg_journal_voucher_lines_block_posted_delete
        BEFORE DELETE ON journal_voucher_lines
        FOR EACH ROW
        EXECUTE FUNCTION journal_voucher_lines_block_posted_delete();

        CREATE OR REPLACE FUNCTION journal_vouchers_guard_posted()
        RETURNS trigger AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                IF OLD.status = 'posted' THEN
                    RAISE EXCEPTION 'posted journal voucher % cannot be deleted', OLD.id;
                END IF;
                RETURN OLD;
            END IF;

            IF OLD.status = 'posted' AND (
                NEW.company_id IS DISTINCT FROM OLD.company_id
                OR NEW.created_by IS DISTINCT FROM OLD.created_by
                OR NEW.voucher_number IS DISTINCT FROM OLD.voucher_number
                OR NEW.source IS DISTINCT FROM OLD.source
                OR NEW.reference_id IS DISTINCT FROM OLD.reference_id
                OR NEW.narration IS DISTINCT FROM OLD.narration
                OR NEW.entry_date IS DISTINCT FROM OLD.entry_date
                OR NEW.total_debits IS DISTINCT FROM OLD.total_debits
                OR NEW.total_credits IS DISTINCT FROM OLD.total_credits
                OR NEW.created_at IS DISTINCT FROM OLD.created_at
            ) THEN
                RAISE EXCEPTION 'posted journal voucher % is immutable except for status', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;

        DROP TRIGGER IF EXISTS trg_journal_vouchers_guard_posted ON journal_vouchers;
        CREATE TRIGGER trg_journal_vouchers_guard_posted
        BEFORE UPDATE OR DELETE ON journal_vouchers
        FOR EACH ROW
        EXECUTE FUNCTION journal_vouchers_guard_posted();
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        """
        DROP TRIGGER IF EXISTS trg_journal_vouchers_guard_posted ON journal_vouchers;
        DROP TRIGGER IF EXISTS trg_journal_voucher_lines_block_posted_delete ON journal_voucher_lines;
        DROP TRIGGER IF EXISTS trg_journal_voucher_lines_block_update ON journal_voucher_lines;
        DROP FUNCTION IF EXISTS journal_vouchers_guard_posted();
        DROP FUNCTION IF EXISTS journal_voucher_lines_block_posted_delete();
        DROP FUNCTION IF EXISTS journal_voucher_lines_block_update();
        """
    )
