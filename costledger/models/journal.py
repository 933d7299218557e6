from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from costledger.database import Base


class JournalVoucher(Base):
    __tablename__ = "journal_vouchers"

    __table_args__ = (
        UniqueConstraint("company_id", "voucher_number", name="uq_journal_vouchers_company_number"),
        CheckConstraint("status in ('draft','posted')", name="ck_journal_vouchers_status_valid"),
        CheckConstraint(
            "status <> 'posted' OR (total_debits = total_credits AND total_debits > 0)",
            name="ck_journal_vouchers_posted_balanced",
        ),
        Index("ix_journal_vouchers_company_entry_date", "company_id", "entry_date", "id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    created_by = Column(String, nullable=False)

    voucher_number = Column(String, nullable=False)
    source = Column(String, nullable=False, index=True)
    reference_id = Column(String, nullable=True, index=True)
    narration = Column(Text, nullable=False, default="")
    entry_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default="draft")

    total_debits = Column(Numeric(18, 2), nullable=False, default=0)
    total_credits = Column(Numeric(18, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    lines = relationship(
        "JournalVoucherLine",
        back_populates="voucher",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="JournalVoucherLine.id",
    )


class JournalVoucherLine(Base):
    __tablename__ = "journal_voucher_lines"

    __table_args__ = (
        CheckConstraint("debit >= 0", name="ck_journal_voucher_lines_debit_nonnegative"),
        CheckConstraint("credit >= 0", name="ck_journal_voucher_lines_credit_nonnegative"),
        CheckConstraint(
            "(debit > 0 AND credit = 0) OR (credit > 0 AND debit = 0)",
            name="ck_journal_voucher_lines_one_side",
        ),
        Index("ix_journal_voucher_lines_company_account", "company_id", "account_code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    voucher_id = Column(
        Integer,
        ForeignKey("journal_vouchers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id = Column(Integer, nullable=False)

    account_code = Column(String(32), nullable=False)
    debit = Column(Numeric(18, 2), nullable=False, default=0)
    credit = Column(Numeric(18, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    payee_reference = Column(String, nullable=True)

    voucher = relationship("JournalVoucher", back_populates="lines")
