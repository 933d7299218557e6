from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Integer, String, UniqueConstraint, func, text

from costledger.database import Base


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_accounts_company_code"),
        CheckConstraint(
            "account_class in ('Asset','Liability','Equity','Revenue','Expense','CostOfGoodsSold')",
            name="ck_accounts_account_class_valid",
        ),
        # each system role resolves to at most one active account per company
        Index(
            "uq_accounts_company_system_role_active",
            "company_id",
            "system_role",
            unique=True,
            postgresql_where=text("is_active AND system_role IS NOT NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)

    code = Column(String(32), nullable=False)
    name = Column(String, nullable=False)
    account_class = Column(String, nullable=False)  # Asset|Liability|Equity|Revenue|Expense|CostOfGoodsSold
    system_role = Column(String, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
