from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class AccountSummary(BaseModel):
    code: str
    name: str
    account_class: str
    natural_side: str


class ActivityLine(BaseModel):
    date: date
    voucher_id: int
    reference: str
    description: Optional[str]
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


class ActivityTotals(BaseModel):
    debit: Decimal
    credit: Decimal
    net_movement: Decimal


class AccountActivityResponse(BaseModel):
    company_id: int
    account: AccountSummary
    from_date: date
    to_date: date
    opening_balance: Decimal
    lines: list[ActivityLine]
    totals: ActivityTotals
    closing_balance: Decimal
    closing_balance_natural: Decimal
    transaction_count: int


class TrialBalanceRow(BaseModel):
    account_code: str
    name: str
    account_class: str
    debit: Decimal
    credit: Decimal


class TrialBalanceResponse(BaseModel):
    company_id: int
    from_date: date
    to_date: date
    rows: list[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool


class AccountBalanceRow(TrialBalanceRow):
    is_active: bool
    balance: Decimal


class AccountBalancesResponse(BaseModel):
    company_id: int
    as_of: date
    rows: list[AccountBalanceRow]


class IncomeStatementLine(BaseModel):
    account_code: str
    name: str
    amount: Decimal
    percentage: Optional[Decimal]


class IncomeStatementSection(BaseModel):
    accounts: list[IncomeStatementLine]
    total: Decimal
    percentage: Optional[Decimal]


class IncomeStatementResponse(BaseModel):
    company_id: int
    from_date: date
    to_date: date
    revenue: IncomeStatementSection
    cost_of_goods_sold: IncomeStatementSection
    expenses: IncomeStatementSection
    gross_profit: Decimal
    gross_profit_percentage: Optional[Decimal]
    net_income: Decimal
    net_income_percentage: Optional[Decimal]
