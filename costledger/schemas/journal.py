from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from costledger.core.enums import BalanceSide, SystemRole


class JournalLineCreate(BaseModel):
    side: BalanceSide
    amount: Decimal
    account_code: Optional[str] = None
    role: Optional[SystemRole] = None
    description: Optional[str] = None
    payee_reference: Optional[str] = None


class JournalEntryCreate(BaseModel):
    source: str = Field(default="Manual", min_length=1)
    narration: str = ""
    reference_id: Optional[str] = None
    entry_date: Optional[date] = None
    lines: list[JournalLineCreate]


class JournalEntryCreated(BaseModel):
    voucher_id: int
    voucher_number: str
    entry_date: date
    total: Decimal


class JournalLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_code: str
    debit: Decimal
    credit: Decimal
    description: Optional[str]
    payee_reference: Optional[str]


class VoucherSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    voucher_number: str
    source: str
    reference_id: Optional[str]
    narration: str
    entry_date: date
    status: str
    total_debits: Decimal
    total_credits: Decimal
    created_by: str
    created_at: datetime


class VoucherResponse(VoucherSummary):
    lines: list[JournalLineResponse]


class VoucherListResponse(BaseModel):
    limit: int
    offset: int
    rows: list[VoucherSummary]
