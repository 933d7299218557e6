from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence, Tuple, Union
from uuid import uuid4

from sqlalchemy.orm import Session, selectinload

from costledger.core.enums import BalanceSide, SystemRole, VoucherStatus
from costledger.core.errors import EmptyEntry, InvalidJournalLine, LedgerError, UnbalancedEntry
from costledger.database import unit_of_work
from costledger.models.journal import JournalVoucher, JournalVoucherLine
from costledger.services import account_directory

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def to_money(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round to the currency minor unit (cents), half-up."""
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class JournalLineInput:
    """One debit or credit leg. Exactly one of account_code / role names the account."""

    side: BalanceSide
    amount: Decimal
    account_code: Optional[str] = None
    role: Optional[SystemRole] = None
    description: Optional[str] = None
    payee_reference: Optional[str] = None


@dataclass(frozen=True)
class PostedVoucher:
    voucher_id: int
    voucher_number: str
    entry_date: date
    total: Decimal


def voucher_number_for(voucher_id: int, entry_date: date) -> str:
    return f"JV-{entry_date:%Y%m%d}-{int(voucher_id)}"


def _validate_lines(lines: Sequence[JournalLineInput]) -> Tuple[List[Tuple[JournalLineInput, BalanceSide, Decimal]], Decimal]:
    if len(lines) < 2:
        raise EmptyEntry("A journal entry needs at least two lines")

    normalized = []
    debit_total = Decimal("0.00")
    credit_total = Decimal("0.00")

    for i, line in enumerate(lines, start=1):
        if (line.account_code is None) == (line.role is None):
            raise InvalidJournalLine(f"Line {i} must name exactly one of account_code or role")

        side = BalanceSide(line.side)
        amount = to_money(line.amount)
        if amount <= 0:
            raise EmptyEntry(f"Line {i} amount must be positive, got {amount}")

        if side is BalanceSide.DEBIT:
            debit_total += amount
        else:
            credit_total += amount
        normalized.append((line, side, amount))

    if debit_total == 0 or credit_total == 0:
        raise EmptyEntry("A journal entry needs at least one debit line and one credit line")

    if debit_total != credit_total:
        raise UnbalancedEntry(f"Debits {debit_total} do not equal credits {credit_total}")

    return normalized, debit_total


def _account_code_for(db: Session, company_id: int, line: JournalLineInput) -> str:
    if line.role is not None:
        return account_directory.resolve(db, company_id, line.role).code
    return account_directory.get_account(db, company_id, line.account_code).code


def post_journal_entry(
    *,
    company_id: int,
    actor_id: str,
    source: str,
    narration: str,
    lines: Sequence[JournalLineInput],
    reference_id: Optional[str] = None,
    entry_date: Optional[date] = None,
    db: Optional[Session] = None,
) -> PostedVoucher:
    """
    Post a balanced voucher: header, lines and durable voucher number in one unit of work.

    The voucher number is derived from the header's own id, so the header is
    inserted as a draft with a placeholder number, the lines are written, and
    the number and posted status are set last. Nothing is visible to other
    sessions unless all three steps succeed.

    If db is provided, the caller owns the transaction (see unit_of_work).
    """
    if entry_date is None:
        entry_date = date.today()

    try:
        normalized, total = _validate_lines(lines)

        with unit_of_work(db) as session:
            resolved = [
                (_account_code_for(session, company_id, line), line, side, amount)
                for line, side, amount in normalized
            ]

            voucher = JournalVoucher(
                company_id=int(company_id),
                created_by=str(actor_id),
                voucher_number=f"TEMP-{uuid4().hex}",
                source=str(source),
                reference_id=None if reference_id is None else str(reference_id),
                narration=narration or "",
                entry_date=entry_date,
                status=VoucherStatus.DRAFT.value,
                total_debits=total,
                total_credits=total,
            )
            session.add(voucher)
            session.flush()

            for account_code, line, side, amount in resolved:
                session.add(
                    JournalVoucherLine(
                        voucher_id=voucher.id,
                        company_id=int(company_id),
                        account_code=account_code,
                        debit=amount if side is BalanceSide.DEBIT else Decimal("0.00"),
                        credit=amount if side is BalanceSide.CREDIT else Decimal("0.00"),
                        description=line.description or narration,
                        payee_reference=line.payee_reference,
                    )
                )
            session.flush()

            voucher.voucher_number = voucher_number_for(voucher.id, entry_date)
            voucher.status = VoucherStatus.POSTED.value
            session.flush()

            posted = PostedVoucher(
                voucher_id=int(voucher.id),
                voucher_number=voucher.voucher_number,
                entry_date=entry_date,
                total=total,
            )
    except LedgerError as exc:
        logger.warning(
            "Journal entry rejected",
            extra={"company_id": int(company_id), "source": source, "reason": str(exc)},
        )
        raise

    logger.info(
        "Journal entry posted",
        extra={
            "company_id": int(company_id),
            "voucher_id": posted.voucher_id,
            "voucher_number": posted.voucher_number,
            "source": source,
            "total": posted.total,
        },
    )
    return posted


def get_voucher(db: Session, company_id: int, voucher_id: int) -> Optional[JournalVoucher]:
    return (
        db.query(JournalVoucher)
        .options(selectinload(JournalVoucher.lines))
        .filter(
            JournalVoucher.company_id == int(company_id),
            JournalVoucher.id == int(voucher_id),
        )
        .one_or_none()
    )


def list_vouchers(
    db: Session,
    company_id: int,
    *,
    source: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[JournalVoucher]:
    q = db.query(JournalVoucher).filter(JournalVoucher.company_id == int(company_id))
    if source is not None:
        q = q.filter(JournalVoucher.source == str(source))

    return (
        q.order_by(JournalVoucher.entry_date.desc(), JournalVoucher.id.desc())
        .limit(int(limit))
        .offset(int(offset))
        .all()
    )
