from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from costledger.core.enums import AccountClass, BalanceSide, VoucherStatus
from costledger.core.errors import InvalidDateRange, LedgerIntegrityError
from costledger.models.account import Account
from costledger.models.journal import JournalVoucher, JournalVoucherLine
from costledger.services.account_directory import BALANCE_SHEET_CLASSES, get_account, natural_side

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

_CLASS_ORDER = [
    AccountClass.ASSET,
    AccountClass.LIABILITY,
    AccountClass.EQUITY,
    AccountClass.REVENUE,
    AccountClass.COST_OF_GOODS_SOLD,
    AccountClass.EXPENSE,
]


def _posted_lines(db: Session, company_id: int):
    return (
        db.query(JournalVoucherLine)
        .join(JournalVoucher, JournalVoucherLine.voucher_id == JournalVoucher.id)
        .filter(JournalVoucher.company_id == int(company_id))
        .filter(JournalVoucherLine.company_id == int(company_id))
        .filter(JournalVoucher.status == VoucherStatus.POSTED.value)
    )


def _sums_by_account(q) -> Dict[str, Tuple[Decimal, Decimal]]:
    rows = (
        q.with_entities(
            JournalVoucherLine.account_code,
            func.coalesce(func.sum(JournalVoucherLine.debit), 0),
            func.coalesce(func.sum(JournalVoucherLine.credit), 0),
        )
        .group_by(JournalVoucherLine.account_code)
        .all()
    )
    return {code: (Decimal(d), Decimal(c)) for code, d, c in rows}


def _fold(net: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Place a debit-minus-credit net balance in the report columns.

    A positive net is a debit balance and a negative one a credit balance,
    whatever the account's natural side; an abnormal balance therefore lands
    in the column opposite to the natural side.
    """
    if net > 0:
        return net, ZERO
    if net < 0:
        return ZERO, -net
    return ZERO, ZERO


def _natural_balance(account_class: Union[AccountClass, str], net: Decimal) -> Decimal:
    if natural_side(account_class) is BalanceSide.DEBIT:
        return net
    return -net


def _check_range(from_date: date, to_date: date) -> None:
    if from_date > to_date:
        raise InvalidDateRange(f"from_date {from_date.isoformat()} is after to_date {to_date.isoformat()}")


def account_activity(
    *,
    company_id: int,
    account_code: str,
    from_date: date,
    to_date: date,
    db: Session,
) -> dict[str, Any]:
    """
    Read-only running ledger for one account.

    Semantics:
      opening balance = posted debits - credits with entry_date < from_date
      period lines    = posted lines with from_date <= entry_date <= to_date,
                        replayed in (entry_date, voucher id, line id) order
    """
    _check_range(from_date, to_date)
    account = get_account(db, company_id, account_code, active_only=False)

    opening_debit, opening_credit = (
        _posted_lines(db, company_id)
        .filter(JournalVoucherLine.account_code == account.code)
        .filter(JournalVoucher.entry_date < from_date)
        .with_entities(
            func.coalesce(func.sum(JournalVoucherLine.debit), 0),
            func.coalesce(func.sum(JournalVoucherLine.credit), 0),
        )
        .one()
    )
    opening_balance = Decimal(opening_debit) - Decimal(opening_credit)

    rows = (
        _posted_lines(db, company_id)
        .filter(JournalVoucherLine.account_code == account.code)
        .filter(JournalVoucher.entry_date >= from_date)
        .filter(JournalVoucher.entry_date <= to_date)
        .with_entities(
            JournalVoucher.id,
            JournalVoucher.entry_date,
            JournalVoucher.voucher_number,
            JournalVoucherLine.description,
            JournalVoucherLine.debit,
            JournalVoucherLine.credit,
        )
        .order_by(
            JournalVoucher.entry_date.asc(),
            JournalVoucher.id.asc(),
            JournalVoucherLine.id.asc(),
        )
        .all()
    )

    lines = []
    running = opening_balance
    period_debit = ZERO
    period_credit = ZERO
    for r in rows:
        debit = Decimal(r.debit)
        credit = Decimal(r.credit)
        running = running + debit - credit
        period_debit += debit
        period_credit += credit
        lines.append(
            {
                "date": r.entry_date,
                "voucher_id": int(r.id),
                "reference": r.voucher_number,
                "description": r.description,
                "debit": debit,
                "credit": credit,
                "running_balance": running,
            }
        )

    closing_balance = opening_balance + period_debit - period_credit
    if closing_balance != running:
        raise LedgerIntegrityError(
            f"Closing balance {closing_balance} does not match replayed balance {running} for account {account.code}"
        )

    return {
        "company_id": int(company_id),
        "account": {
            "code": account.code,
            "name": account.name,
            "account_class": account.account_class,
            "natural_side": natural_side(account.account_class).value,
        },
        "from_date": from_date,
        "to_date": to_date,
        "opening_balance": opening_balance,
        "lines": lines,
        "totals": {
            "debit": period_debit,
            "credit": period_credit,
            "net_movement": period_debit - period_credit,
        },
        "closing_balance": closing_balance,
        "closing_balance_natural": _natural_balance(account.account_class, closing_balance),
        "transaction_count": len(lines),
    }


def _class_rank(account_class: str) -> int:
    try:
        return _CLASS_ORDER.index(AccountClass(account_class))
    except ValueError:
        return len(_CLASS_ORDER)


def trial_balance(
    *,
    company_id: int,
    from_date: date,
    to_date: date,
    db: Session,
) -> dict[str, Any]:
    """
    Balance-sheet accounts use the cumulative balance as of to_date; revenue,
    expense and COGS accounts use only activity inside [from_date, to_date].
    Only accounts with a nonzero net balance are reported.
    """
    _check_range(from_date, to_date)

    cumulative = _sums_by_account(_posted_lines(db, company_id).filter(JournalVoucher.entry_date <= to_date))
    period = _sums_by_account(
        _posted_lines(db, company_id)
        .filter(JournalVoucher.entry_date >= from_date)
        .filter(JournalVoucher.entry_date <= to_date)
    )

    accounts = db.query(Account).filter(Account.company_id == int(company_id)).all()
    accounts.sort(key=lambda a: (_class_rank(a.account_class), a.code))

    rows = []
    total_debit = ZERO
    total_credit = ZERO
    for account in accounts:
        source = cumulative if AccountClass(account.account_class) in BALANCE_SHEET_CLASSES else period
        debit_sum, credit_sum = source.get(account.code, (ZERO, ZERO))
        net = debit_sum - credit_sum
        if net == 0:
            continue

        debit, credit = _fold(net)
        total_debit += debit
        total_credit += credit
        rows.append(
            {
                "account_code": account.code,
                "name": account.name,
                "account_class": account.account_class,
                "debit": debit,
                "credit": credit,
            }
        )

    is_balanced = total_debit == total_credit
    if not is_balanced:
        logger.warning(
            "Trial balance does not balance",
            extra={
                "company_id": int(company_id),
                "from_date": from_date,
                "to_date": to_date,
                "total_debit": total_debit,
                "total_credit": total_credit,
            },
        )

    return {
        "company_id": int(company_id),
        "from_date": from_date,
        "to_date": to_date,
        "rows": rows,
        "total_debit": total_debit,
        "total_credit": total_credit,
        "is_balanced": is_balanced,
    }


def account_balances(
    *,
    company_id: int,
    as_of: date,
    db: Session,
    account_class: Optional[Union[AccountClass, str]] = None,
) -> dict[str, Any]:
    """Cumulative balance of every account (zero balances included) as of a date."""
    sums = _sums_by_account(_posted_lines(db, company_id).filter(JournalVoucher.entry_date <= as_of))

    q = db.query(Account).filter(Account.company_id == int(company_id))
    if account_class is not None:
        q = q.filter(Account.account_class == AccountClass(account_class).value)
    accounts = q.all()
    accounts.sort(key=lambda a: (_class_rank(a.account_class), a.code))

    rows = []
    for account in accounts:
        debit_sum, credit_sum = sums.get(account.code, (ZERO, ZERO))
        net = debit_sum - credit_sum
        debit, credit = _fold(net)
        rows.append(
            {
                "account_code": account.code,
                "name": account.name,
                "account_class": account.account_class,
                "is_active": bool(account.is_active),
                "debit": debit,
                "credit": credit,
                "balance": _natural_balance(account.account_class, net),
            }
        )

    return {
        "company_id": int(company_id),
        "as_of": as_of,
        "rows": rows,
    }


_INCOME_SECTIONS = [
    ("revenue", AccountClass.REVENUE),
    ("cost_of_goods_sold", AccountClass.COST_OF_GOODS_SOLD),
    ("expenses", AccountClass.EXPENSE),
]


def _share_of(amount: Decimal, revenue: Decimal) -> Optional[Decimal]:
    if revenue == 0:
        return None
    return (amount * HUNDRED / revenue).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def income_statement(
    *,
    company_id: int,
    from_date: date,
    to_date: date,
    db: Session,
) -> dict[str, Any]:
    """
    Profit and loss for [from_date, to_date].

    Every revenue, COGS and expense account with posted activity in the period
    is listed with its amount signed to the account's natural side, so
    revenue is positive when credited and costs are positive when debited.

      gross_profit = revenue - cost_of_goods_sold
      net_income   = gross_profit - expenses

    Percentages are of total revenue and are null when revenue is zero.
    """
    _check_range(from_date, to_date)

    period = _sums_by_account(
        _posted_lines(db, company_id)
        .filter(JournalVoucher.entry_date >= from_date)
        .filter(JournalVoucher.entry_date <= to_date)
    )

    accounts = (
        db.query(Account)
        .filter(Account.company_id == int(company_id))
        .filter(Account.account_class.in_([cls.value for _, cls in _INCOME_SECTIONS]))
        .order_by(Account.code.asc())
        .all()
    )

    sections: Dict[str, dict[str, Any]] = {}
    for key, account_class in _INCOME_SECTIONS:
        rows = []
        total = ZERO
        for account in accounts:
            if account.account_class != account_class.value or account.code not in period:
                continue
            debit_sum, credit_sum = period[account.code]
            amount = _natural_balance(account_class, debit_sum - credit_sum)
            total += amount
            rows.append({"account_code": account.code, "name": account.name, "amount": amount})
        sections[key] = {"accounts": rows, "total": total}

    revenue = sections["revenue"]["total"]
    for section in sections.values():
        for row in section["accounts"]:
            row["percentage"] = _share_of(row["amount"], revenue)
        section["percentage"] = _share_of(section["total"], revenue)

    gross_profit = revenue - sections["cost_of_goods_sold"]["total"]
    net_income = gross_profit - sections["expenses"]["total"]

    return {
        "company_id": int(company_id),
        "from_date": from_date,
        "to_date": to_date,
        **sections,
        "gross_profit": gross_profit,
        "gross_profit_percentage": _share_of(gross_profit, revenue),
        "net_income": net_income,
        "net_income_percentage": _share_of(net_income, revenue),
    }
