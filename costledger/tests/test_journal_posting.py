import re
from datetime import date
from decimal import Decimal

import pytest

from costledger.core.enums import BalanceSide, SystemRole, VoucherStatus
from costledger.core.errors import (
    AccountNotConfigured,
    AccountNotFound,
    EmptyEntry,
    InvalidJournalLine,
    UnbalancedEntry,
)
from costledger.database import SessionLocal
from costledger.models.journal import JournalVoucher, JournalVoucherLine
from costledger.services.journal_posting import (
    JournalLineInput,
    get_voucher,
    list_vouchers,
    post_journal_entry,
    to_money,
)

DEBIT = BalanceSide.DEBIT
CREDIT = BalanceSide.CREDIT


def _count_vouchers() -> int:
    db = SessionLocal()
    try:
        return db.query(JournalVoucher).count()
    finally:
        db.close()


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money("10.004") == Decimal("10.00")
    assert to_money(3) == Decimal("3.00")


def test_post_balanced_entry_persists_header_and_lines(chart_of_accounts):
    chart_of_accounts(1)

    posted = post_journal_entry(
        company_id=1,
        actor_id="alice",
        source="Manual",
        narration="Owner investment",
        reference_id="INV-1",
        entry_date=date(2026, 3, 15),
        lines=[
            JournalLineInput(side=DEBIT, amount=Decimal("1000"), account_code="1000"),
            JournalLineInput(side=CREDIT, amount=Decimal("1000"), account_code="3000", description="Capital"),
        ],
    )

    assert posted.voucher_number == f"JV-20260315-{posted.voucher_id}"
    assert posted.total == Decimal("1000.00")

    db = SessionLocal()
    try:
        voucher = get_voucher(db, 1, posted.voucher_id)
        assert voucher.status == VoucherStatus.POSTED.value
        assert voucher.voucher_number == posted.voucher_number
        assert voucher.created_by == "alice"
        assert voucher.reference_id == "INV-1"
        assert voucher.total_debits == voucher.total_credits == Decimal("1000.00")

        assert [(l.account_code, l.debit, l.credit) for l in voucher.lines] == [
            ("1000", Decimal("1000.00"), Decimal("0.00")),
            ("3000", Decimal("0.00"), Decimal("1000.00")),
        ]
        # description falls back to the narration
        assert voucher.lines[0].description == "Owner investment"
        assert voucher.lines[1].description == "Capital"
    finally:
        db.close()


def test_lines_may_name_a_system_role(chart_of_accounts):
    chart_of_accounts(1)

    posted = post_journal_entry(
        company_id=1,
        actor_id="alice",
        source="Manual",
        narration="Credit sale",
        lines=[
            JournalLineInput(side=DEBIT, amount=Decimal("250"), role=SystemRole.ACCOUNTS_RECEIVABLE),
            JournalLineInput(side=CREDIT, amount=Decimal("250"), role=SystemRole.SALES_REVENUE),
        ],
    )

    db = SessionLocal()
    try:
        voucher = get_voucher(db, 1, posted.voucher_id)
        assert [l.account_code for l in voucher.lines] == ["1100", "4000"]
        assert voucher.entry_date == date.today()
    finally:
        db.close()


def test_unbalanced_entry_is_rejected_without_writes(chart_of_accounts):
    chart_of_accounts(1)

    with pytest.raises(UnbalancedEntry):
        post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="Bad",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("100.00"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("99.99"), account_code="3000"),
            ],
        )

    assert _count_vouchers() == 0


def test_amounts_are_rounded_before_the_balance_check(chart_of_accounts):
    chart_of_accounts(1)

    posted = post_journal_entry(
        company_id=1,
        actor_id="alice",
        source="Manual",
        narration="Rounded",
        lines=[
            JournalLineInput(side=DEBIT, amount=Decimal("10.004"), account_code="6000"),
            JournalLineInput(side=CREDIT, amount=Decimal("9.995"), account_code="1000"),
        ],
    )
    assert posted.total == Decimal("10.00")


@pytest.mark.parametrize(
    "lines",
    [
        [],
        [JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000")],
        [
            JournalLineInput(side=DEBIT, amount=Decimal("0"), account_code="1000"),
            JournalLineInput(side=CREDIT, amount=Decimal("0"), account_code="3000"),
        ],
        [
            JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000"),
            JournalLineInput(side=CREDIT, amount=Decimal("-5"), account_code="3000"),
        ],
        [
            JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000"),
            JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="6000"),
        ],
        [
            JournalLineInput(side=DEBIT, amount=Decimal("0.004"), account_code="1000"),
            JournalLineInput(side=CREDIT, amount=Decimal("0.004"), account_code="3000"),
        ],
    ],
)
def test_empty_or_one_sided_entries_are_rejected(chart_of_accounts, lines):
    chart_of_accounts(1)

    with pytest.raises(EmptyEntry):
        post_journal_entry(company_id=1, actor_id="alice", source="Manual", narration="x", lines=lines)

    assert _count_vouchers() == 0


def test_line_must_name_exactly_one_account_reference(chart_of_accounts):
    chart_of_accounts(1)

    with pytest.raises(InvalidJournalLine):
        post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="x",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000", role=SystemRole.COGS),
                JournalLineInput(side=CREDIT, amount=Decimal("5"), account_code="3000"),
            ],
        )


def test_unknown_or_inactive_account_is_rejected(chart_of_accounts, account_factory):
    chart_of_accounts(1)
    account_factory(company_id=1, code="7777", is_active=False)

    for code in ("0000", "7777"):
        with pytest.raises(AccountNotFound):
            post_journal_entry(
                company_id=1,
                actor_id="alice",
                source="Manual",
                narration="x",
                lines=[
                    JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code=code),
                    JournalLineInput(side=CREDIT, amount=Decimal("5"), account_code="3000"),
                ],
            )

    assert _count_vouchers() == 0


def test_another_companys_account_code_is_not_visible(chart_of_accounts):
    chart_of_accounts(2)

    with pytest.raises(AccountNotFound):
        post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="x",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("5"), account_code="3000"),
            ],
        )


def test_unmapped_role_is_rejected(account_factory):
    account_factory(company_id=1, code="1000")

    with pytest.raises(AccountNotConfigured):
        post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="x",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("5"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("5"), role=SystemRole.SALES_REVENUE),
            ],
        )

    assert _count_vouchers() == 0


def test_voucher_numbers_are_unique_and_never_temporary(chart_of_accounts):
    chart_of_accounts(1)
    chart_of_accounts(2)

    numbers = []
    for company_id in (1, 1, 2):
        posted = post_journal_entry(
            company_id=company_id,
            actor_id="alice",
            source="Manual",
            narration="x",
            entry_date=date(2026, 1, 2),
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("1"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("1"), account_code="3000"),
            ],
        )
        numbers.append(posted.voucher_number)

    assert len(set(numbers)) == 3
    assert all(re.fullmatch(r"JV-20260102-\d+", n) for n in numbers)

    db = SessionLocal()
    try:
        assert db.query(JournalVoucher).filter(JournalVoucher.voucher_number.like("TEMP-%")).count() == 0
        assert db.query(JournalVoucher).filter(JournalVoucher.status != VoucherStatus.POSTED.value).count() == 0
    finally:
        db.close()


def test_posting_inside_caller_transaction_rolls_back_with_it(chart_of_accounts):
    chart_of_accounts(1)

    db = SessionLocal()
    try:
        post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="x",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("1"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("1"), account_code="3000"),
            ],
            db=db,
        )
        assert db.query(JournalVoucherLine).count() == 2
        db.rollback()
    finally:
        db.close()

    assert _count_vouchers() == 0


def test_failed_posting_inside_caller_transaction_keeps_earlier_work(chart_of_accounts):
    chart_of_accounts(1)

    db = SessionLocal()
    try:
        first = post_journal_entry(
            company_id=1,
            actor_id="alice",
            source="Manual",
            narration="kept",
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("1"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("1"), account_code="3000"),
            ],
            db=db,
        )
        with pytest.raises(AccountNotFound):
            post_journal_entry(
                company_id=1,
                actor_id="alice",
                source="Manual",
                narration="dropped",
                lines=[
                    JournalLineInput(side=DEBIT, amount=Decimal("1"), account_code="1000"),
                    JournalLineInput(side=CREDIT, amount=Decimal("1"), account_code="0000"),
                ],
                db=db,
            )
        db.commit()
    finally:
        db.close()

    db = SessionLocal()
    try:
        rows = db.query(JournalVoucher).all()
        assert [r.id for r in rows] == [first.voucher_id]
    finally:
        db.close()


def test_list_vouchers_is_tenant_scoped_and_filters_by_source(chart_of_accounts):
    chart_of_accounts(1)
    chart_of_accounts(2)

    def post(company_id, source, day):
        return post_journal_entry(
            company_id=company_id,
            actor_id="alice",
            source=source,
            narration=source,
            entry_date=date(2026, 2, day),
            lines=[
                JournalLineInput(side=DEBIT, amount=Decimal("1"), account_code="1000"),
                JournalLineInput(side=CREDIT, amount=Decimal("1"), account_code="3000"),
            ],
        ).voucher_id

    a = post(1, "Manual", 1)
    b = post(1, "Production", 2)
    post(2, "Manual", 3)

    db = SessionLocal()
    try:
        assert [v.id for v in list_vouchers(db, 1)] == [b, a]
        assert [v.id for v in list_vouchers(db, 1, source="Manual")] == [a]
        assert [v.id for v in list_vouchers(db, 1, limit=1, offset=1)] == [a]
        assert get_voucher(db, 2, a) is None
    finally:
        db.close()
