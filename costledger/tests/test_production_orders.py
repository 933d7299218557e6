from decimal import Decimal

import pytest

from costledger.core.enums import ProductionStatus
from costledger.core.errors import (
    AccountNotConfigured,
    AccountNotFound,
    BomNotFound,
    InvalidBatchSize,
    InvalidBom,
    InvalidTransition,
    ProductionOrderNotFound,
)
from costledger.database import SessionLocal
from costledger.models.account import Account
from costledger.models.bom import BomOverhead
from costledger.models.item import Material, Product
from costledger.models.journal import JournalVoucher
from costledger.models.production import ProductionOrder
from costledger.services.bom_service import BomComponentSpec, create_bom
from costledger.services.production_orders import (
    advance_production_order,
    can_transition,
    create_production_order,
    get_production_order_detail,
    list_production_orders,
)


def _create(bom_id, quantity="10", company_id=1):
    return create_production_order(company_id=company_id, actor_id="alice", bom_id=bom_id, quantity=Decimal(quantity))


def _advance(order_id, status, company_id=1):
    return advance_production_order(
        company_id=company_id,
        order_id=order_id,
        target_status=status,
        actor_id="alice",
    )


def _detail(order_id, company_id=1):
    db = SessionLocal()
    try:
        return get_production_order_detail(db, company_id, order_id)
    finally:
        db.close()


def _voucher_count() -> int:
    db = SessionLocal()
    try:
        return db.query(JournalVoucher).count()
    finally:
        db.close()


def test_create_snapshots_planned_costs_without_posting(widget_bom):
    seeded = widget_bom(1)

    order_id = _create(seeded["bom_id"])
    order = _detail(order_id)

    assert order.status == ProductionStatus.PENDING.value
    assert order.product_id == seeded["widget"].id
    assert order.quantity == Decimal("10")
    assert order.planned_material_cost == Decimal("150.00")
    assert order.planned_overhead_cost == Decimal("70.00")
    assert order.completion_date is None
    assert order.journal_voucher_id is None

    assert [(c.cost_type, c.description, c.amount, c.gl_account_code) for c in order.costs] == [
        ("direct", "Planned: Direct labor", Decimal("30.00"), "2100"),
        ("misc", "Planned: Machine setup", Decimal("25.00"), "5200"),
        ("misc", "Planned: Factory overhead", Decimal("15.00"), "5200"),
        ("material", "Planned: material", Decimal("150.00"), None),
    ]
    assert all(c.bom_overhead_id is not None for c in order.costs[:3])
    assert _voucher_count() == 0


def test_create_rejects_bad_quantity_foreign_and_inactive_boms(widget_bom):
    seeded = widget_bom(1)

    with pytest.raises(InvalidBatchSize):
        _create(seeded["bom_id"], quantity="0")
    with pytest.raises(BomNotFound):
        _create(seeded["bom_id"], company_id=2)
    with pytest.raises(BomNotFound):
        _create(seeded["bom_id"] + 100)

    create_bom(
        company_id=1,
        actor_id="alice",
        finished_good_id=seeded["widget"].id,
        bom_code="BOM-WIDGET",
        components=[BomComponentSpec(material_id=seeded["steel"].id, quantity=Decimal("1"))],
    )
    with pytest.raises(InvalidBom):
        _create(seeded["bom_id"])

    db = SessionLocal()
    try:
        assert db.query(ProductionOrder).count() == 0
    finally:
        db.close()


def test_quantity_is_planned_at_stored_precision(widget_bom):
    seeded = widget_bom(1)

    with pytest.raises(InvalidBatchSize):
        _create(seeded["bom_id"], quantity="0.00001")

    order = _detail(_create(seeded["bom_id"], quantity="2.00004"))

    assert order.quantity == Decimal("2.0000")
    assert order.planned_material_cost == Decimal("30.00")
    # 3.00 * 2 labor + 25.00 setup + 10% of 30.00 material
    assert order.planned_overhead_cost == Decimal("34.00")


@pytest.mark.parametrize(
    "current,target,allowed",
    [
        (ProductionStatus.PENDING, ProductionStatus.IN_PROGRESS, True),
        (ProductionStatus.PENDING, ProductionStatus.CANCELLED, True),
        (ProductionStatus.PENDING, ProductionStatus.COMPLETED, False),
        (ProductionStatus.IN_PROGRESS, ProductionStatus.COMPLETED, True),
        (ProductionStatus.IN_PROGRESS, ProductionStatus.CANCELLED, True),
        (ProductionStatus.IN_PROGRESS, ProductionStatus.PENDING, False),
        (ProductionStatus.COMPLETED, ProductionStatus.CANCELLED, False),
        (ProductionStatus.COMPLETED, ProductionStatus.COMPLETED, False),
        (ProductionStatus.CANCELLED, ProductionStatus.IN_PROGRESS, False),
        (ProductionStatus.CANCELLED, ProductionStatus.PENDING, False),
    ],
)
def test_transition_table(current, target, allowed):
    assert can_transition(current, target) is allowed


def test_illegal_transitions_are_rejected(widget_bom):
    seeded = widget_bom(1)
    order_id = _create(seeded["bom_id"])

    with pytest.raises(InvalidTransition):
        _advance(order_id, ProductionStatus.COMPLETED)

    _advance(order_id, ProductionStatus.CANCELLED)
    with pytest.raises(InvalidTransition):
        _advance(order_id, ProductionStatus.IN_PROGRESS)

    assert _detail(order_id).status == ProductionStatus.CANCELLED.value
    assert _voucher_count() == 0

    with pytest.raises(ProductionOrderNotFound):
        _advance(order_id, ProductionStatus.CANCELLED, company_id=2)


def test_completion_posts_one_balanced_voucher(widget_bom):
    seeded = widget_bom(1)
    order_id = _create(seeded["bom_id"])

    started = _advance(order_id, "InProgress")
    assert started.journal_voucher_id is None
    assert started.message == "Order status updated to InProgress"

    done = _advance(order_id, ProductionStatus.COMPLETED)
    assert done.message == "Order status updated to Completed"
    assert done.journal_voucher_id is not None

    order = _detail(order_id)
    assert order.status == ProductionStatus.COMPLETED.value
    assert order.completion_date is not None
    assert order.journal_voucher_id == done.journal_voucher_id
    assert order.actual_material_cost == Decimal("150.00")
    assert order.actual_overhead_cost == Decimal("70.00")
    assert order.total_production_cost == Decimal("220.00")

    voucher = order.journal_voucher
    assert voucher.source == "Production"
    assert voucher.reference_id == str(order_id)
    assert voucher.total_debits == voucher.total_credits == Decimal("220.00")
    assert [(l.account_code, l.debit, l.credit) for l in voucher.lines] == [
        ("1300", Decimal("220.00"), Decimal("0.00")),
        ("1200", Decimal("0.00"), Decimal("100.00")),
        ("1200", Decimal("0.00"), Decimal("50.00")),
        ("2100", Decimal("0.00"), Decimal("30.00")),
        ("5200", Decimal("0.00"), Decimal("25.00")),
        ("5200", Decimal("0.00"), Decimal("15.00")),
    ]

    assert [
        (c.material_id, c.quantity_consumed, c.unit_cost_at_consumption, c.total_cost) for c in order.consumption
    ] == [
        (seeded["steel"].id, Decimal("40"), Decimal("2.50"), Decimal("100.00")),
        (seeded["paint"].id, Decimal("5"), Decimal("10.00"), Decimal("50.00")),
    ]

    assert _voucher_count() == 1


def test_completion_updates_raw_and_finished_stock(widget_bom):
    seeded = widget_bom(1)

    db = SessionLocal()
    try:
        db.query(Product).filter(Product.id == seeded["widget"].id).update(
            {Product.quantity_on_hand: Decimal("10"), Product.average_unit_cost: Decimal("20.00")},
            synchronize_session=False,
        )
        db.commit()
    finally:
        db.close()

    order_id = _create(seeded["bom_id"])
    _advance(order_id, ProductionStatus.IN_PROGRESS)
    _advance(order_id, ProductionStatus.COMPLETED)

    db = SessionLocal()
    try:
        steel = db.get(Material, seeded["steel"].id)
        paint = db.get(Material, seeded["paint"].id)
        widget = db.get(Product, seeded["widget"].id)

        assert steel.quantity_on_hand == Decimal("60")
        assert paint.quantity_on_hand == Decimal("15")
        assert widget.quantity_on_hand == Decimal("20")
        # (10 * 20.00 + 220.00) / 20
        assert widget.average_unit_cost == Decimal("21.0000")
    finally:
        db.close()


def test_completion_uses_current_material_cost_and_planned_overhead(widget_bom):
    seeded = widget_bom(1)
    order_id = _create(seeded["bom_id"])

    db = SessionLocal()
    try:
        db.query(Material).filter(Material.id == seeded["steel"].id).update(
            {Material.average_unit_cost: Decimal("3.00")}, synchronize_session=False
        )
        db.query(BomOverhead).filter(BomOverhead.bom_id == seeded["bom_id"]).update(
            {BomOverhead.cost: Decimal("999")}, synchronize_session=False
        )
        db.commit()
    finally:
        db.close()

    _advance(order_id, ProductionStatus.IN_PROGRESS)
    _advance(order_id, ProductionStatus.COMPLETED)

    order = _detail(order_id)
    # 40 * 3.00 + 5 * 10.00
    assert order.actual_material_cost == Decimal("170.00")
    assert order.actual_overhead_cost == Decimal("70.00")
    assert order.journal_voucher.total_debits == Decimal("240.00")


def test_missing_account_mapping_leaves_order_untouched(widget_bom):
    seeded = widget_bom(1)
    order_id = _create(seeded["bom_id"])
    _advance(order_id, ProductionStatus.IN_PROGRESS)

    db = SessionLocal()
    try:
        db.query(Account).filter(Account.company_id == 1, Account.code == "1300").update(
            {Account.system_role: None}, synchronize_session=False
        )
        db.commit()
    finally:
        db.close()

    with pytest.raises(AccountNotConfigured) as exc:
        _advance(order_id, ProductionStatus.COMPLETED)
    assert "INVENTORY_FINISHED_GOODS" in str(exc.value)

    order = _detail(order_id)
    assert order.status == ProductionStatus.IN_PROGRESS.value
    assert order.completion_date is None
    assert order.consumption == []

    db = SessionLocal()
    try:
        assert db.get(Material, seeded["steel"].id).quantity_on_hand == Decimal("100")
    finally:
        db.close()
    assert _voucher_count() == 0


def test_inactive_overhead_account_rolls_back_completion(widget_bom):
    seeded = widget_bom(1)
    order_id = _create(seeded["bom_id"])
    _advance(order_id, ProductionStatus.IN_PROGRESS)

    db = SessionLocal()
    try:
        db.query(Account).filter(Account.company_id == 1, Account.code == "5200").update(
            {Account.is_active: False}, synchronize_session=False
        )
        db.commit()
    finally:
        db.close()

    with pytest.raises(AccountNotFound):
        _advance(order_id, ProductionStatus.COMPLETED)

    assert _detail(order_id).status == ProductionStatus.IN_PROGRESS.value
    assert _voucher_count() == 0


def test_zero_cost_completion_skips_posting(chart_of_accounts, material_factory, product_factory):
    chart_of_accounts(1)
    free = material_factory(1, average_unit_cost="0", quantity_on_hand="10")
    sample = product_factory(1)
    bom_id = create_bom(
        company_id=1,
        actor_id="alice",
        finished_good_id=sample.id,
        bom_code="BOM-SAMPLE",
        components=[BomComponentSpec(material_id=free.id, quantity=Decimal("1"))],
    )

    order_id = _create(bom_id, quantity="2")
    _advance(order_id, ProductionStatus.IN_PROGRESS)
    done = _advance(order_id, ProductionStatus.COMPLETED)

    assert done.journal_voucher_id is None
    order = _detail(order_id)
    assert order.status == ProductionStatus.COMPLETED.value
    assert order.total_production_cost == Decimal("0.00")
    assert len(order.consumption) == 1
    assert _voucher_count() == 0


def test_list_production_orders_filters_by_status_and_tenant(widget_bom):
    seeded = widget_bom(1)
    first = _create(seeded["bom_id"])
    second = _create(seeded["bom_id"], quantity="5")
    _advance(second, ProductionStatus.IN_PROGRESS)

    db = SessionLocal()
    try:
        assert {o.id for o in list_production_orders(db, 1)} == {first, second}
        assert [o.id for o in list_production_orders(db, 1, status=ProductionStatus.IN_PROGRESS)] == [second]
        assert list_production_orders(db, 2) == []
        with pytest.raises(ProductionOrderNotFound):
            get_production_order_detail(db, 2, first)
    finally:
        db.close()
