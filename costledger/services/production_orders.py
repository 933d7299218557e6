from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, List, Optional, Union

from sqlalchemy.orm import Session, selectinload

from costledger.core.enums import BalanceSide, BomStatus, ProductionStatus, SystemRole
from costledger.core.errors import InvalidBatchSize, InvalidBom, InvalidTransition, LedgerError, ProductionOrderNotFound
from costledger.database import unit_of_work
from costledger.models.bom import BomComponent
from costledger.models.item import Material, Product
from costledger.models.journal import JournalVoucher
from costledger.models.production import (
    ProductionOrder,
    ProductionOrderConsumption,
    ProductionOrderCost,
)
from costledger.services import account_directory
from costledger.services.bom_costing import (
    material_unit_cost,
    planned_overhead_amount,
    require_positive_quantity,
)
from costledger.services.bom_service import bom_cost_input, get_bom
from costledger.services.journal_posting import JournalLineInput, post_journal_entry, to_money

logger = logging.getLogger(__name__)

PRODUCTION_SOURCE = "Production"
MATERIAL_COST_TYPE = "material"

FOURPLACES = Decimal("0.0001")

_TRANSITIONS: Dict[ProductionStatus, FrozenSet[ProductionStatus]] = {
    ProductionStatus.PENDING: frozenset({ProductionStatus.IN_PROGRESS, ProductionStatus.CANCELLED}),
    ProductionStatus.IN_PROGRESS: frozenset({ProductionStatus.COMPLETED, ProductionStatus.CANCELLED}),
    ProductionStatus.COMPLETED: frozenset(),
    ProductionStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class StatusChange:
    production_order_id: int
    previous_status: ProductionStatus
    status: ProductionStatus
    journal_voucher_id: Optional[int] = None
    journal_voucher_number: Optional[str] = None

    @property
    def message(self) -> str:
        return f"Order status updated to {self.status.value}"


def can_transition(current: Union[ProductionStatus, str], target: Union[ProductionStatus, str]) -> bool:
    return ProductionStatus(target) in _TRANSITIONS[ProductionStatus(current)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _overhead_cost_type(overhead_name: str) -> str:
    return "direct" if "labor" in overhead_name.lower() else "misc"


def _order_quantity(quantity) -> Decimal:
    # stored as Numeric(18,4); plan costs on the value that will be persisted
    q = require_positive_quantity(quantity).quantize(FOURPLACES, rounding=ROUND_HALF_UP)
    if q <= 0:
        raise InvalidBatchSize(f"Production quantity {quantity} rounds to zero at 4 decimal places")
    return q


def create_production_order(
    *,
    company_id: int,
    actor_id: str,
    bom_id: int,
    quantity: Decimal,
    notes: Optional[str] = None,
    db: Optional[Session] = None,
) -> int:
    """
    Insert a Pending order and snapshot its planned costs.

    One cost row per BOM overhead plus one aggregate material row. The snapshot
    is informational; nothing is posted to the ledger until completion.
    """
    q = _order_quantity(quantity)

    with unit_of_work(db) as session:
        bom = get_bom(session, company_id, bom_id)
        if bom.status != BomStatus.ACTIVE.value:
            raise InvalidBom(f"BOM {bom.id} version {bom.version} is inactive; new orders use the active version")

        cost_input = bom_cost_input(bom)
        material_unit = material_unit_cost(cost_input.components)
        planned_material = to_money(material_unit * q)

        order = ProductionOrder(
            company_id=int(company_id),
            product_id=bom.finished_good_id,
            bom_id=bom.id,
            quantity=q,
            status=ProductionStatus.PENDING.value,
            notes=notes,
            created_by=str(actor_id),
        )

        planned_overhead = Decimal("0.00")
        costs: List[ProductionOrderCost] = []
        for row, overhead in zip(bom.overheads, cost_input.overheads):
            amount = to_money(planned_overhead_amount(overhead, material_unit, q))
            planned_overhead += amount
            costs.append(
                ProductionOrderCost(
                    bom_overhead_id=row.id,
                    cost_type=_overhead_cost_type(row.name),
                    description=f"Planned: {row.name}",
                    amount=amount,
                    gl_account_code=row.gl_account_code,
                )
            )
        costs.append(
            ProductionOrderCost(
                cost_type=MATERIAL_COST_TYPE,
                description="Planned: material",
                amount=planned_material,
            )
        )

        order.costs = costs
        order.planned_material_cost = planned_material
        order.planned_overhead_cost = planned_overhead

        session.add(order)
        session.flush()
        order_id = int(order.id)

    logger.info(
        "Production order created",
        extra={
            "company_id": int(company_id),
            "production_order_id": order_id,
            "bom_id": int(bom_id),
            "quantity": q,
            "planned_material_cost": planned_material,
            "planned_overhead_cost": planned_overhead,
        },
    )
    return order_id


def _lock_order(session: Session, company_id: int, order_id: int) -> ProductionOrder:
    order = (
        session.query(ProductionOrder)
        .filter(
            ProductionOrder.company_id == int(company_id),
            ProductionOrder.id == int(order_id),
        )
        .populate_existing()
        .with_for_update()
        .one_or_none()
    )
    if order is None:
        raise ProductionOrderNotFound(f"Production order {order_id} not found")
    return order


def _complete(session: Session, order: ProductionOrder, actor_id: str) -> Optional[JournalVoucher]:
    """
    Record actual consumption and capitalize the finished goods.

    Material is costed at each material's current average unit cost; overhead
    uses the planned snapshot taken at order creation.
    """
    company_id = int(order.company_id)
    raw_material_account = account_directory.resolve(session, company_id, SystemRole.INVENTORY_RAW_MATERIAL)
    finished_goods_account = account_directory.resolve(session, company_id, SystemRole.INVENTORY_FINISHED_GOODS)

    order_qty = Decimal(order.quantity)
    credit_lines: List[JournalLineInput] = []

    components = (
        session.query(BomComponent)
        .filter(BomComponent.bom_id == order.bom_id)
        .order_by(BomComponent.material_id.asc(), BomComponent.id.asc())
        .all()
    )

    total_material = Decimal("0.00")
    for component in components:
        # row lock keeps the average cost and the stock decrement consistent
        material = (
            session.query(Material)
            .filter(Material.id == component.material_id)
            .populate_existing()
            .with_for_update()
            .one()
        )
        consumed_qty = Decimal(component.quantity) * order_qty
        unit_cost = Decimal(material.average_unit_cost)
        cost = to_money(consumed_qty * unit_cost)

        session.add(
            ProductionOrderConsumption(
                production_order_id=order.id,
                material_id=material.id,
                quantity_consumed=consumed_qty,
                unit_cost_at_consumption=unit_cost,
                total_cost=cost,
            )
        )
        material.quantity_on_hand = Decimal(material.quantity_on_hand) - consumed_qty
        total_material += cost

        if cost > 0:
            credit_lines.append(
                JournalLineInput(
                    side=BalanceSide.CREDIT,
                    amount=cost,
                    account_code=raw_material_account.code,
                    description=f"Material consumption for production order #{order.id}: {material.name}",
                )
            )

    total_overhead = Decimal("0.00")
    for planned in order.costs:
        if planned.cost_type == MATERIAL_COST_TYPE:
            continue
        amount = Decimal(planned.amount)
        total_overhead += amount
        if amount > 0:
            credit_lines.append(
                JournalLineInput(
                    side=BalanceSide.CREDIT,
                    amount=amount,
                    account_code=planned.gl_account_code,
                    description=f"Applied overhead: {planned.description.removeprefix('Planned: ')} "
                    f"for production order #{order.id}",
                )
            )

    total = total_material + total_overhead

    voucher = None
    if total > 0:
        lines = [
            JournalLineInput(
                side=BalanceSide.DEBIT,
                amount=total,
                account_code=finished_goods_account.code,
                description=f"Finished goods from production order #{order.id}",
            )
        ] + credit_lines
        posted = post_journal_entry(
            company_id=company_id,
            actor_id=actor_id,
            source=PRODUCTION_SOURCE,
            narration=f"Cost of goods manufactured for production order #{order.id}",
            reference_id=str(order.id),
            lines=lines,
            db=session,
        )
        voucher = session.get(JournalVoucher, posted.voucher_id)

    product = (
        session.query(Product)
        .filter(Product.id == order.product_id)
        .populate_existing()
        .with_for_update()
        .one()
    )
    old_qty = Decimal(product.quantity_on_hand)
    old_avg = Decimal(product.average_unit_cost)
    new_qty = old_qty + order_qty
    if new_qty > 0:
        product.average_unit_cost = ((old_qty * old_avg + total) / new_qty).quantize(FOURPLACES, rounding=ROUND_HALF_UP)
    product.quantity_on_hand = new_qty

    order.actual_material_cost = total_material
    order.actual_overhead_cost = total_overhead
    order.total_production_cost = total
    order.journal_voucher_id = None if voucher is None else voucher.id
    order.completion_date = _utcnow()

    return voucher


def advance_production_order(
    *,
    company_id: int,
    order_id: int,
    target_status: Union[ProductionStatus, str],
    actor_id: str,
    db: Optional[Session] = None,
) -> StatusChange:
    """
    Move an order along Pending -> InProgress -> Completed, or to Cancelled.

    The order row is locked for the whole unit of work, so of two concurrent
    callers only the first observes the legal transition; the second sees the
    new status and fails with InvalidTransition. Completion (consumption rows,
    stock updates, journal voucher) commits or rolls back with the status.
    """
    target = ProductionStatus(target_status)

    try:
        with unit_of_work(db) as session:
            order = _lock_order(session, company_id, order_id)
            current = ProductionStatus(order.status)

            if not can_transition(current, target):
                raise InvalidTransition(
                    f"Production order {order.id} cannot move from {current.value} to {target.value}"
                )

            voucher = None
            if target is ProductionStatus.COMPLETED:
                voucher = _complete(session, order, actor_id)

            order.status = target.value
            session.flush()

            change = StatusChange(
                production_order_id=int(order.id),
                previous_status=current,
                status=target,
                journal_voucher_id=None if voucher is None else int(voucher.id),
                journal_voucher_number=None if voucher is None else voucher.voucher_number,
            )
    except LedgerError as exc:
        logger.warning(
            "Production order status change rejected",
            extra={
                "company_id": int(company_id),
                "production_order_id": int(order_id),
                "target_status": target.value,
                "reason": str(exc),
            },
        )
        raise

    logger.info(
        "Production order status changed",
        extra={
            "company_id": int(company_id),
            "production_order_id": change.production_order_id,
            "previous_status": change.previous_status.value,
            "status": change.status.value,
            "journal_voucher_id": change.journal_voucher_id,
        },
    )
    return change


def get_production_order_detail(db: Session, company_id: int, order_id: int) -> ProductionOrder:
    order = (
        db.query(ProductionOrder)
        .options(
            selectinload(ProductionOrder.costs),
            selectinload(ProductionOrder.consumption).selectinload(ProductionOrderConsumption.material),
            selectinload(ProductionOrder.journal_voucher).selectinload(JournalVoucher.lines),
            selectinload(ProductionOrder.product),
            selectinload(ProductionOrder.bom),
        )
        .filter(
            ProductionOrder.company_id == int(company_id),
            ProductionOrder.id == int(order_id),
        )
        .one_or_none()
    )
    if order is None:
        raise ProductionOrderNotFound(f"Production order {order_id} not found")
    return order


def list_production_orders(
    db: Session,
    company_id: int,
    *,
    status: Optional[ProductionStatus] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[ProductionOrder]:
    q = db.query(ProductionOrder).filter(ProductionOrder.company_id == int(company_id))
    if status is not None:
        q = q.filter(ProductionOrder.status == ProductionStatus(status).value)

    return (
        q.order_by(ProductionOrder.creation_date.desc(), ProductionOrder.id.desc())
        .limit(int(limit))
        .offset(int(offset))
        .all()
    )
