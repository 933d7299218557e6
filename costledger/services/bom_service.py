from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from costledger.core.enums import AllocationMethod, BomStatus
from costledger.core.errors import BomNotFound, InvalidBom, ItemNotFound
from costledger.database import unit_of_work
from costledger.models.bom import Bom, BomComponent, BomOperation, BomOverhead
from costledger.models.item import Material, Product
from costledger.services import account_directory
from costledger.services.bom_costing import (
    BatchCostEstimate,
    BomCostInput,
    ComponentCost,
    OverheadCost,
    estimate_batch_cost,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BomComponentSpec:
    material_id: int
    quantity: Decimal
    unit_of_measure: Optional[str] = None


@dataclass(frozen=True)
class BomOverheadSpec:
    name: str
    allocation_method: AllocationMethod
    cost: Decimal
    gl_account_code: str
    cost_category: Optional[str] = None


@dataclass(frozen=True)
class BomOperationSpec:
    sequence: int
    name: str
    notes: Optional[str] = None


def _bom_query(db: Session, company_id: int):
    return (
        db.query(Bom)
        .options(
            selectinload(Bom.components).selectinload(BomComponent.material),
            selectinload(Bom.overheads),
            selectinload(Bom.operations),
        )
        .filter(Bom.company_id == int(company_id))
    )


def get_bom(db: Session, company_id: int, bom_id: int) -> Bom:
    bom = _bom_query(db, company_id).filter(Bom.id == int(bom_id)).one_or_none()
    if bom is None:
        raise BomNotFound(f"BOM {bom_id} not found")
    return bom


def list_boms(
    db: Session,
    company_id: int,
    *,
    finished_good_id: Optional[int] = None,
    status: Optional[BomStatus] = None,
) -> List[Bom]:
    q = db.query(Bom).filter(Bom.company_id == int(company_id))
    if finished_good_id is not None:
        q = q.filter(Bom.finished_good_id == int(finished_good_id))
    if status is not None:
        q = q.filter(Bom.status == BomStatus(status).value)
    return q.order_by(Bom.finished_good_id.asc(), Bom.version.desc()).all()


def active_bom_for(db: Session, company_id: int, finished_good_id: int) -> Optional[Bom]:
    """The BOM new production orders should use: the latest active version."""
    return (
        _bom_query(db, company_id)
        .filter(
            Bom.finished_good_id == int(finished_good_id),
            Bom.status == BomStatus.ACTIVE.value,
        )
        .order_by(Bom.version.desc())
        .first()
    )


def _validate_definition(
    db: Session,
    company_id: int,
    components: Sequence[BomComponentSpec],
    overheads: Sequence[BomOverheadSpec],
    scrap_percentage: Decimal,
    batch_size: Decimal,
) -> None:
    if not components:
        raise InvalidBom("A BOM needs at least one component")
    if not (Decimal("0") <= scrap_percentage <= Decimal("100")):
        raise InvalidBom(f"Scrap percentage must be between 0 and 100, got {scrap_percentage}")
    if batch_size <= 0:
        raise InvalidBom(f"Standard batch size must be positive, got {batch_size}")

    material_ids = {int(c.material_id) for c in components}
    found = {
        row.id
        for row in db.query(Material.id)
        .filter(Material.company_id == int(company_id), Material.id.in_(material_ids))
        .all()
    }
    missing = sorted(material_ids - found)
    if missing:
        raise ItemNotFound(f"Raw materials not found: {missing}")

    for c in components:
        if Decimal(c.quantity) <= 0:
            raise InvalidBom(f"Component quantity for material {c.material_id} must be positive")

    for o in overheads:
        if Decimal(o.cost) < 0:
            raise InvalidBom(f"Overhead {o.name} cost must not be negative")
        account_directory.get_account(db, company_id, o.gl_account_code)


def create_bom(
    *,
    company_id: int,
    actor_id: str,
    finished_good_id: int,
    bom_code: str,
    components: Sequence[BomComponentSpec],
    overheads: Sequence[BomOverheadSpec] = (),
    operations: Sequence[BomOperationSpec] = (),
    version: Optional[int] = None,
    status: BomStatus = BomStatus.ACTIVE,
    batch_size: Decimal = Decimal("1"),
    scrap_percentage: Decimal = Decimal("0"),
    notes: Optional[str] = None,
    db: Optional[Session] = None,
) -> int:
    """
    Store a BOM with its components, overheads and operations atomically.

    Without an explicit version the next version for the finished good is used.
    Creating an active BOM deactivates the older active versions.
    """
    status = BomStatus(status)
    batch_size = Decimal(batch_size)
    scrap_percentage = Decimal(scrap_percentage)

    with unit_of_work(db) as session:
        product = (
            session.query(Product)
            .filter(Product.company_id == int(company_id), Product.id == int(finished_good_id))
            .one_or_none()
        )
        if product is None:
            raise ItemNotFound(f"Finished good {finished_good_id} not found")

        _validate_definition(session, company_id, components, overheads, scrap_percentage, batch_size)

        if version is None:
            current = (
                session.query(func.max(Bom.version))
                .filter(Bom.company_id == int(company_id), Bom.finished_good_id == product.id)
                .scalar()
            )
            version = int(current or 0) + 1

        if status is BomStatus.ACTIVE:
            (
                session.query(Bom)
                .filter(
                    Bom.company_id == int(company_id),
                    Bom.finished_good_id == product.id,
                    Bom.status == BomStatus.ACTIVE.value,
                )
                .update({Bom.status: BomStatus.INACTIVE.value}, synchronize_session=False)
            )

        bom = Bom(
            company_id=int(company_id),
            finished_good_id=product.id,
            bom_code=str(bom_code),
            version=int(version),
            status=status.value,
            batch_size=batch_size,
            scrap_percentage=scrap_percentage,
            notes=notes,
            created_by=str(actor_id),
        )
        bom.components = [
            BomComponent(
                material_id=int(c.material_id),
                quantity=Decimal(c.quantity),
                unit_of_measure=c.unit_of_measure,
            )
            for c in components
        ]
        bom.overheads = [
            BomOverhead(
                name=o.name,
                cost_category=o.cost_category,
                allocation_method=AllocationMethod(o.allocation_method).value,
                cost=Decimal(o.cost),
                gl_account_code=o.gl_account_code,
            )
            for o in overheads
        ]
        bom.operations = [
            BomOperation(sequence=int(op.sequence), name=op.name, notes=op.notes)
            for op in operations
        ]
        session.add(bom)
        session.flush()
        bom_id = int(bom.id)

    logger.info(
        "BOM created",
        extra={
            "company_id": int(company_id),
            "bom_id": bom_id,
            "finished_good_id": int(finished_good_id),
            "version": int(version),
            "status": status.value,
        },
    )
    return bom_id


def bom_cost_input(bom: Bom) -> BomCostInput:
    """Cost inputs at the materials' current average unit cost."""
    return BomCostInput(
        components=tuple(
            ComponentCost(
                quantity=Decimal(c.quantity),
                average_unit_cost=Decimal(c.material.average_unit_cost),
                material_id=c.material_id,
            )
            for c in bom.components
        ),
        overheads=tuple(
            OverheadCost(
                name=o.name,
                allocation_method=AllocationMethod(o.allocation_method),
                cost=Decimal(o.cost),
            )
            for o in bom.overheads
        ),
        scrap_percentage=Decimal(bom.scrap_percentage),
    )


def estimate_bom_cost(
    db: Session,
    company_id: int,
    bom_id: int,
    batch_quantity: Optional[Decimal] = None,
) -> BatchCostEstimate:
    bom = get_bom(db, company_id, bom_id)
    if batch_quantity is None:
        batch_quantity = Decimal(bom.batch_size)
    return estimate_batch_cost(bom_cost_input(bom), batch_quantity)
