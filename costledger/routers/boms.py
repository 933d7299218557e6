from dataclasses import asdict
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from costledger.core.authorization import Role, require_role
from costledger.core.enums import BomStatus
from costledger.database import SessionLocal
from costledger.schemas.bom import (
    BomCostEstimateResponse,
    BomCreate,
    BomCreated,
    BomResponse,
    BomSummary,
)
from costledger.services import bom_service
from costledger.services.bom_service import BomComponentSpec, BomOperationSpec, BomOverheadSpec

router = APIRouter(prefix="/boms", tags=["BOM"])


@router.post("", status_code=201, response_model=BomCreated)
def create_bom(
    payload: BomCreate,
    request: Request,
    _role=Depends(require_role(Role.ACCOUNTANT)),
):
    company_id = int(request.state.company_id)
    bom_id = bom_service.create_bom(
        company_id=company_id,
        actor_id=str(request.state.actor_id),
        finished_good_id=payload.finished_good_id,
        bom_code=payload.bom_code,
        version=payload.version,
        status=payload.status,
        batch_size=payload.batch_size,
        scrap_percentage=payload.scrap_percentage,
        notes=payload.notes,
        components=[BomComponentSpec(**c.model_dump()) for c in payload.components],
        overheads=[BomOverheadSpec(**o.model_dump()) for o in payload.overheads],
        operations=[BomOperationSpec(**op.model_dump()) for op in payload.operations],
    )

    db = SessionLocal()
    try:
        bom = bom_service.get_bom(db, company_id, bom_id)
        return {"bom_id": bom.id, "version": bom.version}
    finally:
        db.close()


@router.get("", response_model=list[BomSummary])
def list_boms(
    request: Request,
    finished_good_id: Optional[int] = None,
    status: Optional[BomStatus] = None,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        rows = bom_service.list_boms(
            db,
            int(request.state.company_id),
            finished_good_id=finished_good_id,
            status=status,
        )
        return [BomSummary.model_validate(r) for r in rows]
    finally:
        db.close()


@router.get("/{bom_id}", response_model=BomResponse)
def get_bom(
    bom_id: int,
    request: Request,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        return BomResponse.model_validate(bom_service.get_bom(db, int(request.state.company_id), bom_id))
    finally:
        db.close()


@router.get("/{bom_id}/estimate", response_model=BomCostEstimateResponse)
def estimate_bom(
    bom_id: int,
    request: Request,
    batch_quantity: Optional[Decimal] = Query(None),
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        estimate = bom_service.estimate_bom_cost(
            db,
            int(request.state.company_id),
            bom_id,
            batch_quantity=batch_quantity,
        )
        return {"bom_id": int(bom_id), **asdict(estimate)}
    finally:
        db.close()
