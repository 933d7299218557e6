from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from costledger.core.authorization import Role, require_role
from costledger.core.enums import ProductionStatus
from costledger.database import SessionLocal
from costledger.schemas.production import (
    ProductionOrderCreate,
    ProductionOrderCreated,
    ProductionOrderDetail,
    ProductionOrderListResponse,
    ProductionOrderSummary,
    StatusUpdate,
    StatusUpdateResponse,
)
from costledger.services import production_orders

router = APIRouter(prefix="/production", tags=["Production"])


@router.post("/orders", status_code=201, response_model=ProductionOrderCreated)
def create_production_order(
    payload: ProductionOrderCreate,
    request: Request,
    _role=Depends(require_role(Role.ACCOUNTANT)),
):
    order_id = production_orders.create_production_order(
        company_id=int(request.state.company_id),
        actor_id=str(request.state.actor_id),
        bom_id=payload.bom_id,
        quantity=payload.quantity,
        notes=payload.notes,
    )
    return {"production_order_id": order_id}


@router.get("/orders", response_model=ProductionOrderListResponse)
def list_production_orders(
    request: Request,
    status: Optional[ProductionStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=1_000_000),
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        rows = production_orders.list_production_orders(
            db,
            int(request.state.company_id),
            status=status,
            limit=limit,
            offset=offset,
        )
        return ProductionOrderListResponse(
            limit=int(limit),
            offset=int(offset),
            rows=[ProductionOrderSummary.model_validate(r) for r in rows],
        )
    finally:
        db.close()


@router.get("/orders/{order_id}", response_model=ProductionOrderDetail)
def get_production_order(
    order_id: int,
    request: Request,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        order = production_orders.get_production_order_detail(db, int(request.state.company_id), order_id)
        return ProductionOrderDetail.model_validate(order)
    finally:
        db.close()


@router.put("/orders/{order_id}/status", response_model=StatusUpdateResponse)
def update_production_order_status(
    order_id: int,
    payload: StatusUpdate,
    request: Request,
    _role=Depends(require_role(Role.ACCOUNTANT)),
):
    change = production_orders.advance_production_order(
        company_id=int(request.state.company_id),
        order_id=order_id,
        target_status=payload.status,
        actor_id=str(request.state.actor_id),
    )
    return {
        "message": change.message,
        "production_order_id": change.production_order_id,
        "status": change.status,
        "journal_voucher_id": change.journal_voucher_id,
        "journal_voucher_number": change.journal_voucher_number,
    }
