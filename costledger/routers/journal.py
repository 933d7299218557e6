from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from costledger.core.authorization import Role, require_role
from costledger.database import SessionLocal
from costledger.schemas.journal import (
    JournalEntryCreate,
    JournalEntryCreated,
    VoucherListResponse,
    VoucherResponse,
    VoucherSummary,
)
from costledger.services import journal_posting
from costledger.services.journal_posting import JournalLineInput

router = APIRouter(prefix="/journal", tags=["Journal"])


@router.post("/entries", status_code=201, response_model=JournalEntryCreated)
def create_journal_entry(
    payload: JournalEntryCreate,
    request: Request,
    _role=Depends(require_role(Role.ACCOUNTANT)),
):
    posted = journal_posting.post_journal_entry(
        company_id=int(request.state.company_id),
        actor_id=str(request.state.actor_id),
        source=payload.source,
        narration=payload.narration,
        reference_id=payload.reference_id,
        entry_date=payload.entry_date,
        lines=[
            JournalLineInput(
                side=line.side,
                amount=line.amount,
                account_code=line.account_code,
                role=line.role,
                description=line.description,
                payee_reference=line.payee_reference,
            )
            for line in payload.lines
        ],
    )
    return {
        "voucher_id": posted.voucher_id,
        "voucher_number": posted.voucher_number,
        "entry_date": posted.entry_date,
        "total": posted.total,
    }


@router.get("/entries", response_model=VoucherListResponse)
def list_journal_entries(
    request: Request,
    source: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=1_000_000),
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        rows = journal_posting.list_vouchers(
            db,
            int(request.state.company_id),
            source=source,
            limit=limit,
            offset=offset,
        )
        return VoucherListResponse(
            limit=int(limit),
            offset=int(offset),
            rows=[VoucherSummary.model_validate(r) for r in rows],
        )
    finally:
        db.close()


@router.get("/entries/{voucher_id}", response_model=VoucherResponse)
def get_journal_entry(
    voucher_id: int,
    request: Request,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        voucher = journal_posting.get_voucher(db, int(request.state.company_id), voucher_id)
        if voucher is None:
            raise HTTPException(status_code=404, detail="Journal voucher not found")
        return VoucherResponse.model_validate(voucher)
    finally:
        db.close()
