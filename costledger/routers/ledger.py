from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request

from costledger.core.authorization import Role, require_role
from costledger.core.enums import AccountClass
from costledger.database import SessionLocal
from costledger.schemas.ledger import (
    AccountActivityResponse,
    AccountBalancesResponse,
    IncomeStatementResponse,
    TrialBalanceResponse,
)
from costledger.services.ledger_query import account_activity, account_balances, income_statement, trial_balance

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("/accounts/{account_code}/activity", response_model=AccountActivityResponse)
def get_account_activity(
    account_code: str,
    request: Request,
    from_date: date,
    to_date: date,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        return account_activity(
            company_id=int(request.state.company_id),
            account_code=account_code,
            from_date=from_date,
            to_date=to_date,
            db=db,
        )
    finally:
        db.close()


@router.get("/trial-balance", response_model=TrialBalanceResponse)
def get_trial_balance(
    request: Request,
    from_date: date,
    to_date: date,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        return trial_balance(
            company_id=int(request.state.company_id),
            from_date=from_date,
            to_date=to_date,
            db=db,
        )
    finally:
        db.close()


@router.get("/account-balances", response_model=AccountBalancesResponse)
def get_account_balances(
    request: Request,
    as_of: Optional[date] = None,
    account_class: Optional[AccountClass] = None,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        return account_balances(
            company_id=int(request.state.company_id),
            as_of=as_of or date.today(),
            account_class=account_class,
            db=db,
        )
    finally:
        db.close()


@router.get("/income-statement", response_model=IncomeStatementResponse)
def get_income_statement(
    request: Request,
    from_date: date,
    to_date: date,
    _role=Depends(require_role(Role.VIEWER)),
):
    db = SessionLocal()
    try:
        return income_statement(
            company_id=int(request.state.company_id),
            from_date=from_date,
            to_date=to_date,
            db=db,
        )
    finally:
        db.close()
