from __future__ import annotations

from typing import Dict, Iterable, Union

from sqlalchemy.orm import Session

from costledger.core.enums import AccountClass, BalanceSide, SystemRole
from costledger.core.errors import AccountNotConfigured, AccountNotFound
from costledger.models.account import Account

_DEBIT_NORMAL = {
    AccountClass.ASSET,
    AccountClass.EXPENSE,
    AccountClass.COST_OF_GOODS_SOLD,
}

BALANCE_SHEET_CLASSES = frozenset({AccountClass.ASSET, AccountClass.LIABILITY, AccountClass.EQUITY})


def natural_side(account_class: Union[AccountClass, str]) -> BalanceSide:
    if AccountClass(account_class) in _DEBIT_NORMAL:
        return BalanceSide.DEBIT
    return BalanceSide.CREDIT


def resolve(db: Session, company_id: int, role: Union[SystemRole, str]) -> Account:
    """Return the active account mapped to a system role for the company."""
    role = SystemRole(role)
    account = (
        db.query(Account)
        .filter(
            Account.company_id == int(company_id),
            Account.system_role == role.value,
            Account.is_active.is_(True),
        )
        .one_or_none()
    )
    if account is None:
        raise AccountNotConfigured(role.value)
    return account


def resolve_many(db: Session, company_id: int, roles: Iterable[SystemRole]) -> Dict[SystemRole, Account]:
    return {SystemRole(role): resolve(db, company_id, role) for role in roles}


def get_account(db: Session, company_id: int, account_code: str, *, active_only: bool = True) -> Account:
    q = db.query(Account).filter(
        Account.company_id == int(company_id),
        Account.code == str(account_code),
    )
    if active_only:
        q = q.filter(Account.is_active.is_(True))

    account = q.one_or_none()
    if account is None:
        raise AccountNotFound(str(account_code))
    return account
