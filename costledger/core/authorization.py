from enum import Enum

from fastapi import Depends, HTTPException, Request

from costledger.deps.auth import Caller, require_auth


class Role(Enum):
    ADMIN = "ADMIN"
    ACCOUNTANT = "ACCOUNTANT"
    VIEWER = "VIEWER"


_RANK = {
    Role.VIEWER: 1,
    Role.ACCOUNTANT: 2,
    Role.ADMIN: 3,
}


def require_role(role: Role):
    def dependency(request: Request, _caller: Caller = Depends(require_auth)):
        claim_role = request.state.claims.get("role")
        if not claim_role:
            # tokens issued without a role claim act as accountants
            claim_role = Role.ACCOUNTANT.value

        try:
            user_role = Role(str(claim_role).upper())
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        if _RANK[user_role] < _RANK[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        request.state.role = user_role.value
        return user_role

    return dependency
