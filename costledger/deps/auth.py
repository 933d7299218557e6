from typing import NamedTuple

from fastapi import HTTPException, Request

from costledger.services.auth_service import verify_token


class Caller(NamedTuple):
    actor_id: str
    company_id: int


def _bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid Authorization header")

    return token.strip()


def _requested_company(request: Request) -> int:
    raw = request.headers.get("X-Company-Id")
    if raw is None:
        raise HTTPException(status_code=403, detail="Missing X-Company-Id header")
    try:
        return int(raw)
    except ValueError as exc:
        raise HTTPException(status_code=403, detail="Invalid X-Company-Id header") from exc


def require_auth(request: Request) -> Caller:
    """Authenticate the caller and pin the request to the one company its token is bound to."""
    try:
        claims = verify_token(_bearer_token(request))
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    caller = Caller(actor_id=str(claims["sub"]), company_id=int(claims["company_id"]))

    if _requested_company(request) != caller.company_id:
        raise HTTPException(status_code=403, detail="Company mismatch")

    request.state.actor_id = caller.actor_id
    request.state.company_id = caller.company_id
    request.state.claims = claims

    return caller
