from datetime import datetime, timedelta, timezone
import os
from typing import Optional

import jwt

JWT_ALGORITHM = "HS256"
JWT_ISSUER = "costledger"
DEFAULT_TOKEN_TTL_HOURS = 8


def _signing_key() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters")
    return secret


def _token_ttl() -> timedelta:
    hours = int(os.getenv("JWT_TTL_HOURS", str(DEFAULT_TOKEN_TTL_HOURS)))
    return timedelta(hours=hours)


def create_access_token(user_id: str, company_id: int, role: Optional[str] = None) -> str:
    """Token for one actor acting inside one company. Role defaults to ACCOUNTANT when omitted."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "iss": JWT_ISSUER,
        "sub": str(user_id),
        "company_id": int(company_id),
        "iat": issued_at,
        "exp": issued_at + _token_ttl(),
    }
    if role:
        claims["role"] = str(role).upper()
    return jwt.encode(claims, _signing_key(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        claims = jwt.decode(
            token,
            _signing_key(),
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid or expired token") from exc

    if "company_id" not in claims:
        raise ValueError("Token is not bound to a company")

    return claims
