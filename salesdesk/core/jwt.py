# salesdesk/core/jwt.py

from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from salesdesk.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(claims: dict, expires_delta: timedelta | None = None) -> str:
    """Sign ``claims`` as an access token with issue and expiry times."""
    issued_at = datetime.now(timezone.utc)

    payload = dict(claims)
    payload["iat"] = issued_at
    payload["exp"] = issued_at + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload["type"] = ACCESS_TOKEN_TYPE

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for_user(user) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def decode_access_token(token: str) -> dict | None:
    """Claims of a valid access token, or None for anything else.

    Expired or tampered tokens, tokens of another type and tokens
    without a subject are all rejected the same way.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        return None

    return payload
