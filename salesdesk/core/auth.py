# salesdesk/core/auth.py

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from salesdesk.database import get_db
from salesdesk.models.users import User
from salesdesk.core.jwt import decode_access_token
from salesdesk.core.oauth2 import oauth2_scheme


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_access_token(token)

    if payload is None:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except ValueError:
        raise _unauthorized("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()

    # Token outlived its account
    if user is None:
        raise _unauthorized("User not found")

    return user


def get_admin_user(current_user: User = Depends(get_current_user)) -> User:
    # The stored role decides, so a demotion takes effect before the token expires
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )

    return current_user
