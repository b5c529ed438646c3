# =========================================================
# INTERNAL ADMIN BOOTSTRAP
#
# The first admin cannot be created through /auth/register, which only
# makes agents. This endpoint promotes an existing account when called
# with INTERNAL_ADMIN_SECRET; it is disabled while that is unset.
# =========================================================

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from salesdesk.database import get_db
from salesdesk.models.users import User, UserRole
from salesdesk.core.config import settings

logger = logging.getLogger("app.internal")

router = APIRouter(prefix="/internal", tags=["Internal"])


def _secret_matches(secret: str) -> bool:
    expected = settings.INTERNAL_ADMIN_SECRET
    if not expected:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8"))


@router.post("/promote-admin")
def promote_admin(
    email: str,
    secret: str,
    db: Session = Depends(get_db),
):
    if not _secret_matches(secret):
        logger.warning(f"Rejected admin promotion attempt for {email!r}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")

    user = db.query(User).filter(User.email == email.lower()).first()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user.role = UserRole.ADMIN.value
    db.commit()

    logger.info(f"User {user.id} promoted to admin")

    return {"message": f"{user.email} promoted to admin"}
