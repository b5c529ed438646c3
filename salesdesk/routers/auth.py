import logging

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from salesdesk.database import get_db
from salesdesk.models.users import User, UserRole
from salesdesk.schemas.user import UserCreate, UserResponse, TokenResponse
from salesdesk.core.auth import get_current_user
from salesdesk.core.hashing import hash_password, verify_password
from salesdesk.core.jwt import token_for_user
from salesdesk.core.rate_limiter import limiter

logger = logging.getLogger("app.auth")

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Rejected outright, whatever their length
COMMON_PASSWORDS = frozenset({
    "password",
    "password123",
    "123456",
    "12345678",
    "qwerty123",
    "admin123",
    "changeme",
    "letmein",
})


def password_problem(password: str) -> str | None:
    """Why ``password`` is too weak, or None when it is acceptable."""
    if password.lower() in COMMON_PASSWORDS:
        return "Password is too common. Please choose a stronger password."

    if password.isdigit():
        return "Password cannot be numbers only."

    return None


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=token_for_user(user),
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


# ---------------- REGISTER ----------------
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def register(request: Request, user_data: UserCreate, db: Session = Depends(get_db)):
    problem = password_problem(user_data.password)
    if problem:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=problem)

    email = user_data.email.lower()

    if db.query(User.id).filter(User.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    # Self-registered accounts are always sales agents
    user = User(
        email=email,
        password_hash=hash_password(user_data.password),
        role=UserRole.AGENT.value,
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Same email registered concurrently
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Registration failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unable to create account")

    db.refresh(user)
    logger.info(f"Agent {user.id} registered")

    return _token_response(user)


# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == form_data.username.lower()).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info(f"Failed login for {form_data.username!r}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return _token_response(user)


# ---------------- CURRENT USER ----------------
@router.get("/me", response_model=UserResponse)
def me(current_user=Depends(get_current_user)):
    return current_user


# ---------------- LOGOUT ----------------
# Tokens are stateless; the client discards its copy
@router.post("/logout")
def logout(current_user=Depends(get_current_user)):
    return {"message": "Logged out successfully"}
