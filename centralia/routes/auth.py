import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import config, email_service
from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    ResetTokenStatus,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from ..security_utils import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_REQUESTED_MESSAGE = "If the email exists, a reset link has been sent"


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(data: UserCreate, db: Session = Depends(get_db)):
    """Create a client or business-owner account and sign it in"""
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=409, detail="Email is already registered")

    user = User(
        name=data.name.strip(),
        email=data.email,
        password_hash=hash_password(data.password),
        phone=data.phone,
        role=data.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email is already registered") from None
    db.refresh(user)

    logger.info(f"New {user.role} account registered: {user.id}")
    return TokenResponse(
        access_token=create_access_token(user.id, user.role), user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"Failed login attempt for {data.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is deactivated")

    return TokenResponse(
        access_token=create_access_token(user.id, user.role), user=UserResponse.model_validate(user)
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update current user profile"""
    if data.name is not None:
        current_user.name = data.name.strip()
    if data.phone is not None:
        current_user.phone = data.phone

    db.commit()
    db.refresh(current_user)
    return current_user


# ==================== Password management ====================


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _user_for_reset_token(db: Session, token: str) -> Optional[User]:
    """User holding this unexpired reset token, if any"""
    return (
        db.query(User)
        .filter(
            User.reset_password_token == hash_reset_token(token),
            User.reset_password_expires > _utcnow(),
        )
        .first()
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not verify_password(data.current_password, current_user.password_hash):
        logger.warning(f"Password change with wrong current password for user {current_user.id}")
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password_hash = hash_password(data.new_password)
    db.commit()

    logger.info(f"Password changed for user {current_user.id}")
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
async def request_password_reset(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Email a reset link; the answer is the same whether or not the account exists"""
    user = db.query(User).filter(User.email == data.email).first()
    if not user:
        logger.info(f"Password reset requested for unknown email {data.email}")
        return MessageResponse(message=RESET_REQUESTED_MESSAGE)

    token, token_hash = generate_reset_token()
    user.reset_password_token = token_hash
    user.reset_password_expires = _utcnow() + timedelta(minutes=config.PASSWORD_RESET_EXPIRE_MINUTES)
    db.commit()

    try:
        await email_service.send_password_reset_email(
            to=user.email,
            name=user.name,
            reset_link=f"{config.FRONTEND_URL}/reset-password/{token}",
        )
    except Exception as e:
        logger.error(f"Failed to send password reset email to user {user.id}: {e}")
        user.reset_password_token = None
        user.reset_password_expires = None
        db.commit()
        raise HTTPException(status_code=503, detail="Failed to send reset email") from e

    logger.info(f"Password reset link sent to user {user.id}")
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.get("/reset-password/{token}", response_model=ResetTokenStatus)
async def validate_reset_token(token: str, db: Session = Depends(get_db)):
    user = _user_for_reset_token(db, token)
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    return ResetTokenStatus(name=user.name, email=user.email)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    user = _user_for_reset_token(db, data.token)
    if not user:
        logger.warning("Password reset attempted with an invalid or expired token")
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.password_hash = hash_password(data.new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    db.commit()

    logger.info(f"Password reset for user {user.id}")
    return MessageResponse(message="Password reset successfully")
