import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.user_schemas import PasswordReset, RefreshTokenRequest, Token, UserLogin, UserRegister
from storefront.services.verification_service import find_verified_code
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import (
    REFRESH_TOKEN_TYPE,
    create_refresh_token,
    create_user_token,
    decode_access_token,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- AUTH ROUTES --------

@router.post("/register", status_code=201)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    email = payload.email.lower()
    existing_user = session.exec(select(User).where(User.email == email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        **payload.model_dump(exclude={"email", "password", "billing_address", "dispatching_address"}),
        email=email,
        password=hash_password(payload.password),
        billing_address=payload.billing_address.model_dump() if payload.billing_address else None,
        dispatching_address=payload.dispatching_address.model_dump() if payload.dispatching_address else None,
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"User registered: {user.email}")

    return {
        "message": "Registration successful.",
        "user_id": user.id,
        "email": user.email,
        "role": user.role,
    }


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.is_active:
        raise HTTPException(403, "User account is disabled")

    user.last_login = datetime.utcnow()
    session.add(user)
    session.commit()

    return Token(
        access_token=create_user_token(user),
        refresh_token=create_refresh_token(user),
        token_type="bearer",
    )


@router.post("/logout")
def logout():
    return {"message": "Logout successful"}


@router.post("/refresh-token", response_model=Token)
def refresh_access_token(payload: RefreshTokenRequest, session: Session = Depends(get_session)):
    claims = decode_access_token(payload.refresh_token)
    if claims is None:
        raise HTTPException(401, "Invalid or expired token")

    if claims.get("type") != REFRESH_TOKEN_TYPE:
        raise HTTPException(400, "Invalid refresh token")

    user = session.get(User, claims.get("user_id"))
    if not user or not user.is_active:
        raise HTTPException(401, "User not found or disabled")

    return Token(access_token=create_user_token(user), token_type="bearer")


@router.post("/reset-password")
def reset_password(payload: PasswordReset, session: Session = Depends(get_session)):
    verification = find_verified_code(session, payload.email, payload.code)
    if not verification:
        raise HTTPException(400, "Invalid or expired verification code. Please verify email first.")

    user = session.exec(select(User).where(User.email == payload.email.lower())).first()
    if not user:
        raise HTTPException(404, "User not found")

    user.password = hash_password(payload.new_password)
    user.updated_at = datetime.utcnow()

    session.add(user)
    # one reset per verified code
    session.delete(verification)
    session.commit()

    logger.info(f"Password reset for {user.email}")

    return {"message": "Password reset successfully"}
