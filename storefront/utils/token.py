from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

REFRESH_TOKEN_TYPE = "refresh"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    claims["exp"] = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def create_user_token(user: User) -> str:
    return create_access_token({"user_id": user.id, "role": user.role})


def create_refresh_token(user: User) -> str:
    return create_access_token(
        {"user_id": user.id, "type": REFRESH_TOKEN_TYPE},
        expires_delta=timedelta(days=settings.refresh_token_expire_days),
    )


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None


def user_from_token(session: Session, token: Optional[str]) -> Optional[User]:
    """Active user named by a bearer token, or None. Role is always re-read from the database."""
    payload = decode_access_token(token) if token else None
    if not payload or payload.get("user_id") is None or payload.get("type") == REFRESH_TOKEN_TYPE:
        return None

    try:
        user = session.get(User, int(payload["user_id"]))
    except (TypeError, ValueError):
        return None

    if user is None or not user.is_active:
        return None
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> User:
    payload = decode_access_token(token)
    # refresh tokens only buy new access tokens
    if payload is None or payload.get("user_id") is None or payload.get("type") == REFRESH_TOKEN_TYPE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = session.get(User, int(payload["user_id"]))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is disabled")

    return user
