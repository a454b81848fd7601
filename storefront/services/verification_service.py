import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.config import settings
from storefront.models.verification_code import VerificationCode
from storefront.services.email_service import send_email
from storefront.utils.template import render_template

logger = logging.getLogger(__name__)

CODE_TTL = timedelta(minutes=15)
MAX_CODES_PER_HOUR = 3
MAX_ATTEMPTS = 5


def generate_code() -> str:
    return f"{secrets.randbelow(900000) + 100000}"


def latest_pending_code(session: Session, email: str) -> Optional[VerificationCode]:
    return session.exec(
        select(VerificationCode)
        .where(VerificationCode.email == email, VerificationCode.verified == False)  # noqa: E712
        .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
    ).first()


def issue_code(session: Session, email: str) -> VerificationCode:
    """
    Create a fresh code for the address and email it.

    Earlier unverified codes for the same address stop working because
    only the latest pending code is ever checked.
    """
    email = email.lower()
    now = datetime.utcnow()

    recent = session.exec(
        select(func.count(VerificationCode.id)).where(
            VerificationCode.email == email,
            VerificationCode.created_at >= now - timedelta(hours=1),
        )
    ).one()
    if recent >= MAX_CODES_PER_HOUR:
        raise HTTPException(429, "Too many verification requests. Please try again later.")

    verification = VerificationCode(email=email, code=generate_code(), expires_at=now + CODE_TTL, created_at=now)
    session.add(verification)
    session.commit()
    session.refresh(verification)

    minutes = int(CODE_TTL.total_seconds() // 60)
    html = render_template(
        "user_emails/verification_code.html",
        code=verification.code,
        minutes=minutes,
        store_name=settings.STORE_NAME,
    )
    sent = send_email(
        to=email,
        subject=f"Your {settings.STORE_NAME} verification code",
        html=html,
        text=f"Your verification code is {verification.code}. It expires in {minutes} minutes.",
    )

    if not sent:
        session.delete(verification)
        session.commit()
        raise HTTPException(500, "Failed to send verification email. Please try again.")

    logger.info(f"Verification code sent to {email}")
    return verification


def check_code(session: Session, email: str, code: str) -> VerificationCode:
    verification = latest_pending_code(session, email.lower())
    if not verification:
        raise HTTPException(404, "No verification code found. Please request a new one.")

    if datetime.utcnow() > verification.expires_at:
        session.delete(verification)
        session.commit()
        raise HTTPException(400, "Verification code has expired. Please request a new one.")

    if verification.attempts >= MAX_ATTEMPTS:
        session.delete(verification)
        session.commit()
        raise HTTPException(400, "Too many failed attempts. Please request a new code.")

    if not secrets.compare_digest(verification.code, code):
        verification.attempts += 1
        session.add(verification)
        session.commit()
        raise HTTPException(400, f"Invalid code. {MAX_ATTEMPTS - verification.attempts} attempts remaining.")

    verification.verified = True
    session.add(verification)
    session.commit()

    logger.info(f"Email verified: {email}")
    return verification


def find_verified_code(session: Session, email: str, code: str) -> Optional[VerificationCode]:
    """A verified, unexpired code for the address; used once to authorise a password reset."""
    return session.exec(
        select(VerificationCode).where(
            VerificationCode.email == email.lower(),
            VerificationCode.code == code,
            VerificationCode.verified == True,  # noqa: E712
            VerificationCode.expires_at > datetime.utcnow(),
        )
    ).first()
