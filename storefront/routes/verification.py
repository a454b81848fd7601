from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.schemas.verification_schemas import VerificationCheck, VerificationRequest
from storefront.services.verification_service import check_code, issue_code

router = APIRouter()


@router.post("/send")
def send_verification_code(payload: VerificationRequest, session: Session = Depends(get_session)):
    verification = issue_code(session, payload.email)
    return {
        "message": "Verification code sent to your email",
        "expires_at": verification.expires_at,
    }


# same limits as /send; kept as its own route for the resend button
@router.post("/resend")
def resend_verification_code(payload: VerificationRequest, session: Session = Depends(get_session)):
    return send_verification_code(payload, session)


@router.post("/verify")
def verify_code(payload: VerificationCheck, session: Session = Depends(get_session)):
    check_code(session, payload.email, payload.code)
    return {"message": "Email verified successfully"}
