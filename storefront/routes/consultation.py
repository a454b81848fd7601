import logging

from fastapi import APIRouter, HTTPException

from storefront.config import settings
from storefront.schemas.consultation_schemas import ConsultationRequest
from storefront.services.email_service import send_email
from storefront.utils.template import render_template

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/request")
def submit_consultation_request(payload: ConsultationRequest):
    html = render_template("admin_emails/consultation_request.html", request=payload)

    sent = send_email(
        to=settings.ADMIN_EMAIL,
        subject=f"New Expert Consultation Request: {payload.consultation_type} - {payload.name}",
        html=html,
    )
    if not sent:
        logger.error(f"Consultation request from {payload.email} could not be delivered")
        raise HTTPException(500, "Failed to submit request")

    logger.info(f"Consultation request from {payload.email} ({payload.consultation_type})")
    return {"message": "Consultation request submitted successfully"}
