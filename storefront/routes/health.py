import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from storefront.config import settings
from storefront.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        database = "failed"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "database": database,
        "stripe_configured": bool(settings.STRIPE_SECRET_KEY),
        "webhook_verified": bool(settings.STRIPE_WEBHOOK_SECRET),
        "email_configured": bool(settings.BREVO_API_KEY),
        "timestamp": datetime.utcnow().isoformat(),
    }
