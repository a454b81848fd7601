import logging
import re
from functools import lru_cache
from typing import List, Union

import requests

from storefront.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


@lru_cache(maxsize=1)
def get_http_session() -> requests.Session:
    """Process-wide HTTP session to Brevo, created on first send and reused."""
    http = requests.Session()
    http.headers.update({"Content-Type": "application/json"})
    return http


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
    text: str | None = None,
) -> bool:
    """
    Send email via Brevo.

    Returns False instead of raising when the message could not be sent.
    """

    # Normalize emails into a list
    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not settings.BREVO_API_KEY:
        logger.warning(f"BREVO_API_KEY not configured, skipping email '{subject}'")
        return False

    payload = {
        "sender": {
            "email": settings.MAIL_FROM,
            "name": settings.STORE_NAME,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }
    if text:
        payload["textContent"] = text

    try:
        response = get_http_session().post(
            BREVO_API_URL,
            json=payload,
            headers={"api-key": settings.BREVO_API_KEY},
            timeout=10,
        )
    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False

    if response.status_code >= 400:
        logger.error(
            f"Brevo email failed ({response.status_code}): {response.text}"
        )
        return False

    logger.info(f"Brevo email sent to {valid_emails}")
    return True
