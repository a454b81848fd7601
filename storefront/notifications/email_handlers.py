from storefront.services.email_service import send_email
from storefront.utils.template import render_template
from storefront.config import settings


def send_user_email(template, subject, user, **ctx):
    html = render_template(template, user=user, store_name=settings.STORE_NAME, **ctx)
    return send_email(to=user.email, subject=subject, html=html)


def send_admin_email(template, subject, **ctx):
    if not settings.ADMIN_EMAIL:
        return False
    html = render_template(template, store_name=settings.STORE_NAME, **ctx)
    return send_email(to=settings.ADMIN_EMAIL, subject=subject, html=html)
