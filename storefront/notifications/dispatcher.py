import logging

from storefront.notifications.rules import NOTIFICATION_RULES
from storefront.notifications.channels import Channel
from storefront.notifications.email_handlers import send_user_email, send_admin_email
from storefront.notifications.events import OrderEvent
from storefront.services.realtime import ADMIN_ROOM, manager, user_room

logger = logging.getLogger(__name__)


def dispatch_order_event(
    *,
    event: OrderEvent,
    order,
    user,
    extra: dict | None = None,
    notify_user: bool = True,
    notify_admin: bool = True,
):
    """
    Central notification dispatcher.

    Handles:
    - user email
    - admin email
    - realtime events to the user's room and the admin room

    Every channel is best effort: failures are logged and never raised.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}
    sent = []

    # -------------------------
    # USER EMAIL
    # -------------------------
    if notify_user and rules.get(Channel.EMAIL_USER) and user and "user_template" in extra:
        try:
            send_user_email(
                template=extra["user_template"],
                subject=extra["user_subject"],
                user=user,
                order=order,
                **extra.get("context", {}),
            )
            sent.append(Channel.EMAIL_USER)
        except Exception:
            logger.exception(f"User email failed for {event.value}")

    # -------------------------
    # ADMIN EMAIL
    # -------------------------
    if notify_admin and rules.get(Channel.EMAIL_ADMIN) and "admin_template" in extra:
        try:
            send_admin_email(
                template=extra["admin_template"],
                subject=extra["admin_subject"],
                order=order,
                customer=user,
                **extra.get("context", {}),
            )
            sent.append(Channel.EMAIL_ADMIN)
        except Exception:
            logger.exception(f"Admin email failed for {event.value}")

    # -------------------------
    # REALTIME
    # -------------------------
    if notify_user and rules.get(Channel.REALTIME_USER) and "user_event" in extra:
        try:
            manager.emit(user_room(order.user_id), extra["user_event"], extra.get("payload", {}))
            sent.append(Channel.REALTIME_USER)
        except Exception:
            logger.exception(f"Realtime user event failed for {event.value}")

    if notify_admin and rules.get(Channel.REALTIME_ADMIN) and "admin_event" in extra:
        try:
            manager.emit(ADMIN_ROOM, extra["admin_event"], extra.get("payload", {}))
            sent.append(Channel.REALTIME_ADMIN)
        except Exception:
            logger.exception(f"Realtime admin event failed for {event.value}")

    return sent
