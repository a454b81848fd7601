import logging
from functools import lru_cache

from storefront.notifications.email_handlers import send_user_email, send_admin_email
from storefront.services.order_service import serialize_order, serialize_user
from storefront.services.realtime import ADMIN_ROOM, ConnectionManager, manager

logger = logging.getLogger(__name__)


class OrderNotifier:
    """Confirmation emails and the realtime "new order" event for a freshly created order."""

    def __init__(self, realtime: ConnectionManager = manager):
        self.realtime = realtime

    def send_customer_confirmation(self, order, user):
        return send_user_email(
            template="user_emails/order_confirmation.html",
            subject=f"Order Confirmation - {order.order_number}",
            user=user,
            order=order,
        )

    def send_admin_confirmation(self, order, user):
        return send_admin_email(
            template="admin_emails/new_order.html",
            subject=f"New Order Received - {order.order_number} from {user.company_name}",
            order=order,
            customer=user,
        )

    def broadcast_new_order(self, order, user):
        return self.realtime.emit(
            ADMIN_ROOM,
            "newOrderReceived",
            {"order": serialize_order(order, user), "user": serialize_user(user)},
        )


def notify_new_order(notifier: OrderNotifier, order, user):
    """
    Run every new-order notification. The order is already committed,
    so failures are logged and swallowed one by one.
    """
    steps = (
        ("customer confirmation", notifier.send_customer_confirmation),
        ("admin confirmation", notifier.send_admin_confirmation),
        ("realtime broadcast", notifier.broadcast_new_order),
    )
    failed = []
    for label, step in steps:
        try:
            step(order, user)
        except Exception:
            logger.exception(f"Order {order.order_number}: {label} failed (non-critical)")
            failed.append(label)
    return failed


@lru_cache(maxsize=1)
def get_notifier() -> OrderNotifier:
    return OrderNotifier()
