from .events import OrderEvent
from .dispatcher import dispatch_order_event
from .notifier import OrderNotifier, get_notifier, notify_new_order

__all__ = [
    "OrderEvent",
    "dispatch_order_event",
    "OrderNotifier",
    "get_notifier",
    "notify_new_order",
]
