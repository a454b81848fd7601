from enum import Enum


class OrderEvent(str, Enum):
    STATUS_CHANGED = "status_changed"
    ORDER_CANCELLED = "order_cancelled"
    RETURN_REQUESTED = "return_requested"
