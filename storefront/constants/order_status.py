ORDER_STATUSES = ["pending", "processing", "shipped", "delivered", "cancelled", "returned"]

PAYMENT_METHODS = ["cod", "card", "bank_transfer", "paypal"]

ALLOWED_TRANSITIONS = {
    "pending": ["processing", "cancelled"],
    "processing": ["shipped", "cancelled"],
    "shipped": ["delivered", "returned"],
    "delivered": ["returned"],
    "cancelled": [],
    "returned": []
}

# statuses a customer may still cancel from
CANCELLABLE_STATUSES = ["pending", "processing"]
