class StorefrontError(Exception):
    """Base class for domain errors raised by the service layer."""

    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


# -------- client errors: reported, never retried --------

class ClientError(StorefrontError):
    status_code = 400


class EmptyCartError(ClientError):
    message = "No cart found"


class PaymentNotCompletedError(ClientError):
    message = "Payment not completed"


class MissingUserReferenceError(ClientError):
    message = "Payment is not linked to a user"


# -------- gateway / infrastructure --------

class AuthenticityError(StorefrontError):
    status_code = 400
    message = "Webhook signature verification failed"


class GatewayError(StorefrontError):
    status_code = 502
    message = "Payment gateway request failed"


class OrderPersistenceError(StorefrontError):
    status_code = 500
    message = "Failed to create order"
