import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, List, Optional

import stripe

from storefront.config import settings
from storefront.exceptions import AuthenticityError, GatewayError

logger = logging.getLogger(__name__)

PAYMENT_INTENT_SUCCEEDED = "succeeded"
CHECKOUT_SESSION_PAID = "paid"
CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"


@dataclass
class PaymentSnapshot:
    """What the reconciliation engine needs to know about one payment event."""

    payment_intent: Optional[str]
    session_id: Optional[str]
    status: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)
    customer_email: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        if self.session_id:
            return self.status == CHECKOUT_SESSION_PAID
        return self.status == PAYMENT_INTENT_SUCCEEDED


def stripe_field(obj, name):
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _to_dict(value) -> Dict[str, Any]:
    if not value:
        return {}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return dict(value)


def snapshot_from_payment_intent(intent) -> PaymentSnapshot:
    return PaymentSnapshot(
        payment_intent=stripe_field(intent, "id"),
        session_id=None,
        status=stripe_field(intent, "status"),
        metadata=_to_dict(stripe_field(intent, "metadata")),
        customer_email=stripe_field(intent, "receipt_email"),
    )


def snapshot_from_checkout_session(checkout_session) -> PaymentSnapshot:
    return PaymentSnapshot(
        payment_intent=stripe_field(checkout_session, "payment_intent"),
        session_id=stripe_field(checkout_session, "id"),
        status=stripe_field(checkout_session, "payment_status"),
        metadata=_to_dict(stripe_field(checkout_session, "metadata")),
        customer_email=stripe_field(checkout_session, "customer_email"),
    )


class StripeGateway:
    """
    Thin wrapper over the Stripe SDK.

    One instance is shared by the whole process (see get_payment_gateway);
    every call is a blocking HTTP request and Stripe errors come out as
    GatewayError / AuthenticityError.
    """

    def __init__(self, api_key: str, webhook_secret: Optional[str] = None, currency: str = "gbp"):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentSnapshot:
        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent lookup failed ({payment_intent_id}): {e}")
            raise GatewayError(str(e)) from e
        return snapshot_from_payment_intent(intent)

    def retrieve_checkout_session(self, session_id: str) -> PaymentSnapshot:
        try:
            checkout_session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session lookup failed ({session_id}): {e}")
            raise GatewayError(str(e)) from e
        return snapshot_from_checkout_session(checkout_session)

    def construct_event(self, payload: bytes, signature: Optional[str]):
        """Verify the signature over the raw body. Only call with a secret configured."""
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as e:
            raise AuthenticityError(str(e)) from e

    def create_payment_intent(self, amount: int, metadata: Dict[str, str]) -> Dict[str, str]:
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=self.currency,
                automatic_payment_methods={"enabled": True},
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe PaymentIntent create failed: {e}")
            raise GatewayError(str(e)) from e
        return {"id": intent.id, "client_secret": intent.client_secret}

    def create_checkout_session(
        self,
        *,
        line_items: List[dict],
        success_url: str,
        cancel_url: str,
        customer_email: str,
        client_reference_id: str,
        metadata: Dict[str, str],
    ) -> Dict[str, str]:
        try:
            checkout_session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                mode="payment",
                line_items=line_items,
                success_url=success_url,
                cancel_url=cancel_url,
                customer_email=customer_email,
                client_reference_id=client_reference_id,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session create failed: {e}")
            raise GatewayError(str(e)) from e
        return {"id": checkout_session.id, "url": checkout_session.url}


@lru_cache(maxsize=1)
def get_payment_gateway() -> StripeGateway:
    if not settings.STRIPE_SECRET_KEY:
        logger.warning("STRIPE_SECRET_KEY is not set; Stripe calls will fail")
    return StripeGateway(
        api_key=settings.STRIPE_SECRET_KEY,
        webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
        currency=settings.STRIPE_CURRENCY,
    )
