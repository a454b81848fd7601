import json

from storefront.exceptions import AuthenticityError, GatewayError
from storefront.models.cart import Cart
from storefront.models.user import User
from storefront.notifications.notifier import OrderNotifier
from storefront.services.cart_service import find_cart_by_user, merge_item, recalculate_total
from storefront.services.payment_gateway import PaymentSnapshot
from storefront.utils.hash import hash_password
from storefront.utils.token import create_user_token

VALID_SIGNATURE = "valid-signature"


class FakeGateway:
    """In-memory stand-in for StripeGateway."""

    currency = "gbp"

    def __init__(self, webhook_secret=None):
        self.webhook_secret = webhook_secret
        self.intents = {}
        self.sessions = {}
        self.created = []

    def add_intent(self, intent_id, metadata, status="succeeded", email=None):
        self.intents[intent_id] = PaymentSnapshot(
            payment_intent=intent_id,
            session_id=None,
            status=status,
            metadata=metadata,
            customer_email=email,
        )

    def add_session(self, session_id, metadata, payment_intent=None, status="paid", email=None):
        self.sessions[session_id] = PaymentSnapshot(
            payment_intent=payment_intent,
            session_id=session_id,
            status=status,
            metadata=metadata,
            customer_email=email,
        )

    def retrieve_payment_intent(self, payment_intent_id):
        if payment_intent_id not in self.intents:
            raise GatewayError(f"No such payment_intent: '{payment_intent_id}'")
        return self.intents[payment_intent_id]

    def retrieve_checkout_session(self, session_id):
        if session_id not in self.sessions:
            raise GatewayError(f"No such checkout.session: '{session_id}'")
        return self.sessions[session_id]

    def construct_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise AuthenticityError("No signatures found matching the expected signature for payload")
        return json.loads(payload)

    def create_payment_intent(self, amount, metadata):
        self.created.append({"amount": amount, "metadata": metadata})
        return {"id": "pi_created", "client_secret": "pi_created_secret"}

    def create_checkout_session(self, **kwargs):
        self.created.append(kwargs)
        return {"id": "cs_created", "url": "https://checkout.stripe.test/cs_created"}


class RecordingNotifier(OrderNotifier):
    def __init__(self):
        super().__init__()
        self.calls = []

    def send_customer_confirmation(self, order, user):
        self.calls.append(("customer", order.order_number))

    def send_admin_confirmation(self, order, user):
        self.calls.append(("admin", order.order_number))

    def broadcast_new_order(self, order, user):
        self.calls.append(("realtime", order.order_number))


class FailingNotifier(RecordingNotifier):
    def send_customer_confirmation(self, order, user):
        raise RuntimeError("smtp down")

    def broadcast_new_order(self, order, user):
        raise RuntimeError("socket gone")


def make_user(session, email="buyer@example.com", role="user", **kwargs):
    user = User(
        email=email,
        password=hash_password("secret123"),
        first_name=kwargs.pop("first_name", "Jane"),
        last_name=kwargs.pop("last_name", "Buyer"),
        company_name=kwargs.pop("company_name", "Buyer Ltd"),
        role=role,
        **kwargs,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def fill_cart(session, user, *products, quantity=4):
    cart = find_cart_by_user(session, user.id)
    if cart is None:
        cart = Cart(user_id=user.id)
        session.add(cart)
        session.flush()

    for product in products:
        merge_item(cart, {
            "product_id": product.id,
            "product_name": product.name,
            "brand": product.brand,
            "size": "M",
            "color": "White",
            "quantity": quantity,
            "unit_price": product.unit_price,
            "total_price": round(product.unit_price * quantity, 2),
        })

    recalculate_total(cart)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def payment_metadata(user, **overrides):
    metadata = {
        "userId": str(user.id),
        "fullName": "Jane Buyer",
        "phone": "07700900000",
        "address": "1 High Street",
        "city": "London",
        "zipCode": "E1 6AN",
        "country": "UK",
        "totalItems": "2",
        "tax": "16.40",
        "shipping": "5.00",
    }
    metadata.update(overrides)
    return metadata
