"""
Turns a completed Stripe payment into exactly one order.

The confirm, verify-session and webhook endpoints all end up in
``reconcile``. There is no lock: the lookup-before-insert catches repeats,
and the unique constraints on the Stripe reference columns catch the
race where two deliveries both pass that lookup. The loser rolls back,
finds the winner's order and returns it.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from storefront.exceptions import EmptyCartError, MissingUserReferenceError, OrderPersistenceError
from storefront.models.order import Order
from storefront.models.user import User
from storefront.notifications.notifier import OrderNotifier, notify_new_order
from storefront.services.cart_service import clear_cart, find_cart_by_user
from storefront.services.order_service import (
    apply_shipping_address,
    build_order_items,
    compute_total,
    find_order_by_reference,
    insert_order,
)

logger = logging.getLogger(__name__)

MAX_INSERT_ATTEMPTS = 3

# Stripe metadata key -> shipping address field
ADDRESS_METADATA_KEYS = {
    "fullName": "full_name",
    "phone": "phone",
    "address": "street",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "country": "country",
}


@dataclass
class GatewayReference:
    payment_intent: Optional[str] = None
    session_id: Optional[str] = None

    def __str__(self):
        return self.session_id or self.payment_intent or "<none>"


@dataclass
class ReconciliationResult:
    order: Order
    user: Optional[User]
    created: bool
    recovered: bool = False

    @property
    def message(self) -> str:
        if self.created:
            return "Order created successfully"
        if self.recovered:
            return "Order found and returned successfully"
        return "Order already created"


def parse_amount(value: Any, name: str) -> float:
    """Stripe metadata values are strings; missing or garbage becomes 0."""
    if value in (None, ""):
        return 0.0
    try:
        return round(float(value), 2)
    except (TypeError, ValueError):
        logger.warning(f"Unparsable {name} in payment metadata: {value!r}, using 0")
        return 0.0


def user_id_from_metadata(metadata: Dict[str, Any]) -> int:
    raw = metadata.get("userId")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise MissingUserReferenceError(f"Invalid userId in payment metadata: {raw!r}")


def shipping_address_from_metadata(metadata: Dict[str, Any], email: Optional[str]) -> dict:
    address = {field: metadata.get(key) for key, field in ADDRESS_METADATA_KEYS.items()}
    address["email"] = email
    return address


def build_payment_metadata(user_id: int, address: dict, total_items: int, tax=0, shipping=0) -> Dict[str, str]:
    """Metadata attached to a new PaymentIntent / Checkout Session. Stripe stores strings only."""
    metadata = {"userId": str(user_id), "totalItems": str(total_items), "tax": str(tax), "shipping": str(shipping)}
    for key in ADDRESS_METADATA_KEYS:
        if address.get(key) is not None:
            metadata[key] = str(address[key])
    return metadata


def _recover(session: Session, reference: GatewayReference) -> Optional[Order]:
    try:
        return find_order_by_reference(
            session,
            payment_intent=reference.payment_intent,
            session_id=reference.session_id,
        )
    except SQLAlchemyError:
        logger.exception(f"Recovery lookup failed for {reference}")
        return None


def reconcile(
    session: Session,
    reference: GatewayReference,
    metadata: Dict[str, Any],
    *,
    notifier: Optional[OrderNotifier] = None,
    customer_email: Optional[str] = None,
) -> ReconciliationResult:
    """
    Create the order for a paid gateway reference, or return the one that
    already exists. The caller has already checked the payment succeeded.

    Raises EmptyCartError / MissingUserReferenceError for client problems
    and OrderPersistenceError when neither the insert nor the recovery
    lookup produced an order.
    """

    # 1. Idempotency check
    existing = find_order_by_reference(
        session,
        payment_intent=reference.payment_intent,
        session_id=reference.session_id,
    )
    if existing:
        logger.info(f"Order already exists for {reference}: {existing.order_number}")
        return ReconciliationResult(existing, session.get(User, existing.user_id), created=False)

    # 2. Owner and cart
    user_id = user_id_from_metadata(metadata)
    user = session.get(User, user_id)
    if user is None:
        raise MissingUserReferenceError(f"User {user_id} from payment metadata not found")

    cart = find_cart_by_user(session, user_id)
    if not cart or not cart.items:
        raise EmptyCartError()

    # tax and shipping were fixed when the payment was created; trusted as-is
    tax = parse_amount(metadata.get("tax"), "tax")
    shipping_cost = parse_amount(metadata.get("shipping"), "shipping")
    address = shipping_address_from_metadata(metadata, customer_email or user.email)

    order = None
    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        order_items, subtotal = build_order_items(session, cart.items)
        if not order_items:
            raise EmptyCartError("None of the cart items are available anymore")

        order = Order(
            order_number="",
            user_id=user_id,
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            total_amount=compute_total(subtotal, tax, shipping_cost),
            status="pending",
            payment_method="card",
            payment_status="completed",
            stripe_payment_intent=reference.payment_intent,
            stripe_session_id=reference.session_id,
        )
        order.items = order_items
        apply_shipping_address(order, address)

        try:
            insert_order(session, order, commit=False)
            clear_cart(session, user_id, commit=False)
            session.commit()
            session.refresh(order)
            break
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Error creating order for {reference} (attempt {attempt}): {e}")

            # 3. Duplicate-insert recovery
            winner = _recover(session, reference)
            if winner:
                logger.info(f"Order found after error, returning existing order {winner.order_number}")
                return ReconciliationResult(winner, user, created=False, recovered=True)

            # no order for this reference: the collision was on order_number
            if isinstance(e, IntegrityError) and attempt < MAX_INSERT_ATTEMPTS:
                continue

            raise OrderPersistenceError(str(e.__cause__ or e)) from e

    logger.info(f"Order created: {order.order_number} for {reference}, cart cleared for user {user_id}")

    # 4. Notifications never affect the outcome
    if notifier is not None:
        notify_new_order(notifier, order, user)

    return ReconciliationResult(order, user, created=True)
