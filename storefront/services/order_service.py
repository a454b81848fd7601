import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import or_
from sqlmodel import Session, select

from storefront.constants.order_status import ALLOWED_TRANSITIONS
from storefront.models.cart import CartItem
from storefront.models.order import Order
from storefront.models.order_counter import OrderCounter
from storefront.models.order_event import OrderStatusEvent
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
ORDER_COUNTER_NAME = "orders"

SHIPPING_FIELDS = ("full_name", "email", "phone", "street", "city", "state", "zip_code", "country")


class InvalidTransitionError(ValueError):
    pass


# -------------------------
# ORDER NUMBERS
# -------------------------

def format_order_number(seq: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{seq:06d}"


def parse_order_number(order_number: Optional[str]) -> Optional[int]:
    if not order_number or "-" not in order_number:
        return None
    try:
        return int(order_number.split("-", 1)[1])
    except ValueError:
        return None


def _highest_existing_sequence(session: Session) -> int:
    numbers = session.exec(select(Order.order_number)).all()
    return max((parse_order_number(n) or 0 for n in numbers), default=0)


def next_order_number(session: Session) -> str:
    """
    Take the next value from the order counter row, in the caller's
    transaction. Deleted orders never give their number back. The counter
    is seeded from existing orders the first time it is used; two
    requests racing to create it collide on the primary key and the
    loser retries.
    """
    counter = session.exec(
        select(OrderCounter).where(OrderCounter.name == ORDER_COUNTER_NAME).with_for_update()
    ).first()

    if counter is None:
        counter = OrderCounter(name=ORDER_COUNTER_NAME, value=_highest_existing_sequence(session))

    counter.value += 1
    session.add(counter)
    session.flush()

    return format_order_number(counter.value)


# -------------------------
# ORDER STORE
# -------------------------

def find_order_by_reference(
    session: Session,
    payment_intent: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Optional[Order]:
    clauses = []
    if payment_intent:
        clauses.append(Order.stripe_payment_intent == payment_intent)
    if session_id:
        clauses.append(Order.stripe_session_id == session_id)

    if not clauses:
        return None

    return session.exec(select(Order).where(or_(*clauses))).first()


def get_order(session: Session, order_id: int) -> Optional[Order]:
    return session.get(Order, order_id)


def log_status_event(order: Order, status: str, note: Optional[str] = None, created_by: str = "system"):
    """Append-only status history."""
    order.status_history.append(
        OrderStatusEvent(
            status=status,
            note=note,
            created_by=created_by,
            created_at=datetime.utcnow(),
        )
    )


def insert_order(session: Session, order: Order, commit: bool = True) -> Order:
    """Assign the order number and persist. Raises IntegrityError on a duplicate key."""
    order.order_number = next_order_number(session)
    log_status_event(order, order.status)

    session.add(order)
    session.flush()

    if commit:
        session.commit()
        session.refresh(order)

    return order


# -------------------------
# ORDER ASSEMBLY
# -------------------------

def snapshot_cart_item(item: CartItem, product: Product) -> OrderItem:
    return OrderItem(
        product_id=item.product_id,
        product_name=item.product_name or product.name,
        brand=item.brand or product.brand,
        size=item.size,
        color=item.color,
        quantity=item.quantity,
        total_price=item.total_price or 0,
        unit_price=item.unit_price if item.unit_price is not None else product.unit_price,
        is_pack=bool(item.is_pack),
        pack_multiplier=item.pack_multiplier,
        item_count=item.item_count,
        has_discount=bool(item.has_discount),
        discount_percent=item.discount_percent,
        variations=item.variations,
    )


def build_order_items(session: Session, cart_items: Iterable[CartItem]) -> Tuple[List[OrderItem], float]:
    """
    Snapshot cart lines into order lines.

    Lines whose product was deleted since it was added to the cart are
    dropped rather than failing the whole order.
    """
    order_items = []
    subtotal = 0.0

    for item in cart_items:
        product = session.get(Product, item.product_id)
        if not product:
            logger.warning(f"Product not found: {item.product_id}, dropping cart line {item.line_id}")
            continue

        order_items.append(snapshot_cart_item(item, product))
        subtotal += item.total_price or 0

    return order_items, round(subtotal, 2)


def compute_total(subtotal: float, tax: float, shipping_cost: float) -> float:
    return round(subtotal + tax + shipping_cost, 2)


def apply_shipping_address(order: Order, address: Optional[dict]):
    for name in SHIPPING_FIELDS:
        setattr(order, f"shipping_{name}", (address or {}).get(name))


# -------------------------
# STATUS
# -------------------------

def transition_status(order: Order, new_status: str, note: Optional[str] = None, created_by: str = "system"):
    if new_status == order.status:
        raise InvalidTransitionError(f"Order is already {new_status}")

    allowed = ALLOWED_TRANSITIONS.get(order.status, [])
    if new_status not in allowed:
        raise InvalidTransitionError(
            f"Cannot move order from {order.status} to {new_status}"
        )

    order.status = new_status
    order.updated_at = datetime.utcnow()
    log_status_event(order, new_status, note=note, created_by=created_by)


# -------------------------
# SERIALIZATION
# -------------------------

def serialize_user(user: Optional[User]) -> Optional[dict]:
    if user is None:
        return None
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "company_name": user.company_name,
    }


def serialize_order(order: Order, user: Optional[User] = None) -> dict:
    return {
        "id": order.id,
        "order_id": order.order_number,
        "user": serialize_user(user) if user is not None else order.user_id,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "brand": i.brand,
                "size": i.size,
                "color": i.color,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "total_price": i.total_price,
                "is_pack": i.is_pack,
                "pack_multiplier": i.pack_multiplier,
                "item_count": i.item_count,
                "has_discount": i.has_discount,
                "discount_percent": i.discount_percent,
                "variations": i.variations,
            }
            for i in order.items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping_cost": order.shipping_cost,
        "total_amount": order.total_amount,
        "status": order.status,
        "status_history": [
            {"status": e.status, "timestamp": e.created_at, "note": e.note}
            for e in order.status_history
        ],
        "shipping_address": {
            name: getattr(order, f"shipping_{name}") for name in SHIPPING_FIELDS
        },
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "customer_notes": order.customer_notes,
        "admin_notes": order.admin_notes,
        "tracking_number": order.tracking_number,
        "stripe_payment_intent": order.stripe_payment_intent,
        "stripe_session_id": order.stripe_session_id,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }
