import logging
import random
import string
import time
from datetime import datetime
from typing import Optional

from sqlmodel import Session, select

from storefront.models.cart import Cart, CartItem

logger = logging.getLogger(__name__)

CART_ITEM_FIELDS = (
    "product_id", "product_name", "brand", "image",
    "is_pack", "pack_multiplier", "has_discount", "discount_percent",
    "variations", "item_count", "size", "color",
    "quantity", "unit_price", "total_price",
)


def build_cart_key(item: dict) -> str:
    """
    Merge key for a cart line.

    Two lines with the same key are the same purchase and get merged:
    packs by name / multiplier / discount flag, single variants by
    name / size / colour.
    """
    if item.get("is_pack"):
        return (
            f"pack::{item.get('product_name')}"
            f"::multiplier={item.get('pack_multiplier')}"
            f"::discount={'true' if item.get('has_discount') else 'false'}"
        )
    return (
        f"single::{item.get('product_name')}"
        f"::size={item.get('size')}"
        f"::color={item.get('color')}"
    )


def generate_line_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=7))
    return f"{int(time.time() * 1000)}-{suffix}"


def recalculate_total(cart: Cart) -> float:
    cart.total_amount = round(sum(item.total_price or 0 for item in cart.items), 2)
    cart.updated_at = datetime.utcnow()
    return cart.total_amount


def find_cart_by_user(session: Session, user_id: int) -> Optional[Cart]:
    return session.exec(select(Cart).where(Cart.user_id == user_id)).first()


def get_or_create_cart(session: Session, user_id: int) -> Cart:
    cart = find_cart_by_user(session, user_id)
    if cart:
        return cart

    cart = Cart(user_id=user_id, total_amount=0)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def merge_item(cart: Cart, item: dict) -> CartItem:
    """Add one line to the cart, merging into an existing line with the same key."""
    key = build_cart_key(item)

    existing = next((i for i in cart.items if i.key == key), None)
    if existing:
        existing.quantity += item.get("quantity") or 0
        existing.total_price += item.get("total_price") or 0
        if item.get("is_pack"):
            existing.pack_multiplier = (existing.pack_multiplier or 0) + (item.get("pack_multiplier") or 0)
        return existing

    line = CartItem(
        line_id=item.get("line_id") or generate_line_id(),
        key=key,
        **{f: item.get(f) for f in CART_ITEM_FIELDS if item.get(f) is not None},
    )
    cart.items.append(line)
    return line


def update_item_quantity(cart: Cart, line_id: str, quantity: int) -> bool:
    """Returns False when the line does not exist."""
    item = next((i for i in cart.items if i.line_id == line_id), None)
    if item is None:
        return False

    if quantity < 1:
        cart.items.remove(item)
    else:
        unit_price = item.total_price / item.quantity if item.quantity else (item.unit_price or 0)
        item.quantity = quantity
        item.total_price = round(unit_price * quantity, 2)
    return True


def remove_item(cart: Cart, line_id: str) -> None:
    cart.items = [i for i in cart.items if i.line_id != line_id]


def clear_cart(session: Session, user_id: int, commit: bool = True) -> None:
    cart = find_cart_by_user(session, user_id)
    if cart is None:
        return

    cart.items = []
    recalculate_total(cart)
    session.add(cart)

    if commit:
        session.commit()


def serialize_cart(cart: Cart) -> dict:
    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "items": [
            {"line_id": i.line_id, "key": i.key, **{f: getattr(i, f) for f in CART_ITEM_FIELDS}}
            for i in cart.items
        ],
        "total_amount": cart.total_amount,
        "updated_at": cart.updated_at,
    }
