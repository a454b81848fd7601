from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from storefront.database import get_session
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from storefront.services.cart_service import (
    clear_cart,
    find_cart_by_user,
    get_or_create_cart,
    merge_item,
    recalculate_total,
    remove_item,
    serialize_cart,
    update_item_quantity,
)
from storefront.utils.token import get_current_user  # JWT dependency

router = APIRouter()


def _save(session: Session, cart):
    recalculate_total(cart)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return serialize_cart(cart)


# View Cart

@router.get("/")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart = get_or_create_cart(session, current_user.id)
    return {"cart": serialize_cart(cart)}


# Add to Cart

@router.post("/add")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    product = session.get(Product, data.product_id)
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    cart = get_or_create_cart(session, current_user.id)

    base = {
        "product_id": product.id,
        "product_name": data.product_name or product.name,
        "brand": data.brand or product.brand,
        "image": data.image or product.image,
    }

    if not data.is_pack and data.variations:
        # bulk add: one line per size/colour, priced from the catalog
        for variation in data.variations:
            if variation.quantity <= 0:
                continue
            merge_item(cart, {
                **base,
                "is_pack": False,
                "size": variation.size,
                "color": variation.color,
                "quantity": variation.quantity,
                "unit_price": product.unit_price,
                "total_price": round(product.unit_price * variation.quantity, 2),
            })
    else:
        item = data.model_dump(exclude={"variations"})
        item.update(base)
        if data.variations:
            item["variations"] = [v.model_dump() for v in data.variations]
        if item.get("unit_price") is None and not data.is_pack:
            item["unit_price"] = product.unit_price
        if item.get("total_price") is None:
            item["total_price"] = round((item.get("unit_price") or product.unit_price) * data.quantity, 2)
        merge_item(cart, item)

    return {"message": "Item added to cart", "cart": _save(session, cart)}


# Update quantity

@router.put("/update")
def update_cart_item(
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart = find_cart_by_user(session, current_user.id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")

    if not update_item_quantity(cart, data.line_id, data.quantity):
        raise HTTPException(status_code=404, detail="Item not found in cart")

    return {"message": "Cart updated", "cart": _save(session, cart)}


# Remove item

@router.delete("/remove/{line_id}")
def remove_from_cart(
    line_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart = find_cart_by_user(session, current_user.id)
    if not cart:
        raise HTTPException(status_code=404, detail="Cart not found")

    remove_item(cart, line_id)

    return {"message": "Item removed from cart", "cart": _save(session, cart)}


# Clear cart

@router.delete("/clear")
def clear_my_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    clear_cart(session, current_user.id)
    return {"message": "Cart cleared"}
