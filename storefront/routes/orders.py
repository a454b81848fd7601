import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.constants.order_status import CANCELLABLE_STATUSES, ORDER_STATUSES, PAYMENT_METHODS
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.notifications import OrderEvent, dispatch_order_event
from storefront.notifications.notifier import OrderNotifier, get_notifier, notify_new_order
from storefront.schemas.order_schemas import OrderCancelRequest, OrderCreate, OrderStatusUpdate
from storefront.services.cart_service import clear_cart
from storefront.services.order_service import (
    InvalidTransitionError,
    apply_shipping_address,
    compute_total,
    get_order,
    insert_order,
    serialize_order,
    transition_status,
)
from storefront.services.reconciliation import MAX_INSERT_ATTEMPTS
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_owned_order(session: Session, order_id: int, user: User, allow_admin: bool = True) -> Order:
    order = get_order(session, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if order.user_id != user.id and not (allow_admin and user.role == "admin"):
        raise HTTPException(403, "Not authorized to access this order")

    return order


# ---------------------------------------------------------
# PLACE ORDER (cash on delivery / offline payment)
# ---------------------------------------------------------

@router.post("/", status_code=201)
def create_order(
    data: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    notifier: OrderNotifier = Depends(get_notifier),
):
    if not data.items:
        raise HTTPException(400, "Order has no items")

    if data.payment_method not in PAYMENT_METHODS:
        raise HTTPException(400, f"Invalid payment method: {data.payment_method}")

    products = {}
    for item in data.items:
        product = session.get(Product, item.product_id)
        if not product:
            raise HTTPException(404, f"Product not found: {item.product_id}")
        products[item.product_id] = product

    def build_order() -> Order:
        items = []
        subtotal = 0.0
        for item in data.items:
            product = products[item.product_id]
            unit_price = product.unit_price
            total_price = item.total_price if item.total_price is not None else round(unit_price * item.quantity, 2)
            items.append(
                OrderItem(
                    **item.model_dump(exclude={"unit_price", "total_price"}),
                    product_name=product.name,
                    brand=product.brand,
                    unit_price=unit_price,
                    total_price=total_price,
                )
            )
            subtotal += total_price

        subtotal = round(subtotal, 2)
        order = Order(
            order_number="",
            user_id=current_user.id,
            subtotal=subtotal,
            tax=data.tax,
            shipping_cost=data.shipping_cost,
            total_amount=compute_total(subtotal, data.tax, data.shipping_cost),
            payment_method=data.payment_method,
            customer_notes=data.customer_notes,
        )
        order.items = items
        apply_shipping_address(order, data.shipping_address.model_dump())
        if not order.shipping_email:
            order.shipping_email = current_user.email
        return order

    for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
        order = build_order()
        try:
            insert_order(session, order, commit=False)
            clear_cart(session, current_user.id, commit=False)
            session.commit()
            session.refresh(order)
            break
        except IntegrityError:
            session.rollback()
            if attempt == MAX_INSERT_ATTEMPTS:
                logger.exception(f"Could not assign an order number for user {current_user.id}")
                raise HTTPException(500, "Failed to create order")

    logger.info(f"Order created: {order.order_number} ({order.payment_method}) for user {current_user.id}")

    notify_new_order(notifier, order, current_user)

    return {
        "message": "Order created successfully",
        "order": serialize_order(order, current_user),
    }


# ---------------------------------------------------------
# MY ORDERS
# ---------------------------------------------------------

@router.get("/")
def list_my_orders(
    page: int = 1,
    limit: int = 10,
    status: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = select(Order).where(Order.user_id == current_user.id)

    if status:
        query = query.where(Order.status == status)

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page,
        limit=limit,
        serializer=serialize_order,
    )


# ---------------------------------------------------------
# ADMIN: ALL ORDERS
# ---------------------------------------------------------

@router.get("/admin/all")
def list_all_orders(
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Order)

    if status:
        query = query.where(Order.status == status)

    if search:
        query = query.where(Order.order_number.ilike(f"%{search}%"))

    return paginate(
        session=session,
        query=query.order_by(Order.created_at.desc(), Order.id.desc()),
        page=page,
        limit=limit,
        serializer=lambda o: serialize_order(o, o.user),
    )


@router.get("/{order_id}")
def get_order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = _get_owned_order(session, order_id, current_user)
    return {"order": serialize_order(order, order.user)}


# ---------------------------------------------------------
# ADMIN: STATUS UPDATE
# ---------------------------------------------------------

@router.patch("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = get_order(session, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    if data.status not in ORDER_STATUSES:
        raise HTTPException(400, f"Invalid status: {data.status}")

    old_status = order.status
    try:
        transition_status(order, data.status, note=data.note, created_by=f"admin:{admin.id}")
    except InvalidTransitionError as e:
        raise HTTPException(400, str(e))

    if data.note:
        order.admin_notes = data.note
    if data.admin_notes is not None:
        order.admin_notes = data.admin_notes
    if data.tracking_number is not None:
        order.tracking_number = data.tracking_number

    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number}: {old_status} -> {order.status} by admin {admin.id}")

    dispatch_order_event(
        event=OrderEvent.STATUS_CHANGED,
        order=order,
        user=order.user,
        extra={
            "user_event": "orderStatusChanged",
            "admin_event": "orderUpdated",
            "payload": {
                "order_id": order.id,
                "order_number": order.order_number,
                "status": order.status,
                "user_id": order.user_id,
                "updated_by": admin.id,
                "timestamp": datetime.utcnow().isoformat(),
            },
        },
    )

    return {"message": "Order status updated", "order": serialize_order(order, order.user)}


# ---------------------------------------------------------
# CANCEL / DELETE
# ---------------------------------------------------------

@router.delete("/{order_id}/cancel")
def cancel_order(
    order_id: int,
    data: Optional[OrderCancelRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = _get_owned_order(session, order_id, current_user, allow_admin=False)

    if order.status not in CANCELLABLE_STATUSES:
        raise HTTPException(400, "Cannot cancel order at this stage")

    reason = data.reason if data else None
    transition_status(order, "cancelled", note=reason or "Cancelled by customer", created_by="user")

    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number} cancelled by user {current_user.id}")

    dispatch_order_event(
        event=OrderEvent.ORDER_CANCELLED,
        order=order,
        user=current_user,
        extra={
            "user_template": "user_emails/order_cancelled.html",
            "user_subject": f"Order Cancelled - {order.order_number}",
            "admin_template": "admin_emails/order_cancelled.html",
            "admin_subject": f"Order Cancelled - {order.order_number}",
            "context": {"reason": reason},
            "admin_event": "orderUpdated",
            "payload": {
                "order_id": order.id,
                "order_number": order.order_number,
                "status": order.status,
                "user_id": order.user_id,
            },
        },
    )

    return {"message": "Order cancelled successfully", "order": serialize_order(order, current_user)}


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = _get_owned_order(session, order_id, current_user)
    order_number = order.order_number

    session.delete(order)
    session.commit()

    logger.info(f"Order {order_number} deleted by user {current_user.id}")

    return {"message": "Order deleted successfully"}
