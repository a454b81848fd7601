import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from storefront.config import settings
from storefront.database import get_session
from storefront.exceptions import (
    AuthenticityError,
    ClientError,
    GatewayError,
    OrderPersistenceError,
    PaymentNotCompletedError,
)
from storefront.models.product import Product
from storefront.models.user import User
from storefront.notifications.notifier import OrderNotifier, get_notifier
from storefront.schemas.stripe_schemas import (
    ConfirmPaymentRequest,
    CreateCheckoutSessionRequest,
    CreatePaymentIntentRequest,
)
from storefront.services.order_service import serialize_order
from storefront.services.payment_gateway import (
    CHECKOUT_SESSION_COMPLETED,
    PaymentSnapshot,
    StripeGateway,
    get_payment_gateway,
    snapshot_from_checkout_session,
    stripe_field,
)
from storefront.services.reconciliation import GatewayReference, build_payment_metadata, reconcile
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _reconcile_paid(session: Session, snapshot: PaymentSnapshot, notifier: OrderNotifier):
    """Shared tail of the confirm and verify channels."""
    try:
        if not snapshot.is_paid:
            raise PaymentNotCompletedError()

        result = reconcile(
            session,
            GatewayReference(payment_intent=snapshot.payment_intent, session_id=snapshot.session_id),
            snapshot.metadata,
            notifier=notifier,
            customer_email=snapshot.customer_email,
        )
    except ClientError as e:
        logger.warning(f"Payment {snapshot.session_id or snapshot.payment_intent} rejected: {e.message}")
        return _failure(e.status_code, e.message)
    except OrderPersistenceError as e:
        logger.error(f"Order creation failed for {snapshot.session_id or snapshot.payment_intent}: {e.message}")
        return _failure(e.status_code, OrderPersistenceError.message)
    except SQLAlchemyError:
        logger.exception(f"Order lookup failed for {snapshot.session_id or snapshot.payment_intent}")
        return _failure(OrderPersistenceError.status_code, OrderPersistenceError.message)

    return {
        "success": True,
        "order": serialize_order(result.order, result.user),
        "message": result.message,
    }


# -------------------------
# CHECKOUT
# -------------------------

@router.post("/create-payment-intent")
def create_payment_intent(
    payload: CreatePaymentIntentRequest,
    current_user: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    if not payload.items:
        return _failure(400, "Cart is empty")

    total = sum(i.total_price for i in payload.items) + payload.tax + payload.shipping
    metadata = build_payment_metadata(
        current_user.id,
        payload.shipping_address.model_dump(by_alias=True),
        total_items=len(payload.items),
        tax=payload.tax,
        shipping=payload.shipping,
    )

    try:
        intent = gateway.create_payment_intent(amount=round(total * 100), metadata=metadata)
    except GatewayError as e:
        return _failure(e.status_code, e.message)

    logger.info(f"PaymentIntent {intent['id']} created for user {current_user.id} ({total:.2f})")

    return {
        "success": True,
        "client_secret": intent["client_secret"],
        "payment_intent_id": intent["id"],
    }


@router.post("/create-checkout-session")
def create_checkout_session(
    payload: CreateCheckoutSessionRequest,
    request: Request,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    if not payload.items:
        return _failure(400, "Cart is empty")

    line_items = []
    for item in payload.items:
        product = session.get(Product, item.product_id)
        if not product:
            raise HTTPException(404, f"Product not found: {item.product_id}")

        if item.is_pack:
            description = f"{item.pack_multiplier}x Pack ({item.item_count} items)"
        else:
            description = f"Size: {item.size or 'N/A'}, Color: {item.color or 'N/A'}, Qty: {item.quantity}"

        product_data = {"name": product.name, "description": description}
        if product.image and product.image.startswith(("http://", "https://")):
            product_data["images"] = [product.image]

        line_items.append({
            "price_data": {
                "currency": gateway.currency,
                "product_data": product_data,
                "unit_amount": round(item.total_price * 100),
            },
            "quantity": 1,
        })

    origin = request.headers.get("origin") or settings.FRONTEND_URL
    metadata = build_payment_metadata(
        current_user.id,
        payload.shipping_address.model_dump(by_alias=True),
        total_items=len(payload.items),
        tax=payload.tax,
        shipping=payload.shipping,
    )

    try:
        checkout = gateway.create_checkout_session(
            line_items=line_items,
            success_url=f"{origin}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{origin}/payment-cancel",
            customer_email=current_user.email,
            client_reference_id=str(current_user.id),
            metadata=metadata,
        )
    except GatewayError as e:
        return _failure(e.status_code, e.message)

    logger.info(f"Checkout session {checkout['id']} created for user {current_user.id}")

    return {"success": True, "url": checkout["url"], "session_id": checkout["id"]}


# -------------------------
# ORDER CREATION CHANNELS
# -------------------------

@router.post("/confirm-payment")
def confirm_payment(
    payload: ConfirmPaymentRequest,
    session: Session = Depends(get_session),
    _: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
    notifier: OrderNotifier = Depends(get_notifier),
):
    if not payload.payment_intent_id:
        return _failure(400, "Payment Intent ID is required")

    try:
        snapshot = gateway.retrieve_payment_intent(payload.payment_intent_id)
    except GatewayError as e:
        return _failure(e.status_code, e.message)

    return _reconcile_paid(session, snapshot, notifier)


@router.get("/verify-session/{session_id}")
def verify_session(
    session_id: str,
    session: Session = Depends(get_session),
    _: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
    notifier: OrderNotifier = Depends(get_notifier),
):
    try:
        snapshot = gateway.retrieve_checkout_session(session_id)
    except GatewayError as e:
        return _failure(e.status_code, e.message)

    return _reconcile_paid(session, snapshot, notifier)


def _handle_completed_session(session: Session, checkout_session, notifier: OrderNotifier) -> dict:
    snapshot = snapshot_from_checkout_session(checkout_session)
    logger.info(f"Checkout session completed: {snapshot.session_id}")

    if not snapshot.is_paid:
        logger.info(f"Session {snapshot.session_id} completed with payment_status={snapshot.status}, ignoring")
        return {"received": True}

    try:
        result = reconcile(
            session,
            GatewayReference(payment_intent=snapshot.payment_intent, session_id=snapshot.session_id),
            snapshot.metadata,
            notifier=notifier,
            customer_email=snapshot.customer_email,
        )
    except ClientError as e:
        logger.error(f"Webhook for {snapshot.session_id} not processed: {e.message}")
        return {"received": True, "error": e.message}
    except OrderPersistenceError as e:
        logger.error(f"Webhook order creation failed for {snapshot.session_id}: {e.message}")
        return {"received": True, "error": OrderPersistenceError.message}

    return {"received": True, "order_id": result.order.order_number}


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    session: Session = Depends(get_session),
    gateway: StripeGateway = Depends(get_payment_gateway),
    notifier: OrderNotifier = Depends(get_notifier),
):
    # signature is computed over the raw bytes
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    if gateway.webhook_secret:
        try:
            event = gateway.construct_event(payload, signature)
        except AuthenticityError as e:
            logger.error(f"Webhook signature verification failed: {e.message}")
            return _failure(400, f"Webhook Error: {e.message}")
    else:
        logger.warning("No webhook secret configured. Using unverified webhook body.")
        try:
            event = json.loads(payload)
        except ValueError as e:
            return _failure(400, f"Webhook Error: {e}")

    event_type = stripe_field(event, "type")
    if event_type != CHECKOUT_SESSION_COMPLETED:
        logger.info(f"Unhandled webhook event type: {event_type}")
        return {"received": True}

    checkout_session = stripe_field(stripe_field(event, "data"), "object")
    return await run_in_threadpool(_handle_completed_session, session, checkout_session, notifier)
