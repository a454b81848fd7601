import json

from sqlalchemy.exc import OperationalError
from sqlmodel import select

from storefront.models.order import Order
from storefront.services import reconciliation
from storefront.services.cart_service import find_cart_by_user

from helpers import VALID_SIGNATURE, fill_cart, payment_metadata


def order_count(session):
    return len(session.exec(select(Order)).all())


def completed_session_event(session_id, metadata, payment_intent="pi_from_session", payment_status="paid"):
    return {
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_intent": payment_intent,
                "payment_status": payment_status,
                "customer_email": "buyer@example.com",
                "metadata": metadata,
            }
        },
    }


# -------------------------
# CONFIRM PAYMENT
# -------------------------

def test_confirm_payment_creates_order(client, session, gateway, notifier, user, user_headers, cart):
    gateway.add_intent("pi_1", payment_metadata(user))

    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Order created successfully"
    assert body["order"]["order_id"] == "ORD-000001"
    assert body["order"]["total_amount"] == 103.4
    assert body["order"]["user"]["email"] == user.email
    assert len(notifier.calls) == 3


def test_confirm_payment_twice_returns_same_order(client, session, gateway, notifier, user, user_headers, cart):
    gateway.add_intent("pi_1", payment_metadata(user))

    first = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)
    second = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert second.status_code == 200
    assert second.json()["message"] == "Order already created"
    assert second.json()["order"]["id"] == first.json()["order"]["id"]
    assert order_count(session) == 1
    assert len(notifier.calls) == 3


def test_confirm_unpaid_intent_is_rejected(client, session, gateway, user, user_headers, cart):
    gateway.add_intent("pi_1", payment_metadata(user), status="requires_payment_method")

    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert res.status_code == 400
    assert res.json() == {"success": False, "message": "Payment not completed"}
    assert order_count(session) == 0


def test_confirm_with_empty_cart_is_rejected(client, session, gateway, user, user_headers):
    gateway.add_intent("pi_1", payment_metadata(user))

    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert res.status_code == 400
    assert res.json()["message"] == "No cart found"
    assert order_count(session) == 0


def test_confirm_gateway_error(client, user_headers):
    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_missing"}, headers=user_headers)

    assert res.status_code == 502
    assert res.json()["success"] is False


def test_confirm_database_error_keeps_response_shape(client, gateway, user, user_headers, cart, monkeypatch):
    gateway.add_intent("pi_1", payment_metadata(user))

    def broken_lookup(*args, **kwargs):
        raise OperationalError("SELECT orders", {}, Exception("server closed the connection"))

    monkeypatch.setattr(reconciliation, "find_order_by_reference", broken_lookup)

    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert res.status_code == 500
    assert res.json() == {"success": False, "message": "Failed to create order"}


def test_confirm_requires_authentication(client):
    res = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"})
    assert res.status_code == 401


# -------------------------
# VERIFY SESSION
# -------------------------

def test_verify_session_creates_order(client, session, gateway, user, user_headers, cart):
    gateway.add_session("cs_1", payment_metadata(user), payment_intent="pi_1", email="billing@example.org")

    res = client.get("/stripe/verify-session/cs_1", headers=user_headers)

    assert res.status_code == 200
    order = res.json()["order"]
    assert order["stripe_session_id"] == "cs_1"
    assert order["stripe_payment_intent"] == "pi_1"
    assert order["shipping_address"]["email"] == "billing@example.org"


def test_verify_then_confirm_converge_on_one_order(client, session, gateway, user, user_headers, cart):
    gateway.add_session("cs_1", payment_metadata(user), payment_intent="pi_1")
    gateway.add_intent("pi_1", payment_metadata(user))

    verified = client.get("/stripe/verify-session/cs_1", headers=user_headers)
    confirmed = client.post("/stripe/confirm-payment", json={"payment_intent_id": "pi_1"}, headers=user_headers)

    assert confirmed.status_code == 200
    assert confirmed.json()["order"]["id"] == verified.json()["order"]["id"]
    assert order_count(session) == 1


def test_verify_unpaid_session_is_rejected(client, session, gateway, user, user_headers, cart):
    gateway.add_session("cs_1", payment_metadata(user), status="unpaid")

    res = client.get("/stripe/verify-session/cs_1", headers=user_headers)

    assert res.status_code == 400
    assert order_count(session) == 0


def test_verify_with_empty_cart_is_rejected(client, session, gateway, user, user_headers):
    gateway.add_session("cs_1", payment_metadata(user))

    res = client.get("/stripe/verify-session/cs_1", headers=user_headers)

    assert res.status_code == 400
    assert res.json()["message"] == "No cart found"


# -------------------------
# WEBHOOK
# -------------------------

def test_webhook_unverified_mode_creates_order(client, session, gateway, user, cart):
    event = completed_session_event("cs_1", payment_metadata(user))

    res = client.post("/stripe/webhook", content=json.dumps(event))

    assert res.status_code == 200
    assert res.json() == {"received": True, "order_id": "ORD-000001"}
    order = session.exec(select(Order)).one()
    assert order.stripe_session_id == "cs_1"
    assert order.stripe_payment_intent == "pi_from_session"
    assert find_cart_by_user(session, user.id).items == []


def test_webhook_redelivery_is_idempotent(client, session, gateway, notifier, user, cart, product):
    event = json.dumps(completed_session_event("cs_1", payment_metadata(user)))

    client.post("/stripe/webhook", content=event)
    fill_cart(session, user, product)
    res = client.post("/stripe/webhook", content=event)

    assert res.status_code == 200
    assert order_count(session) == 1
    assert len(notifier.calls) == 3


def test_webhook_rejects_bad_signature(client, session, gateway, user, cart):
    gateway.webhook_secret = "whsec_test"
    event = json.dumps(completed_session_event("cs_1", payment_metadata(user)))

    res = client.post("/stripe/webhook", content=event, headers={"stripe-signature": "t=1,v1=forged"})

    assert res.status_code == 400
    assert order_count(session) == 0


def test_webhook_accepts_valid_signature(client, session, gateway, user, cart):
    gateway.webhook_secret = "whsec_test"
    event = json.dumps(completed_session_event("cs_1", payment_metadata(user)))

    res = client.post("/stripe/webhook", content=event, headers={"stripe-signature": VALID_SIGNATURE})

    assert res.status_code == 200
    assert order_count(session) == 1


def test_webhook_empty_cart_is_acknowledged(client, session, user):
    event = json.dumps(completed_session_event("cs_1", payment_metadata(user)))

    res = client.post("/stripe/webhook", content=event)

    assert res.status_code == 200
    assert res.json() == {"received": True, "error": "No cart found"}
    assert order_count(session) == 0


def test_webhook_ignores_other_events(client, session):
    event = {"id": "evt_2", "type": "payment_intent.created", "data": {"object": {"id": "pi_1"}}}

    res = client.post("/stripe/webhook", content=json.dumps(event))

    assert res.json() == {"received": True}
    assert order_count(session) == 0


def test_webhook_ignores_unpaid_session(client, session, user, cart):
    event = completed_session_event("cs_1", payment_metadata(user), payment_status="unpaid")

    res = client.post("/stripe/webhook", content=json.dumps(event))

    assert res.json() == {"received": True}
    assert order_count(session) == 0


def test_webhook_then_verify_returns_webhook_order(client, session, gateway, user, user_headers, cart):
    client.post("/stripe/webhook", content=json.dumps(completed_session_event("cs_1", payment_metadata(user))))
    gateway.add_session("cs_1", payment_metadata(user), payment_intent="pi_from_session")

    res = client.get("/stripe/verify-session/cs_1", headers=user_headers)

    assert res.status_code == 200
    assert res.json()["message"] == "Order already created"
    assert res.json()["order"]["order_id"] == "ORD-000001"


# -------------------------
# CHECKOUT INITIATION
# -------------------------

def test_create_payment_intent_amount_and_metadata(client, gateway, user, user_headers):
    payload = {
        "items": [
            {"product_id": 1, "total_price": 50.0},
            {"product_id": 2, "total_price": 32.0},
        ],
        "shipping_address": {"fullName": "Jane Buyer", "address": "1 High Street", "city": "London"},
        "tax": 16.4,
        "shipping": 5,
    }

    res = client.post("/stripe/create-payment-intent", json=payload, headers=user_headers)

    assert res.status_code == 200
    assert res.json()["client_secret"] == "pi_created_secret"
    created = gateway.created[0]
    assert created["amount"] == 10340
    assert created["metadata"]["userId"] == str(user.id)
    assert created["metadata"]["fullName"] == "Jane Buyer"
    assert created["metadata"]["totalItems"] == "2"
    assert "zipCode" not in created["metadata"]


def test_create_payment_intent_with_no_items(client, user_headers):
    res = client.post("/stripe/create-payment-intent", json={"items": []}, headers=user_headers)

    assert res.status_code == 400
    assert res.json()["message"] == "Cart is empty"


def test_create_checkout_session(client, gateway, user, user_headers, product):
    payload = {"items": [{"product_id": product.id, "total_price": 25.0, "quantity": 2, "size": "M"}]}

    res = client.post(
        "/stripe/create-checkout-session",
        json=payload,
        headers={**user_headers, "origin": "https://shop.test"},
    )

    assert res.status_code == 200
    assert res.json()["url"].startswith("https://checkout.stripe.test/")
    created = gateway.created[0]
    assert created["success_url"] == "https://shop.test/payment-success?session_id={CHECKOUT_SESSION_ID}"
    assert created["line_items"][0]["price_data"]["unit_amount"] == 2500
    assert created["customer_email"] == user.email


def test_create_checkout_session_unknown_product(client, user_headers):
    res = client.post(
        "/stripe/create-checkout-session",
        json={"items": [{"product_id": 999, "total_price": 10.0}]},
        headers=user_headers,
    )

    assert res.status_code == 404
