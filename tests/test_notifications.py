import pytest

from storefront.config import settings
from storefront.notifications import OrderEvent, OrderNotifier, dispatch_order_event, notify_new_order
from storefront.notifications.channels import Channel
from storefront.services import email_service
from storefront.services.realtime import ADMIN_ROOM, ConnectionManager
from storefront.services.reconciliation import GatewayReference, reconcile
from storefront.utils.template import render_template

from helpers import FailingNotifier, auth_headers, payment_metadata


@pytest.fixture
def order(session, user, cart, notifier):
    return reconcile(session, GatewayReference(payment_intent="pi_1"), payment_metadata(user), notifier=notifier).order


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(to, subject, html, text=None):
        sent.append({"to": to, "subject": subject, "html": html})
        return True

    monkeypatch.setattr("storefront.notifications.email_handlers.send_email", fake_send)
    return sent


def test_confirmation_email_renders_order(order, user):
    html = render_template("user_emails/order_confirmation.html", user=user, order=order, store_name="Shop")

    assert "ORD-000001" in html
    assert "Linen Shirt (Brava)" in html
    assert "103.40" in html


def test_real_notifier_sends_both_emails(order, user, sent_emails, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "ops@example.com")

    failed = notify_new_order(OrderNotifier(realtime=ConnectionManager()), order, user)

    assert failed == []
    assert [e["to"] for e in sent_emails] == [user.email, "ops@example.com"]
    assert sent_emails[1]["subject"] == "New Order Received - ORD-000001 from Buyer Ltd"


def test_admin_email_skipped_without_address(order, user, sent_emails):
    OrderNotifier().send_admin_confirmation(order, user)
    assert sent_emails == []


def test_failing_steps_are_reported_not_raised(order, user):
    notifier = FailingNotifier()

    failed = notify_new_order(notifier, order, user)

    assert failed == ["customer confirmation", "realtime broadcast"]
    assert notifier.calls == [("admin", order.order_number)]


def test_send_email_without_api_key_is_skipped():
    assert email_service.send_email(to="buyer@example.com", subject="Hi", html="<p>Hi</p>") is False


def test_send_email_rejects_invalid_address():
    assert email_service.send_email(to="not-an-email", subject="Hi", html="<p>Hi</p>") is False


def test_emit_without_listeners():
    assert ConnectionManager().emit(ADMIN_ROOM, "newOrderReceived", {}) is False


def test_cancel_dispatch_uses_rule_channels(order, user, sent_emails, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "ops@example.com")

    sent = dispatch_order_event(
        event=OrderEvent.ORDER_CANCELLED,
        order=order,
        user=user,
        extra={
            "user_template": "user_emails/order_cancelled.html",
            "user_subject": "Order Cancelled",
            "admin_template": "admin_emails/order_cancelled.html",
            "admin_subject": "Order Cancelled",
            "context": {"reason": "Duplicate order"},
            "admin_event": "orderUpdated",
        },
    )

    # nobody is connected, so the admin room event is not counted
    assert Channel.EMAIL_USER in sent
    assert Channel.EMAIL_ADMIN in sent
    assert "Duplicate order" in sent_emails[0]["html"]


def test_status_change_sends_no_email(order, user, sent_emails):
    dispatch_order_event(
        event=OrderEvent.STATUS_CHANGED,
        order=order,
        user=user,
        extra={"user_template": "user_emails/order_cancelled.html", "user_subject": "x"},
    )
    assert sent_emails == []


def test_admin_socket_receives_new_order(client, session, admin, order, user):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "authenticate", "data": {"token": auth_headers(admin)["Authorization"][7:]}})
        assert ws.receive_json()["event"] == "authenticated"

        ws.send_json({"event": "joinAdminRoom"})
        assert ws.receive_json()["event"] == "joinedAdminRoom"

        assert OrderNotifier().broadcast_new_order(order, user) is True
        message = ws.receive_json()

    assert message["event"] == "newOrderReceived"
    assert message["data"]["order"]["order_id"] == "ORD-000001"


def test_customer_cannot_join_admin_room(client, user_headers):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "authenticate", "data": {"token": user_headers["Authorization"][7:]}})
        ws.receive_json()

        ws.send_json({"event": "joinAdminRoom"})
        reply = ws.receive_json()

    assert reply == {"event": "error", "data": {"message": "Admin access required"}}
