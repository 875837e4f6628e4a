"""
Tests for Razorpay billing: checkout, portal and signed webhooks.
"""
import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock, patch

import pytest

from tailorcv.app.core.config import settings
from tailorcv.app.models.user_subscription import UserSubscription

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture
def razorpay_settings(monkeypatch):
    monkeypatch.setattr(settings, "razorpay_key_id", "rzp_test_key")
    monkeypatch.setattr(settings, "razorpay_key_secret", "rzp_test_secret")
    monkeypatch.setattr(settings, "razorpay_plan_id", "plan_premium")
    monkeypatch.setattr(settings, "razorpay_webhook_secret", WEBHOOK_SECRET)


def _event(name, user_id, sub_id="sub_123", current_end=None, **entity):
    return {
        "event": name,
        "payload": {
            "subscription": {
                "entity": {
                    "id": sub_id,
                    "plan_id": "plan_premium",
                    "customer_id": "cust_123",
                    "current_end": current_end,
                    "notes": {"user_id": user_id} if user_id else {},
                    **entity,
                }
            }
        },
    }


def _post_webhook(client, event, secret=WEBHOOK_SECRET, signature=None):
    body = json.dumps(event).encode()
    if signature is None:
        signature = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return client.post(
        "/api/billing/webhook",
        content=body,
        headers={"Content-Type": "application/json", "X-Razorpay-Signature": signature},
    )


def test_webhook_rejects_bad_signature(client, razorpay_settings):
    event = _event("subscription.activated", "user_test_1")
    r = _post_webhook(client, event, secret="wrong-secret")
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid signature"


def test_webhook_rejects_missing_signature(client, razorpay_settings):
    r = client.post("/api/billing/webhook", content=b"{}", headers={"Content-Type": "application/json"})
    assert r.status_code == 400


def test_webhook_activation_makes_user_premium(client, auth_headers, razorpay_settings, db_session, user_id):
    """activated -> premium until current_end; usage reports the plan"""
    current_end = int(time.time()) + 30 * 24 * 3600
    r = _post_webhook(client, _event("subscription.activated", user_id, current_end=current_end))
    assert r.status_code == 200
    assert r.json() == {"received": True}

    row = db_session.query(UserSubscription).filter(UserSubscription.user_id == user_id).one()
    assert row.plan == "premium"
    assert row.billing_subscription_id == "sub_123"
    assert row.billing_customer_id == "cust_123"
    assert row.cancel_at_period_end is False
    assert client.get("/api/user/usage", headers=auth_headers).json()["plan"] == "premium"

    # premium users are not capped
    for _ in range(settings.free_max_resumes + 1):
        assert client.post("/api/user/increment-resume", headers=auth_headers).status_code == 200


def test_webhook_cancellation_downgrades(client, auth_headers, razorpay_settings, db_session, user_id):
    current_end = int(time.time()) + 30 * 24 * 3600
    _post_webhook(client, _event("subscription.activated", user_id, current_end=current_end))
    r = _post_webhook(client, _event("subscription.cancelled", None))
    assert r.status_code == 200

    db_session.expire_all()
    row = db_session.query(UserSubscription).filter(UserSubscription.user_id == user_id).one()
    assert row.plan == "free"
    assert row.current_period_end is None
    assert client.get("/api/user/usage", headers=auth_headers).json()["plan"] == "free"


def test_webhook_scheduled_cancel_keeps_premium(client, razorpay_settings, db_session, user_id):
    current_end = int(time.time()) + 3600
    _post_webhook(client, _event("subscription.activated", user_id, current_end=current_end))
    _post_webhook(client, _event("subscription.updated", user_id, current_end=current_end, has_scheduled_changes=True))
    db_session.expire_all()
    row = db_session.query(UserSubscription).filter(UserSubscription.user_id == user_id).one()
    assert row.plan == "premium"
    assert row.cancel_at_period_end is True


def test_webhook_ignores_unrelated_events(client, razorpay_settings, db_session):
    r = _post_webhook(client, {"event": "payment.captured", "payload": {}})
    assert r.status_code == 200
    assert db_session.query(UserSubscription).count() == 0


def test_webhook_invalid_payload(client, razorpay_settings):
    body = b"[1, 2, 3]"
    signature = hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
    r = client.post("/api/billing/webhook", content=body, headers={"X-Razorpay-Signature": signature})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid payload"


def test_webhook_unconfigured(client):
    r = client.post("/api/billing/webhook", content=b"{}", headers={"X-Razorpay-Signature": "x"})
    assert r.status_code == 503


def test_checkout_creates_subscription(client, auth_headers, razorpay_settings, db_session, user_id):
    rzp = MagicMock()
    rzp.customer.create.return_value = {"id": "cust_new"}
    rzp.subscription.create.return_value = {"id": "sub_new", "short_url": "https://rzp.io/i/abc"}
    with patch("tailorcv.app.services.billing_service.razorpay.Client", return_value=rzp):
        r = client.post("/api/billing/create-checkout-session", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"url": "https://rzp.io/i/abc"}

    kwargs = rzp.subscription.create.call_args.kwargs
    assert kwargs["data"]["plan_id"] == "plan_premium"
    assert kwargs["data"]["notes"]["user_id"] == user_id
    row = db_session.query(UserSubscription).filter(UserSubscription.user_id == user_id).one()
    assert row.billing_customer_id == "cust_new"
    assert row.billing_subscription_id == "sub_new"
    assert row.plan == "free"


def test_checkout_unconfigured(client, auth_headers):
    r = client.post("/api/billing/create-checkout-session", headers=auth_headers)
    assert r.status_code == 503


def test_portal_requires_subscription(client, auth_headers, razorpay_settings):
    r = client.post("/api/billing/create-portal-session", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "No subscription found"


def test_portal_returns_subscription_page(client, auth_headers, razorpay_settings, db_session, user_id):
    db_session.add(UserSubscription(user_id=user_id, plan="premium", billing_subscription_id="sub_9"))
    db_session.commit()
    rzp = MagicMock()
    rzp.subscription.fetch.return_value = {"id": "sub_9", "short_url": "https://rzp.io/i/manage"}
    with patch("tailorcv.app.services.billing_service.razorpay.Client", return_value=rzp):
        r = client.post("/api/billing/create-portal-session", headers=auth_headers)
    assert r.json() == {"url": "https://rzp.io/i/manage"}
    rzp.subscription.fetch.assert_called_once_with("sub_9")
