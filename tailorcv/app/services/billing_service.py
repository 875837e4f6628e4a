"""
Billing - Razorpay subscriptions for the premium plan.

Checkout creates a Razorpay subscription and hands back its hosted short_url; the
"portal" is the hosted page of the user's current subscription. Webhooks are the only
thing that flips a user's plan.
"""
from datetime import datetime, timezone

import razorpay
from sqlalchemy.orm import Session

from tailorcv.app.core.config import PLAN_FREE, PLAN_PREMIUM, settings
from tailorcv.app.core.exceptions import BillingError, ConfigurationError, InvalidInput, NotFound
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.models.user_subscription import UserSubscription

logger = get_logger("services.billing")

ACTIVE_EVENTS = {"subscription.activated", "subscription.charged", "subscription.resumed"}
UPDATE_EVENTS = {"subscription.updated"}
ENDED_EVENTS = {"subscription.cancelled", "subscription.completed"}
RELEVANT_EVENTS = ACTIVE_EVENTS | UPDATE_EVENTS | ENDED_EVENTS

_PROVIDER_ERRORS = (
    razorpay.errors.BadRequestError,
    razorpay.errors.GatewayError,
    razorpay.errors.ServerError,
)


def _get_client() -> razorpay.Client:
    if not settings.razorpay_key_id or not settings.razorpay_key_secret:
        raise ConfigurationError("Payment gateway is not configured")
    return razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))


def _from_unix(ts) -> datetime | None:
    if not ts:
        return None
    return datetime.fromtimestamp(int(ts), tz=timezone.utc).replace(tzinfo=None)


def _get_or_create_row(db: Session, user_id: str) -> UserSubscription:
    row = db.query(UserSubscription).filter(UserSubscription.user_id == user_id).first()
    if row is None:
        row = UserSubscription(user_id=user_id, plan=PLAN_FREE)
        db.add(row)
        db.flush()
    return row


def create_checkout_session(db: Session, user_id: str) -> str:
    """Create a premium subscription for the user; returns the hosted checkout URL."""
    if not settings.razorpay_plan_id:
        raise ConfigurationError("Payment plan is not configured")
    client = _get_client()
    row = _get_or_create_row(db, user_id)
    try:
        if not row.billing_customer_id:
            customer = client.customer.create(
                data={"name": f"TailorCV {user_id}", "fail_existing": "0", "notes": {"user_id": user_id}}
            )
            row.billing_customer_id = customer["id"]
        subscription = client.subscription.create(
            data={
                "plan_id": settings.razorpay_plan_id,
                "total_count": settings.razorpay_subscription_total_count,
                "customer_notify": 1,
                "notes": {"user_id": user_id, "customer_id": row.billing_customer_id},
            }
        )
    except _PROVIDER_ERRORS as e:
        db.rollback()
        logger.warning("Razorpay checkout failed user_id=%s error=%s", user_id, e)
        raise BillingError() from e

    row.billing_subscription_id = subscription["id"]
    db.commit()
    logger.info("Razorpay subscription created user_id=%s subscription_id=%s", user_id, subscription["id"])
    return subscription.get("short_url") or ""


def create_portal_session(db: Session, user_id: str) -> str:
    """Hosted management page of the user's current subscription."""
    row = db.query(UserSubscription).filter(UserSubscription.user_id == user_id).first()
    if not row or not row.billing_subscription_id:
        raise NotFound("No subscription found")
    client = _get_client()
    try:
        subscription = client.subscription.fetch(row.billing_subscription_id)
    except _PROVIDER_ERRORS as e:
        logger.warning("Razorpay subscription fetch failed user_id=%s error=%s", user_id, e)
        raise BillingError() from e
    url = subscription.get("short_url")
    if not url:
        raise NotFound("No subscription found")
    return url


def verify_webhook(body: bytes, signature: str | None) -> None:
    """Raises InvalidInput unless the body carries a valid X-Razorpay-Signature."""
    if not settings.razorpay_webhook_secret:
        raise ConfigurationError("Webhook secret is not configured")
    if not signature:
        raise InvalidInput("Invalid signature")
    client = razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))
    try:
        client.utility.verify_webhook_signature(
            body.decode("utf-8"), signature, settings.razorpay_webhook_secret
        )
    except (razorpay.errors.SignatureVerificationError, UnicodeDecodeError) as e:
        logger.warning("Razorpay webhook signature verification failed: %s", e)
        raise InvalidInput("Invalid signature") from e


def _find_row(db: Session, entity: dict) -> UserSubscription | None:
    notes = entity.get("notes") or {}
    if isinstance(notes, dict) and notes.get("user_id"):
        return _get_or_create_row(db, str(notes["user_id"]))
    sub_id = entity.get("id")
    if not sub_id:
        return None
    return db.query(UserSubscription).filter(UserSubscription.billing_subscription_id == sub_id).first()


def handle_webhook_event(db: Session, event: dict) -> bool:
    """Apply a verified webhook event. Returns False for events we do not act on."""
    event_type = event.get("event")
    if event_type not in RELEVANT_EVENTS:
        return False
    entity = ((event.get("payload") or {}).get("subscription") or {}).get("entity") or {}
    row = _find_row(db, entity)
    if row is None:
        logger.error("No user found for subscription_id=%s event=%s", entity.get("id"), event_type)
        return False

    if event_type in ENDED_EVENTS:
        row.plan = PLAN_FREE
        row.billing_plan_id = None
        row.current_period_end = None
        row.cancel_at_period_end = False
    else:
        if event_type in ACTIVE_EVENTS:
            row.plan = PLAN_PREMIUM
        row.billing_subscription_id = entity.get("id") or row.billing_subscription_id
        row.billing_plan_id = entity.get("plan_id") or row.billing_plan_id
        row.current_period_end = _from_unix(entity.get("current_end")) or row.current_period_end
        row.cancel_at_period_end = bool(entity.get("has_scheduled_changes"))
        customer_id = entity.get("customer_id")
        if customer_id and not row.billing_customer_id:
            row.billing_customer_id = customer_id
    db.commit()
    logger.info("Billing event applied user_id=%s event=%s plan=%s", row.user_id, event_type, row.plan)
    return True
