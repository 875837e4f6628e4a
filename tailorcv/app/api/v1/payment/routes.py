"""
Razorpay billing - checkout, subscription management link and webhook
"""
import json

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tailorcv.app.core.dependencies import get_current_user_id, get_db
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.core.monitoring import capture_error
from tailorcv.app.services import billing_service
from tailorcv.app.services.usage_service import invalidate_usage_cache

logger = get_logger("api.payment")
router = APIRouter(prefix="/billing", tags=["billing"])


@router.post("/create-checkout-session")
def create_checkout_session(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Start a premium subscription. Returns the hosted checkout URL."""
    return {"url": billing_service.create_checkout_session(db, user_id)}


@router.post("/create-portal-session")
def create_portal_session(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Hosted page where the user manages or cancels their subscription."""
    return {"url": billing_service.create_portal_session(db, user_id)}


@router.post("/webhook")
async def billing_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(None),
    db: Session = Depends(get_db),
):
    """Razorpay webhook. The signature is verified before the body is trusted."""
    body = await request.body()
    billing_service.verify_webhook(body, x_razorpay_signature)

    try:
        event = json.loads(body)
    except ValueError:
        event = None
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid payload")

    try:
        applied = billing_service.handle_webhook_event(db, event)
    except (SQLAlchemyError, KeyError, TypeError, ValueError) as e:
        db.rollback()
        capture_error("Billing webhook handler failed", e, {"event": event.get("event")}, "high")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed")

    if applied:
        notes = (((event.get("payload") or {}).get("subscription") or {}).get("entity") or {}).get("notes") or {}
        if isinstance(notes, dict) and notes.get("user_id"):
            await invalidate_usage_cache(str(notes["user_id"]))
    return {"received": True}
