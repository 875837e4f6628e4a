"""
UserSubscription - billing state per user. Premium is derived, see usage_service.get_subscription_level
"""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from tailorcv.app.core.config import PLAN_FREE
from tailorcv.app.db.base import Base


class UserSubscription(Base):
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)

    plan = Column(String(20), default=PLAN_FREE, nullable=False)  # free | premium
    billing_customer_id = Column(String(255), unique=True, nullable=True)
    billing_subscription_id = Column(String(255), unique=True, nullable=True)
    billing_plan_id = Column(String(255), nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
