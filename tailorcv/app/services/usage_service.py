"""
Usage / quota gate.

Free users are capped at settings.free_max_resumes resumes and
settings.free_max_ai_generations AI generations. Premium users never touch
user_usage. Increments are a single conditional UPDATE, so two concurrent
requests can never push a counter past its limit.
"""
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tailorcv.app.core.config import PLAN_FREE, PLAN_PREMIUM, settings
from tailorcv.app.core.exceptions import QuotaExceeded
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.core.monitoring import best_effort
from tailorcv.app.models.resume import Resume
from tailorcv.app.models.user_subscription import UserSubscription
from tailorcv.app.models.user_usage import UserUsage
from tailorcv.app.utils import cache

logger = get_logger("services.usage")


class UsageService:
    @staticmethod
    def get_subscription(db: Session, user_id: str) -> UserSubscription | None:
        return db.query(UserSubscription).filter(UserSubscription.user_id == user_id).first()

    @staticmethod
    def get_subscription_level(db: Session, user_id: str) -> str:
        """premium only while the plan is premium and the paid period has not ended"""
        sub = UsageService.get_subscription(db, user_id)
        if (
            sub
            and sub.plan == PLAN_PREMIUM
            and sub.current_period_end is not None
            and sub.current_period_end > datetime.utcnow()
        ):
            return PLAN_PREMIUM
        return PLAN_FREE

    @staticmethod
    def get_user_usage(db: Session, user_id: str) -> UserUsage:
        """Get usage row, creating a zeroed one on first read."""
        usage = db.query(UserUsage).filter(UserUsage.user_id == user_id).first()
        if usage:
            return usage
        usage = UserUsage(user_id=user_id, resume_count=0, ai_generation_count=0)
        db.add(usage)
        try:
            db.commit()
        except IntegrityError:
            # Another request created it first
            db.rollback()
            return db.query(UserUsage).filter(UserUsage.user_id == user_id).one()
        db.refresh(usage)
        logger.info("Created usage row user_id=%s", user_id)
        return usage

    @staticmethod
    def can_create_resume(db: Session, user_id: str) -> bool:
        if UsageService.get_subscription_level(db, user_id) == PLAN_PREMIUM:
            return True
        usage = UsageService.get_user_usage(db, user_id)
        return usage.resume_count < settings.free_max_resumes

    @staticmethod
    def can_use_ai_tools(db: Session, user_id: str) -> bool:
        if UsageService.get_subscription_level(db, user_id) == PLAN_PREMIUM:
            return True
        usage = UsageService.get_user_usage(db, user_id)
        return usage.ai_generation_count < settings.free_max_ai_generations

    @staticmethod
    def _increment(db: Session, user_id: str, column, limit: int) -> bool:
        if UsageService.get_subscription_level(db, user_id) == PLAN_PREMIUM:
            return True
        UsageService.get_user_usage(db, user_id)
        result = db.execute(
            update(UserUsage)
            .where(UserUsage.user_id == user_id, column < limit)
            .values({column: column + 1, UserUsage.updated_at: datetime.utcnow()})
            .execution_options(synchronize_session=False)
        )
        db.commit()
        ok = result.rowcount == 1
        if not ok:
            logger.info("Quota reached user_id=%s counter=%s limit=%s", user_id, column.key, limit)
        return ok

    @staticmethod
    def increment_resume_count(db: Session, user_id: str) -> bool:
        return UsageService._increment(db, user_id, UserUsage.resume_count, settings.free_max_resumes)

    @staticmethod
    def increment_ai_generation_count(db: Session, user_id: str) -> bool:
        return UsageService._increment(
            db, user_id, UserUsage.ai_generation_count, settings.free_max_ai_generations
        )

    @staticmethod
    def decrement_resume_count(db: Session, user_id: str) -> None:
        """Free a resume slot after a delete. Never goes below zero."""
        db.execute(
            update(UserUsage)
            .where(UserUsage.user_id == user_id, UserUsage.resume_count > 0)
            .values({UserUsage.resume_count: UserUsage.resume_count - 1, UserUsage.updated_at: datetime.utcnow()})
            .execution_options(synchronize_session=False)
        )
        db.commit()

    @staticmethod
    def decrement_ai_generation_count(db: Session, user_id: str) -> None:
        db.execute(
            update(UserUsage)
            .where(UserUsage.user_id == user_id, UserUsage.ai_generation_count > 0)
            .values(
                {
                    UserUsage.ai_generation_count: UserUsage.ai_generation_count - 1,
                    UserUsage.updated_at: datetime.utcnow(),
                }
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()

    @staticmethod
    def reconcile_usage(db: Session, user_id: str) -> UserUsage:
        """
        Correct a drifted resume_count to the real number of resume rows.
        Best-effort: a failed correction is logged and the stored row returned as-is.
        """
        usage = UsageService.get_user_usage(db, user_id)
        try:
            actual = db.query(func.count(Resume.id)).filter(Resume.user_id == user_id).scalar() or 0
            if usage.resume_count != actual:
                logger.info(
                    "Reconciling resume count user_id=%s stored=%s actual=%s",
                    user_id,
                    usage.resume_count,
                    actual,
                )
                usage.resume_count = actual
                db.commit()
                db.refresh(usage)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Usage reconcile failed user_id=%s error=%s", user_id, e)
        return usage

    @staticmethod
    def get_usage_summary(db: Session, user_id: str) -> dict:
        usage = UsageService.reconcile_usage(db, user_id)
        return {
            "resumeCount": usage.resume_count,
            "aiGenerationCount": usage.ai_generation_count,
            "plan": UsageService.get_subscription_level(db, user_id),
        }


class AIGenerationSlot:
    """
    One AI generation taken from the quota before the model is called.

    reserve() is the conditional increment, so concurrent requests cannot both pass
    the last free slot. record() claims the slot after a successful model call;
    release() hands an unclaimed slot back. A second success in the same request
    is counted with its own increment.
    """

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id
        self.reserved = False
        self.recorded = False

    def reserve(self) -> None:
        if UsageService.get_subscription_level(self.db, self.user_id) == PLAN_PREMIUM:
            return
        if not UsageService.increment_ai_generation_count(self.db, self.user_id):
            raise QuotaExceeded("ai_generation")
        self.reserved = True

    def record(self) -> bool:
        if self.reserved and not self.recorded:
            self.recorded = True
            return True
        return UsageService.increment_ai_generation_count(self.db, self.user_id)

    def release(self) -> None:
        if self.reserved and not self.recorded:
            UsageService.decrement_ai_generation_count(self.db, self.user_id)
            self.reserved = False
            logger.info("Released unused AI generation user_id=%s", self.user_id)


@contextmanager
def ai_generation_slot(db: Session, user_id: str):
    """Reserve an AI generation for the block; raises QuotaExceeded when none is left."""
    slot = AIGenerationSlot(db, user_id)
    slot.reserve()
    try:
        yield slot
    finally:
        best_effort("release ai generation slot", slot.release)


async def get_usage_summary_cached(db: Session, user_id: str) -> dict:
    key = cache.usage_key(user_id)
    cached = await cache.get(key)
    if cached:
        return cached
    summary = UsageService.get_usage_summary(db, user_id)
    await cache.set(key, summary)
    return summary


async def invalidate_usage_cache(user_id: str) -> None:
    await cache.delete(cache.usage_key(user_id))
