"""
Usage API - counters shown in the UI and explicit quota increments
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tailorcv.app.core.config import PLAN_FREE
from tailorcv.app.core.dependencies import get_current_user_id, get_db
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.schemas.usage import IncrementResponse, UsageResponse
from tailorcv.app.services.usage_service import UsageService, get_usage_summary_cached, invalidate_usage_cache

logger = get_logger("api.usage")
router = APIRouter(prefix="/user", tags=["usage"])


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Usage counters (resume count reconciled with the real number of resumes)."""
    try:
        return await get_usage_summary_cached(db, user_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Usage lookup failed user_id=%s error=%s", user_id, e)
        return UsageResponse(resumeCount=0, aiGenerationCount=0, plan=PLAN_FREE)


@router.post("/increment-resume", response_model=IncrementResponse)
async def increment_resume(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if not UsageService.increment_resume_count(db, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Resume limit reached")
    await invalidate_usage_cache(user_id)
    return IncrementResponse()


@router.post("/increment-ai-generation", response_model=IncrementResponse)
async def increment_ai_generation(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if not UsageService.increment_ai_generation_count(db, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="AI generation limit reached")
    await invalidate_usage_cache(user_id)
    return IncrementResponse()
