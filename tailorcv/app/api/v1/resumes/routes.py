"""
Resume endpoints - save (create-or-update), list, read, duplicate, delete, stored job description
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from tailorcv.app.core.dependencies import get_current_user_id, get_db
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.schemas.resume import ResumeResponse, ResumeValues, resume_model_to_payload
from tailorcv.app.services import resume_service
from tailorcv.app.services.s3_service import UploadedDocument
from tailorcv.app.services.usage_service import invalidate_usage_cache

logger = get_logger("api.resumes")
router = APIRouter(prefix="/resumes", tags=["resumes"])


@router.post("", response_model=ResumeResponse)
async def save_resume(
    data: str = Form(...),
    photo: UploadFile | None = File(None),
    remove_photo: bool = Form(False),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create or update a resume from editor values.

    - **data**: JSON-encoded resume values; include `id` to update an existing resume
    - **photo**: new photo (replaces the stored one)
    - **remove_photo**: clear the stored photo
    """
    try:
        values = ResumeValues.model_validate_json(data)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False),
        )

    upload = None
    if photo is not None and photo.filename:
        upload = UploadedDocument(
            content=await photo.read(),
            filename=photo.filename,
            mime_type=photo.content_type or "",
        )

    resume = resume_service.save_resume(db, user_id, values, photo=upload, remove_photo=remove_photo)
    if not values.id:
        await invalidate_usage_cache(user_id)
    return resume_model_to_payload(resume)


@router.get("", response_model=list[ResumeResponse])
def list_resumes(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return [resume_model_to_payload(r) for r in resume_service.list_resumes(db, user_id)]


@router.get("/count")
def count_resumes(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"count": resume_service.count_resumes(db, user_id)}


@router.get("/{resume_id}", response_model=ResumeResponse)
def get_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return resume_model_to_payload(resume_service.get_resume(db, user_id, resume_id))


@router.delete("/{resume_id}")
async def delete_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resume_service.delete_resume(db, user_id, resume_id)
    await invalidate_usage_cache(user_id)
    return {"success": True}


@router.post("/{resume_id}/duplicate", response_model=ResumeResponse, status_code=status.HTTP_201_CREATED)
async def duplicate_resume(
    resume_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    copy = resume_service.duplicate_resume(db, user_id, resume_id)
    await invalidate_usage_cache(user_id)
    return resume_model_to_payload(resume_service.get_resume(db, user_id, copy.id))


@router.get("/{resume_id}/job-description")
def get_job_description(
    resume_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return {"jobDescription": resume_service.get_job_description(db, user_id, resume_id) or ""}


@router.delete("/{resume_id}/job-description")
def delete_job_description(
    resume_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resume_service.clear_job_description(db, user_id, resume_id)
    return {"success": True}
