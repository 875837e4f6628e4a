"""
AI endpoints - CV parsing, tailored resume generation, cover letters, recruiter messages
and the session's job description draft
"""
import asyncio
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from tailorcv.app.core.config import CV_UPLOAD_MIME_TYPES, MIME_PDF, settings
from tailorcv.app.core.dependencies import get_current_user_id, get_db
from tailorcv.app.core.exceptions import InvalidInput, ServiceUnavailable, UnsupportedFileType
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.schemas.resume import resume_values_for_prompt
from tailorcv.app.services import job_description_store, resume_service
from tailorcv.app.services.document_extractor import extract_text_from_pdf
from tailorcv.app.services.resume_generation import generate_tailored_resume, llm_for_user
from tailorcv.app.services.s3_service import UploadedDocument
from tailorcv.app.services.usage_service import ai_generation_slot, invalidate_usage_cache

logger = get_logger("api.ai")
router = APIRouter(prefix="/ai", tags=["ai"])

T = TypeVar("T")


class GenerateResumeIn(BaseModel):
    parsedText: str = ""
    jobDescription: str = ""
    additionalInfo: str | None = None


class CoverLetterIn(BaseModel):
    resumeId: str
    jobDescription: str
    additionalInfo: str | None = None


class HRMessageIn(BaseModel):
    resumeId: str
    jobDescription: str
    recruiterName: str
    additionalInfo: str | None = None


class JobDescriptionDraftIn(BaseModel):
    jobDescription: str
    resumeId: str | None = None


async def _with_timeout(coro: Awaitable[T], model_calls: int = 1) -> T:
    """Bound a route's work by the retry budget of the model calls it makes."""
    try:
        return await asyncio.wait_for(coro, timeout=settings.ai_route_timeout(model_calls))
    except asyncio.TimeoutError:
        raise ServiceUnavailable("The AI service took too long to respond. Please try again.")


@router.post("/parse-cv")
async def parse_cv(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
):
    """Extract plain text from a PDF CV."""
    if (file.content_type or "").lower() != MIME_PDF:
        raise UnsupportedFileType("Only PDF files can be parsed.")
    content = await file.read()
    try:
        text = extract_text_from_pdf(content)
    except Exception:
        logger.exception("PDF parse error user_id=%s filename=%s", user_id, file.filename)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to parse CV.")
    if len(text) < settings.min_extracted_text_length:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parsed CV text is too short or empty.")
    return {"parsedText": text}


@router.post("/generate-resume")
async def generate_resume(
    body: GenerateResumeIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Tailor already-parsed CV text to a job description. Returns the model's JSON text."""
    if not body.parsedText.strip() or not body.jobDescription.strip():
        raise InvalidInput("Missing CV content or job description.")
    with ai_generation_slot(db, user_id) as slot:
        llm = llm_for_user(db, user_id, slot)
        result = await _with_timeout(
            llm.generate_resume_from_vision_analysis(body.parsedText, body.jobDescription, body.additionalInfo)
        )
    await invalidate_usage_cache(user_id)
    return {"result": result}


@router.post("/generate-ai-resume", status_code=status.HTTP_201_CREATED)
async def generate_ai_resume(
    file: UploadFile = File(...),
    jobDescription: str = Form(...),
    additionalInfo: str | None = Form(None),
    photo: UploadFile | None = File(None),
    resumeJson: str | None = Form(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Upload a CV (PDF, PNG, JPEG) and a job description; creates a tailored resume.

    - **resumeJson**: output of /generate-resume, skips extraction and the model call
    """
    mime_type = (file.content_type or "").lower()
    if mime_type not in CV_UPLOAD_MIME_TYPES:
        raise UnsupportedFileType()
    if not jobDescription.strip():
        raise InvalidInput("Job description is empty or invalid")

    cv_file = UploadedDocument(content=await file.read(), filename=file.filename or "cv", mime_type=mime_type)
    photo_file = None
    if photo is not None and photo.filename:
        photo_file = UploadedDocument(
            content=await photo.read(), filename=photo.filename, mime_type=photo.content_type or ""
        )

    logger.info(
        "AI resume requested user_id=%s mime_type=%s size_bytes=%d pregenerated=%s",
        user_id,
        mime_type,
        len(cv_file.content),
        bool(resumeJson),
    )
    if resumeJson:
        resume_id = await _with_timeout(
            generate_tailored_resume(
                db,
                user_id,
                cv_file,
                jobDescription,
                additional_info=additionalInfo,
                photo=photo_file,
                resume_json=resumeJson,
            ),
            model_calls=0,
        )
    else:
        with ai_generation_slot(db, user_id) as slot:
            # image CVs take a transcription call before the tailoring call
            resume_id = await _with_timeout(
                generate_tailored_resume(
                    db,
                    user_id,
                    cv_file,
                    jobDescription,
                    additional_info=additionalInfo,
                    photo=photo_file,
                    llm=llm_for_user(db, user_id, slot),
                ),
                model_calls=2,
            )
    job_description_store.set_draft(user_id, jobDescription, resume_id)
    await invalidate_usage_cache(user_id)
    return {"resumeId": resume_id}


@router.post("/cover-letter")
async def cover_letter(
    body: CoverLetterIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resume = resume_service.get_resume(db, user_id, body.resumeId)
    with ai_generation_slot(db, user_id) as slot:
        llm = llm_for_user(db, user_id, slot)
        text = await _with_timeout(
            llm.generate_cover_letter(resume_values_for_prompt(resume), body.jobDescription, body.additionalInfo)
        )
    await invalidate_usage_cache(user_id)
    return {"coverLetter": text}


@router.post("/hr-message")
async def hr_message(
    body: HRMessageIn,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    resume = resume_service.get_resume(db, user_id, body.resumeId)
    with ai_generation_slot(db, user_id) as slot:
        llm = llm_for_user(db, user_id, slot)
        text = await _with_timeout(
            llm.generate_hr_message(
                resume_values_for_prompt(resume), body.jobDescription, body.recruiterName, body.additionalInfo
            )
        )
    await invalidate_usage_cache(user_id)
    return {"message": text}


@router.get("/job-description-draft")
def get_job_description_draft(user_id: str = Depends(get_current_user_id)):
    return job_description_store.get_draft(user_id) or {"jobDescription": "", "resumeId": None}


@router.put("/job-description-draft")
def put_job_description_draft(
    body: JobDescriptionDraftIn,
    user_id: str = Depends(get_current_user_id),
):
    return job_description_store.set_draft(user_id, body.jobDescription, body.resumeId)


@router.delete("/job-description-draft")
def delete_job_description_draft(user_id: str = Depends(get_current_user_id)):
    job_description_store.clear_draft(user_id)
    return {"success": True}
