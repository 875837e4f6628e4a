"""
AI resume generation - upload, extract, tailor with the model, recover its JSON, persist.

Uploads are stored before anything else and kept even when a later step fails, so the
raw CV is never lost. No resume row exists unless the whole pipeline up to the insert
succeeded.
"""
import json
import re
import time

from pydantic import ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tailorcv.app.core.exceptions import QuotaExceeded, ResumeGenerationFailed, ResumeParsingFailed, TailorCVError
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.core.monitoring import best_effort, capture_error
from tailorcv.app.schemas.resume import GeneratedResume
from tailorcv.app.services import document_extractor, resume_service
from tailorcv.app.services.llm_client import LanguageModelClient
from tailorcv.app.services.s3_service import UploadedDocument, store_file
from tailorcv.app.services.usage_service import AIGenerationSlot, UsageService

logger = get_logger("services.resume_generation")

DEFAULT_COMPANY = "Company"
DEFAULT_ROLE = "Position"

_FENCED_JSON = re.compile(r"```(?:json)?([\s\S]*?)```")
_decoder = json.JSONDecoder()


def llm_for_user(db: Session, user_id: str, slot: AIGenerationSlot | None = None) -> LanguageModelClient:
    """
    Client whose successful generations count against the user's AI quota.
    With a reserved slot the first success claims it; without one each success is
    counted with its own conditional increment.
    """
    if slot is not None:
        return LanguageModelClient(user_id=user_id, usage_recorder=slot.record)
    return LanguageModelClient(
        user_id=user_id,
        usage_recorder=lambda: UsageService.increment_ai_generation_count(db, user_id),
    )


def _first_object(raw: str) -> dict | None:
    start = raw.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(raw, start)
            return value
        except ValueError:
            start = raw.find("{", start + 1)
    return None


def parse_resume_json(raw: str) -> dict:
    """
    Parse the model's answer. Falls back to the first fenced code block, then the
    first complete {...} value, when the text is not JSON as a whole.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raw = raw or ""
        fenced = _FENCED_JSON.search(raw)
        if fenced:
            candidate = fenced.group(1).strip()
            try:
                data = json.loads(candidate)
            except ValueError as e:
                logger.warning("Fenced JSON candidate did not parse chars=%d", len(candidate))
                raise ResumeParsingFailed() from e
        else:
            data = _first_object(raw)
            if data is None:
                raise ResumeParsingFailed("Failed to extract valid JSON from AI response")
    if not isinstance(data, dict):
        raise ResumeParsingFailed()
    return data


def parse_company_and_role(title: str | None, job_title: str | None = None) -> tuple[str, str]:
    """
    Split "<Company> <Role> Resume" into (company, role). The role is taken as up
    to three words before "Resume"; whatever precedes it is the company.
    """
    company = DEFAULT_COMPANY
    role = job_title or DEFAULT_ROLE
    if not title:
        return company, role
    tokens = title.split(" ")
    if len(tokens) < 3 or tokens[-1].lower() != "resume":
        return company, role
    last = len(tokens) - 1
    role_words = []
    i = last - 1
    while i >= 0 and i >= last - 3:
        role_words.insert(0, tokens[i])
        i -= 1
    company = " ".join(tokens[: i + 1]).strip() or DEFAULT_COMPANY
    role = " ".join(role_words).strip() or role
    return company, role


def derive_project_title(data: GeneratedResume) -> tuple[str, str, str]:
    """(title, company, role). Structured company/role win over parsing the title."""
    company, role = parse_company_and_role(data.title, data.jobTitle)
    if data.company and data.company.strip():
        company = data.company.strip()
    if data.role and data.role.strip():
        role = data.role.strip()
    return f"{company} {role} Resume", company, role


def build_description(company: str, role: str, job_description: str | None) -> str:
    return (
        f"Professional ATS-optimized resume for {role} role at {company}.\n"
        "Created using AI assistance based on candidate's authentic qualifications and experience.\n"
        f"Job description: {job_description or 'Not provided'}"
    )


def _attach_source(db: Session, resume_id: str, cv_url: str, job_description: str | None) -> None:
    try:
        db.execute(
            text("UPDATE resumes SET cv_url = :cv_url, job_description = :jd WHERE id = :id"),
            {"cv_url": cv_url, "jd": job_description or None, "id": resume_id},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


async def generate_tailored_resume(
    db: Session,
    user_id: str,
    cv_file: UploadedDocument,
    job_description: str,
    additional_info: str | None = None,
    photo: UploadedDocument | None = None,
    resume_json: str | None = None,
    llm: LanguageModelClient | None = None,
) -> str:
    """Run the full pipeline and return the new resume id."""
    if not UsageService.can_create_resume(db, user_id):
        raise QuotaExceeded("resume")

    stamp = int(time.time() * 1000)
    cv_url = None
    try:
        cv_url = store_file(cv_file.content, f"cv_{stamp}{cv_file.extension}", user_id, cv_file.mime_type)
        photo_url = None
        if photo is not None:
            photo_url = resume_service.store_photo(user_id, photo)
        logger.info("Generation uploads stored user_id=%s has_photo=%s", user_id, photo is not None)

        if resume_json:
            raw = resume_json
        else:
            llm = llm or llm_for_user(db, user_id)
            cv_text = await document_extractor.extract_text(
                cv_file.content, cv_file.mime_type, llm, job_description, additional_info
            )
            raw = await llm.generate_resume_from_vision_analysis(cv_text, job_description, additional_info)

        try:
            generated = GeneratedResume.model_validate(parse_resume_json(raw))
        except ValidationError as e:
            raise ResumeParsingFailed() from e

        base_title, company, role = derive_project_title(generated)
        title = resume_service.unique_title_for_user(db, user_id, base_title)

        resume = resume_service.create_resume(
            db,
            user_id,
            generated.to_resume_values(),
            photo_url=photo_url,
            title=title,
            description=build_description(company, role, job_description),
            analysis=generated.analysis,
        )
    except TailorCVError as e:
        logger.info("AI resume generation stopped user_id=%s error=%s cv_url=%s", user_id, type(e).__name__, cv_url)
        raise
    except Exception as e:
        capture_error("AI resume generation failed", e, {"user_id": user_id, "cv_url": cv_url}, "high")
        raise ResumeGenerationFailed() from e

    best_effort("attach cv_url/job_description", _attach_source, db, resume.id, cv_url, job_description)
    logger.info("AI resume generated user_id=%s resume_id=%s title=%s", user_id, resume.id, title)
    return resume.id
