"""
Resume service - persistence, title deduplication, duplicate/delete and resume groups.
Every operation is scoped to the owning user; a resume owned by someone else is reported as not found.
"""
import re
import time
from datetime import date, datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from tailorcv.app.core.config import DEFAULT_BORDER_STYLE, DEFAULT_COLOR_HEX, DEFAULT_TEMPLATE
from tailorcv.app.core.exceptions import NotFound, QuotaExceeded
from tailorcv.app.core.logging_config import get_logger
from tailorcv.app.core.monitoring import best_effort
from tailorcv.app.models.resume import Education, Resume, WorkExperience
from tailorcv.app.models.resume_group import ResumeGroup
from tailorcv.app.schemas.resume import AnalysisValues, ResumeValues
from tailorcv.app.services.photo import process_photo
from tailorcv.app.services.s3_service import UploadedDocument, delete_file, store_file
from tailorcv.app.services.usage_service import UsageService

logger = get_logger("services.resume")

DEFAULT_TITLE = "Resume"


# --- Dates ---
def parse_date(value) -> date | None:
    """YYYY-MM-DD, YYYY-MM, YYYY or an ISO datetime -> date. Anything else -> None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if len(s) > 10 and s[10] in "T ":
        # ISO datetime: only the date part matters
        s = s[:10]
    for fmt, length in (("%Y-%m-%d", 10), ("%Y-%m", 7), ("%Y", 4)):
        if len(s) != length:
            continue
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            return None
    return None


# --- Title deduplication ---
def next_numbered_title(base: str, existing_titles) -> str:
    """
    base if no existing title is base or "base (N)", else "base (max+1)".
    A bare base counts as number 1.
    """
    pattern = re.compile(rf"^{re.escape(base)}(?: \((\d+)\))?$")
    highest = 0
    for t in existing_titles:
        m = pattern.match(t or "")
        if m:
            highest = max(highest, int(m.group(1)) if m.group(1) else 1)
    if highest == 0:
        return base
    return f"{base} ({highest + 1})"


def next_copy_title(base: str, existing_titles) -> str:
    """ "base (Copy)" for the first copy, then "base (Copy 2)", "base (Copy 3)", ..."""
    pattern = re.compile(rf"^{re.escape(base)} \(Copy(?: (\d+))?\)$")
    highest = 0
    for t in existing_titles:
        m = pattern.match(t or "")
        if m:
            highest = max(highest, int(m.group(1)) if m.group(1) else 1)
    if highest == 0:
        return f"{base} (Copy)"
    return f"{base} (Copy {highest + 1})"


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _titles_starting_with(db: Session, user_id: str, prefix: str) -> list[str]:
    rows = (
        db.query(Resume.title)
        .filter(Resume.user_id == user_id, Resume.title.like(f"{_escape_like(prefix)}%", escape="\\"))
        .all()
    )
    return [r[0] for r in rows]


def unique_title_for_user(db: Session, user_id: str, base: str) -> str:
    return next_numbered_title(base, _titles_starting_with(db, user_id, base))


# --- Reads ---
def _owned_query(db: Session, user_id: str):
    return db.query(Resume).filter(Resume.user_id == user_id)


def get_resume(db: Session, user_id: str, resume_id: str) -> Resume:
    resume = (
        _owned_query(db, user_id)
        .options(selectinload(Resume.work_experiences), selectinload(Resume.educations))
        .filter(Resume.id == resume_id)
        .first()
    )
    if not resume:
        raise NotFound()
    return resume


def list_resumes(db: Session, user_id: str) -> list[Resume]:
    return (
        _owned_query(db, user_id)
        .options(selectinload(Resume.work_experiences), selectinload(Resume.educations))
        .order_by(Resume.updated_at.desc())
        .all()
    )


def count_resumes(db: Session, user_id: str) -> int:
    return db.query(func.count(Resume.id)).filter(Resume.user_id == user_id).scalar() or 0


def get_job_description(db: Session, user_id: str, resume_id: str) -> str | None:
    row = _owned_query(db, user_id).with_entities(Resume.job_description).filter(Resume.id == resume_id).first()
    if row is None:
        raise NotFound()
    return row[0]


def clear_job_description(db: Session, user_id: str, resume_id: str) -> None:
    resume = _owned_query(db, user_id).filter(Resume.id == resume_id).first()
    if not resume:
        raise NotFound()
    resume.job_description = None
    db.commit()


# --- Writes ---
def _apply_values(resume: Resume, values: ResumeValues) -> None:
    """Copy scalar fields onto the row and replace both child collections wholesale."""
    resume.title = values.title
    resume.description = values.description
    resume.first_name = values.firstName
    resume.last_name = values.lastName
    resume.job_title = values.jobTitle
    resume.city = values.city
    resume.country = values.country
    resume.phone = values.phone
    resume.email = values.email
    resume.summary = values.summary
    resume.color_hex = values.colorHex or DEFAULT_COLOR_HEX
    resume.border_style = values.borderStyle or DEFAULT_BORDER_STYLE
    resume.template = values.template or DEFAULT_TEMPLATE
    resume.skills = list(values.skills)
    resume.work_experiences = [
        WorkExperience(
            position_index=i,
            position=w.position,
            company=w.company,
            start_date=parse_date(w.startDate),
            end_date=parse_date(w.endDate),
            description=w.description,
        )
        for i, w in enumerate(values.workExperiences)
    ]
    resume.educations = [
        Education(
            position_index=i,
            degree=e.degree,
            school=e.school,
            start_date=parse_date(e.startDate),
            end_date=parse_date(e.endDate),
            description=e.description,
        )
        for i, e in enumerate(values.educations)
    ]


def _apply_analysis(resume: Resume, analysis: AnalysisValues | None) -> None:
    if analysis is None:
        return
    resume.matching_points = list(analysis.matchingPoints)
    resume.prioritized_skills = list(analysis.prioritizedSkills)
    resume.analysis_reason = analysis.reason


def _reserve_resume_slot(db: Session, user_id: str) -> None:
    if not UsageService.increment_resume_count(db, user_id):
        raise QuotaExceeded("resume")


def create_resume(
    db: Session,
    user_id: str,
    resume_data: ResumeValues,
    photo_url: str | None = None,
    cv_url: str | None = None,
    title: str | None = None,
    description: str | None = None,
    analysis: AnalysisValues | None = None,
) -> Resume:
    """
    Create a resume with its children in one transaction.
    The quota slot is taken first and handed back if the insert fails.
    """
    _reserve_resume_slot(db, user_id)
    resume = Resume(user_id=user_id)
    _apply_values(resume, resume_data)
    if title is not None:
        resume.title = title
    if description is not None:
        resume.description = description
    resume.photo_url = photo_url
    resume.cv_url = cv_url
    _apply_analysis(resume, analysis)
    db.add(resume)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        best_effort("release resume slot", UsageService.decrement_resume_count, db, user_id)
        raise
    db.refresh(resume)
    logger.info(
        "Resume created user_id=%s resume_id=%s experiences=%d educations=%d",
        user_id,
        resume.id,
        len(resume.work_experiences),
        len(resume.educations),
    )
    return resume


def store_photo(user_id: str, photo: UploadedDocument) -> str:
    jpeg = process_photo(photo.content, photo.mime_type)
    return store_file(jpeg, f"photo_{int(time.time() * 1000)}.jpg", user_id, "image/jpeg")


def _url_shared(db: Session, user_id: str, url: str, exclude_id: str | None) -> bool:
    """True when another resume of the user still points at url (duplicates share blobs)."""
    q = _owned_query(db, user_id).filter(or_(Resume.photo_url == url, Resume.cv_url == url))
    if exclude_id:
        q = q.filter(Resume.id != exclude_id)
    return db.query(q.exists()).scalar()


def _release_blob(db: Session, user_id: str, url: str | None, owner_id: str | None) -> None:
    if not url or _url_shared(db, user_id, url, owner_id):
        return
    if not delete_file(url):
        logger.warning("Blob delete failed user_id=%s url=%s", user_id, url)


def save_resume(
    db: Session,
    user_id: str,
    values: ResumeValues,
    photo: UploadedDocument | None = None,
    remove_photo: bool = False,
) -> Resume:
    """
    Create-or-update from editor values.
    photo given: replace the stored photo. remove_photo: clear it. Neither: leave it as is.
    Children are replaced wholesale on update.
    """
    existing = get_resume(db, user_id, values.id) if values.id else None

    new_photo_url = store_photo(user_id, photo) if photo is not None else None

    if existing is None:
        try:
            return create_resume(db, user_id, values, photo_url=new_photo_url)
        except Exception:
            if new_photo_url:
                best_effort("delete orphaned photo", delete_file, new_photo_url)
            raise

    old_photo_url = existing.photo_url
    _apply_values(existing, values)
    if photo is not None:
        existing.photo_url = new_photo_url
    elif remove_photo:
        existing.photo_url = None
    existing.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(existing)

    if old_photo_url and old_photo_url != existing.photo_url:
        _release_blob(db, user_id, old_photo_url, existing.id)
    logger.info("Resume saved user_id=%s resume_id=%s", user_id, existing.id)
    return existing


def duplicate_resume(db: Session, user_id: str, resume_id: str) -> Resume:
    original = get_resume(db, user_id, resume_id)
    _reserve_resume_slot(db, user_id)

    base = original.title or DEFAULT_TITLE
    new_title = next_copy_title(base, _titles_starting_with(db, user_id, f"{base} (Copy"))

    copy = Resume(
        user_id=user_id,
        title=new_title,
        description=original.description,
        photo_url=original.photo_url,
        cv_url=original.cv_url,
        color_hex=original.color_hex,
        border_style=original.border_style,
        template=original.template,
        summary=original.summary,
        first_name=original.first_name,
        last_name=original.last_name,
        job_title=original.job_title,
        city=original.city,
        country=original.country,
        phone=original.phone,
        email=original.email,
        skills=list(original.skills or []),
        job_description=original.job_description,
        matching_points=list(original.matching_points or []),
        prioritized_skills=list(original.prioritized_skills or []),
        analysis_reason=original.analysis_reason,
        work_experiences=[
            WorkExperience(
                position_index=w.position_index,
                position=w.position,
                company=w.company,
                start_date=w.start_date,
                end_date=w.end_date,
                description=w.description,
            )
            for w in original.work_experiences
        ],
        educations=[
            Education(
                position_index=e.position_index,
                degree=e.degree,
                school=e.school,
                start_date=e.start_date,
                end_date=e.end_date,
                description=e.description,
            )
            for e in original.educations
        ],
    )
    db.add(copy)
    try:
        db.flush()
        for group in _groups_containing(db, user_id, resume_id):
            group.resume_ids = list(group.resume_ids or []) + [copy.id]
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        best_effort("release resume slot", UsageService.decrement_resume_count, db, user_id)
        raise
    db.refresh(copy)
    logger.info("Resume duplicated user_id=%s source=%s copy=%s title=%s", user_id, resume_id, copy.id, new_title)
    return copy


def delete_resume(db: Session, user_id: str, resume_id: str) -> None:
    """Delete a resume, its blobs (a missing blob is fine) and its group memberships."""
    resume = _owned_query(db, user_id).filter(Resume.id == resume_id).first()
    if not resume:
        raise NotFound()

    for url in {resume.photo_url, resume.cv_url}:
        _release_blob(db, user_id, url, resume.id)

    for group in _groups_containing(db, user_id, resume_id):
        group.resume_ids = [rid for rid in (group.resume_ids or []) if rid != resume_id]

    db.delete(resume)
    db.commit()
    UsageService.decrement_resume_count(db, user_id)
    logger.info("Resume deleted user_id=%s resume_id=%s", user_id, resume_id)


# --- Groups ---
def _groups_containing(db: Session, user_id: str, resume_id: str) -> list[ResumeGroup]:
    # resume_ids is a JSON list; membership is filtered here to stay portable across backends
    return [g for g in list_groups(db, user_id) if resume_id in (g.resume_ids or [])]


def list_groups(db: Session, user_id: str) -> list[ResumeGroup]:
    return (
        db.query(ResumeGroup)
        .filter(ResumeGroup.user_id == user_id)
        .order_by(ResumeGroup.updated_at.desc())
        .all()
    )


def _get_group(db: Session, user_id: str, group_id: str) -> ResumeGroup:
    group = (
        db.query(ResumeGroup)
        .filter(ResumeGroup.id == group_id, ResumeGroup.user_id == user_id)
        .first()
    )
    if not group:
        raise NotFound("Group not found")
    return group


def create_group(db: Session, user_id: str, name: str, resume_ids: list[str] | None = None) -> ResumeGroup:
    group = ResumeGroup(user_id=user_id, name=name, resume_ids=list(resume_ids or []))
    db.add(group)
    db.commit()
    db.refresh(group)
    logger.info("Resume group created user_id=%s group_id=%s", user_id, group.id)
    return group


def update_group(
    db: Session,
    user_id: str,
    group_id: str,
    name: str | None = None,
    resume_ids: list[str] | None = None,
) -> ResumeGroup:
    group = _get_group(db, user_id, group_id)
    if name is not None:
        group.name = name
    if resume_ids is not None:
        group.resume_ids = list(resume_ids)
    group.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(group)
    return group


def delete_group(db: Session, user_id: str, group_id: str) -> None:
    group = _get_group(db, user_id, group_id)
    db.delete(group)
    db.commit()
    logger.info("Resume group deleted user_id=%s group_id=%s", user_id, group_id)
