"""
Tests for the AI resume generation pipeline.
"""
import asyncio
import json

import pytest

from tailorcv.app.core.exceptions import EmptyExtraction, QuotaExceeded, ResumeParsingFailed
from tailorcv.app.models.resume import Resume
from tailorcv.app.models.user_usage import UserUsage
from tailorcv.app.schemas.resume import GeneratedResume
from tailorcv.app.services.resume_generation import (
    derive_project_title,
    generate_tailored_resume,
    parse_company_and_role,
    parse_resume_json,
)
from tailorcv.app.services.s3_service import UploadedDocument

from tailorcv.tests.helpers import FakeLLM, generated_resume, make_image, make_pdf

JOB_DESCRIPTION = "Acme Corp is hiring a Senior Backend Engineer (Python, PostgreSQL, AWS)."


def _png_cv():
    return UploadedDocument(content=make_image("PNG", size=(600, 800), color=(255, 255, 255)), filename="CV.PNG", mime_type="image/png")


def _run(db, user_id, llm, **kwargs):
    return asyncio.run(
        generate_tailored_resume(db, user_id, kwargs.pop("cv_file", _png_cv()), JOB_DESCRIPTION, llm=llm, **kwargs)
    )


def _uploaded_files(root):
    base = root / "uploads" / "files"
    return sorted(p.name for p in base.rglob("*") if p.is_file()) if base.exists() else []


# --- JSON recovery ---
def test_parse_plain_json():
    assert parse_resume_json('{"title": "T"}') == {"title": "T"}


def test_parse_fenced_json():
    raw = 'Here you go:\n```json\n{"title": "T", "skills": ["a"]}\n```\nGood luck!'
    assert parse_resume_json(raw) == {"title": "T", "skills": ["a"]}


def test_parse_bare_object_with_nesting():
    raw = 'Result: {"title": "T", "analysis": {"reason": "fit"}} thanks'
    assert parse_resume_json(raw)["analysis"] == {"reason": "fit"}


def test_parse_first_of_several_objects():
    raw = 'First {"title": "A"} and then {"title": "B"}'
    assert parse_resume_json(raw) == {"title": "A"}


def test_parse_skips_braces_that_are_not_json():
    raw = 'Use {placeholders} like this: {"title": "T", "skills": ["Go"]} done'
    assert parse_resume_json(raw) == {"title": "T", "skills": ["Go"]}


def test_parse_garbage_fails():
    for raw in ("no json here", "```json\nnot json\n```", "[1, 2]", ""):
        with pytest.raises(ResumeParsingFailed):
            parse_resume_json(raw)


# --- Titles ---
def test_parse_company_and_role():
    assert parse_company_and_role("Acme Corp Senior Backend Engineer Resume") == ("Acme Corp", "Senior Backend Engineer")
    assert parse_company_and_role("Senior Backend Engineer Resume") == ("Company", "Senior Backend Engineer")
    assert parse_company_and_role("My CV", "Engineer") == ("Company", "Engineer")
    assert parse_company_and_role(None) == ("Company", "Position")


def test_structured_company_and_role_win():
    data = GeneratedResume.model_validate(generated_resume(title="Something Else Entirely Resume"))
    assert derive_project_title(data) == ("Acme Corp Senior Backend Engineer Resume", "Acme Corp", "Senior Backend Engineer")

    data = GeneratedResume.model_validate(generated_resume(company=None, role="", title="Initech Corp Senior QA Lead Resume"))
    assert derive_project_title(data)[1:] == ("Initech Corp", "Senior QA Lead")


# --- Pipeline ---
def test_generation_creates_tailored_resume(db_session, user_id, local_storage):
    """Image CV -> vision transcription -> tailored resume persisted with analysis"""
    llm = FakeLLM()
    resume_id = _run(db_session, user_id, llm)

    resume = db_session.query(Resume).filter(Resume.id == resume_id).one()
    assert resume.title == "Acme Corp Senior Backend Engineer Resume"
    assert len(resume.skills) >= 15
    assert len(resume.matching_points) >= 1
    assert resume.prioritized_skills == ["Python", "PostgreSQL"]
    assert resume.job_description == JOB_DESCRIPTION
    assert resume.description.startswith("Professional ATS-optimized resume for Senior Backend Engineer role at Acme Corp.")
    assert resume.cv_url.startswith(f"/uploads/files/{user_id}/cv_")
    assert resume.cv_url.endswith(".png")
    assert [w.company for w in resume.work_experiences] == ["Globex GmbH"]
    assert resume.work_experiences[0].start_date.isoformat() == "2019-03-01"

    assert [c[0] for c in llm.calls] == ["analyze_image", "generate_resume"]
    assert llm.calls[0][1].startswith("data:image/png;base64,")
    assert db_session.query(UserUsage).filter(UserUsage.user_id == user_id).one().resume_count == 1


def test_second_generation_gets_numbered_title(db_session, user_id):
    first = _run(db_session, user_id, FakeLLM())
    second = _run(db_session, user_id, FakeLLM())
    titles = {r.id: r.title for r in db_session.query(Resume).all()}
    assert titles[first] == "Acme Corp Senior Backend Engineer Resume"
    assert titles[second] == "Acme Corp Senior Backend Engineer Resume (2)"


def test_generation_with_photo(db_session, user_id, local_storage):
    photo = UploadedDocument(content=make_image("JPEG"), filename="me.jpg", mime_type="image/jpeg")
    resume_id = _run(db_session, user_id, FakeLLM(), photo=photo)
    resume = db_session.query(Resume).filter(Resume.id == resume_id).one()
    assert resume.photo_url.endswith(".jpg")
    assert (local_storage / resume.photo_url.lstrip("/")).exists()


def test_pregenerated_json_skips_model(db_session, user_id):
    llm = FakeLLM()
    raw = "```json\n" + json.dumps(generated_resume(company="Initech", role="QA Lead")) + "\n```"
    resume_id = _run(db_session, user_id, llm, resume_json=raw)
    assert llm.calls == []
    assert db_session.query(Resume).filter(Resume.id == resume_id).one().title == "Initech QA Lead Resume"


def test_unparseable_output_keeps_upload_but_creates_nothing(db_session, user_id, local_storage):
    """No row and no usage slot when the model answer is unusable; the raw CV stays stored"""
    with pytest.raises(ResumeParsingFailed):
        _run(db_session, user_id, FakeLLM(raw="I cannot help with that"))
    assert db_session.query(Resume).count() == 0
    files = _uploaded_files(local_storage)
    assert len(files) == 1
    assert files[0].startswith("cv_") and files[0].endswith(".png")
    usage = db_session.query(UserUsage).filter(UserUsage.user_id == user_id).first()
    assert usage is None or usage.resume_count == 0


def test_failed_generation_keeps_photo_upload(db_session, user_id, local_storage):
    photo = UploadedDocument(content=make_image("JPEG"), filename="me.jpg", mime_type="image/jpeg")
    with pytest.raises(ResumeParsingFailed):
        _run(db_session, user_id, FakeLLM(raw="[]"), photo=photo)
    assert db_session.query(Resume).count() == 0
    files = _uploaded_files(local_storage)
    assert len(files) == 2
    assert any(name.startswith("cv_") for name in files)
    assert any(name.startswith("photo_") and name.endswith(".jpg") for name in files)


def test_short_pdf_fails_extraction(db_session, user_id, local_storage):
    cv = UploadedDocument(content=make_pdf(["Hi"]), filename="cv.pdf", mime_type="application/pdf")
    with pytest.raises(EmptyExtraction):
        _run(db_session, user_id, FakeLLM(), cv_file=cv)
    assert db_session.query(Resume).count() == 0
    files = _uploaded_files(local_storage)
    assert len(files) == 1 and files[0].endswith(".pdf")


def test_quota_checked_before_upload(db_session, user_id, local_storage):
    db_session.add(UserUsage(user_id=user_id, resume_count=3, ai_generation_count=0))
    db_session.commit()
    llm = FakeLLM()
    with pytest.raises(QuotaExceeded):
        _run(db_session, user_id, llm)
    assert llm.calls == []
    assert db_session.query(Resume).count() == 0
    assert _uploaded_files(local_storage) == []


def test_loosely_typed_model_output_is_coerced(db_session, user_id):
    """Numbers, lists and bad dates from the model are coerced instead of failing the whole generation"""
    resume = generated_resume(phone=5551234)
    resume["workExperiences"][0].update(
        {"startDate": 2019, "endDate": "2020-13-45", "description": ["Built APIs", "Led migrations", None]}
    )
    resume["educations"][0]["startDate"] = {"year": 2012}
    resume["analysis"]["reason"] = ["Strong", "Python"]

    resume_id = _run(db_session, user_id, FakeLLM(resume=resume))

    row = db_session.query(Resume).filter(Resume.id == resume_id).one()
    assert row.phone == "5551234"
    experience = row.work_experiences[0]
    assert experience.start_date is None
    assert experience.end_date is None
    assert experience.description == "Built APIs\nLed migrations"
    assert row.educations[0].start_date is None
