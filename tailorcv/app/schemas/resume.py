"""
Resume Pydantic schemas - camelCase payloads exchanged with the editor UI and the model
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tailorcv.app.core.config import DEFAULT_BORDER_STYLE, DEFAULT_COLOR_HEX, DEFAULT_TEMPLATE


def _clean_strings(values) -> list[str]:
    """Coerce a loose list (model output may contain numbers/nulls) to non-empty strings."""
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    out = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s:
            out.append(s)
    return out


def _loose_text(value) -> Optional[str]:
    """Model output may put numbers or lists where text belongs."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return "\n".join(_clean_strings(value)) or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _loose_date(value) -> Optional[str]:
    """Only strings can be dates; anything else is treated as missing."""
    return value if isinstance(value, str) else None


# --- Nested schemas ---
class WorkExperienceValues(BaseModel):
    position: Optional[str] = None
    company: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    description: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("position", "company", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return _loose_text(v)

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def _dates(cls, v):
        return _loose_date(v)


class EducationValues(BaseModel):
    degree: Optional[str] = None
    school: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    description: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("degree", "school", "description", mode="before")
    @classmethod
    def _text(cls, v):
        return _loose_text(v)

    @field_validator("startDate", "endDate", mode="before")
    @classmethod
    def _dates(cls, v):
        return _loose_date(v)


class AnalysisValues(BaseModel):
    matchingPoints: List[str] = Field(default_factory=list)
    prioritizedSkills: List[str] = Field(default_factory=list)
    reason: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("matchingPoints", "prioritizedSkills", mode="before")
    @classmethod
    def _strings(cls, v):
        return _clean_strings(v)

    @field_validator("reason", mode="before")
    @classmethod
    def _reason(cls, v):
        return _loose_text(v)


class ResumeValues(BaseModel):
    """Editable resume content. `id` is absent for a resume that has never been saved."""
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    jobTitle: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    summary: Optional[str] = None
    colorHex: str = Field(default=DEFAULT_COLOR_HEX, pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")
    borderStyle: str = DEFAULT_BORDER_STYLE
    template: str = DEFAULT_TEMPLATE
    skills: List[str] = Field(default_factory=list)
    workExperiences: List[WorkExperienceValues] = Field(default_factory=list)
    educations: List[EducationValues] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, v):
        return _clean_strings(v)


class GeneratedResume(BaseModel):
    """Structured object the tailoring prompt asks the model to return."""
    title: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    summary: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    jobTitle: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    workExperiences: List[WorkExperienceValues] = Field(default_factory=list)
    educations: List[EducationValues] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    analysis: AnalysisValues = Field(default_factory=AnalysisValues)

    model_config = {"extra": "ignore"}

    @field_validator("skills", mode="before")
    @classmethod
    def _skills(cls, v):
        return _clean_strings(v)

    @field_validator("workExperiences", "educations", mode="before")
    @classmethod
    def _entries(cls, v):
        if not v:
            return []
        return [e for e in v if isinstance(e, dict)]

    @field_validator(
        "title", "company", "role", "summary", "firstName", "lastName",
        "jobTitle", "city", "country", "email", "phone",
        mode="before",
    )
    @classmethod
    def _text(cls, v):
        return _loose_text(v)

    @field_validator("analysis", mode="before")
    @classmethod
    def _analysis(cls, v):
        return v if isinstance(v, dict) else {}

    def to_resume_values(self) -> ResumeValues:
        return ResumeValues(
            title=self.title,
            summary=self.summary,
            firstName=self.firstName,
            lastName=self.lastName,
            jobTitle=self.jobTitle,
            city=self.city,
            country=self.country,
            email=self.email,
            phone=self.phone,
            skills=self.skills,
            workExperiences=self.workExperiences,
            educations=self.educations,
        )


class ResumeResponse(BaseModel):
    """Persisted resume as returned by the API"""
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    photoUrl: Optional[str] = None
    cvUrl: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    jobTitle: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    summary: Optional[str] = None
    colorHex: str = DEFAULT_COLOR_HEX
    borderStyle: str = DEFAULT_BORDER_STYLE
    template: str = DEFAULT_TEMPLATE
    skills: List[str] = Field(default_factory=list)
    workExperiences: List[WorkExperienceValues] = Field(default_factory=list)
    educations: List[EducationValues] = Field(default_factory=list)
    jobDescription: Optional[str] = None
    analysis: AnalysisValues = Field(default_factory=AnalysisValues)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class ResumeGroupIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    resumeIds: List[str] = Field(default_factory=list)


class ResumeGroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    resumeIds: Optional[List[str]] = None


class ResumeGroupResponse(BaseModel):
    id: str
    name: str
    resumeIds: List[str] = Field(default_factory=list)
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


def format_date(d: date | None) -> str | None:
    """Date column -> YYYY-MM-DD (or None)"""
    return d.isoformat() if d else None


def resume_model_to_payload(resume) -> ResumeResponse:
    """Convert Resume DB model (with children loaded) to ResumeResponse"""
    return ResumeResponse(
        id=resume.id,
        title=resume.title,
        description=resume.description,
        photoUrl=resume.photo_url,
        cvUrl=resume.cv_url,
        firstName=resume.first_name,
        lastName=resume.last_name,
        jobTitle=resume.job_title,
        city=resume.city,
        country=resume.country,
        phone=resume.phone,
        email=resume.email,
        summary=resume.summary,
        colorHex=resume.color_hex or DEFAULT_COLOR_HEX,
        borderStyle=resume.border_style or DEFAULT_BORDER_STYLE,
        template=resume.template or DEFAULT_TEMPLATE,
        skills=list(resume.skills or []),
        workExperiences=[
            WorkExperienceValues(
                position=w.position,
                company=w.company,
                startDate=format_date(w.start_date),
                endDate=format_date(w.end_date),
                description=w.description,
            )
            for w in resume.work_experiences
        ],
        educations=[
            EducationValues(
                degree=e.degree,
                school=e.school,
                startDate=format_date(e.start_date),
                endDate=format_date(e.end_date),
                description=e.description,
            )
            for e in resume.educations
        ],
        jobDescription=resume.job_description,
        analysis=AnalysisValues(
            matchingPoints=list(resume.matching_points or []),
            prioritizedSkills=list(resume.prioritized_skills or []),
            reason=resume.analysis_reason,
        ),
        createdAt=resume.created_at,
        updatedAt=resume.updated_at,
    )


def group_model_to_payload(group) -> ResumeGroupResponse:
    return ResumeGroupResponse(
        id=group.id,
        name=group.name,
        resumeIds=list(group.resume_ids or []),
        createdAt=group.created_at,
        updatedAt=group.updated_at,
    )


def resume_values_for_prompt(resume) -> dict:
    """Resume content the cover-letter / recruiter-message prompts see (no ids, no urls)."""
    payload = resume_model_to_payload(resume)
    return payload.model_dump(
        exclude={"id", "photoUrl", "cvUrl", "createdAt", "updatedAt", "jobDescription", "analysis", "description"},
        exclude_none=True,
    )
