"""
Resume database models - a resume owns ordered work experiences and educations
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from tailorcv.app.core.config import DEFAULT_BORDER_STYLE, DEFAULT_COLOR_HEX, DEFAULT_TEMPLATE
from tailorcv.app.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(String(32), primary_key=True, default=_new_id)
    user_id = Column(String(255), nullable=False, index=True)

    title = Column(String(255), nullable=True, index=True)
    description = Column(Text, nullable=True)

    photo_url = Column(String(1024), nullable=True)
    cv_url = Column(String(1024), nullable=True)
    color_hex = Column(String(16), default=DEFAULT_COLOR_HEX, nullable=False)
    border_style = Column(String(32), default=DEFAULT_BORDER_STYLE, nullable=False)
    template = Column(String(32), default=DEFAULT_TEMPLATE, nullable=False)

    summary = Column(Text, nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    job_title = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)

    skills = Column(JSON, default=list, nullable=False)

    job_description = Column(Text, nullable=True)  # JD the resume was tailored against

    # AI analysis
    matching_points = Column(JSON, default=list, nullable=False)
    prioritized_skills = Column(JSON, default=list, nullable=False)
    analysis_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    work_experiences = relationship(
        "WorkExperience",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="WorkExperience.position_index",
    )
    educations = relationship(
        "Education",
        back_populates="resume",
        cascade="all, delete-orphan",
        order_by="Education.position_index",
    )


class WorkExperience(Base):
    __tablename__ = "work_experiences"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(32), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    position_index = Column(Integer, default=0, nullable=False)

    position = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    resume = relationship("Resume", back_populates="work_experiences")


class Education(Base):
    __tablename__ = "educations"

    id = Column(Integer, primary_key=True, index=True)
    resume_id = Column(String(32), ForeignKey("resumes.id", ondelete="CASCADE"), nullable=False, index=True)
    position_index = Column(Integer, default=0, nullable=False)

    degree = Column(String(255), nullable=True)
    school = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    resume = relationship("Resume", back_populates="educations")
