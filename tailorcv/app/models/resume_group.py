"""
ResumeGroup - user-defined named bucket of resume ids (plain id list, not a foreign key)
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String

from tailorcv.app.db.base import Base


class ResumeGroup(Base):
    __tablename__ = "resume_groups"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    user_id = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    resume_ids = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
