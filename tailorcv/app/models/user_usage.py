"""
UserUsage - per-user counters checked by the free-tier quota gate
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from tailorcv.app.db.base import Base


class UserUsage(Base):
    __tablename__ = "user_usage"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)

    resume_count = Column(Integer, default=0, nullable=False)
    ai_generation_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
