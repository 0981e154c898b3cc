from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.types import JSON

from jobportal.database import Base
from jobportal.timeutil import utcnow


class Job(Base):
    __tablename__ = "jobs"
    __table_args__ = (
        Index("idx_jobs_active_expires", "is_active", "expires_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    posted_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, nullable=False)
    location = Column(String(100), nullable=False)
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    job_type = Column(String(20), nullable=False)
    experience_level = Column(String(20), nullable=False)
    skills = Column(JSON)
    benefits = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def accepts_applications(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return bool(self.is_active) and self.expires_at is not None and self.expires_at > now
