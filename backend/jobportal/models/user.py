from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from jobportal.database import Base
from jobportal.timeutil import utcnow


CANDIDATE = "candidate"
RECRUITER = "recruiter"
ROLES = (CANDIDATE, RECRUITER)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(512), nullable=False)
    role = Column(String(20), nullable=False, default=CANDIDATE)
    is_active = Column(Boolean, default=True, nullable=False)
    phone = Column(String(20))
    bio = Column(Text)
    location = Column(String(100))
    avatar_url = Column(String(1000))
    avatar_storage_id = Column(String(500))
    created_at = Column(DateTime, default=utcnow)
