from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from jobportal.database import Base
from jobportal.timeutil import utcnow


def company_name_key(name: str) -> str:
    return " ".join(name.split()).lower()


class Company(Base):
    __tablename__ = "companies"
    __table_args__ = (UniqueConstraint("name_key", name="uq_company_name_key"),)

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    # lower-cased name; the unique constraint makes names case-insensitively unique
    name_key = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    website = Column(String(500))
    location = Column(String(100), nullable=False)
    logo_url = Column(String(1000))
    industry = Column(String(50), nullable=False)
    size = Column(String(20), nullable=False)
    founded = Column(Integer)
    created_at = Column(DateTime, default=utcnow)
