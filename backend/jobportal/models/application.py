from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import attribute_keyed_dict, relationship

from jobportal.database import Base
from jobportal.timeutil import utcnow


STATUSES = ("pending", "reviewing", "interviewed", "accepted", "rejected")
WITHDRAWABLE_STATUSES = ("pending", "reviewing")
DOCUMENT_KINDS = ("resume", "cover_letter")


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("applicant_id", "job_id", name="uq_application_applicant_job"),
        Index("idx_applications_job_status", "job_id", "status"),
        Index("idx_applications_applicant_status", "applicant_id", "status"),
        Index("idx_applications_applied_at", "applied_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    applicant_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), default="pending", nullable=False)

    applicant_full_name = Column(String(100), nullable=False)
    applicant_email = Column(String(255), nullable=False)
    applicant_phone = Column(String(20), nullable=False)

    cover_letter_text = Column(Text)
    additional_info = Column(Text)
    recruiter_notes = Column(Text)

    withdrawn = Column(Boolean, default=False, nullable=False)
    withdrawn_at = Column(DateTime)
    withdrawal_reason = Column(Text)

    applied_at = Column(DateTime, default=utcnow, nullable=False)
    status_updated_at = Column(DateTime, default=utcnow)
    status_updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    documents = relationship(
        "ApplicationDocument",
        collection_class=attribute_keyed_dict("kind"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def can_be_withdrawn(self) -> bool:
        return self.status in WITHDRAWABLE_STATUSES and not self.withdrawn


class ApplicationDocument(Base):
    """Descriptor of one stored attachment (resume or cover letter)."""

    __tablename__ = "application_documents"
    __table_args__ = (UniqueConstraint("application_id", "kind", name="uq_application_document_kind"),)

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)
    storage_id = Column(String(500), nullable=False)
    retrieval_url = Column(String(1000), nullable=False)
    original_filename = Column(String(255))
    size_bytes = Column(Integer)
    content_type = Column(String(255))
    requires_signed_url = Column(Boolean, default=False, nullable=False)
    uploaded_at = Column(DateTime, default=utcnow)
