from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from jobportal.services.applications import ApplicationRecord


ApplicationStatus = Literal["pending", "reviewing", "interviewed", "accepted", "rejected"]


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: str | None = Field(default=None, max_length=1000)


class ApplicationWithdrawRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class ApplicantInfoOut(BaseModel):
    full_name: str
    email: str
    phone: str


class DocumentOut(BaseModel):
    original_filename: str | None = None
    size_bytes: int | None = None
    content_type: str | None = None
    uploaded_at: datetime | None = None

    class Config:
        from_attributes = True


class ApplicationJobOut(BaseModel):
    id: int
    title: str
    location: str
    is_active: bool
    posted_by: int
    company_id: int
    company_name: str


class ApplicantOut(BaseModel):
    id: int
    name: str
    email: str


class ApplicationOut(BaseModel):
    id: int
    status: str
    applicant_info: ApplicantInfoOut
    documents: dict[str, DocumentOut] = Field(default_factory=dict)
    cover_letter_text: str | None = None
    additional_info: str | None = None
    recruiter_notes: str | None = None
    withdrawn: bool = False
    withdrawn_at: datetime | None = None
    withdrawal_reason: str | None = None
    applied_at: datetime
    status_updated_at: datetime | None = None
    status_updated_by: int | None = None
    job: ApplicationJobOut
    applicant: ApplicantOut

    @classmethod
    def from_record(cls, record: ApplicationRecord) -> ApplicationOut:
        application, job, company, applicant = (
            record.application,
            record.job,
            record.company,
            record.applicant,
        )
        return cls(
            id=application.id,
            status=application.status,
            applicant_info=ApplicantInfoOut(
                full_name=application.applicant_full_name,
                email=application.applicant_email,
                phone=application.applicant_phone,
            ),
            documents={kind: DocumentOut.model_validate(doc) for kind, doc in application.documents.items()},
            cover_letter_text=application.cover_letter_text,
            additional_info=application.additional_info,
            recruiter_notes=application.recruiter_notes,
            withdrawn=application.withdrawn,
            withdrawn_at=application.withdrawn_at,
            withdrawal_reason=application.withdrawal_reason,
            applied_at=application.applied_at,
            status_updated_at=application.status_updated_at,
            status_updated_by=application.status_updated_by,
            job=ApplicationJobOut(
                id=job.id,
                title=job.title,
                location=job.location,
                is_active=job.is_active,
                posted_by=job.posted_by,
                company_id=company.id,
                company_name=company.name,
            ),
            applicant=ApplicantOut(id=applicant.id, name=applicant.name, email=applicant.email),
        )


class DocumentMetadataOut(BaseModel):
    download_url: str
    retrieval_url: str
    filename: str | None = None
    size_bytes: int | None = None
    content_type: str
