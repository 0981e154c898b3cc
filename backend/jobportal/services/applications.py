from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobportal.errors import (
    ALREADY_APPLIED,
    NOT_WITHDRAWABLE,
    SELF_APPLY,
    Closed,
    Conflict,
    Forbidden,
    NotFound,
    UpstreamUnavailable,
    ValidationFailed,
)
from jobportal.models.application import STATUSES, Application, ApplicationDocument
from jobportal.models.company import Company
from jobportal.models.job import Job
from jobportal.models.user import CANDIDATE, User
from jobportal.services.object_storage import ObjectStorage, StorageError, StoredObject
from jobportal.services.upload_validator import UploadPolicy, validate_upload
from jobportal.timeutil import utcnow


logger = logging.getLogger(__name__)

UPLOAD_FOLDERS = {"resume": "resumes", "cover_letter": "cover-letters"}


def _already_applied() -> Conflict:
    # reported as 400 like the other apply precondition failures
    return Conflict("You have already applied to this job", reason=ALREADY_APPLIED, status_code=400)


@dataclass(frozen=True)
class ContactInfo:
    full_name: str
    email: str
    phone: str


@dataclass(frozen=True)
class IncomingFile:
    data: bytes
    filename: str
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ApplicationRecord:
    """An application joined with the job, company and applicant it refers to."""

    application: Application
    job: Job
    company: Company
    applicant: User


def _record_query(db: Session):
    return (
        db.query(Application, Job, Company, User)
        .join(Job, Job.id == Application.job_id)
        .join(Company, Company.id == Job.company_id)
        .join(User, User.id == Application.applicant_id)
    )


def fetch_record(db: Session, application_id: int) -> ApplicationRecord | None:
    row = _record_query(db).filter(Application.id == application_id).first()
    return ApplicationRecord(*row) if row else None


def fetch_records(db: Session, *criteria, include_withdrawn: bool = True) -> list[ApplicationRecord]:
    query = _record_query(db).filter(*criteria)
    if not include_withdrawn:
        query = query.filter(Application.withdrawn == False)  # noqa: E712
    rows = query.order_by(Application.applied_at.desc(), Application.id.desc()).all()
    return [ApplicationRecord(*row) for row in rows]


class ApplicationService:
    def __init__(
        self,
        db: Session,
        storage: ObjectStorage,
        policy: UploadPolicy,
        private_documents: bool = True,
    ) -> None:
        self.db = db
        self.storage = storage
        self.policy = policy
        self.private_documents = private_documents

    def _find_existing(self, applicant_id: int, job_id: int) -> Application | None:
        return (
            self.db.query(Application)
            .filter(Application.applicant_id == applicant_id, Application.job_id == job_id)
            .first()
        )

    def _load(self, application_id: int) -> ApplicationRecord:
        record = fetch_record(self.db, application_id)
        if record is None:
            raise NotFound("Application not found")
        return record

    def _discard_uploads(self, uploads: list[StoredObject]) -> None:
        for stored in uploads:
            try:
                self.storage.delete(stored.storage_id)
            except StorageError:
                logger.exception("Could not remove orphaned upload: storage_id=%s", stored.storage_id)

    def _upload_documents(
        self,
        caller: User,
        files: dict[str, IncomingFile],
        content_types: dict[str, str],
    ) -> dict[str, StoredObject]:
        uploads: dict[str, StoredObject] = {}
        for kind, incoming in files.items():
            try:
                uploads[kind] = self.storage.put(
                    incoming.data,
                    folder=f"{UPLOAD_FOLDERS[kind]}/user-{caller.id}",
                    filename=incoming.filename,
                    content_type=content_types[kind],
                    private=self.private_documents,
                )
            except StorageError as exc:
                logger.exception("Document upload failed: kind=%s applicant=%s", kind, caller.id)
                self._discard_uploads(list(uploads.values()))
                raise UpstreamUnavailable(f"Could not store {kind.replace('_', ' ')}") from exc
        return uploads

    def apply(
        self,
        caller: User,
        job_id: int,
        contact: ContactInfo,
        *,
        resume: IncomingFile | None,
        cover_letter: IncomingFile | None = None,
        cover_letter_text: str | None = None,
        additional_info: str | None = None,
    ) -> ApplicationRecord:
        if caller.role != CANDIDATE:
            raise Forbidden("Only candidates can apply to jobs")

        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFound("Job not found")
        if not job.accepts_applications(utcnow()):
            raise Closed("This job is no longer accepting applications")
        if self._find_existing(caller.id, job.id) is not None:
            raise _already_applied()
        if job.posted_by == caller.id:
            raise Forbidden("You cannot apply to your own job posting", reason=SELF_APPLY)
        if resume is None:
            raise ValidationFailed("A resume file is required")

        files = {"resume": resume}
        if cover_letter is not None:
            files["cover_letter"] = cover_letter
        content_types = {
            kind: validate_upload(self.policy, kind, incoming.size, incoming.content_type)
            for kind, incoming in files.items()
        }

        uploads = self._upload_documents(caller, files, content_types)

        now = utcnow()
        application = Application(
            applicant_id=caller.id,
            job_id=job.id,
            status="pending",
            applicant_full_name=contact.full_name,
            applicant_email=contact.email.lower(),
            applicant_phone=contact.phone,
            cover_letter_text=cover_letter_text,
            additional_info=additional_info,
            applied_at=now,
            status_updated_at=now,
        )
        for kind, stored in uploads.items():
            application.documents[kind] = ApplicationDocument(
                kind=kind,
                storage_id=stored.storage_id,
                retrieval_url=stored.retrieval_url,
                original_filename=files[kind].filename,
                size_bytes=files[kind].size,
                content_type=content_types[kind],
                requires_signed_url=stored.requires_signed_url,
                uploaded_at=now,
            )

        self.db.add(application)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            self._discard_uploads(list(uploads.values()))
            # only a concurrent insert for the same (applicant, job) is a duplicate
            if self._find_existing(caller.id, job.id) is None:
                raise
            logger.info("Duplicate application rejected by store: applicant=%s job=%s", caller.id, job.id)
            raise _already_applied() from exc
        except SQLAlchemyError:
            self.db.rollback()
            self._discard_uploads(list(uploads.values()))
            raise

        logger.info("Application created: app_id=%s job_id=%s applicant=%s", application.id, job.id, caller.id)
        return self._load(application.id)

    def update_status(
        self,
        caller: User,
        application_id: int,
        status: str,
        notes: str | None = None,
    ) -> ApplicationRecord:
        record = self._load(application_id)
        if record.job.posted_by != caller.id:
            raise Forbidden("Not authorized to update this application")
        if status not in STATUSES:
            raise ValidationFailed(f"Unknown status: {status}")

        application = record.application
        previous = application.status
        application.status = status
        application.status_updated_at = utcnow()
        application.status_updated_by = caller.id
        if notes is not None:
            application.recruiter_notes = notes
        self.db.commit()

        logger.info(
            "Application status changed: app_id=%s from=%s to=%s by=%s", application.id, previous, status, caller.id
        )
        return record

    def withdraw(self, caller: User, application_id: int, reason: str | None = None) -> ApplicationRecord:
        record = self._load(application_id)
        application = record.application
        if application.applicant_id != caller.id:
            raise Forbidden("Not authorized to withdraw this application")
        if not application.can_be_withdrawn():
            raise Conflict("Application cannot be withdrawn at this stage", reason=NOT_WITHDRAWABLE)

        application.withdrawn = True
        application.withdrawn_at = utcnow()
        application.withdrawal_reason = reason
        self.db.commit()

        logger.info("Application withdrawn: app_id=%s applicant=%s", application.id, caller.id)
        return record

    def list_for_applicant(self, caller: User, *, include_withdrawn: bool = True) -> list[ApplicationRecord]:
        return fetch_records(self.db, Application.applicant_id == caller.id, include_withdrawn=include_withdrawn)

    def list_for_job(self, caller: User, job_id: int, *, include_withdrawn: bool = True) -> list[ApplicationRecord]:
        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFound("Job not found")
        if job.posted_by != caller.id:
            raise Forbidden("Not authorized to view applications for this job")
        return fetch_records(self.db, Application.job_id == job.id, include_withdrawn=include_withdrawn)
