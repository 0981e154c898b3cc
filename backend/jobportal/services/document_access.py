from __future__ import annotations

from sqlalchemy.orm import Session

from jobportal.errors import Forbidden, NotFound
from jobportal.models.application import DOCUMENT_KINDS, Application, ApplicationDocument
from jobportal.models.job import Job
from jobportal.models.user import User


def can_access(caller_id: int, application: Application, job: Job) -> bool:
    return caller_id == application.applicant_id or caller_id == job.posted_by


def resolve_document(db: Session, caller: User, application_id: int, kind: str) -> ApplicationDocument:
    """Return the attachment descriptor if the caller may read it.

    The application must exist before the check can run; anything about the
    document itself is only revealed once the caller is authorized. Ownership
    is read from the store on every call.
    """
    row = (
        db.query(Application, Job)
        .join(Job, Job.id == Application.job_id)
        .filter(Application.id == application_id)
        .first()
    )
    if row is None:
        raise NotFound("Application not found")
    application, job = row

    if not can_access(caller.id, application, job):
        raise Forbidden("Not authorized to access this document")

    document = application.documents.get(kind) if kind in DOCUMENT_KINDS else None
    if document is None or not document.retrieval_url:
        raise NotFound("Document not found")
    return document
