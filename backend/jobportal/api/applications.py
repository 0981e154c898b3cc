from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import RedirectResponse, StreamingResponse
from sqlalchemy.orm import Session

from jobportal.auth import get_current_user, require_role
from jobportal.database import get_db
from jobportal.deps import get_application_service, get_document_delivery
from jobportal.models.application import ApplicationDocument
from jobportal.models.user import CANDIDATE, RECRUITER, User
from jobportal.schemas.application import (
    ApplicationOut,
    ApplicationStatusUpdate,
    ApplicationWithdrawRequest,
    DocumentMetadataOut,
)
from jobportal.services.applications import ApplicationService, ContactInfo, IncomingFile
from jobportal.services.document_access import resolve_document
from jobportal.services.document_delivery import DocumentDelivery


router = APIRouter()


def _incoming(upload: UploadFile | None) -> IncomingFile | None:
    if upload is None or not upload.filename:
        return None
    return IncomingFile(data=upload.file.read(), filename=upload.filename, content_type=upload.content_type)


def get_authorized_document(
    application_id: int,
    kind: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApplicationDocument:
    return resolve_document(db, current_user, application_id, kind)


@router.post("/apply", response_model=ApplicationOut, status_code=201)
def apply_to_job(
    job_id: int = Form(..., alias="jobId"),
    full_name: str = Form(..., alias="fullName", min_length=1, max_length=100),
    email: str = Form(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"),
    phone: str = Form(..., min_length=1, max_length=20),
    cover_letter_text: str | None = Form(None, alias="coverLetterText", max_length=2000),
    additional_info: str | None = Form(None, alias="additionalInfo", max_length=1000),
    resume: UploadFile | None = File(None),
    cover_letter: UploadFile | None = File(None, alias="coverLetter"),
    service: ApplicationService = Depends(get_application_service),
    current_user: User = Depends(require_role(CANDIDATE)),
) -> ApplicationOut:
    record = service.apply(
        current_user,
        job_id,
        ContactInfo(full_name=full_name.strip(), email=email.strip(), phone=phone.strip()),
        resume=_incoming(resume),
        cover_letter=_incoming(cover_letter),
        cover_letter_text=cover_letter_text,
        additional_info=additional_info,
    )
    return ApplicationOut.from_record(record)


@router.get("", response_model=list[ApplicationOut])
def list_applications(
    job: int | None = Query(None, description="List applications for a job you posted"),
    include_withdrawn: bool = True,
    service: ApplicationService = Depends(get_application_service),
    current_user: User = Depends(get_current_user),
) -> list[ApplicationOut]:
    if job is not None:
        records = service.list_for_job(current_user, job, include_withdrawn=include_withdrawn)
    else:
        records = service.list_for_applicant(current_user, include_withdrawn=include_withdrawn)
    return [ApplicationOut.from_record(record) for record in records]


@router.patch("/{application_id}/status", response_model=ApplicationOut)
def update_application_status(
    application_id: int,
    payload: ApplicationStatusUpdate,
    service: ApplicationService = Depends(get_application_service),
    current_user: User = Depends(require_role(RECRUITER)),
) -> ApplicationOut:
    record = service.update_status(current_user, application_id, payload.status, payload.notes)
    return ApplicationOut.from_record(record)


@router.patch("/{application_id}/withdraw", response_model=ApplicationOut)
def withdraw_application(
    application_id: int,
    payload: ApplicationWithdrawRequest | None = None,
    service: ApplicationService = Depends(get_application_service),
    current_user: User = Depends(require_role(CANDIDATE)),
) -> ApplicationOut:
    reason = payload.reason if payload else None
    record = service.withdraw(current_user, application_id, reason)
    return ApplicationOut.from_record(record)


@router.get("/{application_id}/document/{kind}", response_model=DocumentMetadataOut)
def get_application_document(
    document: ApplicationDocument = Depends(get_authorized_document),
    delivery: DocumentDelivery = Depends(get_document_delivery),
) -> DocumentMetadataOut:
    meta = delivery.metadata(document)
    return DocumentMetadataOut(
        download_url=meta.download_url,
        retrieval_url=meta.retrieval_url,
        filename=meta.filename,
        size_bytes=meta.size_bytes,
        content_type=meta.content_type,
    )


@router.get("/{application_id}/document/{kind}/view")
def view_application_document(
    kind: str,
    download: bool = False,
    document: ApplicationDocument = Depends(get_authorized_document),
    delivery: DocumentDelivery = Depends(get_document_delivery),
) -> RedirectResponse:
    plan = delivery.redirect(document, kind, download)
    return RedirectResponse(plan.url, status_code=302, headers=plan.headers)


@router.get("/{application_id}/document/{kind}/proxy")
async def proxy_application_document(
    kind: str,
    download: bool = False,
    document: ApplicationDocument = Depends(get_authorized_document),
    delivery: DocumentDelivery = Depends(get_document_delivery),
) -> StreamingResponse:
    stream = await delivery.proxy(document, kind, download)
    return StreamingResponse(stream.chunks, headers=stream.headers, media_type=stream.headers["Content-Type"])
