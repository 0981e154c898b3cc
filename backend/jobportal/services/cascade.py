from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from jobportal.models.application import Application, ApplicationDocument
from jobportal.models.company import Company
from jobportal.models.job import Job
from jobportal.models.saved_job import SavedJob
from jobportal.services.object_storage import ObjectNotFound, ObjectStorage, StorageError


logger = logging.getLogger(__name__)


@dataclass
class CascadeReport:
    jobs_deleted: int = 0
    applications_deleted: int = 0
    attachments_deleted: int = 0
    failed_storage_ids: list[str] = field(default_factory=list)


def _remove_jobs(db: Session, job_ids: list[int], report: CascadeReport) -> list[str]:
    if not job_ids:
        return []
    application_ids = [row.id for row in db.query(Application.id).filter(Application.job_id.in_(job_ids)).all()]
    storage_ids: list[str] = []
    if application_ids:
        storage_ids = [
            row.storage_id
            for row in db.query(ApplicationDocument.storage_id)
            .filter(ApplicationDocument.application_id.in_(application_ids))
            .all()
        ]
        db.query(ApplicationDocument).filter(ApplicationDocument.application_id.in_(application_ids)).delete(
            synchronize_session=False
        )
        report.applications_deleted += (
            db.query(Application).filter(Application.id.in_(application_ids)).delete(synchronize_session=False)
        )
    db.query(SavedJob).filter(SavedJob.job_id.in_(job_ids)).delete(synchronize_session=False)
    report.jobs_deleted += db.query(Job).filter(Job.id.in_(job_ids)).delete(synchronize_session=False)
    return storage_ids


def _remove_attachments(storage: ObjectStorage, storage_ids: list[str], report: CascadeReport) -> None:
    for storage_id in storage_ids:
        try:
            storage.delete(storage_id)
        except ObjectNotFound:
            logger.warning("Attachment already gone: storage_id=%s", storage_id)
        except StorageError:
            logger.exception("Attachment delete failed: storage_id=%s", storage_id)
            report.failed_storage_ids.append(storage_id)
        else:
            report.attachments_deleted += 1


def delete_job(db: Session, storage: ObjectStorage, job: Job) -> CascadeReport:
    """Delete a job with its applications, then clean up their stored files.

    Records go in one transaction; file deletions follow individually and a
    failing one is recorded in the report without stopping the rest.
    """
    report = CascadeReport()
    job_id = job.id
    storage_ids = _remove_jobs(db, [job_id], report)
    db.commit()
    _remove_attachments(storage, storage_ids, report)
    logger.info(
        "Job deleted: job_id=%s applications=%s attachments=%s failed=%s",
        job_id,
        report.applications_deleted,
        report.attachments_deleted,
        len(report.failed_storage_ids),
    )
    return report


def delete_company(db: Session, storage: ObjectStorage, company: Company) -> CascadeReport:
    report = CascadeReport()
    company_id = company.id
    job_ids = [row.id for row in db.query(Job.id).filter(Job.company_id == company_id).all()]
    storage_ids = _remove_jobs(db, job_ids, report)
    db.query(Company).filter(Company.id == company_id).delete(synchronize_session=False)
    db.commit()
    _remove_attachments(storage, storage_ids, report)
    logger.info(
        "Company deleted: company_id=%s jobs=%s applications=%s failed=%s",
        company_id,
        report.jobs_deleted,
        report.applications_deleted,
        len(report.failed_storage_ids),
    )
    return report
