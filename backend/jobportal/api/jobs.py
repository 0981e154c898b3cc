from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Query as SAQuery
from sqlalchemy.orm import Session

from jobportal.auth import require_role
from jobportal.config import settings
from jobportal.database import get_db
from jobportal.deps import get_object_storage
from jobportal.errors import Forbidden, NotFound, ValidationFailed
from jobportal.models.company import Company
from jobportal.models.job import Job
from jobportal.models.user import RECRUITER, User
from jobportal.schemas.job import DeleteResponse, JobCreate, JobOut, JobUpdate
from jobportal.services.cascade import delete_job as cascade_delete_job
from jobportal.services.object_storage import ObjectStorage
from jobportal.timeutil import to_naive_utc, utcnow


router = APIRouter()
logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"salary_min", "salary_max", "skills", "benefits"}


def _job_out(job: Job, company: Company | None) -> JobOut:
    return JobOut.model_validate(job).model_copy(update={"company_name": company.name if company else None})


def _check_salary_range(salary_min: int | None, salary_max: int | None) -> None:
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationFailed("salary_min cannot be greater than salary_max")


def _apply_filters(
    query: SAQuery,
    search: str | None,
    location: str | None,
    job_type: str | None,
    experience_level: str | None,
    company: int | None,
) -> SAQuery:
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Job.title.ilike(term),
                Job.description.ilike(term),
                Job.location.ilike(term),
                Job.requirements.ilike(term),
            )
        )
    if location and location.strip():
        query = query.filter(Job.location.ilike(f"%{location.strip()}%"))
    if job_type:
        query = query.filter(Job.job_type == job_type)
    if experience_level:
        query = query.filter(Job.experience_level == experience_level)
    if company is not None:
        query = query.filter(Job.company_id == company)
    return query


def _get_posted_job(db: Session, job_id: int, current_user: User) -> Job:
    job = db.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")
    if job.posted_by != current_user.id:
        raise Forbidden("Not authorized to modify this job")
    return job


@router.get("", response_model=list[JobOut])
def list_jobs(
    search: str | None = Query(None, max_length=200),
    location: str | None = Query(None, max_length=100),
    job_type: str | None = None,
    experience_level: str | None = None,
    company: int | None = None,
    db: Session = Depends(get_db),
) -> list[JobOut]:
    query = (
        db.query(Job, Company)
        .join(Company, Company.id == Job.company_id)
        .filter(Job.is_active == True, Job.expires_at > utcnow())  # noqa: E712
    )
    query = _apply_filters(query, search, location, job_type, experience_level, company)
    rows = query.order_by(Job.created_at.desc(), Job.id.desc()).all()
    return [_job_out(job, company_row) for job, company_row in rows]


@router.get("/mine", response_model=list[JobOut])
def list_my_jobs(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(RECRUITER)),
) -> list[JobOut]:
    rows = (
        db.query(Job, Company)
        .join(Company, Company.id == Job.company_id)
        .filter(Job.posted_by == current_user.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .all()
    )
    return [_job_out(job, company) for job, company in rows]


@router.get("/{job_id}", response_model=JobOut)
def get_job(job_id: int, db: Session = Depends(get_db)) -> JobOut:
    job = db.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")
    return _job_out(job, db.get(Company, job.company_id))


@router.post("", response_model=JobOut, status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(RECRUITER)),
) -> JobOut:
    _check_salary_range(payload.salary_min, payload.salary_max)

    if payload.company_id is not None:
        company = db.get(Company, payload.company_id)
        if not company:
            raise NotFound("Company not found")
        if company.owner_id != current_user.id:
            raise Forbidden("You can only post jobs for your own company")
    else:
        company = (
            db.query(Company).filter(Company.owner_id == current_user.id).order_by(Company.id.asc()).first()
        )
        if not company:
            raise ValidationFailed("You must create a company profile before posting jobs")

    expires_at = payload.expires_at or utcnow() + timedelta(days=settings.job_default_ttl_days)
    job = Job(
        **payload.model_dump(exclude={"company_id", "expires_at"}),
        company_id=company.id,
        posted_by=current_user.id,
        expires_at=to_naive_utc(expires_at),
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info("Job created: job_id=%s company_id=%s recruiter=%s", job.id, company.id, current_user.id)
    return _job_out(job, company)


@router.put("/{job_id}", response_model=JobOut)
def update_job(
    job_id: int,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(RECRUITER)),
) -> JobOut:
    job = _get_posted_job(db, job_id, current_user)
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue
        if key == "expires_at":
            value = to_naive_utc(value)
        setattr(job, key, value)
    _check_salary_range(job.salary_min, job.salary_max)

    db.commit()
    db.refresh(job)
    logger.info("Job updated: job_id=%s recruiter=%s", job.id, current_user.id)
    return _job_out(job, db.get(Company, job.company_id))


@router.delete("/{job_id}", response_model=DeleteResponse)
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    current_user: User = Depends(require_role(RECRUITER)),
) -> DeleteResponse:
    job = _get_posted_job(db, job_id, current_user)
    report = cascade_delete_job(db, storage, job)
    return DeleteResponse(
        jobs_deleted=report.jobs_deleted,
        applications_deleted=report.applications_deleted,
        attachments_deleted=report.attachments_deleted,
        failed_storage_ids=report.failed_storage_ids,
    )
