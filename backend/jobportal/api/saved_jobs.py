from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.auth import get_current_user
from jobportal.database import get_db
from jobportal.errors import ALREADY_SAVED, Conflict, NotFound
from jobportal.models.company import Company
from jobportal.models.job import Job
from jobportal.models.saved_job import SavedJob
from jobportal.models.user import User
from jobportal.schemas.job import JobOut
from jobportal.schemas.saved_job import SavedJobOut


router = APIRouter()


def _saved_job_out(saved: SavedJob, job: Job, company: Company) -> SavedJobOut:
    job_out = JobOut.model_validate(job).model_copy(update={"company_name": company.name})
    return SavedJobOut(id=saved.id, job_id=saved.job_id, created_at=saved.created_at, job=job_out)


@router.get("", response_model=list[SavedJobOut])
def list_saved_jobs(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[SavedJobOut]:
    rows = (
        db.query(SavedJob, Job, Company)
        .join(Job, Job.id == SavedJob.job_id)
        .join(Company, Company.id == Job.company_id)
        .filter(SavedJob.user_id == current_user.id)
        .order_by(SavedJob.created_at.desc(), SavedJob.id.desc())
        .all()
    )
    return [_saved_job_out(*row) for row in rows]


@router.get("/check/{job_id}")
def check_job_saved(
    job_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, bool]:
    saved = db.query(SavedJob.id).filter(SavedJob.user_id == current_user.id, SavedJob.job_id == job_id).first()
    return {"is_saved": saved is not None}


@router.post("/{job_id}", response_model=SavedJobOut, status_code=201)
def save_job(
    job_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> SavedJobOut:
    job = db.get(Job, job_id)
    if not job:
        raise NotFound("Job not found")

    existing = db.query(SavedJob).filter(SavedJob.user_id == current_user.id, SavedJob.job_id == job_id).first()
    if existing:
        raise Conflict("Job already saved", reason=ALREADY_SAVED)

    saved = SavedJob(user_id=current_user.id, job_id=job_id)
    db.add(saved)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Job already saved", reason=ALREADY_SAVED) from exc
    db.refresh(saved)
    return _saved_job_out(saved, job, db.get(Company, job.company_id))


@router.delete("/{job_id}")
def unsave_job(
    job_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, str | int]:
    saved = db.query(SavedJob).filter(SavedJob.user_id == current_user.id, SavedJob.job_id == job_id).first()
    if not saved:
        raise NotFound("Saved job not found")
    db.delete(saved)
    db.commit()
    return {"status": "deleted", "job_id": job_id}
