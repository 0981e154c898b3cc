from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from jobportal.auth import get_current_user, require_role
from jobportal.database import get_db
from jobportal.deps import get_object_storage
from jobportal.errors import DUPLICATE_NAME, Conflict, Forbidden, NotFound
from jobportal.models.company import Company, company_name_key
from jobportal.models.user import RECRUITER, User
from jobportal.schemas.company import CompanyCreate, CompanyOut, CompanyUpdate
from jobportal.schemas.job import DeleteResponse
from jobportal.services.cascade import delete_company as cascade_delete_company
from jobportal.services.object_storage import ObjectStorage


router = APIRouter()
logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"website", "logo_url", "founded"}


def _get_owned_company(db: Session, company_id: int, current_user: User) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")
    if company.owner_id != current_user.id:
        raise Forbidden("Not authorized to modify this company")
    return company


def _ensure_unique_name(db: Session, name_key: str, exclude_id: int | None = None) -> None:
    query = db.query(Company).filter(Company.name_key == name_key)
    if exclude_id is not None:
        query = query.filter(Company.id != exclude_id)
    if query.first():
        raise Conflict("A company with this name already exists", reason=DUPLICATE_NAME)


def _commit_company(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("A company with this name already exists", reason=DUPLICATE_NAME) from exc


@router.get("", response_model=list[CompanyOut])
def list_companies(db: Session = Depends(get_db)) -> list[Company]:
    return db.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).all()


@router.get("/mine", response_model=list[CompanyOut])
def list_my_companies(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[Company]:
    return (
        db.query(Company)
        .filter(Company.owner_id == current_user.id)
        .order_by(Company.created_at.desc(), Company.id.desc())
        .all()
    )


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: int, db: Session = Depends(get_db)) -> Company:
    company = db.get(Company, company_id)
    if not company:
        raise NotFound("Company not found")
    return company


@router.post("", response_model=CompanyOut, status_code=201)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(RECRUITER)),
) -> Company:
    name = payload.name.strip()
    name_key = company_name_key(name)
    _ensure_unique_name(db, name_key)

    company = Company(**payload.model_dump(exclude={"name"}), name=name, name_key=name_key, owner_id=current_user.id)
    db.add(company)
    _commit_company(db)
    db.refresh(company)

    logger.info("Company created: company_id=%s owner=%s", company.id, current_user.id)
    return company


@router.put("/{company_id}", response_model=CompanyOut)
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Company:
    company = _get_owned_company(db, company_id, current_user)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        name = changes.pop("name").strip()
        name_key = company_name_key(name)
        _ensure_unique_name(db, name_key, exclude_id=company.id)
        company.name = name
        company.name_key = name_key
    for key, value in changes.items():
        if value is None and key not in NULLABLE_FIELDS:
            continue
        setattr(company, key, value)

    _commit_company(db)
    db.refresh(company)
    return company


@router.delete("/{company_id}", response_model=DeleteResponse)
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
    current_user: User = Depends(get_current_user),
) -> DeleteResponse:
    company = _get_owned_company(db, company_id, current_user)
    report = cascade_delete_company(db, storage, company)
    return DeleteResponse(
        jobs_deleted=report.jobs_deleted,
        applications_deleted=report.applications_deleted,
        attachments_deleted=report.attachments_deleted,
        failed_storage_ids=report.failed_storage_ids,
    )
