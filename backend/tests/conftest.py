from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qs, unquote, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobportal import models  # noqa: F401
from jobportal.auth import create_access_token, hash_password
from jobportal.database import Base, get_db
from jobportal.deps import get_http_client, get_object_storage
from jobportal.main import app
from jobportal.models.company import Company, company_name_key
from jobportal.models.job import Job
from jobportal.models.user import User
from jobportal.services.applications import ContactInfo, IncomingFile
from jobportal.services.object_storage import LocalObjectStorage, ObjectNotFound
from jobportal.timeutil import utcnow


PDF_BYTES = b"%PDF-1.4\n" + b"0" * 2048


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def storage(tmp_path):
    return LocalObjectStorage(tmp_path / "uploads", "http://storage.test", "test-signing-secret")


class StorageServer:
    """httpx handler that answers like the /storage route of the local backend."""

    def __init__(self, storage: LocalObjectStorage) -> None:
        self.storage = storage
        self.requests: list[httpx.Request] = []
        self.override: httpx.Response | Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.override, Exception):
            raise self.override
        if self.override is not None:
            return self.override
        storage_id = unquote(urlparse(str(request.url)).path.removeprefix("/storage/"))
        query = parse_qs(urlparse(str(request.url)).query)
        expires = int(query["expires"][0]) if "expires" in query else None
        signature = query.get("signature", [None])[0]
        if self.storage.is_private(storage_id) and not self.storage.verify_signature(storage_id, expires, signature):
            return httpx.Response(401)
        try:
            body = b"".join(self.storage.get(storage_id))
        except ObjectNotFound:
            return httpx.Response(404)
        return httpx.Response(200, content=body)


@pytest.fixture()
def storage_server(storage):
    return StorageServer(storage)


@pytest.fixture()
def client(session_factory, storage, storage_server):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(storage_server))
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_http_client] = lambda: http_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def make_user(db, *, role: str = "candidate", email: str | None = None, name: str = "Test User") -> User:
    count = db.query(User).count()
    user = User(
        name=name,
        email=email or f"user{count + 1}@example.com",
        password_hash=hash_password("secret123"),
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def make_company(db, owner: User, name: str = "Acme Corp") -> Company:
    company = Company(
        owner_id=owner.id,
        name=name,
        name_key=company_name_key(name),
        description="We build things",
        location="Berlin",
        industry="Software",
        size="11-50",
    )
    db.add(company)
    db.commit()
    return company


def make_job(db, company: Company, poster: User, **overrides) -> Job:
    values = {
        "title": "Backend Engineer",
        "description": "Build APIs",
        "requirements": "Python",
        "location": "Berlin",
        "job_type": "full-time",
        "experience_level": "mid",
        "skills": ["python"],
        "is_active": True,
        "expires_at": utcnow() + timedelta(days=30),
    }
    values.update(overrides)
    job = Job(company_id=company.id, posted_by=poster.id, **values)
    db.add(job)
    db.commit()
    return job


def pdf_file(size: int | None = None, filename: str = "resume.pdf") -> IncomingFile:
    data = PDF_BYTES if size is None else b"x" * size
    return IncomingFile(data=data, filename=filename, content_type="application/pdf")


def contact() -> ContactInfo:
    return ContactInfo(full_name="Alice Candidate", email="Alice@Example.com", phone="+49 30 1234")


@pytest.fixture()
def world(db):
    """Recruiter R owning a company and an open job, candidate A, third party R2."""
    recruiter = make_user(db, role="recruiter", email="r@example.com", name="Rita Recruiter")
    other_recruiter = make_user(db, role="recruiter", email="r2@example.com", name="Rob Recruiter")
    candidate = make_user(db, role="candidate", email="a@example.com", name="Alice Candidate")
    company = make_company(db, recruiter)
    job = make_job(db, company, recruiter)
    return {
        "recruiter": recruiter,
        "other_recruiter": other_recruiter,
        "candidate": candidate,
        "company": company,
        "job": job,
    }
