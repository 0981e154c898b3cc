from datetime import timedelta

from jobportal.timeutil import utcnow

from conftest import PDF_BYTES, auth_headers, make_job, make_user

COMPANY = {
    "name": "Acme Labs",
    "description": "Research and development",
    "location": "Munich",
    "industry": "Software",
    "size": "51-200",
    "website": "https://acme.example.com",
}
JOB = {
    "title": "Platform Engineer",
    "description": "Run the platform",
    "requirements": "Kubernetes, Python",
    "location": "Munich",
    "job_type": "full-time",
    "experience_level": "senior",
    "skills": ["kubernetes", "python"],
}


def _apply(client, candidate, job_id, resume=("cv.pdf", PDF_BYTES, "application/pdf"), **extra):
    data = {
        "jobId": str(job_id),
        "fullName": "Alice Candidate",
        "email": "alice@example.com",
        "phone": "+49 30 1234",
        **extra,
    }
    files = {"resume": resume} if resume else None
    return client.post("/api/applications/apply", data=data, files=files, headers=auth_headers(candidate))


def test_hiring_flow(client, world, storage):
    recruiter, candidate, other = world["recruiter"], world["candidate"], world["other_recruiter"]

    company = client.post("/api/companies", json=COMPANY, headers=auth_headers(recruiter))
    assert company.status_code == 201
    company_id = company.json()["id"]

    job = client.post("/api/jobs", json={**JOB, "company_id": company_id}, headers=auth_headers(recruiter))
    assert job.status_code == 201
    job_id = job.json()["id"]
    assert job.json()["company_name"] == "Acme Labs"

    applied = _apply(client, candidate, job_id, coverLetterText="I run clusters for fun")
    assert applied.status_code == 201
    application = applied.json()
    assert application["status"] == "pending"
    assert application["applicant_info"]["email"] == "alice@example.com"
    assert application["documents"]["resume"]["original_filename"] == "cv.pdf"
    assert application["job"]["company_name"] == "Acme Labs"
    application_id = application["id"]

    again = _apply(client, candidate, job_id)
    assert again.status_code == 400
    assert again.json()["kind"] == "Conflict"
    assert again.json()["reason"] == "AlreadyApplied"

    listed = client.get("/api/applications", params={"job": job_id}, headers=auth_headers(recruiter))
    assert [item["id"] for item in listed.json()] == [application_id]
    assert client.get("/api/applications", params={"job": job_id}, headers=auth_headers(other)).status_code == 403

    status = client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "reviewing", "notes": "Phone screen next"},
        headers=auth_headers(recruiter),
    )
    assert status.status_code == 200
    assert status.json()["status"] == "reviewing"
    forbidden = client.patch(
        f"/api/applications/{application_id}/status",
        json={"status": "rejected"},
        headers=auth_headers(other),
    )
    assert forbidden.status_code == 403

    proxied = client.get(f"/api/applications/{application_id}/document/resume/proxy", headers=auth_headers(recruiter))
    assert proxied.content == PDF_BYTES
    assert client.get(
        f"/api/applications/{application_id}/document/resume/proxy", headers=auth_headers(other)
    ).status_code == 403

    withdrawn = client.patch(
        f"/api/applications/{application_id}/withdraw",
        json={"reason": "Accepted another offer"},
        headers=auth_headers(candidate),
    )
    assert withdrawn.status_code == 200
    assert withdrawn.json()["withdrawn"] is True
    again = client.patch(f"/api/applications/{application_id}/withdraw", headers=auth_headers(candidate))
    assert again.status_code == 409
    assert again.json()["reason"] == "NotWithdrawable"

    mine = client.get("/api/applications", headers=auth_headers(candidate))
    assert len(mine.json()) == 1
    active = client.get("/api/applications", params={"include_withdrawn": "false"}, headers=auth_headers(candidate))
    assert active.json() == []

    deleted = client.delete(f"/api/jobs/{job_id}", headers=auth_headers(recruiter))
    assert deleted.status_code == 200
    assert deleted.json() == {
        "status": "deleted",
        "jobs_deleted": 1,
        "applications_deleted": 1,
        "attachments_deleted": 1,
        "failed_storage_ids": [],
    }
    assert [path for path in storage.root.rglob("*") if path.is_file()] == []


def test_apply_rejections(client, world):
    job_id = world["job"].id

    assert _apply(client, world["recruiter"], job_id).status_code == 403

    missing = _apply(client, world["candidate"], job_id, resume=None)
    assert missing.status_code == 400
    assert missing.json()["kind"] == "ValidationFailed"

    executable = _apply(client, world["candidate"], job_id, resume=("cv.pdf", b"MZ", "application/x-msdownload"))
    assert executable.status_code == 415

    assert _apply(client, world["candidate"], 9999).status_code == 404

    assert _apply(client, world["candidate"], job_id).status_code == 201
    duplicate = _apply(client, world["candidate"], job_id)
    assert duplicate.status_code == 400
    assert duplicate.json() == {
        "detail": "You have already applied to this job",
        "kind": "Conflict",
        "reason": "AlreadyApplied",
    }


def test_apply_to_closed_job(client, db, world):
    closed = make_job(db, world["company"], world["recruiter"], is_active=False)
    response = _apply(client, world["candidate"], closed.id)
    assert response.status_code == 400
    assert response.json()["kind"] == "Closed"


def test_company_names_are_unique_ignoring_case_and_spacing(client, world):
    first = client.post("/api/companies", json=COMPANY, headers=auth_headers(world["recruiter"]))
    assert first.status_code == 201

    clash = client.post(
        "/api/companies",
        json={**COMPANY, "name": "  acme   LABS "},
        headers=auth_headers(world["other_recruiter"]),
    )
    assert clash.status_code == 409
    assert clash.json()["reason"] == "DuplicateName"

    rename = client.put(
        f"/api/companies/{first.json()['id']}",
        json={"name": "ACME CORP"},
        headers=auth_headers(world["recruiter"]),
    )
    assert rename.status_code == 409


def test_company_owner_checks(client, world):
    company_id = world["company"].id
    update = client.put(
        f"/api/companies/{company_id}", json={"description": "Hacked"}, headers=auth_headers(world["other_recruiter"])
    )
    assert update.status_code == 403

    update = client.put(
        f"/api/companies/{company_id}",
        json={"description": "Updated", "website": None},
        headers=auth_headers(world["recruiter"]),
    )
    assert update.status_code == 200
    assert update.json()["description"] == "Updated"

    assert client.post("/api/companies", json=COMPANY, headers=auth_headers(world["candidate"])).status_code == 403

    deleted = client.delete(f"/api/companies/{company_id}", headers=auth_headers(world["recruiter"]))
    assert deleted.json()["jobs_deleted"] == 1
    assert client.get(f"/api/companies/{company_id}").status_code == 404


def test_job_posting_rules(client, world):
    other = world["other_recruiter"]
    no_company = client.post("/api/jobs", json=JOB, headers=auth_headers(other))
    assert no_company.status_code == 400

    not_owner = client.post("/api/jobs", json={**JOB, "company_id": world["company"].id}, headers=auth_headers(other))
    assert not_owner.status_code == 403

    bad_salary = client.post(
        "/api/jobs",
        json={**JOB, "salary_min": 90000, "salary_max": 50000},
        headers=auth_headers(world["recruiter"]),
    )
    assert bad_salary.status_code == 400

    default_company = client.post("/api/jobs", json=JOB, headers=auth_headers(world["recruiter"]))
    assert default_company.status_code == 201
    assert default_company.json()["company_id"] == world["company"].id

    update = client.put(
        f"/api/jobs/{world['job'].id}", json={"title": "Staff Engineer"}, headers=auth_headers(other)
    )
    assert update.status_code == 403


def test_job_listing_filters(client, db, world):
    company, recruiter = world["company"], world["recruiter"]
    make_job(db, company, recruiter, title="Contract Designer", job_type="contract", requirements="Figma")
    make_job(db, company, recruiter, title="Old Posting", expires_at=utcnow() - timedelta(days=1))
    make_job(db, company, recruiter, title="Paused Posting", is_active=False)

    titles = {job["title"] for job in client.get("/api/jobs").json()}
    assert titles == {"Backend Engineer", "Contract Designer"}

    contract = client.get("/api/jobs", params={"job_type": "contract"}).json()
    assert [job["title"] for job in contract] == ["Contract Designer"]

    figma = client.get("/api/jobs", params={"search": "figma"}).json()
    assert [job["title"] for job in figma] == ["Contract Designer"]

    mine = client.get("/api/jobs/mine", headers=auth_headers(recruiter)).json()
    assert len(mine) == 4


def test_saved_jobs(client, db, world):
    candidate = make_user(db, role="candidate")
    job_id = world["job"].id

    saved = client.post(f"/api/saved-jobs/{job_id}", headers=auth_headers(candidate))
    assert saved.status_code == 201
    assert saved.json()["job"]["company_name"] == world["company"].name

    again = client.post(f"/api/saved-jobs/{job_id}", headers=auth_headers(candidate))
    assert again.status_code == 409
    assert again.json()["reason"] == "AlreadySaved"

    assert client.post("/api/saved-jobs/9999", headers=auth_headers(candidate)).status_code == 404
    assert client.get(f"/api/saved-jobs/check/{job_id}", headers=auth_headers(candidate)).json() == {"is_saved": True}
    assert len(client.get("/api/saved-jobs", headers=auth_headers(candidate)).json()) == 1

    assert client.delete(f"/api/saved-jobs/{job_id}", headers=auth_headers(candidate)).status_code == 200
    assert client.get(f"/api/saved-jobs/check/{job_id}", headers=auth_headers(candidate)).json() == {"is_saved": False}
    assert client.delete(f"/api/saved-jobs/{job_id}", headers=auth_headers(candidate)).status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
