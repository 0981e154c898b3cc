from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from jobportal.schemas.job import JobOut


class SavedJobOut(BaseModel):
    id: int
    job_id: int
    created_at: datetime | None = None
    job: JobOut
