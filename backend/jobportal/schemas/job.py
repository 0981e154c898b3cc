from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


JobType = Literal["full-time", "part-time", "contract", "internship", "remote"]
ExperienceLevel = Literal["entry", "mid", "senior", "executive"]


class JobCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=5000)
    requirements: str = Field(min_length=1, max_length=3000)
    location: str = Field(min_length=1, max_length=100)
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    job_type: JobType
    experience_level: ExperienceLevel
    skills: list[str] = Field(default_factory=list)
    benefits: str | None = Field(default=None, max_length=2000)
    company_id: int | None = None
    is_active: bool = True
    expires_at: datetime | None = None


class JobUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=5000)
    requirements: str | None = Field(default=None, min_length=1, max_length=3000)
    location: str | None = Field(default=None, min_length=1, max_length=100)
    salary_min: int | None = Field(default=None, ge=0)
    salary_max: int | None = Field(default=None, ge=0)
    job_type: JobType | None = None
    experience_level: ExperienceLevel | None = None
    skills: list[str] | None = None
    benefits: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None
    expires_at: datetime | None = None


class JobOut(BaseModel):
    id: int
    company_id: int
    posted_by: int
    title: str
    description: str
    requirements: str
    location: str
    salary_min: int | None = None
    salary_max: int | None = None
    job_type: str
    experience_level: str
    skills: list[str] | None = None
    benefits: str | None = None
    is_active: bool
    expires_at: datetime
    created_at: datetime | None = None
    company_name: str | None = None

    class Config:
        from_attributes = True


class DeleteResponse(BaseModel):
    status: str = "deleted"
    jobs_deleted: int = 0
    applications_deleted: int = 0
    attachments_deleted: int = 0
    failed_storage_ids: list[str] = Field(default_factory=list)
