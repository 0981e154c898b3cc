from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


CompanySize = Literal["1-10", "11-50", "51-200", "201-500", "501-1000", "1000+"]
URL_PATTERN = r"^https?://[^\s/$.?#].[^\s]*$"


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    website: str | None = Field(default=None, pattern=URL_PATTERN)
    location: str = Field(min_length=1, max_length=100)
    logo_url: str | None = None
    industry: str = Field(min_length=1, max_length=50)
    size: CompanySize
    founded: int | None = Field(default=None, ge=1800)


class CompanyUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    website: str | None = Field(default=None, pattern=URL_PATTERN)
    location: str | None = Field(default=None, min_length=1, max_length=100)
    logo_url: str | None = None
    industry: str | None = Field(default=None, min_length=1, max_length=50)
    size: CompanySize | None = None
    founded: int | None = Field(default=None, ge=1800)


class CompanyOut(BaseModel):
    id: int
    owner_id: int
    name: str
    description: str
    website: str | None = None
    location: str
    logo_url: str | None = None
    industry: str
    size: str
    founded: int | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
