"""Application request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from confvault.policy import Role
from confvault.schemas.environment import EnvironmentResponse
from confvault.schemas.membership import MemberResponse


class ApplicationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None

    model_config = {"extra": "forbid"}


class ApplicationUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None

    model_config = {"extra": "forbid"}


class ApplicationCounts(BaseModel):
    environments: int = 0
    secrets: int = 0
    variables: int = 0


class ApplicationSummary(BaseModel):
    id: str
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    role: Role
    counts: ApplicationCounts


class ApplicationDetail(ApplicationSummary):
    members: list[MemberResponse]
    environments: list[EnvironmentResponse]


class ApplicationPage(BaseModel):
    items: list[ApplicationSummary]
    total: int
    page: int
    page_size: int
