"""Environment request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class EnvironmentCreate(BaseModel):
    name: str  # pattern/length checked by the service so the error names the rule
    description: str | None = None

    model_config = {"extra": "forbid"}


class EnvironmentUpdate(BaseModel):
    # name is immutable; extra="forbid" rejects it along with any unknown field
    description: str | None = None

    model_config = {"extra": "forbid"}


class EnvironmentCounts(BaseModel):
    secrets: int = 0
    variables: int = 0


class EnvironmentResponse(BaseModel):
    id: str
    name: str
    description: str | None
    application_id: str
    created_at: datetime
    updated_at: datetime
    counts: EnvironmentCounts = Field(default_factory=EnvironmentCounts)

    model_config = {"from_attributes": True}


class AttachedSecret(BaseModel):
    id: str
    key: str

    model_config = {"from_attributes": True}


class AttachedVariable(BaseModel):
    id: str
    key: str
    value: str

    model_config = {"from_attributes": True}


class EnvironmentDetail(EnvironmentResponse):
    secrets: list[AttachedSecret] = []
    variables: list[AttachedVariable] = []
