"""Variable request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from confvault.schemas.common import EnvironmentSummary


class VariableCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1)
    environment_ids: list[str] = []

    model_config = {"extra": "forbid"}


class VariableUpdate(BaseModel):
    key: str | None = Field(None, min_length=1, max_length=255)
    value: str | None = Field(None, min_length=1)
    environment_ids: list[str] | None = None

    model_config = {"extra": "forbid"}


class VariableResponse(BaseModel):
    id: str
    key: str
    value: str
    application_id: str
    created_at: datetime
    updated_at: datetime
    environments: list[EnvironmentSummary] = []
