"""Secret request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from confvault.schemas.common import EnvironmentSummary


class SecretCreate(BaseModel):
    key: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1)  # plaintext — will be encrypted before storage
    environment_ids: list[str] = []

    model_config = {"extra": "forbid"}


class SecretUpdate(BaseModel):
    key: str | None = Field(None, min_length=1, max_length=255)
    value: str | None = Field(None, min_length=1)  # new plaintext value
    environment_ids: list[str] | None = None  # None keeps links, [] clears them

    model_config = {"extra": "forbid"}


class SecretResponse(BaseModel):
    id: str
    key: str
    application_id: str
    created_at: datetime
    updated_at: datetime
    environments: list[EnvironmentSummary] = []
    # value is NEVER returned
