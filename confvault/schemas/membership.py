"""Membership request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from confvault.policy import Role


class MemberCreate(BaseModel):
    principal_id: str = Field(..., min_length=1, max_length=255)
    role: Role

    model_config = {"extra": "forbid"}


class MemberUpdate(BaseModel):
    role: Role

    model_config = {"extra": "forbid"}


class MemberResponse(BaseModel):
    id: str
    principal_id: str
    role: Role
    created_at: datetime

    model_config = {"from_attributes": True}
