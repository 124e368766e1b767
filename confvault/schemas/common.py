"""Shared response fragments."""

from pydantic import BaseModel


class EnvironmentSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    message: str
