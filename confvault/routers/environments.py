"""Environment endpoints — listed/created under an application, managed by id."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal, get_principal
from confvault.database import get_db
from confvault.schemas.common import MessageResponse
from confvault.schemas.environment import (
    EnvironmentCreate,
    EnvironmentDetail,
    EnvironmentResponse,
    EnvironmentUpdate,
)
from confvault.services import environment_service

router = APIRouter()


@router.get("/applications/{application_id}/environments", response_model=list[EnvironmentResponse])
async def list_environments(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await environment_service.list_environments(db, principal, application_id)


@router.post(
    "/applications/{application_id}/environments",
    response_model=EnvironmentResponse,
    status_code=201,
)
async def create_environment(
    application_id: str,
    data: EnvironmentCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await environment_service.create_environment(db, principal, application_id, data)


@router.get("/environments/{environment_id}", response_model=EnvironmentDetail)
async def get_environment(
    environment_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await environment_service.get_environment(db, principal, environment_id)


@router.api_route(
    "/environments/{environment_id}", methods=["PUT", "PATCH"], response_model=EnvironmentResponse
)
async def update_environment(
    environment_id: str,
    data: EnvironmentUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await environment_service.update_environment(db, principal, environment_id, data)


@router.delete("/environments/{environment_id}", response_model=MessageResponse)
async def delete_environment(
    environment_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    await environment_service.delete_environment(db, principal, environment_id)
    return MessageResponse(message="Environment deleted successfully")
