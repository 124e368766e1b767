"""Variable endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal, get_principal
from confvault.database import get_db
from confvault.schemas.common import MessageResponse
from confvault.schemas.variable import VariableCreate, VariableResponse, VariableUpdate
from confvault.services import variable_service

router = APIRouter()


@router.get("/applications/{application_id}/variables", response_model=list[VariableResponse])
async def list_variables(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await variable_service.list_variables(db, principal, application_id)


@router.post(
    "/applications/{application_id}/variables", response_model=VariableResponse, status_code=201
)
async def create_variable(
    application_id: str,
    data: VariableCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await variable_service.create_variable(db, principal, application_id, data)


@router.get("/variables/{variable_id}", response_model=VariableResponse)
async def get_variable(
    variable_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await variable_service.get_variable(db, principal, variable_id)


@router.api_route("/variables/{variable_id}", methods=["PUT", "PATCH"], response_model=VariableResponse)
async def update_variable(
    variable_id: str,
    data: VariableUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await variable_service.update_variable(db, principal, variable_id, data)


@router.delete("/variables/{variable_id}", response_model=MessageResponse)
async def delete_variable(
    variable_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    await variable_service.delete_variable(db, principal, variable_id)
    return MessageResponse(message="Variable deleted successfully")
