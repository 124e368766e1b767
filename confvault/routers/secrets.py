"""Secret endpoints — metadata only, values are write-only."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal, get_principal
from confvault.database import get_db
from confvault.schemas.common import MessageResponse
from confvault.schemas.secret import SecretCreate, SecretResponse, SecretUpdate
from confvault.services import secret_service

router = APIRouter()


@router.get("/applications/{application_id}/secrets", response_model=list[SecretResponse])
async def list_secrets(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await secret_service.list_secrets(db, principal, application_id)


@router.post(
    "/applications/{application_id}/secrets", response_model=SecretResponse, status_code=201
)
async def create_secret(
    application_id: str,
    data: SecretCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await secret_service.create_secret(db, principal, application_id, data)


@router.get("/secrets/{secret_id}", response_model=SecretResponse)
async def get_secret(
    secret_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await secret_service.get_secret(db, principal, secret_id)


@router.api_route("/secrets/{secret_id}", methods=["PUT", "PATCH"], response_model=SecretResponse)
async def update_secret(
    secret_id: str,
    data: SecretUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await secret_service.update_secret(db, principal, secret_id, data)


@router.delete("/secrets/{secret_id}", response_model=MessageResponse)
async def delete_secret(
    secret_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    await secret_service.delete_secret(db, principal, secret_id)
    return MessageResponse(message="Secret deleted successfully")
