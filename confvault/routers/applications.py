"""Application CRUD endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal, get_principal
from confvault.config import settings
from confvault.database import get_db
from confvault.schemas.application import (
    ApplicationCreate,
    ApplicationDetail,
    ApplicationPage,
    ApplicationSummary,
    ApplicationUpdate,
)
from confvault.schemas.common import MessageResponse
from confvault.services import application_service

router = APIRouter()


@router.get("/", response_model=ApplicationPage)
async def list_applications(
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    size = min(page_size or settings.default_page_size, settings.max_page_size)
    return await application_service.list_applications(db, principal, page=page, page_size=size)


@router.post("/", response_model=ApplicationSummary, status_code=201)
async def create_application(
    data: ApplicationCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.create_application(db, principal, data)


@router.get("/{application_id}", response_model=ApplicationDetail)
async def get_application(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.get_application(db, principal, application_id)


@router.api_route("/{application_id}", methods=["PUT", "PATCH"], response_model=ApplicationSummary)
async def update_application(
    application_id: str,
    data: ApplicationUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await application_service.update_application(db, principal, application_id, data)


@router.delete("/{application_id}", response_model=MessageResponse)
async def delete_application(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    await application_service.delete_application(db, principal, application_id)
    return MessageResponse(message="Application deleted successfully")
