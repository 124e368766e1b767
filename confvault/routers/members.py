"""Application membership endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal, get_principal
from confvault.database import get_db
from confvault.schemas.common import MessageResponse
from confvault.schemas.membership import MemberCreate, MemberResponse, MemberUpdate
from confvault.services import membership_service

router = APIRouter()


@router.get("/{application_id}/members", response_model=list[MemberResponse])
async def list_members(
    application_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await membership_service.list_members(db, principal, application_id)


@router.post("/{application_id}/members", response_model=MemberResponse, status_code=201)
async def add_member(
    application_id: str,
    data: MemberCreate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await membership_service.add_member(db, principal, application_id, data)


@router.patch("/{application_id}/members/{principal_id}", response_model=MemberResponse)
async def update_member(
    application_id: str,
    principal_id: str,
    data: MemberUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await membership_service.update_member_role(
        db, principal, application_id, principal_id, data
    )


@router.delete("/{application_id}/members/{principal_id}", response_model=MessageResponse)
async def remove_member(
    application_id: str,
    principal_id: str,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    await membership_service.remove_member(db, principal, application_id, principal_id)
    return MessageResponse(message="Member removed successfully")
