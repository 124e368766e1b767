"""Membership service — who holds which role on an application."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.database import translate_integrity_error
from confvault.errors import ConflictError, NotFoundError
from confvault.models import Membership
from confvault.policy import Action, Role
from confvault.schemas.membership import MemberCreate, MemberResponse, MemberUpdate
from confvault.services.access import ResourceRef, authorize

logger = logging.getLogger(__name__)


async def _get_membership(
    db: AsyncSession, application_id: str, principal_id: str
) -> Membership:
    membership = await db.scalar(
        select(Membership).where(
            Membership.application_id == application_id,
            Membership.principal_id == principal_id,
        )
    )
    if membership is None:
        raise NotFoundError("Member not found")
    return membership


async def _ensure_other_owner(db: AsyncSession, application_id: str) -> None:
    owners = await db.scalar(
        select(func.count())
        .select_from(Membership)
        .where(Membership.application_id == application_id, Membership.role == Role.OWNER)
    )
    if owners <= 1:
        raise ConflictError("Application must keep at least one owner")


async def list_members(
    db: AsyncSession, principal: Principal, application_id: str
) -> list[MemberResponse]:
    await authorize(db, principal, ResourceRef.application(application_id), Action.READ)
    result = await db.execute(
        select(Membership)
        .where(Membership.application_id == application_id)
        .order_by(Membership.created_at)
    )
    return [MemberResponse.model_validate(m) for m in result.scalars().all()]


async def add_member(
    db: AsyncSession, principal: Principal, application_id: str, data: MemberCreate
) -> MemberResponse:
    await authorize(
        db, principal, ResourceRef.application(application_id), Action.MANAGE_MEMBERS
    )
    membership = Membership(
        principal_id=data.principal_id, application_id=application_id, role=data.role
    )
    async with translate_integrity_error(db, ConflictError("Principal is already a member")):
        db.add(membership)
        await db.commit()
    await db.refresh(membership)

    logger.info(
        "Added %s to application %s as %s", data.principal_id, application_id, data.role.value
    )
    return MemberResponse.model_validate(membership)


async def update_member_role(
    db: AsyncSession,
    principal: Principal,
    application_id: str,
    principal_id: str,
    data: MemberUpdate,
) -> MemberResponse:
    await authorize(
        db, principal, ResourceRef.application(application_id), Action.MANAGE_MEMBERS
    )
    membership = await _get_membership(db, application_id, principal_id)
    if membership.role is Role.OWNER and data.role is not Role.OWNER:
        await _ensure_other_owner(db, application_id)

    membership.role = data.role
    await db.commit()
    await db.refresh(membership)

    logger.info("Set role of %s on application %s to %s", principal_id, application_id, data.role.value)
    return MemberResponse.model_validate(membership)


async def remove_member(
    db: AsyncSession, principal: Principal, application_id: str, principal_id: str
) -> None:
    await authorize(
        db, principal, ResourceRef.application(application_id), Action.MANAGE_MEMBERS
    )
    membership = await _get_membership(db, application_id, principal_id)
    if membership.role is Role.OWNER:
        await _ensure_other_owner(db, application_id)

    await db.execute(
        delete(Membership)
        .where(Membership.id == membership.id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Removed %s from application %s", principal_id, application_id)
