"""Application service — CRUD + cascade deletion.

Creating an application makes the caller its OWNER in the same transaction.
Deletion removes every descendant row explicitly, children first, before the
application itself is removed; nothing relies on database-level cascades.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.database import new_id
from confvault.models import (
    Application,
    Environment,
    Membership,
    Secret,
    SecretEnvironment,
    Variable,
    VariableEnvironment,
)
from confvault.policy import Action, Role
from confvault.schemas.application import (
    ApplicationCounts,
    ApplicationCreate,
    ApplicationDetail,
    ApplicationPage,
    ApplicationSummary,
    ApplicationUpdate,
)
from confvault.schemas.membership import MemberResponse
from confvault.services.access import ResourceRef, authorize
from confvault.services.environment_service import environments_for_application

logger = logging.getLogger(__name__)


async def _counts(db: AsyncSession, application_ids: list[str]) -> dict[str, ApplicationCounts]:
    counts = {app_id: ApplicationCounts() for app_id in application_ids}
    if not application_ids:
        return counts

    for model, field in (
        (Environment, "environments"),
        (Secret, "secrets"),
        (Variable, "variables"),
    ):
        stmt = (
            select(model.application_id, func.count())
            .where(model.application_id.in_(application_ids))
            .group_by(model.application_id)
        )
        for app_id, n in (await db.execute(stmt)).all():
            setattr(counts[app_id], field, n)
    return counts


def _summary(app: Application, role: Role, counts: ApplicationCounts) -> ApplicationSummary:
    return ApplicationSummary(
        id=app.id,
        name=app.name,
        description=app.description,
        created_at=app.created_at,
        updated_at=app.updated_at,
        role=role,
        counts=counts,
    )


async def list_applications(
    db: AsyncSession, principal: Principal, page: int, page_size: int
) -> ApplicationPage:
    total = await db.scalar(
        select(func.count()).select_from(Membership).where(Membership.principal_id == principal.id)
    )
    stmt = (
        select(Application, Membership.role)
        .join(Membership, Membership.application_id == Application.id)
        .where(Membership.principal_id == principal.id)
        .order_by(Application.updated_at.desc(), Application.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).all()
    counts = await _counts(db, [app.id for app, _ in rows])
    return ApplicationPage(
        items=[_summary(app, Role(role), counts[app.id]) for app, role in rows],
        total=total or 0,
        page=page,
        page_size=page_size,
    )


async def create_application(
    db: AsyncSession, principal: Principal, data: ApplicationCreate
) -> ApplicationSummary:
    app = Application(id=new_id(), name=data.name, description=data.description)
    owner = Membership(principal_id=principal.id, application_id=app.id, role=Role.OWNER)
    db.add_all([app, owner])
    await db.commit()
    await db.refresh(app)

    logger.info("Created application %s (%s) owned by %s", app.id, app.name, principal.id)
    return _summary(app, Role.OWNER, ApplicationCounts())


async def get_application(
    db: AsyncSession, principal: Principal, application_id: str
) -> ApplicationDetail:
    resolution = await authorize(
        db, principal, ResourceRef.application(application_id), Action.READ
    )
    app = await db.get(Application, application_id)

    members = await db.execute(
        select(Membership)
        .where(Membership.application_id == application_id)
        .order_by(Membership.created_at)
    )
    counts = await _counts(db, [application_id])
    summary = _summary(app, resolution.role, counts[application_id])
    return ApplicationDetail(
        **summary.model_dump(),
        members=[MemberResponse.model_validate(m) for m in members.scalars().all()],
        environments=await environments_for_application(db, application_id),
    )


async def update_application(
    db: AsyncSession, principal: Principal, application_id: str, data: ApplicationUpdate
) -> ApplicationSummary:
    resolution = await authorize(
        db, principal, ResourceRef.application(application_id), Action.UPDATE_APPLICATION
    )
    app = await db.get(Application, application_id)

    if data.name is not None:
        app.name = data.name
    if "description" in data.model_fields_set:
        app.description = data.description

    await db.commit()
    await db.refresh(app)
    counts = await _counts(db, [application_id])
    return _summary(app, resolution.role, counts[application_id])


async def delete_application(
    db: AsyncSession, principal: Principal, application_id: str
) -> None:
    await authorize(
        db, principal, ResourceRef.application(application_id), Action.DELETE_APPLICATION
    )

    secret_ids = select(Secret.id).where(Secret.application_id == application_id)
    variable_ids = select(Variable.id).where(Variable.application_id == application_id)
    statements = [
        delete(SecretEnvironment).where(SecretEnvironment.secret_id.in_(secret_ids)),
        delete(VariableEnvironment).where(VariableEnvironment.variable_id.in_(variable_ids)),
        delete(Secret).where(Secret.application_id == application_id),
        delete(Variable).where(Variable.application_id == application_id),
        delete(Environment).where(Environment.application_id == application_id),
        delete(Membership).where(Membership.application_id == application_id),
        delete(Application).where(Application.id == application_id),
    ]
    for stmt in statements:
        await db.execute(stmt.execution_options(synchronize_session=False))
    await db.commit()

    logger.info("Deleted application %s (requested by %s)", application_id, principal.id)
