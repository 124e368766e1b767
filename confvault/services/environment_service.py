"""Environment service — named partitions inside an application."""

from __future__ import annotations

import logging
import re

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.database import translate_integrity_error, utcnow
from confvault.errors import ConflictError, ResourceInUseError, ValidationFailedError
from confvault.models import (
    Environment,
    Secret,
    SecretEnvironment,
    Variable,
    VariableEnvironment,
)
from confvault.policy import Action
from confvault.schemas.environment import (
    AttachedSecret,
    AttachedVariable,
    EnvironmentCounts,
    EnvironmentCreate,
    EnvironmentDetail,
    EnvironmentResponse,
    EnvironmentUpdate,
)
from confvault.services.access import ResourceRef, authorize

logger = logging.getLogger(__name__)

ENVIRONMENT_NAME_RE = re.compile(r"[a-z0-9_-]+")
MAX_ENVIRONMENT_NAME_LENGTH = 15
MAX_ENVIRONMENTS_PER_APPLICATION = 10


def validate_environment_name(name: str) -> None:
    if not name:
        raise ValidationFailedError("Name is required")
    if not ENVIRONMENT_NAME_RE.fullmatch(name):
        raise ValidationFailedError(
            "Name can only contain lowercase letters, numbers, hyphens, and underscores"
        )
    if len(name) > MAX_ENVIRONMENT_NAME_LENGTH:
        raise ValidationFailedError(
            f"Name must be {MAX_ENVIRONMENT_NAME_LENGTH} characters or less"
        )


async def attached_counts(
    db: AsyncSession, environment_ids: list[str]
) -> dict[str, EnvironmentCounts]:
    counts = {env_id: EnvironmentCounts() for env_id in environment_ids}
    if not environment_ids:
        return counts

    for link_model, field in ((SecretEnvironment, "secrets"), (VariableEnvironment, "variables")):
        stmt = (
            select(link_model.environment_id, func.count())
            .where(link_model.environment_id.in_(environment_ids))
            .group_by(link_model.environment_id)
        )
        for env_id, n in (await db.execute(stmt)).all():
            setattr(counts[env_id], field, n)
    return counts


def _to_response(env: Environment, counts: EnvironmentCounts) -> EnvironmentResponse:
    resp = EnvironmentResponse.model_validate(env)
    resp.counts = counts
    return resp


async def environments_for_application(
    db: AsyncSession, application_id: str
) -> list[EnvironmentResponse]:
    """Unchecked listing; callers must have authorized READ on the application."""
    stmt = (
        select(Environment)
        .where(Environment.application_id == application_id)
        .order_by(Environment.created_at, Environment.name)
    )
    envs = list((await db.execute(stmt)).scalars().all())
    counts = await attached_counts(db, [e.id for e in envs])
    return [_to_response(e, counts[e.id]) for e in envs]


async def list_environments(
    db: AsyncSession, principal: Principal, application_id: str
) -> list[EnvironmentResponse]:
    await authorize(db, principal, ResourceRef.application(application_id), Action.READ)
    return await environments_for_application(db, application_id)


async def get_environment(
    db: AsyncSession, principal: Principal, environment_id: str
) -> EnvironmentDetail:
    await authorize(db, principal, ResourceRef.environment(environment_id), Action.READ)
    env = await db.get(Environment, environment_id)

    secrets = await db.execute(
        select(Secret.id, Secret.key)
        .join(SecretEnvironment, SecretEnvironment.secret_id == Secret.id)
        .where(SecretEnvironment.environment_id == environment_id)
        .order_by(Secret.key)
    )
    variables = await db.execute(
        select(Variable.id, Variable.key, Variable.value)
        .join(VariableEnvironment, VariableEnvironment.variable_id == Variable.id)
        .where(VariableEnvironment.environment_id == environment_id)
        .order_by(Variable.key)
    )

    detail = EnvironmentDetail.model_validate(env)
    detail.secrets = [AttachedSecret(id=row.id, key=row.key) for row in secrets.all()]
    detail.variables = [
        AttachedVariable(id=row.id, key=row.key, value=row.value) for row in variables.all()
    ]
    detail.counts = EnvironmentCounts(secrets=len(detail.secrets), variables=len(detail.variables))
    return detail


async def create_environment(
    db: AsyncSession, principal: Principal, application_id: str, data: EnvironmentCreate
) -> EnvironmentResponse:
    await authorize(db, principal, ResourceRef.application(application_id), Action.WRITE)
    validate_environment_name(data.name)

    # Count-then-insert: two concurrent creators can both pass the cap check.
    # Name uniqueness is also backed by the (application_id, name) constraint.
    existing = await db.scalar(
        select(func.count()).select_from(Environment).where(
            Environment.application_id == application_id
        )
    )
    if existing >= MAX_ENVIRONMENTS_PER_APPLICATION:
        raise ValidationFailedError(
            f"Maximum of {MAX_ENVIRONMENTS_PER_APPLICATION} environments per application"
        )

    duplicate = await db.scalar(
        select(Environment.id).where(
            Environment.application_id == application_id, Environment.name == data.name
        )
    )
    if duplicate is not None:
        raise ConflictError("Environment name already exists")

    env = Environment(name=data.name, description=data.description, application_id=application_id)
    async with translate_integrity_error(db, ConflictError("Environment name already exists")):
        db.add(env)
        await db.commit()
    await db.refresh(env)

    logger.info("Created environment %s (%s) in application %s", env.id, env.name, application_id)
    return _to_response(env, EnvironmentCounts())


async def update_environment(
    db: AsyncSession, principal: Principal, environment_id: str, data: EnvironmentUpdate
) -> EnvironmentResponse:
    await authorize(db, principal, ResourceRef.environment(environment_id), Action.WRITE)
    env = await db.get(Environment, environment_id)

    if "description" in data.model_fields_set:
        env.description = data.description
    env.updated_at = utcnow()

    await db.commit()
    await db.refresh(env)
    counts = await attached_counts(db, [env.id])
    return _to_response(env, counts[env.id])


async def delete_environment(
    db: AsyncSession, principal: Principal, environment_id: str
) -> None:
    await authorize(db, principal, ResourceRef.environment(environment_id), Action.DELETE)

    counts = (await attached_counts(db, [environment_id]))[environment_id]
    if counts.secrets or counts.variables:
        raise ResourceInUseError(secrets=counts.secrets, variables=counts.variables)

    await db.execute(
        delete(Environment)
        .where(Environment.id == environment_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Deleted environment %s", environment_id)
