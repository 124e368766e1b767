"""Variable service — plaintext key-value entries scoped to an application."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.database import new_id, translate_integrity_error, utcnow
from confvault.errors import DuplicateKeyError
from confvault.models import Variable, VariableEnvironment
from confvault.policy import Action
from confvault.schemas.common import EnvironmentSummary
from confvault.schemas.variable import VariableCreate, VariableResponse, VariableUpdate
from confvault.services import links
from confvault.services.access import ResourceRef, authorize

logger = logging.getLogger(__name__)

_DUPLICATE_KEY = "Variable key already exists"


def _to_response(variable: Variable, environments: list[EnvironmentSummary]) -> VariableResponse:
    return VariableResponse(
        id=variable.id,
        key=variable.key,
        value=variable.value,
        application_id=variable.application_id,
        created_at=variable.created_at,
        updated_at=variable.updated_at,
        environments=environments,
    )


async def _single_response(db: AsyncSession, variable: Variable) -> VariableResponse:
    summaries = await links.environment_summaries(db, VariableEnvironment, [variable.id])
    return _to_response(variable, summaries[variable.id])


async def list_variables(
    db: AsyncSession, principal: Principal, application_id: str
) -> list[VariableResponse]:
    await authorize(db, principal, ResourceRef.application(application_id), Action.READ)
    stmt = (
        select(Variable).where(Variable.application_id == application_id).order_by(Variable.key)
    )
    variables = list((await db.execute(stmt)).scalars().all())
    summaries = await links.environment_summaries(
        db, VariableEnvironment, [v.id for v in variables]
    )
    return [_to_response(v, summaries[v.id]) for v in variables]


async def get_variable(
    db: AsyncSession, principal: Principal, variable_id: str
) -> VariableResponse:
    await authorize(db, principal, ResourceRef.variable(variable_id), Action.READ)
    variable = await db.get(Variable, variable_id)
    return await _single_response(db, variable)


async def create_variable(
    db: AsyncSession, principal: Principal, application_id: str, data: VariableCreate
) -> VariableResponse:
    await authorize(db, principal, ResourceRef.application(application_id), Action.WRITE)
    environment_ids = await links.validate_environment_ids(
        db, application_id, data.environment_ids
    )

    variable = Variable(
        id=new_id(), key=data.key, value=data.value, application_id=application_id
    )
    async with translate_integrity_error(db, DuplicateKeyError(_DUPLICATE_KEY)):
        db.add(variable)
        await db.flush()
        await links.add_links(db, VariableEnvironment, variable.id, environment_ids)
        await db.commit()
    await db.refresh(variable)

    logger.info(
        "Created variable %s (%s) in application %s", variable.id, variable.key, application_id
    )
    return await _single_response(db, variable)


async def update_variable(
    db: AsyncSession, principal: Principal, variable_id: str, data: VariableUpdate
) -> VariableResponse:
    resolution = await authorize(db, principal, ResourceRef.variable(variable_id), Action.WRITE)
    variable = await db.get(Variable, variable_id)

    environment_ids = None
    if data.environment_ids is not None:
        environment_ids = await links.validate_environment_ids(
            db, resolution.application_id, data.environment_ids
        )

    async with translate_integrity_error(db, DuplicateKeyError(_DUPLICATE_KEY)):
        if data.key is not None:
            variable.key = data.key
        if data.value is not None:
            variable.value = data.value
        if environment_ids is not None:
            await links.replace_links(db, VariableEnvironment, variable.id, environment_ids)
        variable.updated_at = utcnow()
        await db.commit()
    await db.refresh(variable)

    logger.info("Updated variable %s", variable.id)
    return await _single_response(db, variable)


async def delete_variable(db: AsyncSession, principal: Principal, variable_id: str) -> None:
    await authorize(db, principal, ResourceRef.variable(variable_id), Action.DELETE)

    await links.delete_links(db, VariableEnvironment, variable_id)
    await db.execute(
        delete(Variable)
        .where(Variable.id == variable_id)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Deleted variable %s", variable_id)
