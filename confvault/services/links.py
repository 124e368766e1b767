"""Secret/variable ↔ environment join-table helpers.

Links are never patched: an update deletes every link of the owner and
inserts the new set, inside the caller's transaction.
"""

from __future__ import annotations

from sqlalchemy import delete, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.errors import ValidationFailedError
from confvault.models import Environment, SecretEnvironment, VariableEnvironment
from confvault.schemas.common import EnvironmentSummary

LinkModel = type[SecretEnvironment] | type[VariableEnvironment]


def _owner_column(link_model: LinkModel):
    if link_model is SecretEnvironment:
        return SecretEnvironment.secret_id
    return VariableEnvironment.variable_id


async def validate_environment_ids(
    db: AsyncSession, application_id: str, environment_ids: list[str]
) -> list[str]:
    """De-duplicate ``environment_ids`` and check they all belong to the application."""
    ids = list(dict.fromkeys(environment_ids))
    if not ids:
        return []

    stmt = select(Environment.id).where(
        Environment.application_id == application_id, Environment.id.in_(ids)
    )
    found = set((await db.execute(stmt)).scalars().all())
    missing = [env_id for env_id in ids if env_id not in found]
    if missing:
        raise ValidationFailedError(
            f"Unknown environment ids for this application: {', '.join(missing)}"
        )
    return ids


async def add_links(
    db: AsyncSession, link_model: LinkModel, owner_id: str, environment_ids: list[str]
) -> None:
    if not environment_ids:
        return
    owner_key = _owner_column(link_model).key
    await db.execute(
        insert(link_model),
        [{owner_key: owner_id, "environment_id": env_id} for env_id in environment_ids],
    )


async def replace_links(
    db: AsyncSession, link_model: LinkModel, owner_id: str, environment_ids: list[str]
) -> None:
    await delete_links(db, link_model, owner_id)
    await add_links(db, link_model, owner_id, environment_ids)


async def delete_links(db: AsyncSession, link_model: LinkModel, owner_id: str) -> None:
    await db.execute(
        delete(link_model)
        .where(_owner_column(link_model) == owner_id)
        .execution_options(synchronize_session=False)
    )


async def environment_summaries(
    db: AsyncSession, link_model: LinkModel, owner_ids: list[str]
) -> dict[str, list[EnvironmentSummary]]:
    """Map each owner id to the environments it is linked to."""
    summaries: dict[str, list[EnvironmentSummary]] = {owner_id: [] for owner_id in owner_ids}
    if not owner_ids:
        return summaries

    owner_col = _owner_column(link_model)
    stmt = (
        select(owner_col, Environment.id, Environment.name)
        .join(Environment, Environment.id == link_model.environment_id)
        .where(owner_col.in_(owner_ids))
        .order_by(Environment.created_at, Environment.name)
    )
    for owner_id, env_id, env_name in (await db.execute(stmt)).all():
        summaries[owner_id].append(EnvironmentSummary(id=env_id, name=env_name))
    return summaries
