"""Secret service — encrypted key-value entries scoped to an application."""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.database import new_id, translate_integrity_error, utcnow
from confvault.errors import DuplicateKeyError
from confvault.models import Secret, SecretEnvironment
from confvault.policy import Action
from confvault.schemas.common import EnvironmentSummary
from confvault.schemas.secret import SecretCreate, SecretResponse, SecretUpdate
from confvault.services import links
from confvault.services.access import ResourceRef, authorize
from confvault.utils.crypto import decrypt, encrypt

logger = logging.getLogger(__name__)

_DUPLICATE_KEY = "Secret key already exists"


def _to_response(secret: Secret, environments: list[EnvironmentSummary]) -> SecretResponse:
    # Built field by field so encrypted_value can never leak into the payload.
    return SecretResponse(
        id=secret.id,
        key=secret.key,
        application_id=secret.application_id,
        created_at=secret.created_at,
        updated_at=secret.updated_at,
        environments=environments,
    )


async def _single_response(db: AsyncSession, secret: Secret) -> SecretResponse:
    summaries = await links.environment_summaries(db, SecretEnvironment, [secret.id])
    return _to_response(secret, summaries[secret.id])


async def list_secrets(
    db: AsyncSession, principal: Principal, application_id: str
) -> list[SecretResponse]:
    await authorize(db, principal, ResourceRef.application(application_id), Action.READ)
    stmt = select(Secret).where(Secret.application_id == application_id).order_by(Secret.key)
    secrets = list((await db.execute(stmt)).scalars().all())
    summaries = await links.environment_summaries(db, SecretEnvironment, [s.id for s in secrets])
    return [_to_response(s, summaries[s.id]) for s in secrets]


async def get_secret(db: AsyncSession, principal: Principal, secret_id: str) -> SecretResponse:
    await authorize(db, principal, ResourceRef.secret(secret_id), Action.READ)
    secret = await db.get(Secret, secret_id)
    return await _single_response(db, secret)


async def create_secret(
    db: AsyncSession, principal: Principal, application_id: str, data: SecretCreate
) -> SecretResponse:
    await authorize(db, principal, ResourceRef.application(application_id), Action.WRITE)
    environment_ids = await links.validate_environment_ids(
        db, application_id, data.environment_ids
    )

    secret = Secret(
        id=new_id(),
        key=data.key,
        encrypted_value=encrypt(data.value),
        application_id=application_id,
    )
    async with translate_integrity_error(db, DuplicateKeyError(_DUPLICATE_KEY)):
        db.add(secret)
        await db.flush()
        await links.add_links(db, SecretEnvironment, secret.id, environment_ids)
        await db.commit()
    await db.refresh(secret)

    logger.info("Created secret %s (%s) in application %s", secret.id, secret.key, application_id)
    return await _single_response(db, secret)


async def update_secret(
    db: AsyncSession, principal: Principal, secret_id: str, data: SecretUpdate
) -> SecretResponse:
    resolution = await authorize(db, principal, ResourceRef.secret(secret_id), Action.WRITE)
    secret = await db.get(Secret, secret_id)

    environment_ids = None
    if data.environment_ids is not None:
        environment_ids = await links.validate_environment_ids(
            db, resolution.application_id, data.environment_ids
        )

    async with translate_integrity_error(db, DuplicateKeyError(_DUPLICATE_KEY)):
        if data.key is not None:
            secret.key = data.key
        if data.value is not None:
            secret.encrypted_value = encrypt(data.value)
        if environment_ids is not None:
            await links.replace_links(db, SecretEnvironment, secret.id, environment_ids)
        secret.updated_at = utcnow()
        await db.commit()
    await db.refresh(secret)

    logger.info("Updated secret %s", secret.id)
    return await _single_response(db, secret)


async def delete_secret(db: AsyncSession, principal: Principal, secret_id: str) -> None:
    await authorize(db, principal, ResourceRef.secret(secret_id), Action.DELETE)

    await links.delete_links(db, SecretEnvironment, secret_id)
    await db.execute(
        delete(Secret).where(Secret.id == secret_id).execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Deleted secret %s", secret_id)


async def get_decrypted_value(db: AsyncSession, secret_id: str) -> str | None:
    """Decrypt and return the secret value (internal use only — never expose via API)."""
    secret = await db.get(Secret, secret_id)
    if not secret:
        return None
    return decrypt(secret.encrypted_value)
