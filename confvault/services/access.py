"""Role resolution — walks a resource up to its application and looks up the
caller's membership there.

A missing resource and a missing membership resolve identically (``None``), so
callers cannot use the API to probe for ids they have no access to.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from confvault.auth import Principal
from confvault.errors import ForbiddenError, NotFoundError
from confvault.models import Environment, Membership, Secret, Variable
from confvault.policy import Action, Role, is_allowed

logger = logging.getLogger(__name__)


class ResourceKind(str, enum.Enum):
    APPLICATION = "application"
    ENVIRONMENT = "environment"
    SECRET = "secret"
    VARIABLE = "variable"

    @property
    def label(self) -> str:
        return self.value.capitalize()


_OWNED_MODELS = {
    ResourceKind.ENVIRONMENT: Environment,
    ResourceKind.SECRET: Secret,
    ResourceKind.VARIABLE: Variable,
}


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    id: str

    @classmethod
    def application(cls, id: str) -> ResourceRef:
        return cls(ResourceKind.APPLICATION, id)

    @classmethod
    def environment(cls, id: str) -> ResourceRef:
        return cls(ResourceKind.ENVIRONMENT, id)

    @classmethod
    def secret(cls, id: str) -> ResourceRef:
        return cls(ResourceKind.SECRET, id)

    @classmethod
    def variable(cls, id: str) -> ResourceRef:
        return cls(ResourceKind.VARIABLE, id)


@dataclass(frozen=True)
class RoleResolution:
    application_id: str
    role: Role


async def resolve_role(
    db: AsyncSession, principal_id: str, ref: ResourceRef
) -> RoleResolution | None:
    stmt = select(Membership.application_id, Membership.role).where(
        Membership.principal_id == principal_id
    )
    if ref.kind is ResourceKind.APPLICATION:
        stmt = stmt.where(Membership.application_id == ref.id)
    else:
        model = _OWNED_MODELS[ref.kind]
        stmt = stmt.join(model, model.application_id == Membership.application_id).where(
            model.id == ref.id
        )

    row = (await db.execute(stmt)).first()
    if row is None:
        return None
    return RoleResolution(application_id=row.application_id, role=Role(row.role))


async def authorize(
    db: AsyncSession, principal: Principal, ref: ResourceRef, action: Action
) -> RoleResolution:
    """Resolve the caller's role on ``ref`` and check it against ``action``.

    Raises NotFoundError when the resource does not exist or the caller has no
    membership on its application, ForbiddenError when the role is too low.
    """
    resolution = await resolve_role(db, principal.id, ref)
    if resolution is None:
        raise NotFoundError(f"{ref.kind.label} not found")

    if not is_allowed(resolution.role, action):
        logger.warning(
            "Denied %s on %s %s for principal %s (role %s)",
            action.value,
            ref.kind.value,
            ref.id,
            principal.id,
            resolution.role.value,
        )
        raise ForbiddenError()

    return resolution
