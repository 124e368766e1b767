"""Principal extraction — the identity provider sits in front of this service.

The upstream auth proxy authenticates the user and forwards the principal id
(and optionally the verified email) in request headers. Requests without a
principal are rejected before any service code runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from confvault.config import settings
from confvault.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: str
    email: str | None = None


def is_authorized_email(email: str | None) -> bool:
    if not email:
        return False
    email = email.lower()
    if email in (e.lower() for e in settings.authorized_emails):
        return True
    domain = email.rpartition("@")[2]
    return domain in (d.lower() for d in settings.authorized_domains)


async def get_principal(request: Request) -> Principal:
    principal_id = (request.headers.get(settings.principal_header) or "").strip()
    if not principal_id:
        raise UnauthenticatedError()

    email = (request.headers.get(settings.principal_email_header) or "").strip() or None
    if settings.email_allowlist_enabled and not is_authorized_email(email):
        logger.warning("Rejected principal %s: email not on the allow-list", principal_id)
        raise UnauthenticatedError()

    return Principal(id=principal_id, email=email)
