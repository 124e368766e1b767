"""Typed failures raised by services and rendered by the API exception handlers.

Every error carries a machine-readable ``kind`` and a human-readable ``detail``.
Secret values must never be put into either.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error.  Subclass to define domain-specific errors."""

    status_code: int = 400
    kind: str = "error"
    default_detail: str = "An error occurred."

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def extra(self) -> dict[str, Any]:
        """Additional fields merged into the JSON payload."""
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "detail": self.detail, **self.extra()}


class UnauthenticatedError(AppError):
    status_code = 401
    kind = "unauthenticated"
    default_detail = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    kind = "forbidden"
    default_detail = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"
    default_detail = "Not found"


class ValidationFailedError(AppError):
    status_code = 400
    kind = "validation_failed"
    default_detail = "Validation failed"


class ConflictError(AppError):
    status_code = 409
    kind = "conflict"
    default_detail = "A resource conflict occurred"


class DuplicateKeyError(ConflictError):
    kind = "duplicate_key"


class ResourceInUseError(ConflictError):
    kind = "resource_in_use"

    def __init__(self, secrets: int, variables: int) -> None:
        self.secrets = secrets
        self.variables = variables
        super().__init__(
            f"Cannot delete environment with attached resources "
            f"({secrets} secrets, {variables} variables)"
        )

    def extra(self) -> dict[str, Any]:
        return {"counts": {"secrets": self.secrets, "variables": self.variables}}


class DecryptionError(AppError):
    status_code = 500
    kind = "decryption_error"
    default_detail = "Stored value could not be decrypted"


class StorageFailureError(AppError):
    status_code = 500
    kind = "storage_failure"
    default_detail = "Internal server error"
