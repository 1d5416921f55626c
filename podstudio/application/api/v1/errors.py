"""Translation of podstudio errors into HTTP responses."""

from typing import Any

from fastapi import HTTPException

from podstudio.domain.shared.error import (
    AuthenticationError,
    ConflictError,
    DomainError,
    InfrastructureError,
    InvalidStateError,
    NotFoundError,
    PodstudioError,
    ValidationError,
)

# Checked in order; the first matching class decides the status
_DOMAIN_STATUSES: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, 404),
    (ValidationError, 400),
    (AuthenticationError, 401),
    (InvalidStateError, 409),
    (ConflictError, 409),
)
_DOMAIN_DEFAULT_STATUS = 400


def _status_for(error: PodstudioError) -> int:
    if isinstance(error, InfrastructureError):
        return 503
    if isinstance(error, DomainError):
        for error_type, status in _DOMAIN_STATUSES:
            if isinstance(error, error_type):
                return status
        return _DOMAIN_DEFAULT_STATUS
    return 500


def map_podstudio_error(error: PodstudioError) -> HTTPException:
    """Build the HTTPException a route should answer with for ``error``.

    The body is ``{"code", "message"}``, plus ``field`` for validation
    errors. Authentication failures carry a Bearer challenge header.
    """
    detail: dict[str, Any] = {"code": error.code, "message": error.message}
    if isinstance(error, ValidationError) and error.field is not None:
        detail["field"] = error.field

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthenticationError) else None
    return HTTPException(status_code=_status_for(error), detail=detail, headers=headers)
