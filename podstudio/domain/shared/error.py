"""Error hierarchy for podstudio.

Error layers:
- PodstudioError: Base class for all podstudio errors
- DomainError: Business rule violations, validation failures (4xx responses)
- InfrastructureError: System-level failures like storage/network issues (503 responses)

These errors are mapped to HTTP responses by the global exception handler in app.py.
"""


class PodstudioError(Exception):
    """Base class for all podstudio errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(PodstudioError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidStateError(DomainError):
    """Operation not allowed in current state."""


class ConflictError(DomainError):
    """Resource already exists or version conflict."""


class AuthenticationError(DomainError):
    """Missing, invalid or expired credentials."""


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(PodstudioError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """The user store is unreachable or timed out."""


class ExternalServiceError(InfrastructureError):
    """External service (identity provider) is unavailable or failed.

    ``status_code`` carries the upstream HTTP status when a response was
    received, and is None for network-level failures.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
