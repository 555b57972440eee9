"""Error hierarchy for pinsync.

Error layers:
- PinsyncError: Base class for all pinsync errors
- DomainError: Business rule violations, validation failures (4xx responses)
- InfrastructureError: System-level failures like storage/network issues (503 responses)
- CacheKeyFailure: A shared single-flight computation failed (mapped by its cause)

These errors are mapped to HTTP responses by the global exception handler in app.py.
"""


class PinsyncError(Exception):
    """Base class for all pinsync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors (business logic violations - typically 4xx)
# =============================================================================


class DomainError(PinsyncError):
    """Base class for domain/business errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class SnapshotNotFoundError(NotFoundError):
    """A snapshot reference does not resolve (stale or garbage-collected)."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"Snapshot not found: {reference}")
        self.reference = reference


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


# =============================================================================
# Infrastructure Errors (system-level failures - typically 503)
# =============================================================================


class InfrastructureError(PinsyncError):
    """Base class for infrastructure/system errors."""


class StorageUnavailableError(InfrastructureError):
    """Blob storage backend is unavailable or refused the operation."""


class ExternalServiceError(InfrastructureError):
    """External service is unavailable or failed."""


class UpstreamFetchError(ExternalServiceError):
    """The upstream feature service returned non-2xx, an unreadable body, or was unreachable.

    Attributes:
        status: HTTP status code, or None when no response was received.
        category: "http", "network" or "payload".
    """

    def __init__(self, message: str, status: int | None = None, category: str = "http") -> None:
        super().__init__(message)
        self.status = status
        self.category = category


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


class MissingConfigurationError(ConfigurationError):
    """Upstream endpoint or API key is not configured for a data type."""

    def __init__(self, data_type: str, missing: list[str]) -> None:
        super().__init__(f"Upstream not configured for {data_type}: missing {', '.join(missing)}")
        self.data_type = data_type
        self.missing = missing


class RetentionEnforcementError(InfrastructureError):
    """Deleting a snapshot during retention enforcement failed."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"Failed to delete {reference}: {reason}")
        self.reference = reference


# =============================================================================
# Coordination Errors
# =============================================================================


class CacheKeyFailure(PinsyncError):
    """An in-flight computation for a cache key failed.

    The same instance is raised to every caller that was awaiting the key.
    The underlying error is available as ``cause`` (and ``__cause__``).
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        super().__init__(f"Computation for {key} failed: {cause}")
        self.key = key
        self.cause = cause
