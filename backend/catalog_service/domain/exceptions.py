"""
Typed errors raised by the catalog core.

Every error carries a machine-readable ``code`` so HTTP handlers and callers
branch on type, never on message text.
"""


class CatalogError(Exception):
    code = "CATALOG_ERROR"

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(CatalogError):
    code = "NOT_FOUND"


class ConflictError(CatalogError):
    code = "CONFLICT"


class ValidationError(CatalogError):
    code = "VALIDATION_ERROR"


class InvalidStateError(CatalogError):
    code = "INVALID_STATE"


class InvariantViolation(CatalogError):
    code = "INVARIANT_VIOLATION"


class ProviderSyncError(CatalogError):
    """
    Remote synchronization failed during publish.

    ``compensated`` is False when the local rollback itself failed, leaving the
    version published without provider references.
    """

    code = "PROVIDER_SYNC_FAILED"

    def __init__(self, message: str, *, provider: str | None = None, compensated: bool = True, **details):
        super().__init__(message, provider=provider, compensated=compensated, **details)
        self.provider = provider
        self.compensated = compensated


class ProviderDeactivationError(CatalogError):
    code = "PROVIDER_DEACTIVATION_FAILED"

    def __init__(self, message: str, *, provider: str | None = None, external_id: str | None = None):
        super().__init__(message, provider=provider, external_id=external_id)
        self.provider = provider
        self.external_id = external_id
