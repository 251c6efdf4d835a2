from flask import jsonify
from catalog_service.domain.exceptions import (
    CatalogError,
    ConflictError,
    InvalidStateError,
    InvariantViolation,
    NotFoundError,
    ProviderDeactivationError,
    ProviderSyncError,
    ValidationError,
)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (InvalidStateError, 409),
    (InvariantViolation, 500),
    (ProviderSyncError, 502),
    (ProviderDeactivationError, 502),
)


def status_for(error: CatalogError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def register_error_handlers(app):
    @app.errorhandler(CatalogError)
    def handle_catalog_error(error):
        status = status_for(error)
        if status >= 500:
            app.logger.error("%s: %s", error.code, error.message)

        response = jsonify({
            "error": error.code,
            "message": error.message,
            "details": error.details,
        })
        response.status_code = status
        return response
