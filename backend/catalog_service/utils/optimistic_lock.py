from flask import request
from dateutil.parser import parse, ParserError
from catalog_service.domain.exceptions import ConflictError, ValidationError
from catalog_service.models.types import as_utc


def enforce_optimistic_lock(resource):
    """
    Enforces optimistic locking using the If-Unmodified-Since header.
    Raises ConflictError if ``resource`` has been modified since.
    """
    client_ts = request.headers.get("If-Unmodified-Since")
    if not client_ts or resource is None:
        return  # No optimistic lock requested

    try:
        client_ts = as_utc(parse(client_ts))
    except (ParserError, OverflowError) as exc:
        raise ValidationError("Invalid If-Unmodified-Since header", field="If-Unmodified-Since") from exc

    # HTTP dates carry whole seconds only
    server_ts = as_utc(resource.updated_at).replace(microsecond=0)

    if server_ts > client_ts.replace(microsecond=0):
        raise ConflictError(
            "Conflict detected. Resource has been modified.",
            updated_at=resource.updated_at.isoformat(),
        )
