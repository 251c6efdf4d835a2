from flask import request
from dateutil.parser import isoparse
from catalog_service.domain.exceptions import ValidationError


def current_actor_id():
    return request.headers.get("X-Actor-ID")


def parse_datetime(value, field):
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO 8601 timestamp", field=field)
    try:
        return isoparse(value)
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO 8601 timestamp", field=field) from exc


def parse_int_arg(name, default):
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer", field=name) from exc
