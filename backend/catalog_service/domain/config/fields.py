"""Small field readers shared by the config parsers."""
from typing import Any, Mapping

from catalog_service.domain.exceptions import ValidationError

_MISSING = object()


def require(data: Mapping[str, Any], key: str, path: str) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING or value is None:
        raise ValidationError(f"{path}.{key} is required", field=f"{path}.{key}")
    return value


def as_int(value: Any, field: str, *, minimum: int | None = None, maximum: int | None = None) -> int:
    # bool is an int subclass; floats would reintroduce rounding
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be >= {minimum}", field=field)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be <= {maximum}", field=field)
    return value


def optional_int(data: Mapping[str, Any], key: str, path: str, **bounds) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    return as_int(value, f"{path}.{key}", **bounds)


def as_mapping(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"{field} must be an object", field=field)
    return value


def as_choice(value: Any, field: str, choices) -> str:
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of {sorted(choices)}, got {value!r}",
            field=field,
        )
    return value


def as_currency(value: Any, field: str) -> str:
    if not isinstance(value, str) or len(value) != 3 or not value.isalpha():
        raise ValidationError(f"{field} must be a 3-letter ISO 4217 code", field=field)
    return value.upper()
