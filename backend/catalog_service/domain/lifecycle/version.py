from typing import Set
from catalog_service.domain.exceptions import InvalidStateError

# Explicit allowed version transitions
ALLOWED_VERSION_TRANSITIONS: dict[str, Set[str]] = {
    "draft": {"published"},
    "published": {"archived"},
    "archived": set(),  # terminal
}

# Compensation is the only way back from published
COMPENSATING_TRANSITIONS: dict[str, Set[str]] = {
    "published": {"draft"},
    "archived": {"published"},
}


def assert_version_transition(*, from_status: str, to_status: str) -> None:
    """
    Guards version lifecycle transitions.
    Single source of truth for status changes.
    """
    allowed = ALLOWED_VERSION_TRANSITIONS.get(from_status, set())

    if to_status not in allowed:
        raise InvalidStateError(
            f"Illegal version transition: {from_status} → {to_status}",
            from_status=from_status,
            to_status=to_status,
        )


def assert_compensating_transition(*, from_status: str, to_status: str) -> None:
    allowed = COMPENSATING_TRANSITIONS.get(from_status, set())

    if to_status not in allowed:
        raise InvalidStateError(
            f"Illegal compensating transition: {from_status} → {to_status}",
            from_status=from_status,
            to_status=to_status,
        )
