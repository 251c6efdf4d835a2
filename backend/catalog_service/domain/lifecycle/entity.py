from typing import Set
from catalog_service.domain.exceptions import InvalidStateError

ALLOWED_ENTITY_TRANSITIONS: dict[str, Set[str]] = {
    "draft": {"active", "archived"},
    "active": {"archived"},
    "archived": set(),
}


def assert_entity_transition(*, from_status: str, to_status: str) -> None:
    allowed = ALLOWED_ENTITY_TRANSITIONS.get(from_status, set())

    if to_status not in allowed:
        raise InvalidStateError(
            f"Illegal entity transition: {from_status} → {to_status}",
            from_status=from_status,
            to_status=to_status,
        )


def assert_entity_publishable(entity) -> None:
    if entity.status == "archived":
        raise InvalidStateError(
            f"Cannot publish a version of archived {entity.kind} {entity.id}",
            entity_id=entity.id,
        )
