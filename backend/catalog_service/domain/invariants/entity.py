from catalog_service.domain.exceptions import InvariantViolation

def assert_entity(entity, current_version=None):
    """
    ``current_version`` is the row ``entity.current_version_id`` points at,
    loaded by the caller.
    """
    if entity.current_version_id is None:
        return

    if current_version is None or current_version.id != entity.current_version_id:
        raise InvariantViolation(
            f"Entity {entity.id} references missing version {entity.current_version_id}."
        )

    if current_version.parent_id != entity.id:
        raise InvariantViolation(
            f"Current version {current_version.id} does not belong to entity {entity.id}."
        )

    if current_version.status != "published":
        raise InvariantViolation(
            f"Current version {current_version.id} must be published, found {current_version.status}."
        )
