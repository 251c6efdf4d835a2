from typing import Any, Dict, Optional
from catalog_service.models.catalog_entity import CatalogEntity
from catalog_service.domain.exceptions import ValidationError
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional


ALLOWED_UPDATE_FIELDS = ("name", "description")


def update_entity(
    *,
    workspace_id: str,
    entity_id: str,
    data: Dict[str, Any],
    actor_id: Optional[str] = None,
) -> CatalogEntity:
    """
    Update descriptive fields on an entity. Pricing lives on versions and is
    never edited here.
    """
    entity = catalog_store.get_entity(workspace_id, entity_id)

    if "name" in data and not str(data["name"] or "").strip():
        raise ValidationError("name cannot be empty", field="name")

    changed_fields: list[str] = []

    with transactional():
        for field in ALLOWED_UPDATE_FIELDS:
            if field in data and getattr(entity, field) != data[field]:
                setattr(entity, field, data[field])
                changed_fields.append(field)

        if not changed_fields:
            # Explicitly fail instead of silently succeeding
            raise ValidationError("No valid fields provided for update")

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.update",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={"fields": changed_fields},
        )

    return entity
