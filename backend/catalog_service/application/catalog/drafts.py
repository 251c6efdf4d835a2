from typing import Any, Dict, Optional
from catalog_service.extensions import db
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.domain.config.registry import assert_draft_config
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional


def create_draft(
    *,
    workspace_id: str,
    entity_id: str,
    config: Dict[str, Any],
    actor_id: Optional[str] = None,
) -> CatalogVersion:
    """
    Start a new draft version. Fails with ConflictError when the entity
    already has a draft.
    """
    entity = catalog_store.get_entity(workspace_id, entity_id, for_update=True)
    config = assert_draft_config(config)

    with transactional():
        version = catalog_store.add_draft_version(entity, config)

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.draft_create",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={"version_id": version.id, "version_number": version.version_number},
        )

    return version


def upsert_draft(
    *,
    workspace_id: str,
    entity_id: str,
    config: Dict[str, Any],
    actor_id: Optional[str] = None,
) -> CatalogVersion:
    """
    Save a draft for an entity.

    Responsibilities:
    - Create the draft if none exists
    - Otherwise overwrite its config in place (version number unchanged)
    - Audit logging

    Last writer wins; there is no merge.
    """
    entity = catalog_store.get_entity(workspace_id, entity_id, for_update=True)
    config = assert_draft_config(config)

    draft = catalog_store.find_draft(entity.id)

    with transactional():
        if not draft:
            draft = catalog_store.add_draft_version(entity, config)
            created = True
        else:
            draft.config = config
            db.session.add(draft)
            created = False

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.draft_save",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={"version_id": draft.id, "created": created},
        )

    return draft
