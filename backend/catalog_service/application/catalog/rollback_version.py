# catalog_service/application/catalog/rollback_version.py
from typing import Optional
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional
from catalog_service.utils.versioning import snapshot_config


def rollback_version(
    *,
    workspace_id: str,
    entity_id: str,
    target_version_id: str,
    actor_id: Optional[str] = None,
) -> CatalogVersion:
    """
    Roll an entity back to an earlier configuration.

    Responsibilities:
    - Copy the target version's config into a brand new draft
    - Leave every existing version untouched
    - Audit logging

    The new draft still has to be published; an existing draft makes this
    fail with ConflictError.
    """

    # 1️⃣ Fetch entity with row-level lock
    entity = catalog_store.get_entity(workspace_id, entity_id, for_update=True)

    # 2️⃣ Fetch the version to copy from
    target = catalog_store.get_version(workspace_id, target_version_id, parent_id=entity.id)
    config = snapshot_config(target)

    with transactional():
        # 3️⃣ New draft, next version number
        version = catalog_store.add_draft_version(entity, config)

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.rollback",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={
                "from_version_id": target.id,
                "from_version_number": target.version_number,
                "version_id": version.id,
                "version_number": version.version_number,
            },
        )

    return version
