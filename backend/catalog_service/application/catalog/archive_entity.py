# catalog_service/application/catalog/archive_entity.py
from typing import Optional
from flask import current_app
from catalog_service.extensions import db
from catalog_service.models.catalog_entity import CatalogEntity
from catalog_service.domain.lifecycle.entity import assert_entity_transition
from catalog_service.gateways.registry import EXTENSION_KEY
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional
from .sync_saga import ProviderSyncSaga


def archive_entity(
    *,
    workspace_id: str,
    entity_id: str,
    actor_id: Optional[str] = None,
    saga: Optional[ProviderSyncSaga] = None,
) -> CatalogEntity:
    """
    Archive an offer or promotion.

    Versions are left as they are. The remote parent resource is deactivated
    afterwards on a best-effort basis: a provider failure is logged and the
    local archive stands.
    """
    entity = catalog_store.get_entity(workspace_id, entity_id, for_update=True)

    if entity.status == "archived":
        return entity

    assert_entity_transition(from_status=entity.status, to_status="archived")

    with transactional():
        previous_status = entity.status
        entity.status = "archived"
        db.session.add(entity)

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.archive",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={"previous_status": previous_status},
        )

    current_app.logger.info("Archived %s %s", entity.kind, entity.id)

    if saga is None:
        gateway = current_app.extensions.get(EXTENSION_KEY)
        if gateway is None:
            current_app.logger.info(
                "No billing provider configured; skipping remote deactivation of %s %s",
                entity.kind, entity.id,
            )
            return entity
        saga = ProviderSyncSaga(gateway)

    saga.deactivate(entity)
    return entity
