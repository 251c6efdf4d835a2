# catalog_service/application/catalog/sync_retry.py
from typing import List, Optional
from flask import current_app
from catalog_service.models.catalog_entity import CatalogEntity
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.domain.exceptions import InvalidStateError, ProviderSyncError
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional
from .sync_saga import ProviderSyncSaga, SyncOutcome


def list_pending_syncs(*, workspace_id: str, kind: Optional[str] = None) -> List[CatalogVersion]:
    """
    Published versions whose provider sync never completed.

    These are left behind when the process dies between the publish commit
    and the remote call, or when a compensation fails.
    """
    query = (
        CatalogVersion.query
        .join(CatalogEntity, CatalogVersion.parent_id == CatalogEntity.id)
        .filter(
            CatalogEntity.workspace_id == workspace_id,
            CatalogVersion.status == "published",
            CatalogVersion.sync_status == "pending",
        )
    )
    if kind:
        query = query.filter(CatalogEntity.kind == kind)

    return query.order_by(CatalogVersion.published_at.asc()).all()


def retry_sync(
    *,
    workspace_id: str,
    entity_id: str,
    version_id: str,
    actor_id: Optional[str] = None,
    saga: Optional[ProviderSyncSaga] = None,
) -> SyncOutcome:
    """
    Re-run the provider sync for a published version still marked pending.

    No compensation: the version stays published and pending on failure, and
    ProviderSyncError is raised. The stored parent reference keeps retries
    from creating a second remote parent resource.
    """
    entity = catalog_store.get_entity(workspace_id, entity_id)
    version = catalog_store.get_version(workspace_id, version_id, parent_id=entity.id)

    if version.status != "published" or version.sync_status != "pending":
        raise InvalidStateError(
            f"Version {version.id} is not awaiting provider sync",
            version_id=version.id,
            status=version.status,
            sync_status=version.sync_status,
        )

    saga = saga or ProviderSyncSaga.configured()
    outcome = saga.synchronize(entity, version)

    if not outcome.ok:
        raise ProviderSyncError(
            f"Failed to sync to {saga.provider}: {outcome.error}. Version remains pending.",
            provider=saga.provider,
            compensated=False,
            entity_id=entity.id,
            version_id=version.id,
        ) from outcome.error

    with transactional():
        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.sync_retry",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={
                "version_id": version.id,
                "parent_external_id": outcome.parent_ref.external_id,
                "version_external_id": outcome.version_ref.external_id,
            },
        )

    current_app.logger.info("Retried sync for %s %s version %s", entity.kind, entity.id, version.id)
    return outcome
