# catalog_service/application/catalog/publish_version.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from flask import current_app
from catalog_service.extensions import db
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.models.types import as_utc, utcnow
from catalog_service.domain.config.registry import parse_config
from catalog_service.domain.exceptions import NotFoundError
from catalog_service.domain.invariants.entity import assert_entity
from catalog_service.domain.lifecycle.entity import assert_entity_publishable, assert_entity_transition
from catalog_service.domain.lifecycle.version import (
    assert_compensating_transition,
    assert_version_transition,
)
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional
from .sync_saga import ProviderSyncSaga


@dataclass(frozen=True)
class PublishSnapshot:
    """Local state a publish overwrote; compensation restores exactly this."""
    entity_id: str
    entity_status: str
    current_version_id: Optional[str]
    version_id: str
    version_effective_from: Optional[datetime]
    archived_version_id: Optional[str]


def publish_version(
    *,
    workspace_id: str,
    entity_id: str,
    version_id: Optional[str] = None,
    effective_from: Optional[datetime] = None,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
    saga: Optional[ProviderSyncSaga] = None,
) -> CatalogVersion:
    """
    Publish a draft version and mirror it to the billing provider.

    Responsibilities:
    - validation before any mutation
    - local transition (immediate or scheduled) in one transaction
    - provider sync, compensated on failure
    - audit logging

    An ``effective_from`` in the future schedules the version: it is published
    but the entity's current version is left alone until readers resolve it
    as effective.
    """
    now = as_utc(now) or utcnow()
    effective_from = as_utc(effective_from)

    # 1️⃣ Fetch entity with row-level lock
    entity = catalog_store.get_entity(workspace_id, entity_id, for_update=True)
    assert_entity_publishable(entity)

    # 2️⃣ Resolve the target version
    if version_id:
        version = catalog_store.find_version(workspace_id, version_id, parent_id=entity.id)
    else:
        version = catalog_store.find_draft(entity.id)

    if not version:
        raise NotFoundError("No draft version found to publish", entity_id=entity.id)

    # 3️⃣ Lifecycle and billability checks, nothing mutated yet
    assert_version_transition(from_status=version.status, to_status="published")
    parse_config(entity.kind, version.config)
    saga = saga or ProviderSyncSaga.configured()

    is_scheduled = effective_from is not None and effective_from > now

    previous = None
    if not is_scheduled and entity.current_version_id:
        previous = catalog_store.get_version(workspace_id, entity.current_version_id, parent_id=entity.id)

    snapshot = PublishSnapshot(
        entity_id=entity.id,
        entity_status=entity.status,
        current_version_id=entity.current_version_id,
        version_id=version.id,
        version_effective_from=version.effective_from,
        archived_version_id=previous.id if previous is not None else None,
    )

    with transactional():
        # 4️⃣ Immediate publish supersedes the current version
        if previous is not None:
            assert_version_transition(from_status=previous.status, to_status="archived")
            previous.status = "archived"

        version.status = "published"
        version.published_at = now
        version.effective_from = effective_from
        version.sync_status = "pending"

        if not is_scheduled:
            entity.current_version_id = version.id

        if entity.status == "draft":
            assert_entity_transition(from_status=entity.status, to_status="active")
            entity.status = "active"

        db.session.flush()
        assert_entity(entity, _load_current(entity))

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.publish",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={
                "version_id": version.id,
                "version_number": version.version_number,
                "scheduled": is_scheduled,
                "effective_from": effective_from.isoformat() if effective_from else None,
                "archived_version_id": snapshot.archived_version_id,
            },
        )

    current_app.logger.info(
        "Published %s %s version %s (%s)",
        entity.kind, entity.id, version.version_number,
        f"scheduled for {effective_from.isoformat()}" if is_scheduled else "immediate",
    )

    # 5️⃣ Remote mirror; raises ProviderSyncError after compensating
    saga.run(
        entity,
        version,
        compensate=lambda: revert_publish(
            workspace_id=workspace_id,
            snapshot=snapshot,
            actor_id=actor_id,
        ),
    )

    return version


def revert_publish(
    *,
    workspace_id: str,
    snapshot: PublishSnapshot,
    actor_id: Optional[str] = None,
) -> None:
    """
    Compensating transaction for a publish whose provider sync failed.

    Puts the version back to draft (clearing ``published_at``), re-publishes
    the version it archived and restores the entity's pointer and status.
    """
    with transactional():
        entity = catalog_store.get_entity(workspace_id, snapshot.entity_id, for_update=True)
        version = catalog_store.get_version(workspace_id, snapshot.version_id, parent_id=entity.id)

        assert_compensating_transition(from_status=version.status, to_status="draft")
        version.status = "draft"
        version.published_at = None
        version.effective_from = snapshot.version_effective_from
        version.sync_status = None

        if snapshot.archived_version_id:
            previous = catalog_store.get_version(workspace_id, snapshot.archived_version_id, parent_id=entity.id)
            assert_compensating_transition(from_status=previous.status, to_status="published")
            previous.status = "published"

        entity.current_version_id = snapshot.current_version_id
        entity.status = snapshot.entity_status

        db.session.flush()
        assert_entity(entity, _load_current(entity))

        log_action(
            workspace_id=workspace_id,
            actor_id=actor_id,
            action=f"{entity.kind}.publish_reverted",
            entity_type=entity.kind,
            entity_id=entity.id,
            payload={
                "version_id": version.id,
                "restored_version_id": snapshot.archived_version_id,
            },
        )

    current_app.logger.warning(
        "Reverted publish of version %s for %s %s",
        snapshot.version_id, entity.kind, entity.id,
    )


def _load_current(entity) -> Optional[CatalogVersion]:
    if entity.current_version_id is None:
        return None
    return db.session.get(CatalogVersion, entity.current_version_id)
