"""
Lookups and structural writes for catalog entities and their versions.

Every read is scoped by ``workspace_id``; versions are reached through their
parent so a version id from another workspace never resolves.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from catalog_service.extensions import db
from catalog_service.models.catalog_entity import CatalogEntity
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.domain.exceptions import ConflictError, NotFoundError
from catalog_service.domain.invariants.version import assert_versions
from catalog_service.utils.versioning import next_version_number


def find_entity(workspace_id: str, entity_id: str, *, for_update: bool = False) -> Optional[CatalogEntity]:
    stmt = select(CatalogEntity).where(
        CatalogEntity.id == entity_id,
        CatalogEntity.workspace_id == workspace_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    return db.session.execute(stmt).scalar_one_or_none()


def get_entity(workspace_id: str, entity_id: str, *, kind: str | None = None, for_update: bool = False) -> CatalogEntity:
    entity = find_entity(workspace_id, entity_id, for_update=for_update)
    if not entity or (kind is not None and entity.kind != kind):
        raise NotFoundError(f"{(kind or 'Catalog entity').capitalize()} {entity_id} not found", entity_id=entity_id)
    return entity


def find_entity_by_code(workspace_id: str, code: str) -> Optional[CatalogEntity]:
    return CatalogEntity.query.filter_by(
        workspace_id=workspace_id,
        kind="promotion",
        code=code.upper(),
    ).first()


def find_version(workspace_id: str, version_id: str, *, parent_id: str | None = None) -> Optional[CatalogVersion]:
    stmt = (
        select(CatalogVersion)
        .join(CatalogEntity, CatalogVersion.parent_id == CatalogEntity.id)
        .where(
            CatalogVersion.id == version_id,
            CatalogEntity.workspace_id == workspace_id,
        )
    )
    if parent_id is not None:
        stmt = stmt.where(CatalogVersion.parent_id == parent_id)
    return db.session.execute(stmt).scalar_one_or_none()


def get_version(workspace_id: str, version_id: str, *, parent_id: str | None = None) -> CatalogVersion:
    version = find_version(workspace_id, version_id, parent_id=parent_id)
    if not version:
        raise NotFoundError(f"Version {version_id} not found", version_id=version_id)
    return version


def find_draft(parent_id: str) -> Optional[CatalogVersion]:
    return (
        CatalogVersion.query
        .filter_by(parent_id=parent_id, status="draft")
        .order_by(CatalogVersion.version_number.desc())
        .first()
    )


def list_versions(parent_id: str) -> List[CatalogVersion]:
    return (
        CatalogVersion.query
        .filter_by(parent_id=parent_id)
        .order_by(CatalogVersion.version_number.desc())
        .all()
    )


def add_draft_version(entity: CatalogEntity, config: dict) -> CatalogVersion:
    """
    Insert a new draft for ``entity`` numbered max(existing) + 1.

    Must run inside a transaction. The partial unique index on drafts backs
    the application-level check when two writers race.
    """
    if find_draft(entity.id) is not None:
        raise ConflictError(
            f"A draft version already exists for {entity.kind} {entity.id}. "
            "Publish it or edit it in place before creating a new version.",
            entity_id=entity.id,
        )

    version = CatalogVersion()
    version.parent_id = entity.id
    version.version_number = next_version_number(entity.id)
    version.status = "draft"
    version.config = config

    try:
        db.session.add(version)
        db.session.flush()
    except IntegrityError as exc:
        # Caller's transactional() rolls the session back
        raise ConflictError(
            f"Concurrent draft creation detected for {entity.kind} {entity.id}",
            entity_id=entity.id,
        ) from exc

    assert_versions(list_versions(entity.id))
    return version
