"""
Read-side version resolution.

Effectiveness is computed on every read: a scheduled version takes over at its
``effective_from`` instant with no background job involved.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select

from catalog_service.extensions import db
from catalog_service.models.catalog_entity import CatalogEntity
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.models.types import as_utc, utcnow
from catalog_service.store import catalog_store


def get_effective_version(
    *,
    workspace_id: str,
    entity_id: str,
    as_of: Optional[datetime] = None,
) -> Optional[CatalogVersion]:
    """
    The published version governing ``entity_id`` at ``as_of`` (default now).

    Candidates are published versions with no ``effective_from`` or one at or
    before ``as_of``. An explicit date beats an undated version; ties go to
    the latest ``published_at``.
    """
    as_of = as_utc(as_of) or utcnow()

    stmt = (
        _published_versions(workspace_id, entity_id)
        .where(
            db.or_(
                CatalogVersion.effective_from.is_(None),
                CatalogVersion.effective_from <= as_of,
            )
        )
        .order_by(
            CatalogVersion.effective_from.desc().nulls_last(),
            CatalogVersion.published_at.desc(),
            CatalogVersion.version_number.desc(),
        )
        .limit(1)
    )
    return db.session.execute(stmt).scalar_one_or_none()


def get_scheduled_versions(
    *,
    workspace_id: str,
    entity_id: str,
    now: Optional[datetime] = None,
) -> List[CatalogVersion]:
    """Published versions not yet effective, soonest first."""
    now = as_utc(now) or utcnow()

    stmt = (
        _published_versions(workspace_id, entity_id)
        .where(CatalogVersion.effective_from > now)
        .order_by(CatalogVersion.effective_from.asc(), CatalogVersion.version_number.asc())
    )
    return list(db.session.execute(stmt).scalars())


def get_version(*, workspace_id: str, version_id: str) -> Optional[CatalogVersion]:
    return catalog_store.find_version(workspace_id, version_id)


def _published_versions(workspace_id: str, entity_id: str):
    return (
        select(CatalogVersion)
        .join(CatalogEntity, CatalogVersion.parent_id == CatalogEntity.id)
        .where(
            CatalogEntity.id == entity_id,
            CatalogEntity.workspace_id == workspace_id,
            CatalogVersion.status == "published",
        )
    )
