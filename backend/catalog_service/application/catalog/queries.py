"""Read-only catalog lookups used by the HTTP layer and quote consumers."""
from typing import List, Optional

from catalog_service.models.audit_log import AuditLog
from catalog_service.models.catalog_entity import CatalogEntity, ENTITY_KINDS, ENTITY_STATUSES
from catalog_service.models.catalog_version import CatalogVersion
from catalog_service.domain.exceptions import ValidationError
from catalog_service.store import catalog_store
from catalog_service.utils.pagination import CursorMeta, paginate_cursor


def get_entity(*, workspace_id: str, entity_id: str, kind: Optional[str] = None) -> CatalogEntity:
    return catalog_store.get_entity(workspace_id, entity_id, kind=kind)


def list_entities(
    *,
    workspace_id: str,
    kind: Optional[str] = None,
    status: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: int = 20,
) -> tuple[list[CatalogEntity], CursorMeta]:
    if kind is not None and kind not in ENTITY_KINDS:
        raise ValidationError(f"Unknown catalog entity kind: {kind}", field="kind")
    if status is not None and status not in ENTITY_STATUSES:
        raise ValidationError(f"Unknown status: {status}", field="status")

    query = CatalogEntity.query.filter(CatalogEntity.workspace_id == workspace_id)
    if kind:
        query = query.filter(CatalogEntity.kind == kind)
    if status:
        query = query.filter(CatalogEntity.status == status)

    return paginate_cursor(query, model=CatalogEntity, cursor=cursor, limit=limit)


def list_versions(*, workspace_id: str, entity_id: str) -> List[CatalogVersion]:
    """All versions of an entity, highest version number first."""
    entity = catalog_store.get_entity(workspace_id, entity_id)
    return catalog_store.list_versions(entity.id)


def get_draft_version(*, workspace_id: str, entity_id: str) -> Optional[CatalogVersion]:
    entity = catalog_store.get_entity(workspace_id, entity_id)
    return catalog_store.find_draft(entity.id)


def list_audit_logs(
    *,
    workspace_id: str,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    cursor: Optional[str] = None,
    limit: int = 20,
) -> tuple[list[AuditLog], CursorMeta]:
    query = AuditLog.query.filter(AuditLog.workspace_id == workspace_id)

    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == entity_id)

    return paginate_cursor(query, model=AuditLog, cursor=cursor, limit=limit)
