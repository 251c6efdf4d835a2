from typing import Optional
from catalog_service.extensions import db
from catalog_service.models.audit_log import AuditLog

def log_action(
    *,
    workspace_id: str,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    actor_id: Optional[str] = None,
    payload: dict | None = None
):
    log = AuditLog()

    log.workspace_id = workspace_id
    log.actor_id = actor_id
    log.action = action
    log.entity_type = entity_type
    log.entity_id = entity_id
    log.payload = payload or {}

    db.session.add(log)
