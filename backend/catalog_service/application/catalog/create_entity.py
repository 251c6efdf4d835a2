from typing import Any, Dict, Optional
from sqlalchemy.exc import IntegrityError
from catalog_service.extensions import db
from catalog_service.models.catalog_entity import CatalogEntity, ENTITY_KINDS
from catalog_service.domain.config.registry import assert_draft_config
from catalog_service.domain.exceptions import ConflictError, ValidationError
from catalog_service.store import catalog_store
from catalog_service.utils.audit import log_action
from catalog_service.utils.transaction import transactional


def create_entity(
    *,
    workspace_id: str,
    kind: str,
    data: Dict[str, Any],
    actor_id: Optional[str] = None,
) -> CatalogEntity:
    """
    Create an offer or promotion in DRAFT state with version 1 as its draft.

    Edge cases handled:
    - Missing name
    - Promotion without a code, or a code already used in the workspace
    - Config that is not an object
    """
    if kind not in ENTITY_KINDS:
        raise ValidationError(f"Unknown catalog entity kind: {kind}", field="kind")

    name: str | None = data.get("name")
    if not name or not str(name).strip():
        raise ValidationError("name is required", field="name")

    config = assert_draft_config(data.get("config", {}))

    code: str | None = None
    if kind == "promotion":
        raw_code = data.get("code")
        if not raw_code or not str(raw_code).strip():
            raise ValidationError("code is required for promotions", field="code")
        code = str(raw_code).strip().upper()

        if catalog_store.find_entity_by_code(workspace_id, code):
            raise ConflictError(f'Promotion with code "{code}" already exists', code=code)

    entity = CatalogEntity()
    entity.workspace_id = workspace_id
    entity.kind = kind
    entity.name = name
    entity.description = data.get("description")
    entity.code = code
    entity.status = "draft"

    try:
        with transactional():
            db.session.add(entity)
            db.session.flush()  # ensures entity.id is available

            version = catalog_store.add_draft_version(entity, config)

            log_action(
                workspace_id=workspace_id,
                actor_id=actor_id,
                action=f"{kind}.create",
                entity_type=kind,
                entity_id=entity.id,
                payload={"name": entity.name, "version_id": version.id},
            )

        return entity

    except IntegrityError as exc:
        # Typically the (workspace_id, code) constraint under a race
        raise ConflictError(f'Promotion with code "{code}" already exists', code=code) from exc
