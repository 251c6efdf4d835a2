from typing import Optional

from catalog_service.extensions import db
from catalog_service.models.provider_reference import ProviderReference


def find_by_entity(workspace_id: str, entity_type: str, entity_id: str, provider: str) -> Optional[ProviderReference]:
    return ProviderReference.query.filter_by(
        workspace_id=workspace_id,
        entity_type=entity_type,
        entity_id=entity_id,
        provider=provider,
    ).first()


def list_for_entities(workspace_id: str, entity_ids: list[str]) -> list[ProviderReference]:
    if not entity_ids:
        return []
    return (
        ProviderReference.query
        .filter(
            ProviderReference.workspace_id == workspace_id,
            ProviderReference.entity_id.in_(entity_ids),
        )
        .order_by(ProviderReference.created_at.asc())
        .all()
    )


def ensure_reference(
    *,
    workspace_id: str,
    entity_type: str,
    entity_id: str,
    provider: str,
    external_id: str,
) -> ProviderReference:
    """
    Insert the reference unless one already exists for the composite key.

    References are never rewritten: an existing row is returned as is.
    """
    ref = find_by_entity(workspace_id, entity_type, entity_id, provider)
    if ref is not None:
        return ref

    ref = ProviderReference()
    ref.workspace_id = workspace_id
    ref.entity_type = entity_type
    ref.entity_id = entity_id
    ref.provider = provider
    ref.external_id = external_id

    db.session.add(ref)
    return ref
