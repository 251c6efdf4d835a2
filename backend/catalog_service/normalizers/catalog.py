# catalog_service/normalizers/catalog.py
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

from catalog_service.domain.pricing import PriceResult


def _iso(value):
    return value.isoformat() if value is not None else None


def normalize_entity(entity, provider_refs: Optional[Iterable] = None) -> Dict[str, Any]:
    data = {
        "id": entity.id,
        "workspace_id": entity.workspace_id,
        "kind": entity.kind,
        "name": entity.name,
        "description": entity.description,
        "status": entity.status,
        "current_version_id": entity.current_version_id,
        "created_at": _iso(entity.created_at),
        "updated_at": _iso(entity.updated_at),
    }
    if entity.kind == "promotion":
        data["code"] = entity.code

    if provider_refs is not None:
        data["provider_references"] = [normalize_provider_ref(ref) for ref in provider_refs]

    return data


def normalize_version(version) -> Dict[str, Any]:
    return {
        "id": version.id,
        "parent_id": version.parent_id,
        "version_number": version.version_number,
        "status": version.status,
        "config": version.config or {},
        "effective_from": _iso(version.effective_from),
        "published_at": _iso(version.published_at),
        "sync_status": version.sync_status,
        "created_at": _iso(version.created_at),
        "updated_at": _iso(version.updated_at),
    }


def normalize_provider_ref(ref) -> Dict[str, Any]:
    return {
        "entity_type": ref.entity_type,
        "entity_id": ref.entity_id,
        "provider": ref.provider,
        "external_id": ref.external_id,
    }


def normalize_price_result(result: PriceResult) -> Dict[str, Any]:
    """
    Amounts stay integers in minor currency units.
    """
    data: Dict[str, Any] = {
        "model": result.model,
        "quantity": result.quantity,
        "unit_price": result.unit_price,
        "total_price": result.total_price,
    }

    if result.tier_breakdown is not None:
        data["tier_breakdown"] = [
            {
                "tier_index": charge.tier_index,
                "from": charge.start,
                "to": charge.up_to,
                "quantity": charge.quantity,
                "unit_amount": charge.unit_amount,
                "flat_amount": charge.flat_amount,
                "total": charge.total,
            }
            for charge in result.tier_breakdown
        ]

    return data


def normalize_quote(quote) -> Dict[str, Any]:
    return {
        "offer_id": quote.offer_id,
        "version_id": quote.version.id,
        "version_number": quote.version.version_number,
        "currency": quote.currency,
        **normalize_price_result(quote.result),
    }
