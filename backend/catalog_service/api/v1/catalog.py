# catalog_service/api/v1/catalog.py
from flask import g, request, jsonify
from catalog_service.application.catalog import queries
from catalog_service.application.catalog.archive_entity import archive_entity
from catalog_service.application.catalog.create_entity import create_entity
from catalog_service.application.catalog.drafts import create_draft, upsert_draft
from catalog_service.application.catalog.publish_version import publish_version
from catalog_service.application.catalog.quote import quote_offer
from catalog_service.application.catalog.resolver import (
    get_effective_version,
    get_scheduled_versions,
    get_version,
)
from catalog_service.application.catalog.rollback_version import rollback_version
from catalog_service.application.catalog.sync_retry import list_pending_syncs, retry_sync
from catalog_service.application.catalog.update_entity import update_entity
from catalog_service.domain.exceptions import NotFoundError, ValidationError
from catalog_service.normalizers.catalog import normalize_entity, normalize_quote, normalize_version
from catalog_service.normalizers.pagination import normalize_pagination
from catalog_service.store import provider_refs
from catalog_service.utils.optimistic_lock import enforce_optimistic_lock
from ._params import current_actor_id, parse_datetime, parse_int_arg
from . import v1_bp

KIND_BY_COLLECTION = {
    "offers": "offer",
    "promotions": "promotion",
}

COLLECTION = "<any(offers, promotions):collection>"


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _entity(collection, entity_id):
    # Keeps /offers/<id> from reaching a promotion and vice versa
    return queries.get_entity(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        kind=KIND_BY_COLLECTION[collection],
    )


# ------------------------
# Entities
# ------------------------

@v1_bp.route(f"/{COLLECTION}", methods=["POST"])
def create_catalog_entity(collection):
    entity = create_entity(
        workspace_id=g.current_workspace.id,
        kind=KIND_BY_COLLECTION[collection],
        data=_json_body(),
        actor_id=current_actor_id(),
    )
    draft = queries.get_draft_version(workspace_id=g.current_workspace.id, entity_id=entity.id)

    return jsonify({
        **normalize_entity(entity),
        "draft": normalize_version(draft) if draft else None,
    }), 201


@v1_bp.route(f"/{COLLECTION}", methods=["GET"])
def list_catalog_entities(collection):
    entities, cursor = queries.list_entities(
        workspace_id=g.current_workspace.id,
        kind=KIND_BY_COLLECTION[collection],
        status=request.args.get("status"),
        cursor=request.args.get("cursor"),
        limit=parse_int_arg("limit", 20),
    )

    return jsonify(normalize_pagination(entities, normalize_entity, cursor=cursor)), 200


@v1_bp.route(f"/{COLLECTION}/pending-syncs", methods=["GET"])
def list_catalog_pending_syncs(collection):
    versions = list_pending_syncs(
        workspace_id=g.current_workspace.id,
        kind=KIND_BY_COLLECTION[collection],
    )
    return jsonify({"items": [normalize_version(v) for v in versions]}), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>", methods=["GET"])
def get_catalog_entity(collection, entity_id):
    entity = _entity(collection, entity_id)
    version_ids = [v.id for v in queries.list_versions(workspace_id=entity.workspace_id, entity_id=entity.id)]
    refs = provider_refs.list_for_entities(entity.workspace_id, [entity.id, *version_ids])

    return jsonify(normalize_entity(entity, provider_refs=refs)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>", methods=["PATCH"])
def update_catalog_entity(collection, entity_id):
    _entity(collection, entity_id)
    entity = update_entity(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        data=_json_body(),
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_entity(entity)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/archive", methods=["POST"])
def archive_catalog_entity(collection, entity_id):
    _entity(collection, entity_id)
    entity = archive_entity(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_entity(entity)), 200


# ------------------------
# Versions
# ------------------------

@v1_bp.route(f"/{COLLECTION}/<entity_id>/versions", methods=["GET"])
def list_catalog_versions(collection, entity_id):
    _entity(collection, entity_id)
    versions = queries.list_versions(workspace_id=g.current_workspace.id, entity_id=entity_id)
    return jsonify({"items": [normalize_version(v) for v in versions]}), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/versions", methods=["POST"])
def create_catalog_draft(collection, entity_id):
    _entity(collection, entity_id)
    data = _json_body()

    version = create_draft(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        config=data.get("config", {}),
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_version(version)), 201


@v1_bp.route(f"/{COLLECTION}/<entity_id>/draft", methods=["GET"])
def get_catalog_draft(collection, entity_id):
    _entity(collection, entity_id)
    draft = queries.get_draft_version(workspace_id=g.current_workspace.id, entity_id=entity_id)
    if draft is None:
        raise NotFoundError("No draft version", entity_id=entity_id)
    return jsonify(normalize_version(draft)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/draft", methods=["PUT"])
def save_catalog_draft(collection, entity_id):
    _entity(collection, entity_id)
    data = _json_body()

    existing = queries.get_draft_version(workspace_id=g.current_workspace.id, entity_id=entity_id)
    enforce_optimistic_lock(existing)

    draft = upsert_draft(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        config=data.get("config", {}),
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_version(draft)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/publish", methods=["POST"])
def publish_catalog_version(collection, entity_id):
    _entity(collection, entity_id)
    data = _json_body()

    version = publish_version(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        version_id=data.get("version_id"),
        effective_from=parse_datetime(data.get("effective_from"), "effective_from"),
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_version(version)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/rollback", methods=["POST"])
def rollback_catalog_version(collection, entity_id):
    _entity(collection, entity_id)
    data = _json_body()

    target_version_id = data.get("target_version_id")
    if not target_version_id:
        raise ValidationError("target_version_id is required", field="target_version_id")

    version = rollback_version(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        target_version_id=target_version_id,
        actor_id=current_actor_id(),
    )
    return jsonify(normalize_version(version)), 201


@v1_bp.route(f"/{COLLECTION}/<entity_id>/versions/<version_id>/sync", methods=["POST"])
def retry_catalog_sync(collection, entity_id, version_id):
    _entity(collection, entity_id)
    outcome = retry_sync(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        version_id=version_id,
        actor_id=current_actor_id(),
    )
    return jsonify({
        "version_id": version_id,
        "parent_external_id": outcome.parent_ref.external_id,
        "version_external_id": outcome.version_ref.external_id,
    }), 200


# ------------------------
# Resolution
# ------------------------

@v1_bp.route(f"/{COLLECTION}/<entity_id>/effective", methods=["GET"])
def get_catalog_effective_version(collection, entity_id):
    _entity(collection, entity_id)
    version = get_effective_version(
        workspace_id=g.current_workspace.id,
        entity_id=entity_id,
        as_of=parse_datetime(request.args.get("as_of"), "as_of"),
    )
    if version is None:
        raise NotFoundError("No effective version", entity_id=entity_id)
    return jsonify(normalize_version(version)), 200


@v1_bp.route(f"/{COLLECTION}/<entity_id>/scheduled", methods=["GET"])
def list_catalog_scheduled_versions(collection, entity_id):
    _entity(collection, entity_id)
    versions = get_scheduled_versions(workspace_id=g.current_workspace.id, entity_id=entity_id)
    return jsonify({"items": [normalize_version(v) for v in versions]}), 200


@v1_bp.route("/versions/<version_id>", methods=["GET"])
def get_catalog_version(version_id):
    version = get_version(workspace_id=g.current_workspace.id, version_id=version_id)
    if version is None:
        raise NotFoundError(f"Version {version_id} not found", version_id=version_id)
    return jsonify(normalize_version(version)), 200


@v1_bp.route("/offers/<offer_id>/quote", methods=["GET"])
def quote_catalog_offer(offer_id):
    quote = quote_offer(
        workspace_id=g.current_workspace.id,
        offer_id=offer_id,
        quantity=parse_int_arg("quantity", 1),
        as_of=parse_datetime(request.args.get("as_of"), "as_of"),
    )
    return jsonify(normalize_quote(quote)), 200
