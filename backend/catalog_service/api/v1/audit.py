from flask import request, jsonify, g
from catalog_service.application.catalog.queries import list_audit_logs
from catalog_service.normalizers.audit import normalize_audit_log
from catalog_service.normalizers.pagination import normalize_pagination
from ._params import parse_int_arg
from . import v1_bp


@v1_bp.route("/audit", methods=["GET"])
def list_audit():
    logs, cursor = list_audit_logs(
        workspace_id=g.current_workspace.id,
        action=request.args.get("action"),
        entity_type=request.args.get("entity_type"),
        entity_id=request.args.get("entity_id"),
        cursor=request.args.get("cursor"),
        limit=parse_int_arg("limit", 20),
    )

    return jsonify(normalize_pagination(logs, normalize_audit_log, cursor=cursor)), 200
