from flask import request, g, jsonify
from catalog_service.models.workspace import Workspace

# Reachable without a workspace header
PUBLIC_ENDPOINTS = {"v1.health_check", "openapi_catalog", "static"}


def workspace_middleware(app):
    @app.before_request
    def load_workspace():
        endpoint = request.endpoint
        if endpoint is None or endpoint in PUBLIC_ENDPOINTS or request.blueprint == "swagger_ui":
            return None

        workspace_id = request.headers.get("X-Workspace-ID")
        if not workspace_id:
            return jsonify({"error": "X-Workspace-ID header is missing"}), 400

        workspace = Workspace.query.filter_by(id=workspace_id, is_active=True).first()
        if not workspace:
            return jsonify({"error": "Invalid workspace"}), 404

        # Handlers pass g.current_workspace.id explicitly into every service call
        g.current_workspace = workspace
