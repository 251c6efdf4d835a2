from flask import Flask, send_file, current_app
from .config import config_by_name
from .extensions import db, migrate
from .api.v1 import v1_bp
from .middleware.workspace_middleware import workspace_middleware
from .errors import register_error_handlers
from .gateways.registry import init_billing
from flask_swagger_ui import get_swaggerui_blueprint
import os


def create_app(config_name: str = "development") -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    # -------------------------------------------------
    # Billing provider
    # -------------------------------------------------
    init_billing(app)

    # -------------------------------------------------
    # Middleware
    # -------------------------------------------------
    workspace_middleware(app)

    # -------------------------------------------------
    # API Blueprints
    # -------------------------------------------------
    app.register_blueprint(v1_bp, url_prefix="/api/v1")
    register_error_handlers(app)

    # -------------------------------------------------
    # Serve OpenAPI YAML (PUBLIC, NO WORKSPACE)
    # -------------------------------------------------
    @app.route("/openapi/catalog.yaml", methods=["GET"], endpoint="openapi_catalog")
    def serve_openapi():
        spec_path = os.path.join(
            current_app.root_path,
            "api",
            "v1",
            "catalog_openapi.yaml",
        )

        if not os.path.exists(spec_path):
            raise FileNotFoundError("catalog_openapi.yaml not found")

        return send_file(
            spec_path,
            mimetype="application/yaml",
            as_attachment=False,
        )

    # -------------------------------------------------
    # Swagger UI
    # -------------------------------------------------
    SWAGGER_URL = "/swagger"
    API_URL = "/openapi/catalog.yaml"

    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            "app_name": "Catalog API",
            "deepLinking": True,
        },
    )

    app.register_blueprint(swaggerui_blueprint, url_prefix=SWAGGER_URL)

    return app
