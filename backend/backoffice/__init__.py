# backend/backoffice/__init__.py
from urllib.parse import urlsplit

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


CORS_ALLOW_HEADERS = "Authorization, Content-Type, X-Session-Token, X-Client-Info, apikey"
CORS_ALLOW_METHODS = "GET,POST,PUT,DELETE,PATCH,OPTIONS"


def resolve_cors_origin(origin: str | None, config) -> str:
    """
    Origin to send back in Access-Control-Allow-Origin.

    Allow-listed origins and https origins whose host ends with the
    configured suffix are reflected; anything else gets the default origin.
    """
    default = config.get("CORS_DEFAULT_ORIGIN", "")
    if not origin:
        return default
    if origin in config.get("CORS_ALLOWED_ORIGINS", []):
        return origin

    suffix = config.get("CORS_ALLOWED_ORIGIN_SUFFIX")
    if suffix:
        parts = urlsplit(origin)
        if parts.scheme == "https" and (parts.hostname or "").endswith(suffix):
            return origin
    return default


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.auth_service import verify_password
    from .services.blob_store import SqlBlobStore
    app.extensions["blob_store"] = SqlBlobStore()
    app.extensions.setdefault("credential_verifier", verify_password)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.admin_auth import admin_auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.quotations import quotations_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(quotations_bp)
    app.register_blueprint(reports_bp)

    from .validation import DataCorruptionError

    @app.errorhandler(DataCorruptionError)
    def handle_data_corruption(exc):
        db.session.rollback()
        app.logger.error("Stored data failed validation: %s", exc)
        return {"error": "Stored data is corrupted", "key": exc.key, "index": exc.index}, 500

    @app.after_request
    def add_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = resolve_cors_origin(
            request.headers.get("Origin"), app.config
        )
        response.headers.add("Vary", "Origin")
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
