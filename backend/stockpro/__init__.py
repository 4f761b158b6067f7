# backend/stockpro/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate
from .logging_config import setup_logging


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    setup_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.checkout import checkout_bp
    from .routes.admin import admin_bp
    from .routes.products import products_bp
    from .routes.movements import movements_bp
    from .routes.pos import pos_bp
    from .routes.suppliers import suppliers_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(movements_bp)
    app.register_blueprint(pos_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(reports_bp)

    _register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    from .services.repository import DataUnavailableError
    from .services.export_service import ExportError

    @app.errorhandler(DataUnavailableError)
    def handle_data_unavailable(exc):
        app.logger.error("Storage read failed: %s", exc)
        return jsonify({"error": str(exc), "retryable": True}), 503

    @app.errorhandler(ExportError)
    def handle_export_error(exc):
        app.logger.error("Export failed: %s", exc)
        return jsonify({"error": str(exc)}), 500
