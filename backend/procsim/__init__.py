# backend/procsim/__init__.py
import logging

from flask import Flask, current_app, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # One market generator per process; a configured seed fixes the whole tick sequence
    from .services.market_service import make_rng
    app.extensions["market_rng"] = make_rng(app.config.get("MARKET_RNG_SEED"))

    # Register blueprints
    from .routes.system import system_bp
    from .routes.tasks import tasks_bp
    from .routes.catalog import catalog_bp
    from .routes.inventory import inventory_bp
    from .routes.orders import orders_bp
    from .routes.market import market_bp
    from .routes.finance import finance_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(tasks_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(market_bp)
    app.register_blueprint(finance_bp)

    from .services.errors import SimulationError

    @app.errorhandler(SimulationError)
    def handle_simulation_error(exc: SimulationError):
        return exc.to_dict(), exc.http_status

    @app.errorhandler(ValueError)
    def handle_value_error(exc: ValueError):
        return {"error": "invalid_request", "message": str(exc), "details": {}}, 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        current_app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return {"error": "internal_error", "message": "Internal server error", "details": {}}, 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-User-Id, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
