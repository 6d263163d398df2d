# backend/shopadmin/__init__.py
from flask import Flask, g, request
from sqlalchemy.exc import DBAPIError, OperationalError

from .config import Config
from .extensions import db, migrate


def _bootstrap_store(app: Flask) -> None:
    """Probe the store, create the schema in dev/test, reconcile RBAC."""
    from .database import probe_store, set_store_available
    from .services import permission_service

    with app.app_context():
        available = probe_store()
        set_store_available(app, available)
        if not available:
            app.logger.warning("Database unreachable at startup; running in degraded mode")
            return

        try:
            if app.config["CREATE_SCHEMA_ON_STARTUP"]:
                db.create_all()
            permission_service.bootstrap_rbac()
        except (OperationalError, DBAPIError):
            db.session.rollback()
            app.logger.exception("RBAC bootstrap failed; running in degraded mode")
            set_store_available(app, False)


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        # Must land before db.init_app: engines are built from the config there
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .decorators import IDEMPOTENCY_STORE_KEY
    from .services.idempotency import IdempotencyStore
    app.extensions[IDEMPOTENCY_STORE_KEY] = IdempotencyStore(
        ttl_seconds=app.config["IDEMPOTENCY_TTL_SECONDS"],
        max_keys=app.config["IDEMPOTENCY_MAX_KEYS"],
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.roles import roles_bp
    from .routes.users import users_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.inventory import inventory_bp
    from .routes.orders import orders_bp
    from .routes.reports import reports_bp
    from .routes.settings import settings_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)

    @app.before_request
    def reset_session_claims():
        g.session_claims = None

    allowed_origins = set(app.config["CORS_ALLOWED_ORIGINS"])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, Idempotency-Key"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    _bootstrap_store(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
