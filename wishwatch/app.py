"""
Wishwatch - price tracking, store availability and guest reservations
Application Factory
"""
import logging
import os
import secrets
import sys

from flask import Flask
import structlog

from wishwatch.auth import login_manager
from wishwatch.db import db, init_db
from wishwatch.exceptions import register_exception_handlers
from wishwatch.metrics import init_metrics
from wishwatch.middleware.rate_limit import init_rate_limiting
from wishwatch.routes.alerts import alerts_bp
from wishwatch.routes.location import location_bp
from wishwatch.routes.pricing import pricing_bp
from wishwatch.routes.reservations import reservations_bp
from wishwatch.routes.stores import stores_bp
from wishwatch.routes.system import system_bp
from wishwatch.services.extraction import build_extractor
from wishwatch.services.factory import EXTRACTOR_KEY, NOTIFIER_KEY
from wishwatch.services.notifier import build_notifier
from wishwatch.settings import apply_overrides, load_settings, verify_settings
from wishwatch.utils import ColoredFormatter

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')


def create_app(config_overrides=None):
    """
    Application factory.

    config_overrides is deep-merged over the YAML settings, e.g.
    {"database": {"uri": "sqlite:////tmp/test.db"}, "refresh": {"max_concurrency": 2}}.
    """
    settings = load_settings(force=True)
    if config_overrides:
        settings = apply_overrides(config_overrides)

    ok, errors = verify_settings(settings)
    if not ok:
        raise ValueError(f"Invalid configuration: {errors}")

    app = Flask(__name__)
    database_uri = settings["database"]["uri"]
    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    if database_uri.startswith("sqlite"):
        # Pooled connections get handed between request threads
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {"connect_args": {"check_same_thread": False, "timeout": 30}}
    app.config['SECRET_KEY'] = os.environ.get('WISHWATCH_SECRET_KEY') or secrets.token_hex(32)
    app.config["RATELIMIT_STORAGE_URI"] = settings.get("reservations", {}).get("rate_limit_storage", "memory://")
    app.config["RATELIMIT_ENABLED"] = settings.get("reservations", {}).get("rate_limit_enabled", True)

    # Initialize components
    db.init_app(app)
    login_manager.init_app(app)
    init_rate_limiting(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(system_bp)
    app.register_blueprint(alerts_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(location_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(reservations_bp)

    # Initialize metrics
    init_metrics(app)

    # External collaborators
    app.extensions[EXTRACTOR_KEY] = build_extractor(settings)
    app.extensions[NOTIFIER_KEY] = build_notifier(settings)

    init_db(app)

    logger.info(
        "application_started",
        notifier=settings["notifier"]["type"],
        max_concurrency=settings["refresh"]["max_concurrency"],
    )
    return app


if __name__ == '__main__':
    from wishwatch.constants import BUILD_VERSION

    port = int(os.environ.get('WISHWATCH_PORT', 8080))
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f'Starting server on port {port}...')
    create_app().run(debug=False, use_reloader=False, host="0.0.0.0", port=port)
    logger.info('Shutting down server...')
