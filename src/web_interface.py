"""Flask application factory for the regression metrics API."""

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
import logging

from config.settings import Settings
from src.routes.auth import create_auth_blueprint
from src.routes.health import health_bp
from src.routes.metrics import create_metrics_blueprint
from src.services.auth import AuthService
from src.services.errors import MetricsDashboardError
from src.services.metric_store import MetricStore
from src.services.policy import RolePolicy
from src.services.user_directory import UserDirectory
from src.utils.database import Database

logger = logging.getLogger(__name__)


def _create_limiter(app, rate_limit_config):
    """Rate limiter backed by Redis when configured, memory otherwise."""
    if not rate_limit_config.enabled:
        logger.warning("Rate limiting disabled")
        return None

    storage_uri = rate_limit_config.storage_uri
    storage_options = {}
    if storage_uri.startswith("redis"):
        storage_options = {
            'socket_connect_timeout': 5,
            'socket_timeout': 5,
            'retry_on_timeout': True,
            'health_check_interval': 30,
        }
        logger.info(f"Rate limiter using Redis: {storage_uri.split('@')[-1]}")
    else:
        logger.warning("Rate limiter using in-memory storage (development only)")

    return Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=rate_limit_config.default_limits,
        storage_uri=storage_uri,
        storage_options=storage_options,
        strategy="moving-window",
        # Fail open on storage errors, but log them
        swallow_errors=True,
        headers_enabled=True,
    )


def register_error_handlers(app):
    """Turn service errors into JSON responses."""

    @app.errorhandler(MetricsDashboardError)
    def handle_dashboard_error(e):
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({
            'error': 'Validation failed',
            'code': 'invalid_input',
            'details': e.errors(include_url=False, include_context=False, include_input=False),
        }), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description, 'code': e.name.lower().replace(' ', '_')}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({'error': 'Internal server error', 'code': 'internal_error'}), 500


def create_app(settings=None, database=None):
    """Build a configured Flask app.

    Args:
        settings: Settings instance; loaded from the environment when omitted
        database: Database to use instead of one built from ``settings.database``

    Returns:
        Flask app with ``database``, ``user_directory``, ``metric_store``,
        ``policy`` and ``auth_service`` attached
    """
    settings = settings or Settings()

    app = Flask(__name__)
    app.secret_key = settings.auth.jwt_secret
    app.json.sort_keys = False

    CORS(app, origins=settings.web.cors_origins, supports_credentials=True,
         allow_headers=['Content-Type', 'Authorization'],
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'])
    logger.info(f"CORS origins: {settings.web.cors_origins}")

    database = database or Database(settings.database, is_production=settings.auth.is_production)
    database.init_schema()

    user_directory = UserDirectory(database)
    metric_store = MetricStore(database)
    policy = RolePolicy(user_directory)
    auth_service = AuthService(user_directory, settings.auth)

    app.settings = settings
    app.database = database
    app.user_directory = user_directory
    app.metric_store = metric_store
    app.policy = policy
    app.auth_service = auth_service

    limiter = _create_limiter(app, settings.rate_limit)
    app.limiter = limiter

    app.register_blueprint(create_auth_blueprint(
        auth_service, user_directory, policy, limiter,
        is_production=settings.auth.is_production,
    ))
    app.register_blueprint(create_metrics_blueprint(metric_store, policy, limiter))
    app.register_blueprint(health_bp)
    if limiter:
        limiter.exempt(health_bp)

    register_error_handlers(app)

    logger.info("Regression metrics API initialized")
    return app
