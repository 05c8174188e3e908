"""Health check endpoints."""

from flask import Blueprint, jsonify, current_app
from datetime import datetime, timezone
from sqlalchemy import text
import logging

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/api')


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Liveness check. Exempted from rate limiting by the app factory."""
    return jsonify({
        'status': 'healthy',
        'message': 'Regression Metrics API is running!',
        'timestamp': datetime.now(timezone.utc).isoformat()
    }), 200


@health_bp.route('/health/database', methods=['GET'])
def database_health_check():
    """Readiness check: runs a trivial query against the configured database."""
    try:
        with current_app.database.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat()
        }), 200
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return jsonify({
            'status': 'unhealthy',
            'error': 'Database unavailable'
        }), 503
