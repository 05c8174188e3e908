"""
Gunicorn configuration for the regression metrics API.

Run with: gunicorn -c gunicorn_config.py
"""

import logging
import os

logger = logging.getLogger(__name__)

# Gunicorn server settings
wsgi_app = "src.web_interface:create_app()"
bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"
workers = int(os.getenv('GUNICORN_WORKERS', '4'))
timeout = 60
worker_class = 'sync'

# Logging
loglevel = os.getenv('LOG_LEVEL', 'info').lower()
accesslog = '-'
errorlog = '-'


def post_worker_init(worker):
    """Called after a worker has been initialized."""
    logger.info(f"Worker {worker.pid} ready")


def worker_exit(server, worker):
    """Release the worker's database connections on shutdown."""
    app = getattr(worker, 'wsgi', None)
    database = getattr(app, 'database', None)
    if database is not None:
        database.dispose()
