#!/usr/bin/env python3
"""Run the regression metrics API with the Flask development server."""

import logging
import argparse

from config.settings import Settings
from src.web_interface import create_app


def main():
    parser = argparse.ArgumentParser(description="Regression metrics API (development server)")
    parser.add_argument("--host", help="Interface to bind (default: WEB_HOST)")
    parser.add_argument("--port", type=int, help="Port to bind (default: WEB_PORT)")
    args = parser.parse_args()

    settings = Settings()

    # Setup logging
    logging.basicConfig(
        level=getattr(logging, settings.app.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    app = create_app(settings)

    host = args.host or settings.web.host
    port = args.port or settings.web.port
    logger.info(f"Server running on http://{host}:{port}")
    logger.info(f"Health check: http://{host}:{port}/api/health")
    app.run(debug=settings.web.debug, host=host, port=port)


if __name__ == "__main__":
    main()
