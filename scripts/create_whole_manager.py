#!/usr/bin/env python3
"""Create a whole-manager account.

The HTTP API only ever creates team managers, so whole managers are added by
an operator with this script.

Usage:
    python scripts/create_whole_manager.py --name "Delivery Lead" --email lead@company.com
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from config.settings import Settings
from src.models.validators import AdminRegisterRequest
from src.services.auth import AuthService
from src.services.errors import MetricsDashboardError
from src.services.user_directory import UserDirectory
from src.utils.database import Database

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_whole_manager(settings, name, email, password):
    """Create the account and return its DTO."""
    database = Database(settings.database, is_production=settings.auth.is_production)
    try:
        database.init_schema()
        directory = UserDirectory(database)
        auth_service = AuthService(directory, settings.auth)
        return auth_service.create_whole_manager(name=name, email=email, password=password)
    finally:
        database.dispose()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create a whole-manager account")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")

    try:
        data = AdminRegisterRequest(
            name=args.name, email=args.email, password=password, role="whole_manager"
        )
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        logger.error(f"Invalid account details: {problems}")
        return 1

    try:
        account = create_whole_manager(Settings(), data.name, data.email, data.password)
    except MetricsDashboardError as e:
        logger.error(f"Could not create whole manager: {e.message}")
        return 1

    logger.info(f"Created whole manager {account.id} ({account.email})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
