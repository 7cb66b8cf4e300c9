#!/usr/bin/env python3
"""
Build script for the farm logistics platform

Creates the tables and seeds users, warehouses and (optionally) demo stock.
The package exposes no HTTP routes, so there is no server to start here;
use the services under farmlogistics.services and farmlogistics.buisness.
"""

import argparse

from dotenv import load_dotenv

# Load environment variables from .env file before the app reads its config
load_dotenv()

from farmlogistics import create_app
from farmlogistics.build import build_database
from farmlogistics.utils.logger import get_logger

# Note: Default user credentials are configured via environment variables.
# Run 'python generate_env.py' to create .env file with secure passwords.

logger = get_logger("farm_logistics.run")


def parse_arguments():
    parser = argparse.ArgumentParser(description='Farm Logistics Platform')
    parser.add_argument('--build-only', action='store_true',
                        help='Build database tables only, do not insert demo data (critical data is always inserted)')
    parser.add_argument('--enable-debug-data', action='store_true', default=True,
                        help='Enable demo data insertion (default)')
    parser.add_argument('--no-debug-data', action='store_false', dest='enable_debug_data',
                        help='Disable demo data insertion')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Building Farm Logistics Platform database...")

    app = create_app()
    build_database(
        enable_debug_data=args.enable_debug_data and not args.build_only,
        build_only=args.build_only,
        app=app,
    )

    logger.info("Build completed" + (" (no demo data)" if args.build_only else ""))
