#!/usr/bin/env python3
"""
Main build orchestrator for the farm logistics platform
Creates tables, inserts critical data and optionally demo data
"""

from farmlogistics import create_app, db
from pathlib import Path
import json
import os
import secrets
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.build")

CRITICAL_DATA_FILE = Path(__file__).parent / 'data' / 'core' / 'build_data_critical.json'


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if the system and admin users exist
    """
    from farmlogistics.data.core.user_info.user import User

    for username in ('system', 'admin'):
        if User.query.filter_by(username=username).first() is None:
            logger.warning(f"Critical user '{username}' not found")
            return False

    logger.info("Critical data verification passed")
    return True


def _resolve_password(user_data):
    """Take the password from the named environment variable, else generate one"""
    env_name = user_data.get('password_env')
    password = os.environ.get(env_name) if env_name else None
    if not password:
        logger.warning(f"{env_name or 'password'} not set for user {user_data.get('username')}; generating a random one")
        password = secrets.token_urlsafe(24)
    return password


def insert_critical_data():
    """
    Insert critical data that must always be present

    Loads from farmlogistics/data/core/build_data_critical.json.
    This function is called ALWAYS, regardless of flags.

    Raises:
        FileNotFoundError: If critical data file not found
        RuntimeError: If critical data insertion fails
    """
    if not CRITICAL_DATA_FILE.exists():
        error_msg = f"Critical data file not found: {CRITICAL_DATA_FILE}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    logger.info("Loading critical data from build_data_critical.json...")
    with open(CRITICAL_DATA_FILE, 'r') as f:
        critical_data = json.load(f)

    from farmlogistics.data.core.user_info.user import User

    try:
        system_user_id = None
        for user_key, user_data in critical_data.get('Essential', {}).get('Users', {}).items():
            record = {k: v for k, v in user_data.items() if k != 'password_env'}
            record['password'] = _resolve_password(user_data)
            user, created = User.find_or_create_from_dict(
                record,
                lookup_fields=['username'],
                commit=False,
            )
            if user.username == 'system':
                system_user_id = user.id
            logger.info(f"{'Inserted' if created else 'Found'} essential user: {user.username}")

        db.session.commit()
        logger.info(f"Successfully inserted critical data (system user id {system_user_id})")
    except Exception as e:
        db.session.rollback()
        logger.error(f"Critical data insertion failed: {e}")
        raise

    if not verify_critical_data():
        error_msg = "Critical data insertion completed but verification failed"
        logger.error(error_msg)
        raise RuntimeError(error_msg)


def build_models():
    """
    Create all tables. Models register themselves with SQLAlchemy when
    create_app() imports them.
    """
    import farmlogistics.data.core.user_info.user
    import farmlogistics.data.warehousing
    import farmlogistics.data.logistics

    db.create_all()
    logger.info("All database tables created")


def build_database(enable_debug_data=True, build_only=False, app=None):
    """
    Main build orchestrator

    Args:
        enable_debug_data (bool): Whether to insert demo data (default: True)
        build_only (bool): Create tables only; critical data is still inserted
        app (Flask, optional): Application to build into (a new one by default)
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (debug data: {enable_debug_data}, build only: {build_only})")

        build_models()

        # Critical data must be present for the application to function
        insert_critical_data()

        if enable_debug_data and not build_only:
            from farmlogistics.debug.debug_data_manager import insert_debug_data
            logger.info("Inserting debug data...")
            insert_debug_data(enabled=True)

        logger.info("Database build completed successfully")

    return app


if __name__ == '__main__':
    import sys

    build_database(enable_debug_data='--no-debug-data' not in sys.argv,
                   build_only='--build-only' in sys.argv)
