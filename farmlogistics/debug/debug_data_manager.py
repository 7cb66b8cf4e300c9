#!/usr/bin/env python3
"""
Debug Data Manager
Central controller for demo data insertion

Handles:
- Loading debug data JSON files
- Checking if data is already present
- Orchestrating module-specific insertion functions
- Fail-fast error handling
"""

from pathlib import Path
import json
from farmlogistics import db
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.debug_data_manager")

MODULES = ['warehousing']


def insert_debug_data(enabled=True):
    """
    Insert demo data for every module

    Args:
        enabled (bool): Whether to insert debug data (default: True)

    Returns:
        dict: Summary of inserted data

    Raises:
        Exception: If any debug data insertion fails (fail-fast)
    """
    if not enabled:
        logger.info("Debug data insertion is disabled")
        return {}

    from farmlogistics.data.core.user_info.user import User
    admin = User.query.filter_by(username='admin').first()
    if admin is None:
        raise RuntimeError("Admin user not found - critical data must be inserted first")

    summary = {}
    for module_name in MODULES:
        debug_data = _load_debug_data_file(module_name)
        if not debug_data:
            logger.info(f"No debug data file found for {module_name}, skipping")
            summary[module_name] = {'status': 'skipped', 'reason': 'file_not_found'}
            continue

        if _check_debug_data_present(module_name, debug_data):
            logger.info(f"Debug data for {module_name} already present, skipping")
            summary[module_name] = {'status': 'skipped', 'reason': 'data_present'}
            continue

        try:
            logger.info(f"Inserting debug data for {module_name}...")
            _insert_module_debug_data(module_name, debug_data, admin)
            summary[module_name] = {'status': 'inserted'}
        except Exception as e:
            logger.error(f"Failed to insert debug data for {module_name}: {e}")
            db.session.rollback()
            raise

    logger.info("Debug data insertion completed successfully")
    return summary


def _load_debug_data_file(module_name):
    debug_file = Path(__file__).parent / 'data' / f'{module_name}.json'
    if not debug_file.exists():
        return None

    try:
        with open(debug_file, 'r') as f:
            data = json.load(f)
        logger.debug(f"Loaded debug data file: {debug_file}")
        return data
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {debug_file}: {e}")
        raise


def _check_debug_data_present(module_name, debug_data):
    """Demo data counts as present once any of its users exists"""
    if module_name == 'warehousing':
        from farmlogistics.data.core.user_info.user import User
        for user_data in debug_data.get('Users', []):
            if User.query.filter_by(username=user_data['username']).first():
                return True
    return False


def _insert_module_debug_data(module_name, debug_data, admin):
    if module_name == 'warehousing':
        from farmlogistics.debug.add_warehousing_debugging_data import insert_warehousing_debug_data
        insert_warehousing_debug_data(debug_data, admin)
