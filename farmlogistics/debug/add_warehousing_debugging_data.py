#!/usr/bin/env python3
"""
Warehousing Debug Data Insertion
Inserts demo users, warehouses and farmer stock

Goes through the registry and the delivery/inventory bridge so the capacity
counters match the lots that get created.
"""

from farmlogistics import db
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.debug.warehousing")


def insert_warehousing_debug_data(debug_data, admin):
    """
    Insert debug data for the warehousing module

    Args:
        debug_data (dict): Debug data from JSON file
        admin (User): Admin user registering the warehouses

    Raises:
        Exception: If insertion fails (fail-fast)
    """
    from farmlogistics.data.core.user_info.user import User
    from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
    from farmlogistics.buisness.warehousing.delivery_inventory_bridge import DeliveryInventoryBridge

    users = {}
    for user_data in debug_data.get('Users', []):
        user, _ = User.find_or_create_from_dict(
            user_data,
            lookup_fields=['username'],
            commit=False,
        )
        users[user.username] = user
    db.session.commit()
    logger.info(f"Inserted {len(users)} demo users")

    registry = WarehouseRegistry()
    for warehouse_data in debug_data.get('Warehouses', []):
        manager = users[warehouse_data['manager']]
        warehouse, created = registry.register_warehouse(
            admin,
            warehouse_data['capacity_limit'],
            manager=manager,
        )
        logger.info(f"{'Registered' if created else 'Updated'} demo warehouse {warehouse.location}")
    db.session.commit()

    bridge = DeliveryInventoryBridge(registry=registry)
    for lot_data in debug_data.get('Lots', []):
        bridge.stock_from_farmer(
            users[lot_data['farmer']],
            lot_data['item_name'],
            lot_data['quantity'],
            lot_data.get('unit', 'kg'),
            lot_data['location'],
        )
    logger.info(f"Stocked {len(debug_data.get('Lots', []))} demo lots")
