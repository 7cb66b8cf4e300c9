"""
Threshold events for an external notification component.

Receivers are called blinker-style: ``fn(sender, **kwargs)``.
- low_stock: sender is the InventoryLot; kwargs ``quantity``, ``threshold``
- warehouse_near_capacity: sender is the Warehouse; kwargs ``utilization_rate``, ``threshold``
"""

from blinker import Namespace

from farmlogistics.utils.logger import get_logger
from farmlogistics.utils.settings import get_setting

logger = get_logger("farm_logistics.buisness.warehousing.signals")

warehousing_signals = Namespace()

low_stock = warehousing_signals.signal('low-stock')
warehouse_near_capacity = warehousing_signals.signal('warehouse-near-capacity')


def on_low_stock(fn):
    """Subscribe fn to low-stock events; usable as a decorator"""
    low_stock.connect(fn, weak=False)
    return fn


def on_warehouse_near_capacity(fn):
    """Subscribe fn to near-capacity events; usable as a decorator"""
    warehouse_near_capacity.connect(fn, weak=False)
    return fn


def notify_if_low_stock(lot):
    threshold = get_setting('LOW_STOCK_THRESHOLD')
    if lot.quantity is None or not 0 < lot.quantity <= threshold:
        return False
    logger.info(f"Low stock: lot {lot.id} {lot.item_name} at {lot.location} has {lot.quantity} {lot.unit} (threshold {threshold})")
    low_stock.send(lot, quantity=lot.quantity, threshold=threshold)
    return True


def notify_if_near_capacity(warehouse):
    threshold = get_setting('NEAR_CAPACITY_PERCENT')
    if not warehouse.capacity_limit:
        return False
    rate = round(warehouse.current_capacity / warehouse.capacity_limit * 100, 2)
    if rate < threshold:
        return False
    logger.warning(f"Warehouse {warehouse.location} near capacity: {rate}% (threshold {threshold}%)")
    warehouse_near_capacity.send(warehouse, utilization_rate=rate, threshold=threshold)
    return True
