"""
Warehousing models: warehouses, inventory lots and the outgoing dispatch log.
"""

from .warehouse import Warehouse
from .inventory_lot import InventoryLot
from .outgoing_dispatch import OutgoingDispatch

__all__ = [
    'Warehouse',
    'InventoryLot',
    'OutgoingDispatch',
]
