"""
Warehousing business layer.

Capacity-aware warehouse allocation and the inventory-lot lifecycle:
- GeoScorer, WarehouseSelector - ranking warehouses for incoming goods
- UtilizationTracker, CapacityLedger - recomputed usage and the cached counter
- InventoryLedger, ReservationManager - lots, FIFO consumption, order reservations
- DeliveryInventoryBridge, AllocationService - delivery and dispatch workflows
"""

from farmlogistics.buisness.warehousing.errors import (
    WarehousingDomainError,
    ValidationError,
    NotFoundError,
    AuthorizationError,
    CapacityError,
    OrderTransitionError,
    ConsistencyWarning,
)
from farmlogistics.buisness.warehousing.geo_scorer import GeoScorer
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.utilization_tracker import UtilizationTracker, Utilization
from farmlogistics.buisness.warehousing.warehouse_selector import WarehouseSelector
from farmlogistics.buisness.warehousing.reservation_manager import ReservationManager
from farmlogistics.buisness.warehousing.capacity_ledger import CapacityLedger
from farmlogistics.buisness.warehousing.capacity_guard import CapacityGuard, workflow_transaction
from farmlogistics.buisness.warehousing.owner_resolver import OwnerResolver, OwnerResolution
from farmlogistics.buisness.warehousing.delivery_inventory_bridge import DeliveryInventoryBridge
from farmlogistics.buisness.warehousing.allocation_service import AllocationService
from farmlogistics.buisness.warehousing.signals import on_low_stock, on_warehouse_near_capacity

__all__ = [
    'WarehousingDomainError',
    'ValidationError',
    'NotFoundError',
    'AuthorizationError',
    'CapacityError',
    'OrderTransitionError',
    'ConsistencyWarning',
    'GeoScorer',
    'WarehouseRegistry',
    'InventoryLedger',
    'UtilizationTracker',
    'Utilization',
    'WarehouseSelector',
    'ReservationManager',
    'CapacityLedger',
    'CapacityGuard',
    'workflow_transaction',
    'OwnerResolver',
    'OwnerResolution',
    'DeliveryInventoryBridge',
    'AllocationService',
    'on_low_stock',
    'on_warehouse_near_capacity',
]
