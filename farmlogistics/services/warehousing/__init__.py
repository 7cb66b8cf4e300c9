"""
Warehousing Services
Read-only services for warehouse utilization and inventory queries.
"""

from .warehouse_statistics_service import WarehouseStatisticsService
from .inventory_query_service import InventoryQueryService

__all__ = [
    'WarehouseStatisticsService',
    'InventoryQueryService',
]
