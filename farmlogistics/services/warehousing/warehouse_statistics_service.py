"""
Warehouse Statistics Service
Read-only capacity and utilization figures for dashboards and reporting.
"""

from typing import Dict, List, Any
from farmlogistics.buisness.warehousing.utilization_tracker import UtilizationTracker
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry


class WarehouseStatisticsService:
    """
    Service for warehouse utilization queries.

    Provides read-only methods for:
    - Per-warehouse utilization plus an overall summary
    - Free space per warehouse
    """

    @staticmethod
    def get_warehouse_statistics() -> Dict[str, Any]:
        """
        Utilization of every warehouse and a summary across all of them.

        Returns:
            Dictionary with 'warehouses' (list) and 'summary' (totals and average utilization)
        """
        registry = WarehouseRegistry()
        tracker = UtilizationTracker(registry=registry)

        stats = []
        for warehouse in registry.all_with_capacity():
            usage = tracker.for_warehouse(warehouse)
            stats.append({
                **usage.to_dict(),
                'current_capacity': warehouse.current_capacity,
                'manager_id': warehouse.manager_id,
            })

        total_capacity = sum(s['capacity_limit'] for s in stats)
        total_used = sum(s['current_stock'] for s in stats)
        avg_utilization = (total_used / total_capacity * 100) if total_capacity > 0 else 0

        return {
            'warehouses': stats,
            'summary': {
                'total_warehouses': len(stats),
                'total_capacity': total_capacity,
                'total_used': total_used,
                'total_free': total_capacity - total_used,
                'avg_utilization': round(avg_utilization, 2),
            },
        }

    @staticmethod
    def get_free_space() -> List[Dict[str, Any]]:
        """Free space per warehouse, in registration order"""
        registry = WarehouseRegistry()
        tracker = UtilizationTracker(registry=registry)
        return [
            {
                'location': usage.location,
                'capacity_limit': usage.capacity_limit,
                'current_stock': usage.current_stock,
                'free_space': usage.free_space,
            }
            for usage in (tracker.for_warehouse(w) for w in registry.all_with_capacity())
        ]
