from __future__ import annotations

from dataclasses import dataclass, asdict

from farmlogistics.buisness.warehousing.errors import CapacityError, NotFoundError
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry


@dataclass(frozen=True)
class Utilization:
    location: str
    current_stock: int
    capacity_limit: int
    utilization_rate: float
    free_space: int

    def to_dict(self) -> dict:
        return asdict(self)


class UtilizationTracker:
    """
    Current stock, free space and utilization rate per warehouse, recomputed
    from the inventory lots rather than read from the cached counter.
    """

    def __init__(self, registry: WarehouseRegistry | None = None, ledger: InventoryLedger | None = None):
        self.registry = registry or WarehouseRegistry()
        self.ledger = ledger or InventoryLedger()

    def utilization(self, location: str) -> Utilization | None:
        warehouse = self.registry.get(location)
        if warehouse is None:
            return None
        return self.for_warehouse(warehouse)

    def for_warehouse(self, warehouse) -> Utilization:
        current_stock = self.ledger.stock_at(warehouse.location)
        limit = warehouse.capacity_limit
        rate = round(current_stock / limit * 100, 2) if limit else 0.0
        return Utilization(
            location=warehouse.location,
            current_stock=current_stock,
            capacity_limit=limit,
            utilization_rate=rate,
            free_space=max(0, limit - current_stock),
        )

    def check_capacity(self, location: str, quantity: int) -> Utilization:
        """Raise CapacityError unless `quantity` more units fit at the location"""
        usage = self.utilization(location)
        if usage is None:
            raise NotFoundError(f"Warehouse not found for location: {location}")
        if usage.free_space < quantity:
            raise CapacityError(
                f"Insufficient capacity at {location}: {usage.free_space} free, {quantity} requested "
                f"({usage.current_stock}/{usage.capacity_limit} used)"
            )
        return usage
