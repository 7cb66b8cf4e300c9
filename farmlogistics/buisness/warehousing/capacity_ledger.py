from __future__ import annotations

import warnings
from dataclasses import dataclass

from farmlogistics import db
from farmlogistics.buisness.warehousing.errors import ValidationError, ConsistencyWarning
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.buisness.warehousing.signals import notify_if_near_capacity
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.capacity_ledger")

OP_ADD = 'add'
OP_REMOVE = 'remove'


@dataclass(frozen=True)
class CapacityReconciliation:
    location: str
    cached: int
    recomputed: int
    applied: bool

    @property
    def drift(self) -> int:
        return self.cached - self.recomputed

    @property
    def consistent(self) -> bool:
        return self.drift == 0


class CapacityLedger:
    """
    The per-warehouse running usage counter (`Warehouse.current_capacity`).

    All changes to the counter go through `update_capacity`. Admission checks use
    the recomputed lot sum from UtilizationTracker; this counter drives the
    near-capacity event and is brought back in line by `reconcile`.
    """

    def __init__(self, registry: WarehouseRegistry | None = None, ledger: InventoryLedger | None = None):
        self.registry = registry or WarehouseRegistry()
        self.ledger = ledger or InventoryLedger()

    def update_capacity(self, location: str, quantity: int, op: str):
        if op not in (OP_ADD, OP_REMOVE):
            raise ValidationError(f"Unknown capacity operation: {op}")
        if not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Capacity change must be a non-negative integer")

        warehouse = self.registry.require(location)
        before = warehouse.current_capacity or 0

        if op == OP_ADD:
            after = before + quantity
            if after > warehouse.capacity_limit:
                message = (f"Warehouse {location} capacity exceeded: {after}/{warehouse.capacity_limit} "
                           f"after adding {quantity}")
                logger.warning(message)
                warnings.warn(message, ConsistencyWarning, stacklevel=2)
        else:
            after = before - quantity
            if after < 0:
                logger.warning(f"Warehouse {location} counter would go negative ({after}); flooring at 0")
                after = 0

        warehouse.current_capacity = after
        db.session.flush()
        logger.info(f"Capacity {op} {quantity} at {location}: {before} -> {after} (limit {warehouse.capacity_limit})")

        if op == OP_ADD:
            notify_if_near_capacity(warehouse)

        return warehouse

    def add(self, location: str, quantity: int):
        return self.update_capacity(location, quantity, OP_ADD)

    def remove(self, location: str, quantity: int):
        return self.update_capacity(location, quantity, OP_REMOVE)

    def reconcile(self, location: str, apply: bool = False) -> CapacityReconciliation:
        """
        Compare the cached counter with the lot sum; reset the counter when `apply` is set.
        """
        warehouse = self.registry.require(location)
        cached = warehouse.current_capacity or 0
        recomputed = self.ledger.stock_at(location)

        applied = False
        if cached != recomputed:
            logger.warning(f"Capacity drift at {location}: counter {cached}, lots {recomputed}")
            if apply:
                warehouse.current_capacity = recomputed
                db.session.flush()
                applied = True
                logger.info(f"Capacity counter at {location} reset to {recomputed}")

        return CapacityReconciliation(location=location, cached=cached, recomputed=recomputed, applied=applied)
