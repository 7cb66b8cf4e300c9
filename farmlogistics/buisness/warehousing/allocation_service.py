from __future__ import annotations

from dataclasses import dataclass

from farmlogistics.buisness.warehousing.errors import CapacityError, ValidationError
from farmlogistics.buisness.warehousing.capacity_guard import workflow_transaction
from farmlogistics.buisness.warehousing.delivery_inventory_bridge import DeliveryInventoryBridge
from farmlogistics.buisness.warehousing.warehouse_selector import WarehouseSelector, WarehouseCandidate
from farmlogistics.data.warehousing.inventory_lot import InventoryLot
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.allocation")


@dataclass(frozen=True)
class AllocationResult:
    candidate: WarehouseCandidate
    lot: InventoryLot
    attempts: int

    @property
    def location(self) -> str:
        return self.candidate.location


class AllocationService:
    """
    Picks a warehouse for an incoming delivery and books it in.

    The selector's free-space check is repeated under the chosen warehouse's
    lock, immediately before the receipt, so two allocations cannot both claim
    the same headroom. A warehouse that lost its room in between is skipped and
    the next-best one is tried.
    """

    def __init__(self, selector: WarehouseSelector | None = None, bridge: DeliveryInventoryBridge | None = None):
        self.bridge = bridge or DeliveryInventoryBridge()
        self.selector = selector or WarehouseSelector(self.bridge.registry, self.bridge.tracker)

    def allocate_delivery(self, delivery, origin=None, preferred: str | None = None,
                          received_by=None) -> AllocationResult:
        if delivery.received_by_warehouse:
            raise ValidationError(f"Delivery {delivery.id} was already received at {delivery.warehouse_location}")

        origin = origin or delivery.pickup_coordinates
        quantity = delivery.quantity
        skipped = set()
        attempts = 0

        while True:
            ranked = [c for c in self.selector.rank(origin, quantity, preferred) if c.location not in skipped]
            if not ranked:
                raise CapacityError(f"No warehouse has room for {quantity} {delivery.unit} of {delivery.goods_description}")

            candidate = ranked[0]
            attempts += 1

            with workflow_transaction(candidate.location, registry=self.bridge.registry):
                usage = self.bridge.tracker.utilization(candidate.location)
                if usage is not None and usage.free_space >= quantity:
                    lot = self.bridge.receive_into_warehouse(delivery, candidate.location, received_by)
                    logger.info(f"Delivery {delivery.id} allocated to {candidate.location} after {attempts} attempt(s)")
                    return AllocationResult(candidate=candidate, lot=lot, attempts=attempts)

            logger.warning(f"Warehouse {candidate.location} lost its headroom before receipt; trying next candidate")
            skipped.add(candidate.location)
