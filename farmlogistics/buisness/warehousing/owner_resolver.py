from __future__ import annotations

from dataclasses import dataclass

from farmlogistics.data.core.user_info.user import User, ROLE_ADMIN, ROLE_WAREHOUSE_MANAGER
from farmlogistics.buisness.warehousing.errors import NotFoundError
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.owner_resolver")

SOURCE_WAREHOUSE_MANAGER = 'warehouse_manager'
SOURCE_LOCATION_MANAGER = 'location_manager'
SOURCE_ADMIN = 'admin'
SOURCE_TRANSPORTER = 'transporter'


@dataclass(frozen=True)
class OwnerResolution:
    owner: User
    source: str


class OwnerResolver:
    """
    Decides who owns stock received into a warehouse.

    Strategies are tried in order and the first one that finds a user wins:
    1. the manager linked to the warehouse
    2. a warehouse_manager whose home location is the warehouse location
    3. any admin
    4. the transporter who delivered the goods
    """

    def __init__(self, registry: WarehouseRegistry | None = None):
        self.registry = registry or WarehouseRegistry()
        self.strategies = (
            (SOURCE_WAREHOUSE_MANAGER, self._linked_manager),
            (SOURCE_LOCATION_MANAGER, self._location_manager),
            (SOURCE_ADMIN, self._any_admin),
            (SOURCE_TRANSPORTER, self._transporter),
        )

    def resolve(self, location: str, delivery=None) -> OwnerResolution:
        for source, strategy in self.strategies:
            owner = strategy(location, delivery)
            if owner is not None:
                logger.debug(f"Inventory owner for {location} resolved via {source}: user {owner.id}")
                return OwnerResolution(owner=owner, source=source)
        raise NotFoundError(f"No inventory owner could be resolved for location: {location}")

    def find_manager(self, location: str) -> User | None:
        """Warehouse manager for a location: the linked one, else one based there"""
        return self._linked_manager(location, None) or self._location_manager(location, None)

    def _linked_manager(self, location, delivery):
        warehouse = self.registry.get(location)
        if warehouse is None:
            return None
        return warehouse.manager

    def _location_manager(self, location, delivery):
        return (
            User.query
            .filter_by(role=ROLE_WAREHOUSE_MANAGER, location=location, is_active=True)
            .order_by(User.id.asc())
            .first()
        )

    def _any_admin(self, location, delivery):
        return User.query.filter_by(role=ROLE_ADMIN, is_active=True).order_by(User.id.asc()).first()

    def _transporter(self, location, delivery):
        if delivery is None:
            return None
        return delivery.transporter
