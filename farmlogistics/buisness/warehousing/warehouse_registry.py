from __future__ import annotations

from farmlogistics import db
from farmlogistics.data.warehousing.warehouse import Warehouse
from farmlogistics.data.core.user_info.user import User, ROLE_ADMIN, ROLE_WAREHOUSE_MANAGER
from farmlogistics.buisness.warehousing.errors import ValidationError, NotFoundError, AuthorizationError
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.registry")


class WarehouseRegistry:
    """
    Lookup of warehouse records by location key.

    The selector and ledgers only need `get`, `require` and `all_with_capacity`;
    tests substitute an in-memory object with the same methods.
    """

    def get(self, location: str | None) -> Warehouse | None:
        if not location:
            return None
        return Warehouse.query.filter_by(location=location).first()

    def require(self, location: str | None) -> Warehouse:
        if not location:
            raise ValidationError("Warehouse location is required")
        warehouse = self.get(location)
        if warehouse is None:
            raise NotFoundError(f"Warehouse not found for location: {location}")
        return warehouse

    def all_with_capacity(self) -> list[Warehouse]:
        """Warehouses with a positive capacity limit, in registration order"""
        return (
            Warehouse.query
            .filter(Warehouse.capacity_limit > 0)
            .order_by(Warehouse.id.asc())
            .all()
        )

    def lock(self, locations) -> list[Warehouse]:
        """
        Re-read the given warehouse rows with SELECT ... FOR UPDATE.

        SQLite ignores the row lock; the in-process CapacityGuard covers that case.
        """
        locations = sorted({loc for loc in locations if loc})
        if not locations:
            return []
        return (
            Warehouse.query
            .filter(Warehouse.location.in_(locations))
            .order_by(Warehouse.location.asc())
            .with_for_update()
            .all()
        )

    def register_warehouse(
        self,
        admin: User,
        capacity_limit: int,
        location: str | None = None,
        coordinates: tuple[float, float] | None = None,
        manager: User | None = None,
    ) -> tuple[Warehouse, bool]:
        """
        Create a warehouse or update an existing one at the same location.

        When a manager is given the warehouse takes the manager's location and
        coordinates, and the manager is promoted to warehouse_manager.

        Returns:
            tuple: (warehouse, created)
        """
        if admin is None or admin.role != ROLE_ADMIN:
            raise AuthorizationError("Only admins can set warehouse capacity")
        if not isinstance(capacity_limit, int) or capacity_limit <= 0:
            raise ValidationError("Capacity limit must be a positive integer")

        if manager is not None:
            if manager.role != ROLE_WAREHOUSE_MANAGER:
                logger.info(f"Promoting user {manager.username} from {manager.role} to {ROLE_WAREHOUSE_MANAGER}")
                manager.role = ROLE_WAREHOUSE_MANAGER
            location = manager.location or f"{manager.name or manager.username}'s Warehouse"
            coordinates = manager.coordinates or coordinates

        if not location:
            raise ValidationError("Warehouse location is required")

        warehouse = self.get(location)
        created = warehouse is None

        if created:
            if manager is None:
                raise ValidationError("Manager selection is required for new warehouses")
            warehouse = Warehouse(location=location, current_capacity=0, created_by_id=admin.id)
            db.session.add(warehouse)

        warehouse.capacity_limit = capacity_limit
        warehouse.updated_by_id = admin.id
        if coordinates is not None:
            warehouse.latitude, warehouse.longitude = coordinates
        if manager is not None:
            warehouse.manager_id = manager.id

        db.session.flush()
        logger.info(f"{'Registered' if created else 'Updated'} warehouse {location} with capacity {capacity_limit}")
        return warehouse, created
