from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from farmlogistics import db
from farmlogistics.data.core.user_info.user import ROLE_FARMER, ROLE_WAREHOUSE_MANAGER, ROLE_MARKET_VENDOR
from farmlogistics.data.warehousing.inventory_lot import InventoryLot, LOT_AVAILABLE
from farmlogistics.data.warehousing.outgoing_dispatch import OutgoingDispatch
from farmlogistics.buisness.warehousing.errors import (
    ValidationError,
    AuthorizationError,
    CapacityError,
)
from farmlogistics.buisness.warehousing.capacity_guard import workflow_transaction
from farmlogistics.buisness.warehousing.capacity_ledger import CapacityLedger
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger, LotDraw
from farmlogistics.buisness.warehousing.owner_resolver import OwnerResolver
from farmlogistics.buisness.warehousing.signals import notify_if_low_stock
from farmlogistics.buisness.warehousing.utilization_tracker import UtilizationTracker
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.bridge")

ACTION_ITEM_REMOVED = 'item_removed'
ACTION_QUANTITY_REDUCED = 'quantity_reduced'
ACTION_QUANTITY_ADJUSTED = 'quantity_adjusted'


@dataclass(frozen=True)
class DispatchResult:
    location: str
    dispatched: int
    draws: tuple
    dispatch_records: tuple
    vendor_lot: InventoryLot


@dataclass(frozen=True)
class ConsumptionResult:
    """Outcome of a best-effort farmer-side consumption"""
    requested: int
    consumed: int
    draws: tuple
    warning: str | None = None

    @property
    def shortfall(self) -> int:
        return self.requested - self.consumed

    @property
    def complete(self) -> bool:
        return self.shortfall == 0


@dataclass(frozen=True)
class ManualChangeResult:
    action: str
    lot_id: int
    item_name: str
    location: str
    original_quantity: int
    new_quantity: int

    @property
    def quantity_changed(self) -> int:
        return self.new_quantity - self.original_quantity


def _require_quantity(quantity, label="Quantity"):
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError(f"{label} must be a positive integer")


class DeliveryInventoryBridge:
    """
    Moves quantity between farmer, warehouse and vendor ownership on delivery and
    dispatch events, keeping the inventory lots and the capacity counter in step.

    Every public operation validates and authorizes before the first mutation and
    runs as one workflow transaction.
    """

    def __init__(
        self,
        registry: WarehouseRegistry | None = None,
        ledger: InventoryLedger | None = None,
        tracker: UtilizationTracker | None = None,
        capacity_ledger: CapacityLedger | None = None,
        owner_resolver: OwnerResolver | None = None,
    ):
        self.registry = registry or WarehouseRegistry()
        self.ledger = ledger or InventoryLedger()
        self.tracker = tracker or UtilizationTracker(self.registry, self.ledger)
        self.capacity_ledger = capacity_ledger or CapacityLedger(self.registry, self.ledger)
        self.owner_resolver = owner_resolver or OwnerResolver(self.registry)

    # ------------------------------------------------------------------
    # Delivery events
    # ------------------------------------------------------------------

    def receive_into_warehouse(self, delivery, location: str, received_by=None) -> InventoryLot:
        """
        Book a delivered consignment into a warehouse as a new lot.

        The lot owner is resolved manager -> admin -> transporter; the category is
        derived from the goods description.
        """
        _require_quantity(delivery.quantity)
        if not location:
            raise ValidationError("Warehouse location is required")
        if not delivery.goods_description:
            raise ValidationError("Delivery has no goods description")
        if delivery.received_by_warehouse:
            raise ValidationError(f"Delivery {delivery.id} was already received at {delivery.warehouse_location}")

        with workflow_transaction(location, registry=self.registry):
            self.registry.require(location)
            resolution = self.owner_resolver.resolve(location, delivery)

            lot = self.ledger.create_lot(
                resolution.owner,
                delivery.goods_description,
                delivery.quantity,
                location,
                unit=delivery.unit,
                added_by_role=resolution.owner.role,
                source_delivery=delivery,
                notes=f"Received from delivery {delivery.id}",
                created_by=received_by,
            )
            self.capacity_ledger.add(location, delivery.quantity)
            delivery.mark_received(location, received_by)
            db.session.flush()

        logger.info(f"Delivery {delivery.id}: received {delivery.quantity} {delivery.unit} of "
                    f"{delivery.goods_description} into {location} (owner via {resolution.source})")
        return lot

    def dispatch_from_warehouse(self, delivery, location: str, dispatched_by) -> DispatchResult:
        """
        Ship a delivery's quantity out of a warehouse to the delivery's vendor.

        Available lots are drained oldest-first. There is no partial dispatch:
        insufficient stock raises CapacityError before anything changes.
        """
        _require_quantity(delivery.quantity)
        if not location:
            raise ValidationError("Warehouse location is required")
        vendor = delivery.vendor
        if vendor is None:
            raise ValidationError(f"Delivery {delivery.id} has no vendor to dispatch to")
        vendor_location = vendor.location or delivery.dropoff_location
        if not vendor_location:
            raise ValidationError(f"Vendor {vendor.id} has no location to receive goods")
        if self.registry.get(vendor_location) is not None:
            raise ValidationError(
                f"Vendor {vendor.id} is located at warehouse {vendor_location}; dispatch would bypass its capacity"
            )

        item_name = delivery.goods_description
        quantity = delivery.quantity

        with workflow_transaction(location, registry=self.registry):
            self.registry.require(location)
            lots = self.ledger.available_lots(location, item_name)
            available = self.ledger.total_quantity(lots)
            if available < quantity:
                raise CapacityError(
                    f"Insufficient stock of {item_name} at {location}: {available} available, {quantity} requested"
                )

            who = dispatched_by.username if dispatched_by is not None else 'system'
            note = f"{datetime.utcnow():%Y-%m-%d %H:%M} dispatched for delivery {delivery.id} by {who}"
            draws = self.ledger.consume_fifo(lots, quantity, note)

            records = tuple(self._record_dispatch(draw, delivery, dispatched_by, vendor) for draw in draws)
            self.capacity_ledger.remove(location, quantity)

            vendor_lot = self.ledger.create_lot(
                vendor,
                item_name,
                quantity,
                vendor_location,
                unit=delivery.unit,
                added_by_role=ROLE_MARKET_VENDOR,
                source_delivery=delivery,
                notes=f"Dispatched from {location} on delivery {delivery.id}",
                created_by=dispatched_by,
            )
            self._notify_remaining(draws)

        logger.info(f"Delivery {delivery.id}: dispatched {quantity} of {item_name} from {location} "
                    f"across {len(draws)} lots to vendor {vendor.id}")
        return DispatchResult(
            location=location,
            dispatched=quantity,
            draws=tuple(draws),
            dispatch_records=records,
            vendor_lot=vendor_lot,
        )

    def consume_from_farmer(self, delivery, delivered_by=None) -> ConsumptionResult:
        """
        Drain the farmer's own lots for a delivery, oldest first.

        Farmer-side bookkeeping is best-effort: a shortfall is reported in the
        result, not raised.
        """
        _require_quantity(delivery.quantity)
        farmer = delivery.farmer
        if farmer is None:
            raise ValidationError(f"Delivery {delivery.id} has no farmer")

        item_name = delivery.goods_description
        locations = {lot.location for lot in self.ledger.owner_lots(farmer.id, item_name)}

        with workflow_transaction(*locations, registry=self.registry):
            # re-read under the lock, and only from the locations it covers
            lots = [lot for lot in self.ledger.owner_lots(farmer.id, item_name, refresh=True)
                    if lot.location in locations]
            who = delivered_by.username if delivered_by is not None else 'system'
            note = f"{datetime.utcnow():%Y-%m-%d %H:%M} picked up for delivery {delivery.id} by {who}"
            draws = self.ledger.consume_fifo(lots, delivery.quantity, note)

            taken_by_location = {}
            for draw in draws:
                taken_by_location[draw.location] = taken_by_location.get(draw.location, 0) + draw.taken
            for location, taken in sorted(taken_by_location.items()):
                if self.registry.get(location) is not None:
                    self.capacity_ledger.remove(location, taken)

            self._notify_remaining(draws)

        consumed = sum(draw.taken for draw in draws)
        warning = None
        if consumed < delivery.quantity:
            warning = (f"Farmer {farmer.id} had only {consumed} of {delivery.quantity} {item_name}; "
                       f"{delivery.quantity - consumed} not deducted")
            logger.warning(f"Delivery {delivery.id}: {warning}")
        else:
            logger.info(f"Delivery {delivery.id}: consumed {consumed} of {item_name} from farmer {farmer.id}")

        return ConsumptionResult(
            requested=delivery.quantity,
            consumed=consumed,
            draws=tuple(draws),
            warning=warning,
        )

    def stock_from_farmer(self, farmer, item_name: str, quantity: int, unit: str, location: str) -> InventoryLot:
        """Farmer puts goods into a warehouse directly; rejected if they do not fit"""
        if farmer is None or farmer.role != ROLE_FARMER:
            raise AuthorizationError("Only farmers can stock farmer inventory")
        _require_quantity(quantity)
        if not item_name:
            raise ValidationError("Item name is required")
        if not location:
            raise ValidationError("Warehouse location is required")

        with workflow_transaction(location, registry=self.registry):
            self.tracker.check_capacity(location, quantity)
            lot = self.ledger.create_lot(
                farmer,
                item_name,
                quantity,
                location,
                unit=unit,
                added_by_role=ROLE_FARMER,
                created_by=farmer,
            )
            self.capacity_ledger.add(location, quantity)

        return lot

    # ------------------------------------------------------------------
    # Manual manager changes
    # ------------------------------------------------------------------

    def authorize_manager(self, manager, location: str):
        """Managers may touch a warehouse they are linked to or based at"""
        if manager is None or manager.role != ROLE_WAREHOUSE_MANAGER:
            raise AuthorizationError("Only warehouse managers can change warehouse inventory")
        warehouse = self.registry.require(location)
        if warehouse.manager_id == manager.id or manager.location == location:
            return warehouse
        raise AuthorizationError(f"User {manager.id} does not manage the warehouse at {location}")

    def manual_add(self, manager, location: str, item_name: str, quantity: int, reason: str,
                   unit: str = 'kg', category: str | None = None) -> InventoryLot:
        _require_quantity(quantity)
        if not item_name:
            raise ValidationError("Item name is required")
        if not reason:
            raise ValidationError("A reason is required for manual changes")

        with workflow_transaction(location, registry=self.registry):
            self.authorize_manager(manager, location)
            self.tracker.check_capacity(location, quantity)
            lot = self.ledger.create_lot(
                manager,
                item_name,
                quantity,
                location,
                unit=unit,
                category=category,
                added_by_role=ROLE_WAREHOUSE_MANAGER,
                notes=self._manual_note(manager, f"added {quantity}", reason),
                created_by=manager,
            )
            self.capacity_ledger.add(location, quantity)
            notify_if_low_stock(lot)

        return lot

    def manual_remove(self, lot_id: int, manager, reason: str, quantity: int | None = None) -> ManualChangeResult:
        """
        Remove a lot, or part of it. Asking for at least the lot's quantity (or
        for no particular quantity) deletes the lot.
        """
        if not reason:
            raise ValidationError("A reason is required for manual changes")
        if quantity is not None:
            _require_quantity(quantity, "Quantity to remove")

        lot = self.ledger.get_lot(lot_id)
        location = lot.location
        item_name = lot.item_name

        with workflow_transaction(location, registry=self.registry):
            self.authorize_manager(manager, location)
            lot = self._lock_lot(lot_id)
            original = lot.quantity

            if quantity is None or quantity >= original:
                action, new_quantity = ACTION_ITEM_REMOVED, 0
                logger.info(f"Lot {lot.id} removed by {manager.username}: {reason}")
                db.session.delete(lot)
            else:
                action, new_quantity = ACTION_QUANTITY_REDUCED, original - quantity
                lot.quantity = new_quantity
                lot.append_note(self._manual_note(manager, f"removed {quantity}", reason))

            db.session.flush()
            if original - new_quantity:
                self.capacity_ledger.remove(location, original - new_quantity)
            if action == ACTION_QUANTITY_REDUCED:
                notify_if_low_stock(lot)

        return ManualChangeResult(
            action=action,
            lot_id=lot_id,
            item_name=item_name,
            location=location,
            original_quantity=original,
            new_quantity=new_quantity,
        )

    def manual_adjust(self, lot_id: int, manager, change: int, reason: str) -> ManualChangeResult:
        if not isinstance(change, int) or isinstance(change, bool) or change == 0:
            raise ValidationError("Quantity change must be a non-zero integer")
        if not reason:
            raise ValidationError("A reason is required for manual changes")

        lot = self.ledger.get_lot(lot_id)
        location = lot.location
        item_name = lot.item_name

        with workflow_transaction(location, registry=self.registry):
            self.authorize_manager(manager, location)
            lot = self._lock_lot(lot_id)
            original = lot.quantity
            new_quantity = original + change
            if new_quantity < 0:
                raise ValidationError(f"Adjustment of {change} would leave lot {lot.id} at {new_quantity}")
            if change > 0:
                self.tracker.check_capacity(location, change)

            if new_quantity == 0:
                action = ACTION_ITEM_REMOVED
                logger.info(f"Lot {lot.id} adjusted to zero by {manager.username}: {reason}")
                db.session.delete(lot)
            else:
                action = ACTION_QUANTITY_ADJUSTED
                lot.quantity = new_quantity
                lot.append_note(self._manual_note(manager, f"adjusted {change:+d}", reason))

            db.session.flush()
            if change > 0:
                self.capacity_ledger.add(location, change)
            else:
                self.capacity_ledger.remove(location, -change)
            if action == ACTION_QUANTITY_ADJUSTED:
                notify_if_low_stock(lot)

        return ManualChangeResult(
            action=action,
            lot_id=lot_id,
            item_name=item_name,
            location=location,
            original_quantity=original,
            new_quantity=new_quantity,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_lot(self, lot_id: int) -> InventoryLot:
        """Reload a lot once its location is locked; reserved or sold lots belong to an order"""
        lot = self.ledger.get_lot(lot_id, refresh=True)
        if lot.status != LOT_AVAILABLE:
            raise ValidationError(f"Lot {lot_id} is {lot.status}; release or fulfil its order before changing it")
        return lot

    def _record_dispatch(self, draw: LotDraw, delivery, dispatched_by, recipient) -> OutgoingDispatch:
        record = OutgoingDispatch(
            lot_id=draw.lot_id,
            warehouse_location=draw.location,
            item_name=draw.item_name,
            quantity=draw.taken,
            unit=draw.unit,
            delivery_id=delivery.id,
            dispatched_by_id=dispatched_by.id if dispatched_by is not None else None,
            recipient_id=recipient.id if recipient is not None else None,
            dispatched_at=datetime.utcnow(),
            created_by_id=dispatched_by.id if dispatched_by is not None else None,
        )
        db.session.add(record)
        return record

    def _notify_remaining(self, draws):
        for draw in draws:
            if draw.deleted:
                continue
            lot = self.ledger.find_lot(draw.lot_id)
            if lot is not None:
                notify_if_low_stock(lot)

    @staticmethod
    def _manual_note(manager, what, reason):
        return f"{datetime.utcnow():%Y-%m-%d %H:%M} {manager.username} {what}: {reason}"
