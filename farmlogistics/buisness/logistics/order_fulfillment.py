from __future__ import annotations

from datetime import datetime

from farmlogistics import db
from farmlogistics.data.core.user_info.user import ROLE_ADMIN, ROLE_WAREHOUSE_MANAGER, ROLE_MARKET_VENDOR
from farmlogistics.data.logistics.order import Order
from farmlogistics.data.logistics.delivery import Delivery, DELIVERY_PENDING
from farmlogistics.buisness.logistics.state_machine import (
    OrderStateMachine,
    DELIVERY_STATUS_TO_ORDER_STATUS,
    PRIORITY_TO_URGENCY,
    map_priority_to_urgency,
)
from farmlogistics.buisness.warehousing.errors import (
    ValidationError,
    NotFoundError,
    AuthorizationError,
    CapacityError,
    OrderTransitionError,
)
from farmlogistics.buisness.warehousing.capacity_guard import workflow_transaction
from farmlogistics.buisness.warehousing.capacity_ledger import CapacityLedger
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.reservation_manager import ReservationManager
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.buisness.warehousing.warehouse_selector import WarehouseSelector
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.logistics.order_fulfillment")

APPROVER_ROLES = (ROLE_ADMIN, ROLE_WAREHOUSE_MANAGER)


class OrderFulfillmentService:
    """
    Vendor order workflow: create (reserve), approve, reject (release),
    fulfill (commit + outbound delivery), cancel (release), and the order side
    of delivery status changes.
    """

    def __init__(
        self,
        registry: WarehouseRegistry | None = None,
        ledger: InventoryLedger | None = None,
        reservations: ReservationManager | None = None,
        capacity_ledger: CapacityLedger | None = None,
        selector: WarehouseSelector | None = None,
    ):
        self.registry = registry or WarehouseRegistry()
        self.ledger = ledger or InventoryLedger()
        self.reservations = reservations or ReservationManager(self.ledger)
        self.capacity_ledger = capacity_ledger or CapacityLedger(self.registry, self.ledger)
        self.selector = selector or WarehouseSelector(registry=self.registry)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_order(order_id: int) -> Order:
        order = db.session.get(Order, order_id) if order_id is not None else None
        if order is None:
            raise NotFoundError(f"Order {order_id} not found")
        return order

    @staticmethod
    def _require_role(user, roles, action):
        if user is None or user.role not in roles:
            raise AuthorizationError(f"Only {', '.join(roles)} users can {action}")

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def create_vendor_order(
        self,
        vendor,
        item_name: str,
        quantity: int,
        unit: str = 'kg',
        warehouse_location: str | None = None,
        vendor_location: str | None = None,
        requested_price: float | None = None,
        priority: str = 'normal',
        origin=None,
    ) -> Order:
        """
        Create a pending order and reserve stock for it, oldest lots first.

        Without a warehouse_location the selector picks one among the warehouses
        that hold enough available stock, scored from the vendor's coordinates.
        """
        self._require_role(vendor, (ROLE_MARKET_VENDOR,), "place vendor orders")
        if not item_name:
            raise ValidationError("Item name is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")
        if priority not in PRIORITY_TO_URGENCY:
            raise ValidationError(f"Unknown priority: {priority}")
        vendor_location = vendor_location or vendor.location
        if vendor_location and self.registry.get(vendor_location) is not None:
            raise ValidationError(f"Vendor location {vendor_location} is a warehouse; vendor holdings cannot live there")

        if warehouse_location:
            self.registry.require(warehouse_location)
        else:
            warehouse_location = self._choose_source_warehouse(vendor, item_name, quantity, origin)

        with workflow_transaction(warehouse_location, registry=self.registry):
            lots = self.ledger.available_lots(warehouse_location, item_name)
            available = self.ledger.total_quantity(lots)
            if available < quantity:
                raise CapacityError(
                    f"Insufficient inventory at {warehouse_location}. Available: {available} {unit}, "
                    f"Requested: {quantity} {unit}"
                )

            order = Order(
                vendor_id=vendor.id,
                item_name=item_name.strip(),
                quantity=quantity,
                unit=unit,
                warehouse_location=warehouse_location,
                vendor_location=vendor_location,
                status=OrderStateMachine.PENDING,
                priority=priority,
                requested_price=requested_price,
                created_by_id=vendor.id,
            )
            db.session.add(order)
            db.session.flush()

            uncovered = self.reservations.reserve(order, lots)
            if uncovered > 0:
                raise CapacityError(f"Could only reserve {quantity - uncovered} of {quantity} {unit} for order")

        logger.info(f"Order {order.id} created by vendor {vendor.id}: {quantity} {unit} of {item_name} from {warehouse_location}")
        return order

    def approve_order(self, order_id: int, approver, agreed_price: float | None = None,
                      warehouse_notes: str | None = None) -> Order:
        self._require_role(approver, APPROVER_ROLES, "approve orders")
        order = self.get_order(order_id)
        if order.status != OrderStateMachine.PENDING:
            raise OrderTransitionError(f"Order {order.id} is {order.status}, not pending")

        with workflow_transaction(order.warehouse_location, registry=self.registry):
            order.status = OrderStateMachine.APPROVED
            order.approved_by_id = approver.id
            order.approved_at = datetime.utcnow()
            order.updated_by_id = approver.id
            order.agreed_price = agreed_price if agreed_price is not None else order.requested_price
            if order.agreed_price is not None:
                order.total_cost = order.agreed_price * order.quantity
            if warehouse_notes:
                order.warehouse_notes = warehouse_notes

        logger.info(f"Order {order.id} approved by user {approver.id} (total cost {order.total_cost})")
        return order

    def reject_order(self, order_id: int, rejecter, reason: str) -> Order:
        self._require_role(rejecter, APPROVER_ROLES, "reject orders")
        if not reason:
            raise ValidationError("A rejection reason is required")
        order = self.get_order(order_id)
        if order.status != OrderStateMachine.PENDING:
            raise OrderTransitionError(f"Order {order.id} is {order.status}, not pending")

        with workflow_transaction(order.warehouse_location, registry=self.registry):
            self.reservations.release(order)
            order.status = OrderStateMachine.REJECTED
            order.rejection_reason = reason
            order.updated_by_id = rejecter.id

        logger.info(f"Order {order.id} rejected by user {rejecter.id}: {reason}")
        return order

    def fulfill_order(self, order_id: int, fulfiller, notes: str | None = None) -> Delivery:
        """
        Deduct the reserved stock and create the warehouse -> vendor delivery.

        Returns:
            Delivery: The new pending delivery linked to the order
        """
        self._require_role(fulfiller, APPROVER_ROLES, "fulfill orders")
        order = self.get_order(order_id)
        if order.status != OrderStateMachine.APPROVED:
            raise OrderTransitionError(f"Order {order.id} is {order.status}, not approved")

        with workflow_transaction(order.warehouse_location, registry=self.registry):
            result = self.reservations.commit(order)
            if result.committed < order.quantity:
                raise CapacityError(
                    f"Order {order.id} reserved {order.quantity} {order.unit} but only {result.committed} "
                    f"are still held (missing lots: {list(result.missing_lot_ids)})"
                )
            for location, committed in sorted(result.by_location.items()):
                if committed and self.registry.get(location) is not None:
                    self.capacity_ledger.remove(location, committed)

            warehouse = self.registry.get(order.warehouse_location)
            vendor = order.vendor
            delivery = Delivery(
                vendor_id=vendor.id,
                order_id=order.id,
                goods_description=order.item_name,
                quantity=order.quantity,
                unit=order.unit,
                pickup_location=order.warehouse_location,
                pickup_latitude=warehouse.latitude if warehouse is not None else None,
                pickup_longitude=warehouse.longitude if warehouse is not None else None,
                dropoff_location=order.vendor_location,
                dropoff_latitude=vendor.latitude,
                dropoff_longitude=vendor.longitude,
                status=DELIVERY_PENDING,
                urgency=map_priority_to_urgency(order.priority),
                notes=f"Order fulfillment for order {order.id}. {notes or ''}".strip(),
                created_by_id=fulfiller.id,
            )
            db.session.add(delivery)

            order.status = OrderStateMachine.FULFILLED
            order.fulfilled_by_id = fulfiller.id
            order.fulfilled_at = datetime.utcnow()
            order.updated_by_id = fulfiller.id
            db.session.flush()

        logger.info(f"Order {order.id} fulfilled by user {fulfiller.id}; delivery {delivery.id} created")
        return delivery

    def cancel_order(self, order_id: int, vendor, reason: str | None = None) -> Order:
        order = self.get_order(order_id)
        if vendor is None or order.vendor_id != vendor.id:
            raise AuthorizationError("Only the ordering vendor can cancel this order")
        if order.status not in OrderStateMachine.VENDOR_CANCELLABLE:
            raise OrderTransitionError(f"Order {order.id} is {order.status} and can no longer be cancelled")

        with workflow_transaction(order.warehouse_location, registry=self.registry):
            self.reservations.release(order)
            order.status = OrderStateMachine.CANCELLED
            order.cancellation_reason = reason or 'Cancelled by vendor'
            order.updated_by_id = vendor.id

        logger.info(f"Order {order.id} cancelled by vendor {vendor.id}")
        return order

    def update_order_from_delivery_status(self, order_id: int, delivery_status: str) -> Order:
        """
        Follow the paired delivery: assigned/in_transit -> in_delivery,
        delivered -> delivered (crediting the vendor's holdings),
        cancelled -> cancelled (releasing anything still reserved).
        """
        order = self.get_order(order_id)
        new_status = DELIVERY_STATUS_TO_ORDER_STATUS.get(delivery_status)
        if new_status is None or new_status == order.status:
            return order

        OrderStateMachine.validate_transition(order.status, new_status)

        with workflow_transaction(order.warehouse_location, registry=self.registry):
            if new_status == OrderStateMachine.CANCELLED:
                self.reservations.release(order)
            elif new_status == OrderStateMachine.DELIVERED:
                order.delivered_at = datetime.utcnow()
                self._credit_vendor_holdings(order)
            order.status = new_status

        logger.info(f"Order {order.id} moved to {new_status} after delivery status {delivery_status}")
        return order

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _choose_source_warehouse(self, vendor, item_name, quantity, origin) -> str:
        registered = [w.location for w in self.registry.all_with_capacity()]
        stocked = self.ledger.stocked_locations(item_name, quantity, locations=registered)
        if not stocked:
            raise CapacityError(f"No warehouse holds {quantity} available units of {item_name}")

        best = self.selector.find_optimal_warehouse(
            origin or vendor.coordinates,
            quantity,
            locations=stocked,
            min_free_space=0,
        )
        if best is None:
            raise CapacityError(f"No warehouse holds {quantity} available units of {item_name}")
        return best.location

    def _credit_vendor_holdings(self, order):
        vendor = order.vendor
        location = order.vendor_location or vendor.location
        if order.delivery is not None and not location:
            location = order.delivery.dropoff_location
        if not location:
            logger.warning(f"Order {order.id}: vendor {vendor.id} has no location; holdings not credited")
            return None

        return self.ledger.create_lot(
            vendor,
            order.item_name,
            order.quantity,
            location,
            unit=order.unit,
            added_by_role=ROLE_MARKET_VENDOR,
            source_delivery=order.delivery,
            notes=f"Delivered on order {order.id}",
        )
