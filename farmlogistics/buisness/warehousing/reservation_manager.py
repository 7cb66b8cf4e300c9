from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from farmlogistics import db
from farmlogistics.data.logistics.order import OrderReservation
from farmlogistics.data.warehousing.inventory_lot import LOT_AVAILABLE, LOT_RESERVED, LOT_SOLD
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.signals import notify_if_low_stock
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.reservations")


@dataclass(frozen=True)
class CommitResult:
    committed: int
    by_location: dict
    sold_lot_ids: tuple
    missing_lot_ids: tuple


class ReservationManager:
    """
    Holds lots for vendor orders.

    Reservation granularity is the whole lot: a lot that is only partly needed is
    still marked reserved in full, and its remainder only becomes available again
    when the order is committed or released.
    """

    def __init__(self, ledger: InventoryLedger | None = None):
        self.ledger = ledger or InventoryLedger()

    def reserve(self, order, candidate_lots=None) -> int:
        """
        Reserve lots oldest-first for the order.

        Args:
            order: Order to reserve for
            candidate_lots: Lots sorted oldest-first (defaults to the available
                lots of the order's item at its warehouse)

        Returns:
            int: Quantity still uncovered (0 when fully reserved)
        """
        if candidate_lots is None:
            candidate_lots = self.ledger.available_lots(order.warehouse_location, order.item_name)

        outstanding = order.quantity
        now = datetime.utcnow()

        for lot in candidate_lots:
            if outstanding <= 0:
                break
            if lot.status != LOT_AVAILABLE or lot.quantity <= 0:
                continue

            needed = min(outstanding, lot.quantity)
            lot.status = LOT_RESERVED
            order.reservations.append(
                OrderReservation(lot_id=lot.id, reserved_quantity=needed, reserved_at=now)
            )
            outstanding -= needed
            logger.debug(f"Order {order.id}: reserved lot {lot.id} ({needed} of {lot.quantity} needed)")

        db.session.flush()

        if outstanding > 0:
            logger.warning(f"Order {order.id}: {outstanding} of {order.quantity} units could not be reserved")
        else:
            logger.info(f"Order {order.id}: reserved {order.quantity} units across {len(order.reservations)} lots")
        return outstanding

    def commit(self, order) -> CommitResult:
        """
        Deduct reserved quantities from their lots. Emptied lots are kept as sold
        with quantity 0; lots with a remainder go back to available.
        """
        committed = 0
        by_location = {}
        sold = []
        missing = []

        for reservation in order.reservations:
            lot = self.ledger.find_lot(reservation.lot_id, refresh=True)
            if lot is None:
                logger.warning(f"Order {order.id}: reserved lot {reservation.lot_id} no longer exists")
                missing.append(reservation.lot_id)
                continue

            deducted = min(reservation.reserved_quantity, lot.quantity)
            remaining = lot.quantity - reservation.reserved_quantity
            if remaining <= 0:
                lot.quantity = 0
                lot.status = LOT_SOLD
                sold.append(lot.id)
            else:
                lot.quantity = remaining
                lot.status = LOT_AVAILABLE
                notify_if_low_stock(lot)

            committed += deducted
            by_location[lot.location] = by_location.get(lot.location, 0) + deducted

        db.session.flush()
        logger.info(f"Order {order.id}: committed {committed} units from {len(order.reservations)} reservations")
        return CommitResult(
            committed=committed,
            by_location=by_location,
            sold_lot_ids=tuple(sold),
            missing_lot_ids=tuple(missing),
        )

    def release(self, order) -> int:
        """Return reserved lots to available without touching quantities"""
        released = 0
        for reservation in order.reservations:
            lot = self.ledger.find_lot(reservation.lot_id, refresh=True)
            if lot is not None and lot.status == LOT_RESERVED:
                lot.status = LOT_AVAILABLE
                released += 1

        db.session.flush()
        logger.info(f"Order {order.id}: released {released} reserved lots")
        return released
