from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func

from farmlogistics import db
from farmlogistics.data.warehousing.inventory_lot import InventoryLot, LOT_AVAILABLE
from farmlogistics.buisness.warehousing.errors import ValidationError, NotFoundError
from farmlogistics.buisness.warehousing.item_categories import categorize_item
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.inventory_ledger")

# If True, delete lots when a consumption drives their quantity to zero
DELETE_EMPTY_LOTS = True


@dataclass(frozen=True)
class LotDraw:
    """Quantity taken from one lot during a FIFO consumption"""
    lot_id: int
    item_name: str
    location: str
    owner_id: int
    unit: str
    taken: int
    remaining: int

    @property
    def deleted(self) -> bool:
        return self.remaining == 0 and DELETE_EMPTY_LOTS


def fifo_order(query):
    return query.order_by(InventoryLot.created_at.asc(), InventoryLot.id.asc())


class InventoryLedger:
    """
    The set of inventory lots and the FIFO consumption primitives over them.
    """

    def find_lot(self, lot_id: int | None, refresh: bool = False) -> InventoryLot | None:
        if lot_id is None:
            return None
        return db.session.get(InventoryLot, lot_id, populate_existing=refresh)

    def get_lot(self, lot_id: int | None, refresh: bool = False) -> InventoryLot:
        """`refresh` reloads the row instead of trusting the identity map; use it under a lock"""
        lot = self.find_lot(lot_id, refresh=refresh)
        if lot is None:
            raise NotFoundError(f"Inventory lot {lot_id} not found")
        return lot

    def lots_at(self, location: str) -> list[InventoryLot]:
        return fifo_order(InventoryLot.query.filter_by(location=location)).all()

    def stock_at(self, location: str) -> int:
        """Sum of lot quantities at a location, whatever their status"""
        total = (
            db.session.query(func.coalesce(func.sum(InventoryLot.quantity), 0))
            .filter(InventoryLot.location == location)
            .scalar()
        )
        return int(total or 0)

    def available_lots(self, location: str, item_name: str) -> list[InventoryLot]:
        """Available lots of an item at a location, oldest first (item match is case-insensitive)"""
        return fifo_order(
            InventoryLot.query.filter(
                InventoryLot.location == location,
                func.lower(InventoryLot.item_name) == item_name.strip().lower(),
                InventoryLot.status == LOT_AVAILABLE,
                InventoryLot.quantity > 0,
            )
        ).all()

    def stocked_locations(self, item_name: str, quantity: int, locations=None) -> list[str]:
        """Locations whose available lots of an item add up to at least `quantity`"""
        query = (
            db.session.query(InventoryLot.location, func.sum(InventoryLot.quantity))
            .filter(
                func.lower(InventoryLot.item_name) == item_name.strip().lower(),
                InventoryLot.status == LOT_AVAILABLE,
            )
        )
        if locations is not None:
            query = query.filter(InventoryLot.location.in_(list(locations)))
        rows = query.group_by(InventoryLot.location).all()
        return sorted(location for location, total in rows if (total or 0) >= quantity)

    def owner_lots(self, owner_id: int, item_name: str, refresh: bool = False) -> list[InventoryLot]:
        """Available lots of an item owned by one user, oldest first"""
        query = fifo_order(
            InventoryLot.query.filter(
                InventoryLot.owner_id == owner_id,
                func.lower(InventoryLot.item_name) == item_name.strip().lower(),
                InventoryLot.status == LOT_AVAILABLE,
                InventoryLot.quantity > 0,
            )
        )
        if refresh:
            query = query.populate_existing()
        return query.all()

    def create_lot(
        self,
        owner,
        item_name: str,
        quantity: int,
        location: str,
        *,
        unit: str = 'kg',
        added_by_role: str | None = None,
        category: str | None = None,
        source_delivery=None,
        notes: str | None = None,
        created_by=None,
    ) -> InventoryLot:
        if owner is None:
            raise ValidationError("Inventory owner is required")
        if not item_name:
            raise ValidationError("Item name is required")
        if not location:
            raise ValidationError("Location is required")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError("Quantity must be a positive integer")

        lot = InventoryLot(
            owner_id=owner.id,
            item_name=item_name.strip(),
            quantity=quantity,
            unit=unit or 'kg',
            location=location,
            status=LOT_AVAILABLE,
            category=category or categorize_item(item_name),
            added_by_role=added_by_role,
            source_delivery_id=source_delivery.id if source_delivery is not None else None,
            notes=notes,
            created_by_id=created_by.id if created_by is not None else None,
        )
        db.session.add(lot)
        db.session.flush()
        logger.info(f"Created lot {lot.id}: {quantity} {lot.unit} of {lot.item_name} at {location} for owner {owner.id}")
        return lot

    def take_from_lot(self, lot: InventoryLot, quantity: int, note: str | None = None) -> LotDraw:
        """
        Remove up to `quantity` from a lot: delete it when it empties, otherwise
        decrement and append the note. Never drives the quantity below zero.
        """
        taken = min(quantity, lot.quantity)
        remaining = lot.quantity - taken
        draw = LotDraw(
            lot_id=lot.id,
            item_name=lot.item_name,
            location=lot.location,
            owner_id=lot.owner_id,
            unit=lot.unit,
            taken=taken,
            remaining=remaining,
        )

        if remaining == 0 and DELETE_EMPTY_LOTS:
            db.session.delete(lot)
            logger.debug(f"Lot {draw.lot_id} fully consumed and deleted")
        else:
            lot.quantity = remaining
            lot.append_note(note)
            logger.debug(f"Lot {draw.lot_id} reduced by {taken} to {remaining}")

        return draw

    def consume_fifo(self, lots, quantity: int, note: str | None = None) -> list[LotDraw]:
        """Drain lots in the given order until `quantity` is covered or the lots run out"""
        draws = []
        outstanding = quantity
        for lot in lots:
            if outstanding <= 0:
                break
            if lot.quantity <= 0:
                continue
            draw = self.take_from_lot(lot, outstanding, note)
            outstanding -= draw.taken
            draws.append(draw)
        db.session.flush()
        return draws

    @staticmethod
    def total_quantity(lots) -> int:
        return sum(lot.quantity for lot in lots)
