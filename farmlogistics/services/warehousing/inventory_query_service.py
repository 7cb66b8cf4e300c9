"""
Inventory Query Service
Read-only views over inventory lots.
"""

from typing import Dict, List, Optional, Any
from sqlalchemy import func
from farmlogistics import db
from farmlogistics.data.warehousing.inventory_lot import InventoryLot, LOT_AVAILABLE


class InventoryQueryService:
    """
    Service for inventory lot queries.

    Provides read-only methods for:
    - Available stock at a warehouse with filters
    - Totals and item breakdowns per location
    """

    @staticmethod
    def get_available_inventory(
        location: str,
        item_name: Optional[str] = None,
        category: Optional[str] = None,
        min_quantity: Optional[int] = None,
    ) -> List[InventoryLot]:
        """
        Available lots at a warehouse, newest first.

        Args:
            location: Warehouse location
            item_name: Case-insensitive substring of the item name
            category: Exact category
            min_quantity: Only lots holding at least this much

        Returns:
            List of InventoryLot objects
        """
        query = InventoryLot.query.filter(
            InventoryLot.location == location,
            InventoryLot.status == LOT_AVAILABLE,
            InventoryLot.quantity > 0,
        )
        if item_name:
            query = query.filter(InventoryLot.item_name.ilike(f"%{item_name.strip()}%"))
        if category:
            query = query.filter(InventoryLot.category == category)
        if min_quantity:
            query = query.filter(InventoryLot.quantity >= min_quantity)

        return query.order_by(InventoryLot.created_at.desc(), InventoryLot.id.desc()).all()

    @staticmethod
    def get_inventory_by_location(location: str) -> List[InventoryLot]:
        """All lots at a location whatever their status"""
        return InventoryLot.query.filter_by(location=location).order_by(InventoryLot.id.asc()).all()

    @staticmethod
    def get_totals_per_location() -> List[Dict[str, Any]]:
        """Total quantity and lot count per location, largest first"""
        rows = (
            db.session.query(
                InventoryLot.location,
                func.sum(InventoryLot.quantity).label('total_quantity'),
                func.count(InventoryLot.id).label('item_count'),
            )
            .group_by(InventoryLot.location)
            .order_by(func.sum(InventoryLot.quantity).desc())
            .all()
        )
        return [
            {'location': row.location, 'total_quantity': int(row.total_quantity or 0), 'item_count': row.item_count}
            for row in rows
        ]

    @staticmethod
    def get_items_per_location() -> Dict[str, List[Dict[str, Any]]]:
        """Quantity per item name, grouped by location"""
        rows = (
            db.session.query(
                InventoryLot.location,
                InventoryLot.item_name,
                func.sum(InventoryLot.quantity).label('quantity'),
            )
            .group_by(InventoryLot.location, InventoryLot.item_name)
            .order_by(InventoryLot.location.asc(), InventoryLot.item_name.asc())
            .all()
        )
        breakdown: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            breakdown.setdefault(row.location, []).append(
                {'item_name': row.item_name, 'quantity': int(row.quantity or 0)}
            )
        return breakdown
