from farmlogistics import db
from farmlogistics.data.core.user_created_base import UserCreatedBase

LOT_AVAILABLE = 'available'
LOT_RESERVED = 'reserved'
LOT_SOLD = 'sold'

LOT_STATUSES = (LOT_AVAILABLE, LOT_RESERVED, LOT_SOLD)


class InventoryLot(UserCreatedBase):
    """
    One quantity-bearing inventory record owned by a farmer, warehouse manager or vendor.

    Conventions:
    - FIFO order is `created_at` ascending, ties broken by `id`.
    - Reservation only flips `status`; quantity changes happen on commit, dispatch or manual adjustment.
    """
    __tablename__ = 'inventory_lots'

    owner_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    item_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(20), nullable=False, default='kg')
    location = db.Column(db.String(120), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=LOT_AVAILABLE, index=True)
    category = db.Column(db.String(30), nullable=False, default='other')

    # Who put it here: farmer / warehouse_manager / market_vendor / system
    added_by_role = db.Column(db.String(32), nullable=True)
    source_delivery_id = db.Column(db.Integer, db.ForeignKey('deliveries.id'), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='ck_inventory_lot_quantity_non_negative'),
    )

    # Relationships
    owner = db.relationship('User', foreign_keys=[owner_id])
    source_delivery = db.relationship('Delivery', foreign_keys=[source_delivery_id])

    def append_note(self, note):
        """Append one line to the lot's audit notes"""
        if not note:
            return
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __repr__(self):
        return f'<InventoryLot {self.id} {self.item_name} {self.quantity}{self.unit} @{self.location} [{self.status}]>'
