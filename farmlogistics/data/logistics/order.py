from farmlogistics import db
from farmlogistics.data.core.user_created_base import UserCreatedBase
from datetime import datetime


class Order(UserCreatedBase):
    """
    A market vendor's request for goods held in a warehouse.

    `status` follows OrderStateMachine; `reservations` is the list of lots
    held for this order between creation and fulfillment.
    """
    __tablename__ = 'orders'

    vendor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    item_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default='kg')
    warehouse_location = db.Column(db.String(120), nullable=False, index=True)
    vendor_location = db.Column(db.String(200), nullable=True)

    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    priority = db.Column(db.String(20), nullable=False, default='normal')

    # Pricing
    requested_price = db.Column(db.Float, nullable=True)
    agreed_price = db.Column(db.Float, nullable=True)
    total_cost = db.Column(db.Float, nullable=True)

    # Workflow
    approved_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    fulfilled_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    fulfilled_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    cancellation_reason = db.Column(db.Text, nullable=True)
    warehouse_notes = db.Column(db.Text, nullable=True)

    # Relationships
    vendor = db.relationship('User', foreign_keys=[vendor_id])
    approved_by = db.relationship('User', foreign_keys=[approved_by_id])
    fulfilled_by = db.relationship('User', foreign_keys=[fulfilled_by_id])
    reservations = db.relationship(
        'OrderReservation',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderReservation.id',
    )
    delivery = db.relationship('Delivery', back_populates='order', uselist=False)

    @property
    def reserved_quantity(self):
        return sum(r.reserved_quantity for r in self.reservations)

    def __repr__(self):
        return f'<Order {self.id} {self.item_name} x{self.quantity} @{self.warehouse_location} [{self.status}]>'


class OrderReservation(db.Model):
    """One entry of an order's reserved inventory: which lot, how much, when"""
    __tablename__ = 'order_reservations'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    lot_id = db.Column(db.Integer, db.ForeignKey('inventory_lots.id', ondelete='SET NULL'), nullable=True)
    reserved_quantity = db.Column(db.Integer, nullable=False)
    reserved_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    order = db.relationship('Order', back_populates='reservations')
    lot = db.relationship('InventoryLot', foreign_keys=[lot_id])

    def to_dict(self):
        return {
            'lot_id': self.lot_id,
            'reserved_quantity': self.reserved_quantity,
            'reserved_at': self.reserved_at.isoformat() if self.reserved_at else None,
        }

    def __repr__(self):
        return f'<OrderReservation order:{self.order_id} lot:{self.lot_id} x{self.reserved_quantity}>'
