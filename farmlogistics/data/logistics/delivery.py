from farmlogistics import db
from farmlogistics.data.core.user_created_base import UserCreatedBase
from datetime import datetime

DELIVERY_PENDING = 'pending'
DELIVERY_ASSIGNED = 'assigned'
DELIVERY_IN_TRANSIT = 'in_transit'
DELIVERY_DELIVERED = 'delivered'
DELIVERY_CANCELLED = 'cancelled'

DELIVERY_STATUSES = (
    DELIVERY_PENDING,
    DELIVERY_ASSIGNED,
    DELIVERY_IN_TRANSIT,
    DELIVERY_DELIVERED,
    DELIVERY_CANCELLED,
)


class Delivery(UserCreatedBase):
    """
    A movement of goods between two places.

    Deliveries are created and transitioned elsewhere; the warehousing code only
    reads and writes the quantity, goods, location and warehouse-receipt fields.
    """
    __tablename__ = 'deliveries'

    farmer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    transporter_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=True, unique=True)

    goods_description = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default='kg')

    pickup_location = db.Column(db.String(200), nullable=True)
    pickup_latitude = db.Column(db.Float, nullable=True)
    pickup_longitude = db.Column(db.Float, nullable=True)
    dropoff_location = db.Column(db.String(200), nullable=True)
    dropoff_latitude = db.Column(db.Float, nullable=True)
    dropoff_longitude = db.Column(db.Float, nullable=True)

    status = db.Column(db.String(20), nullable=False, default=DELIVERY_PENDING, index=True)
    urgency = db.Column(db.String(20), nullable=False, default='normal')
    notes = db.Column(db.Text, nullable=True)

    # Warehouse receipt
    received_by_warehouse = db.Column(db.Boolean, nullable=False, default=False)
    warehouse_location = db.Column(db.String(120), nullable=True)
    warehouse_received_at = db.Column(db.DateTime, nullable=True)
    warehouse_received_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    delivered_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    farmer = db.relationship('User', foreign_keys=[farmer_id])
    transporter = db.relationship('User', foreign_keys=[transporter_id])
    vendor = db.relationship('User', foreign_keys=[vendor_id])
    warehouse_received_by = db.relationship('User', foreign_keys=[warehouse_received_by_id])
    order = db.relationship('Order', foreign_keys=[order_id], back_populates='delivery')

    @property
    def pickup_coordinates(self):
        if self.pickup_latitude is None or self.pickup_longitude is None:
            return None
        return (self.pickup_latitude, self.pickup_longitude)

    @property
    def dropoff_coordinates(self):
        if self.dropoff_latitude is None or self.dropoff_longitude is None:
            return None
        return (self.dropoff_latitude, self.dropoff_longitude)

    def mark_received(self, location, received_by=None):
        self.received_by_warehouse = True
        self.warehouse_location = location
        self.warehouse_received_at = datetime.utcnow()
        if received_by is not None:
            self.warehouse_received_by_id = received_by.id

    def __repr__(self):
        return f'<Delivery {self.id} {self.goods_description} x{self.quantity} [{self.status}]>'
