from farmlogistics import db
from farmlogistics.data.core.user_created_base import UserCreatedBase
from datetime import datetime


class OutgoingDispatch(UserCreatedBase):
    """
    Record of stock leaving a warehouse, one row per lot touched by a dispatch.
    """
    __tablename__ = 'outgoing_dispatches'

    # Not a foreign key: fully consumed lots are deleted but their dispatch history stays
    lot_id = db.Column(db.Integer, nullable=True)
    warehouse_location = db.Column(db.String(120), nullable=False, index=True)
    item_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(20), nullable=False, default='kg')

    delivery_id = db.Column(db.Integer, db.ForeignKey('deliveries.id'), nullable=True)
    dispatched_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    dispatched_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    notes = db.Column(db.Text, nullable=True)

    # Relationships
    delivery = db.relationship('Delivery', foreign_keys=[delivery_id])
    dispatched_by = db.relationship('User', foreign_keys=[dispatched_by_id])
    recipient = db.relationship('User', foreign_keys=[recipient_id])

    def __repr__(self):
        return f'<OutgoingDispatch lot:{self.lot_id} {self.item_name} x{self.quantity} from {self.warehouse_location}>'
