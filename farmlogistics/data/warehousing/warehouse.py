from farmlogistics import db
from farmlogistics.data.core.user_created_base import UserCreatedBase


class Warehouse(UserCreatedBase):
    """
    A storage site keyed by its location name.

    `current_capacity` is the cached running total maintained by the CapacityLedger;
    it is expected to match the sum of lot quantities at `location` but is never
    mutated directly by anything else.
    """
    __tablename__ = 'warehouses'

    location = db.Column(db.String(120), unique=True, nullable=False)
    capacity_limit = db.Column(db.Integer, nullable=False)
    current_capacity = db.Column(db.Integer, nullable=False, default=0)

    manager_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    __table_args__ = (
        db.CheckConstraint('capacity_limit > 0', name='ck_warehouse_capacity_limit_positive'),
        db.CheckConstraint('current_capacity >= 0', name='ck_warehouse_current_capacity_non_negative'),
    )

    # Relationships
    manager = db.relationship('User', foreign_keys=[manager_id])

    @property
    def coordinates(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def __repr__(self):
        return f'<Warehouse {self.location} {self.current_capacity}/{self.capacity_limit}>'
