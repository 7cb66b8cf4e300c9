from farmlogistics import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime
from farmlogistics.buisness.core.data_insertion_mixin import DataInsertionMixin

ROLE_FARMER = 'farmer'
ROLE_TRANSPORTER = 'transporter'
ROLE_WAREHOUSE_MANAGER = 'warehouse_manager'
ROLE_MARKET_VENDOR = 'market_vendor'
ROLE_ADMIN = 'admin'
ROLE_SYSTEM = 'system'

ROLES = (
    ROLE_FARMER,
    ROLE_TRANSPORTER,
    ROLE_WAREHOUSE_MANAGER,
    ROLE_MARKET_VENDOR,
    ROLE_ADMIN,
    ROLE_SYSTEM,
)


class User(UserMixin, DataInsertionMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120))
    role = db.Column(db.String(32), nullable=False, default=ROLE_FARMER, index=True)

    # Home location: a warehouse key for managers, a market for vendors, a farm for farmers
    location = db.Column(db.String(120), index=True)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role in (ROLE_ADMIN, ROLE_SYSTEM)

    @property
    def coordinates(self):
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    def has_role(self, *roles):
        return self.role in roles

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
