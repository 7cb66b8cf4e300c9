"""
Pytest configuration and fixtures
Every test gets a fresh application backed by an in-memory SQLite database.
"""
import os
from datetime import datetime, timedelta

import pytest

os.environ.setdefault('SECRET_KEY', 'test_secret_key_for_farm_logistics')
os.environ['DATABASE_URL'] = 'sqlite://'

from farmlogistics import create_app
from farmlogistics import db as _db
from farmlogistics.data.core.user_info.user import User
from farmlogistics.data.warehousing.warehouse import Warehouse
from farmlogistics.data.warehousing.inventory_lot import InventoryLot
from farmlogistics.data.logistics.delivery import Delivery
from farmlogistics.buisness.warehousing.item_categories import categorize_item


@pytest.fixture(scope='function')
def app():
    """Create Flask application with empty tables for one test"""
    app = create_app()
    app.config['TESTING'] = True

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def db(app):
    return _db


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make_user(role, username=None, location=None, coordinates=None):
        counter['n'] += 1
        username = username or f"{role}_{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@example.com",
            name=username.replace('_', ' ').title(),
            role=role,
            location=location,
        )
        user.set_password('password123')
        if coordinates is not None:
            user.latitude, user.longitude = coordinates
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_warehouse(db):
    def _make_warehouse(location, capacity_limit=1000, manager=None, coordinates=None, current_capacity=0):
        warehouse = Warehouse(
            location=location,
            capacity_limit=capacity_limit,
            current_capacity=current_capacity,
            manager_id=manager.id if manager is not None else None,
        )
        if coordinates is not None:
            warehouse.latitude, warehouse.longitude = coordinates
        db.session.add(warehouse)
        db.session.commit()
        return warehouse

    return _make_warehouse


@pytest.fixture
def make_lot(db):
    """Create a lot; age_minutes pushes created_at into the past for FIFO ordering"""
    def _make_lot(owner, item_name, quantity, location, status='available', age_minutes=0, unit='kg'):
        lot = InventoryLot(
            owner_id=owner.id,
            item_name=item_name,
            quantity=quantity,
            unit=unit,
            location=location,
            status=status,
            category=categorize_item(item_name),
            created_at=datetime.utcnow() - timedelta(minutes=age_minutes),
        )
        db.session.add(lot)
        db.session.commit()
        return lot

    return _make_lot


@pytest.fixture
def make_delivery(db):
    def _make_delivery(goods_description, quantity, farmer=None, transporter=None, vendor=None,
                       pickup=None, unit='kg', dropoff_location=None):
        delivery = Delivery(
            goods_description=goods_description,
            quantity=quantity,
            unit=unit,
            farmer_id=farmer.id if farmer is not None else None,
            transporter_id=transporter.id if transporter is not None else None,
            vendor_id=vendor.id if vendor is not None else None,
            dropoff_location=dropoff_location,
        )
        if pickup is not None:
            delivery.pickup_latitude, delivery.pickup_longitude = pickup
        db.session.add(delivery)
        db.session.commit()
        return delivery

    return _make_delivery


def lot_quantities(location):
    """Quantities of the lots at a location, oldest first"""
    return [
        lot.quantity
        for lot in InventoryLot.query.filter_by(location=location)
        .order_by(InventoryLot.created_at.asc(), InventoryLot.id.asc())
        .all()
    ]
