"""
Tests for the database build: critical users and demo data
"""

from farmlogistics.build import build_database, verify_critical_data
from farmlogistics.data.core.user_info.user import User
from farmlogistics.data.warehousing.inventory_lot import InventoryLot
from farmlogistics.data.warehousing.warehouse import Warehouse
from farmlogistics.buisness.warehousing.capacity_ledger import CapacityLedger


def test_build_only_inserts_critical_users(app):
    build_database(enable_debug_data=True, build_only=True, app=app)

    assert verify_critical_data()
    assert User.query.filter_by(username='admin').one().is_admin
    assert Warehouse.query.count() == 0


def test_build_with_demo_data(app):
    build_database(enable_debug_data=True, app=app)

    warehouses = {w.location: w for w in Warehouse.query.all()}
    assert set(warehouses) == {'Nashik Central', 'Pune Hub'}
    assert warehouses['Nashik Central'].manager.username == 'nashik_manager'
    assert InventoryLot.query.count() == 4

    ledger = CapacityLedger()
    for location in warehouses:
        assert ledger.reconcile(location).consistent, f"counter at {location} should match its lots"


def test_build_is_repeatable(app):
    build_database(enable_debug_data=True, app=app)
    build_database(enable_debug_data=True, app=app)

    assert User.query.filter_by(username='admin').count() == 1
    assert InventoryLot.query.count() == 4
