"""
Tests for moving stock on delivery events: warehouse receipt, dispatch to
vendors, farmer-side consumption and direct farmer stocking
"""

import pytest
from sqlalchemy import update

from farmlogistics.data.warehousing.inventory_lot import InventoryLot
from farmlogistics.data.warehousing.outgoing_dispatch import OutgoingDispatch
from farmlogistics.buisness.warehousing.delivery_inventory_bridge import DeliveryInventoryBridge
from farmlogistics.buisness.warehousing.inventory_ledger import InventoryLedger
from farmlogistics.buisness.warehousing.errors import (
    AuthorizationError,
    CapacityError,
    NotFoundError,
    ValidationError,
)
from farmlogistics.buisness.warehousing.signals import low_stock
from conftest import lot_quantities


def test_receive_into_warehouse(make_user, make_warehouse, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    farmer = make_user('farmer')
    warehouse = make_warehouse('Hub', 1000, manager=manager)
    delivery = make_delivery('Red Onion', 200, farmer=farmer)

    lot = DeliveryInventoryBridge().receive_into_warehouse(delivery, 'Hub', received_by=manager)

    assert lot.owner_id == manager.id
    assert lot.category == 'vegetables'
    assert lot.quantity == 200
    assert lot.source_delivery_id == delivery.id
    assert warehouse.current_capacity == 200
    assert delivery.received_by_warehouse
    assert delivery.warehouse_location == 'Hub'


def test_receive_twice_is_rejected(make_user, make_warehouse, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    make_warehouse('Hub', 1000, manager=manager)
    delivery = make_delivery('Wheat', 50)
    bridge = DeliveryInventoryBridge()
    bridge.receive_into_warehouse(delivery, 'Hub')

    with pytest.raises(ValidationError):
        bridge.receive_into_warehouse(delivery, 'Hub')
    assert InventoryLot.query.count() == 1


def test_receive_owner_falls_back_to_admin_then_transporter(make_user, make_warehouse, make_delivery):
    transporter = make_user('transporter')
    make_warehouse('Depot', 1000)
    bridge = DeliveryInventoryBridge()

    first = bridge.receive_into_warehouse(make_delivery('Rice', 10, transporter=transporter), 'Depot')
    assert first.owner_id == transporter.id

    admin = make_user('admin')
    second = bridge.receive_into_warehouse(make_delivery('Rice', 10, transporter=transporter), 'Depot')
    assert second.owner_id == admin.id


def test_receive_without_any_owner(make_warehouse, make_delivery):
    make_warehouse('Depot', 1000)
    delivery = make_delivery('Rice', 10)

    with pytest.raises(NotFoundError):
        DeliveryInventoryBridge().receive_into_warehouse(delivery, 'Depot')
    assert InventoryLot.query.count() == 0


def test_receive_into_unknown_warehouse(make_user, make_delivery):
    make_user('admin')
    with pytest.raises(NotFoundError):
        DeliveryInventoryBridge().receive_into_warehouse(make_delivery('Rice', 10), 'Nowhere')


def test_dispatch_drains_oldest_lots_first(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    vendor = make_user('market_vendor', location='Market Yard')
    warehouse = make_warehouse('Hub', 1000, manager=manager, current_capacity=70)
    older_id = make_lot(manager, 'Onion', 30, 'Hub', age_minutes=60).id
    make_lot(manager, 'Onion', 40, 'Hub')
    delivery = make_delivery('Onion', 50, vendor=vendor)

    result = DeliveryInventoryBridge().dispatch_from_warehouse(delivery, 'Hub', manager)

    assert result.dispatched == 50
    assert [(d.lot_id, d.taken) for d in result.draws][0] == (older_id, 30)
    assert lot_quantities('Hub') == [20]
    assert 'dispatched for delivery' in InventoryLot.query.filter_by(location='Hub').one().notes
    assert warehouse.current_capacity == 20
    assert OutgoingDispatch.query.count() == 2
    assert sum(r.quantity for r in OutgoingDispatch.query.all()) == 50
    assert result.vendor_lot.owner_id == vendor.id
    assert result.vendor_lot.location == 'Market Yard'
    assert result.vendor_lot.quantity == 50


def test_dispatch_with_insufficient_stock_changes_nothing(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    vendor = make_user('market_vendor', location='Market Yard')
    warehouse = make_warehouse('Hub', 1000, manager=manager, current_capacity=40)
    make_lot(manager, 'Onion', 40, 'Hub')
    delivery = make_delivery('Onion', 50, vendor=vendor)

    with pytest.raises(CapacityError):
        DeliveryInventoryBridge().dispatch_from_warehouse(delivery, 'Hub', manager)

    assert lot_quantities('Hub') == [40]
    assert warehouse.current_capacity == 40
    assert OutgoingDispatch.query.count() == 0
    assert InventoryLot.query.filter_by(owner_id=vendor.id).count() == 0


def test_dispatch_needs_a_vendor(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    make_warehouse('Hub', 1000, manager=manager)
    make_lot(manager, 'Onion', 40, 'Hub')

    with pytest.raises(ValidationError):
        DeliveryInventoryBridge().dispatch_from_warehouse(make_delivery('Onion', 10), 'Hub', manager)


def test_dispatch_remainder_fires_low_stock(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    vendor = make_user('market_vendor', location='Market Yard')
    make_warehouse('Hub', 1000, manager=manager, current_capacity=100)
    lot = make_lot(manager, 'Mango', 100, 'Hub')
    events = []

    with low_stock.connected_to(lambda sender, **kw: events.append(sender.id)):
        DeliveryInventoryBridge().dispatch_from_warehouse(make_delivery('Mango', 60, vendor=vendor), 'Hub', manager)

    assert events == [lot.id]


def test_consume_from_farmer_reports_shortfall(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    farmer = make_user('farmer')
    warehouse = make_warehouse('Hub', 1000, manager=manager, current_capacity=30)
    make_lot(farmer, 'Tomato', 30, 'Hub')
    delivery = make_delivery('Tomato', 50, farmer=farmer)

    result = DeliveryInventoryBridge().consume_from_farmer(delivery)

    assert result.consumed == 30
    assert result.shortfall == 20
    assert not result.complete
    assert result.warning is not None
    assert InventoryLot.query.filter_by(owner_id=farmer.id).count() == 0
    assert warehouse.current_capacity == 0


def test_consume_from_farmer_complete(make_user, make_lot, make_delivery):
    farmer = make_user('farmer')
    make_lot(farmer, 'Wheat', 100, 'Farm Gate', age_minutes=10)
    make_lot(farmer, 'Wheat', 100, 'Farm Gate')
    delivery = make_delivery('wheat', 150, farmer=farmer)

    result = DeliveryInventoryBridge().consume_from_farmer(delivery)

    assert result.complete
    assert result.warning is None
    assert lot_quantities('Farm Gate') == [50]


def test_stock_from_farmer(make_user, make_warehouse):
    manager = make_user('warehouse_manager', location='Hub')
    farmer = make_user('farmer')
    warehouse = make_warehouse('Hub', 100, manager=manager)
    bridge = DeliveryInventoryBridge()

    lot = bridge.stock_from_farmer(farmer, 'Potato', 80, 'kg', 'Hub')
    assert lot.owner_id == farmer.id
    assert lot.added_by_role == 'farmer'
    assert warehouse.current_capacity == 80

    with pytest.raises(CapacityError):
        bridge.stock_from_farmer(farmer, 'Potato', 30, 'kg', 'Hub')
    assert lot_quantities('Hub') == [80]
    assert warehouse.current_capacity == 80


def test_stock_from_farmer_requires_farmer(make_user, make_warehouse):
    manager = make_user('warehouse_manager', location='Hub')
    make_warehouse('Hub', 100, manager=manager)

    with pytest.raises(AuthorizationError):
        DeliveryInventoryBridge().stock_from_farmer(manager, 'Potato', 10, 'kg', 'Hub')


def test_dispatch_refuses_vendor_located_at_a_warehouse(make_user, make_warehouse, make_lot, make_delivery):
    manager = make_user('warehouse_manager', location='Hub')
    vendor = make_user('market_vendor', location='Annex')
    warehouse = make_warehouse('Hub', 1000, manager=manager, current_capacity=100)
    annex = make_warehouse('Annex', 1000, current_capacity=0)
    make_lot(manager, 'Onion', 100, 'Hub')

    with pytest.raises(ValidationError):
        DeliveryInventoryBridge().dispatch_from_warehouse(make_delivery('Onion', 50, vendor=vendor), 'Hub', manager)

    assert lot_quantities('Hub') == [100]
    assert lot_quantities('Annex') == []
    assert (warehouse.current_capacity, annex.current_capacity) == (100, 0)


def test_consume_from_farmer_rereads_lots_once_locked(db, make_user, make_warehouse, make_lot, make_delivery,
                                                      monkeypatch):
    manager = make_user('warehouse_manager', location='Hub')
    farmer = make_user('farmer')
    warehouse = make_warehouse('Hub', 1000, manager=manager, current_capacity=30)
    lot = make_lot(farmer, 'Tomato', 30, 'Hub')
    lot_id = lot.id
    bridge = DeliveryInventoryBridge()
    first_read = bridge.ledger.owner_lots

    def read_then_sell_elsewhere(owner_id, item_name, refresh=False):
        lots = first_read(owner_id, item_name, refresh=refresh)
        if not refresh:
            # another worker takes 20 between the unlocked read and the lock
            db.session.execute(
                update(InventoryLot).where(InventoryLot.id == lot_id).values(quantity=10),
                execution_options={'synchronize_session': False},
            )
        return lots

    monkeypatch.setattr(bridge.ledger, 'owner_lots', read_then_sell_elsewhere)
    result = bridge.consume_from_farmer(make_delivery('Tomato', 50, farmer=farmer))

    assert result.consumed == 10
    assert result.shortfall == 40
    assert InventoryLot.query.filter_by(owner_id=farmer.id).count() == 0
    assert warehouse.current_capacity == 20


@pytest.mark.parametrize("quantity", [0, -1, True, 2.5])
def test_lots_need_a_positive_integer_quantity(make_user, quantity):
    farmer = make_user('farmer')

    with pytest.raises(ValidationError):
        InventoryLedger().create_lot(farmer, 'Onion', quantity, 'Farm Gate')

    assert InventoryLot.query.count() == 0
