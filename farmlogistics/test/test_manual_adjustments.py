"""
Tests for manager-driven inventory changes: add, remove, adjust
"""

import pytest
from sqlalchemy import delete, update

from farmlogistics.data.warehousing.inventory_lot import InventoryLot, LOT_AVAILABLE, LOT_RESERVED
from farmlogistics.buisness.logistics.order_fulfillment import OrderFulfillmentService
from farmlogistics.buisness.warehousing.delivery_inventory_bridge import (
    DeliveryInventoryBridge,
    ACTION_ITEM_REMOVED,
    ACTION_QUANTITY_REDUCED,
    ACTION_QUANTITY_ADJUSTED,
)
from farmlogistics.buisness.warehousing.errors import (
    AuthorizationError,
    CapacityError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def hub(make_user, make_warehouse, make_lot):
    manager = make_user('warehouse_manager', username='hub_manager', location='Hub')
    warehouse = make_warehouse('Hub', 500, manager=manager, current_capacity=200)
    lot = make_lot(manager, 'Onion', 200, 'Hub')
    return manager, warehouse, lot


def test_manual_add(hub):
    manager, warehouse, _ = hub

    lot = DeliveryInventoryBridge().manual_add(manager, 'Hub', 'Alphonso Mango', 100, 'Found in cold store')

    assert lot.category == 'fruits'
    assert lot.added_by_role == 'warehouse_manager'
    assert 'Found in cold store' in lot.notes
    assert warehouse.current_capacity == 300


def test_manual_add_respects_capacity(hub):
    manager, warehouse, _ = hub

    with pytest.raises(CapacityError):
        DeliveryInventoryBridge().manual_add(manager, 'Hub', 'Rice', 301, 'Recount')

    assert InventoryLot.query.count() == 1
    assert warehouse.current_capacity == 200


def test_partial_remove(hub):
    manager, warehouse, lot = hub

    result = DeliveryInventoryBridge().manual_remove(lot.id, manager, 'Spoilage', quantity=50)

    assert result.action == ACTION_QUANTITY_REDUCED
    assert (result.original_quantity, result.new_quantity, result.quantity_changed) == (200, 150, -50)
    assert lot.quantity == 150
    assert 'Spoilage' in lot.notes
    assert warehouse.current_capacity == 150


def test_remove_whole_lot(hub):
    manager, warehouse, lot = hub
    lot_id = lot.id

    result = DeliveryInventoryBridge().manual_remove(lot_id, manager, 'Damaged in flood', quantity=999)

    assert result.action == ACTION_ITEM_REMOVED
    assert result.item_name == 'Onion'
    assert result.new_quantity == 0
    assert InventoryLot.query.filter_by(id=lot_id).first() is None
    assert warehouse.current_capacity == 0


def test_remove_requires_reason(hub):
    manager, _, lot = hub
    with pytest.raises(ValidationError):
        DeliveryInventoryBridge().manual_remove(lot.id, manager, '')


def test_adjust_up_and_down(hub):
    manager, warehouse, lot = hub
    bridge = DeliveryInventoryBridge()

    up = bridge.manual_adjust(lot.id, manager, 40, 'Recount')
    down = bridge.manual_adjust(lot.id, manager, -90, 'Recount')

    assert up.action == down.action == ACTION_QUANTITY_ADJUSTED
    assert lot.quantity == 150
    assert warehouse.current_capacity == 150


def test_adjust_to_zero_deletes_lot(hub):
    manager, warehouse, lot = hub
    lot_id = lot.id

    result = DeliveryInventoryBridge().manual_adjust(lot_id, manager, -200, 'Sold at gate')

    assert result.action == ACTION_ITEM_REMOVED
    assert InventoryLot.query.filter_by(id=lot_id).first() is None
    assert warehouse.current_capacity == 0


def test_adjust_limits(hub):
    manager, warehouse, lot = hub
    bridge = DeliveryInventoryBridge()

    with pytest.raises(ValidationError):
        bridge.manual_adjust(lot.id, manager, -201, 'Recount')
    with pytest.raises(ValidationError):
        bridge.manual_adjust(lot.id, manager, 0, 'Recount')
    with pytest.raises(CapacityError):
        bridge.manual_adjust(lot.id, manager, 301, 'Recount')

    assert lot.quantity == 200
    assert warehouse.current_capacity == 200


def test_other_managers_are_refused(hub, make_user):
    _, _, lot = hub
    outsider = make_user('warehouse_manager', location='Elsewhere')
    farmer = make_user('farmer', location='Hub')
    bridge = DeliveryInventoryBridge()

    with pytest.raises(AuthorizationError):
        bridge.manual_remove(lot.id, outsider, 'Not mine')
    with pytest.raises(AuthorizationError):
        bridge.manual_adjust(lot.id, farmer, 10, 'Not a manager')

    assert lot.quantity == 200


def test_manager_based_at_location_is_allowed(hub, make_user):
    _, warehouse, lot = hub
    deputy = make_user('warehouse_manager', location='Hub')

    DeliveryInventoryBridge().manual_remove(lot.id, deputy, 'Spoilage', quantity=10)

    assert lot.quantity == 190
    assert warehouse.current_capacity == 190


def test_reserved_lot_cannot_be_changed(hub, make_user):
    manager, warehouse, lot = hub
    vendor = make_user('market_vendor', location='Market Yard')
    service = OrderFulfillmentService()
    order = service.create_vendor_order(vendor, 'Onion', 80, warehouse_location='Hub')
    service.approve_order(order.id, manager)
    bridge = DeliveryInventoryBridge()

    with pytest.raises(ValidationError):
        bridge.manual_remove(lot.id, manager, 'Spoilage')
    with pytest.raises(ValidationError):
        bridge.manual_adjust(lot.id, manager, -150, 'Recount')

    assert (lot.quantity, lot.status) == (200, LOT_RESERVED)
    assert warehouse.current_capacity == 200

    service.fulfill_order(order.id, manager)

    assert (lot.quantity, lot.status) == (120, LOT_AVAILABLE)
    assert warehouse.current_capacity == 120


def test_remove_rereads_the_lot_once_locked(hub, db):
    manager, warehouse, lot = hub
    assert lot.quantity == 200
    db.session.execute(
        update(InventoryLot).where(InventoryLot.id == lot.id).values(quantity=120),
        execution_options={'synchronize_session': False},
    )

    result = DeliveryInventoryBridge().manual_remove(lot.id, manager, 'Spoilage', quantity=50)

    assert (result.original_quantity, result.new_quantity) == (120, 70)
    assert lot.quantity == 70
    assert warehouse.current_capacity == 150


def test_adjust_of_a_lot_deleted_elsewhere_is_not_found(hub, db):
    manager, warehouse, lot = hub
    lot_id = lot.id
    assert lot.quantity == 200
    db.session.execute(
        delete(InventoryLot).where(InventoryLot.id == lot_id),
        execution_options={'synchronize_session': False},
    )

    with pytest.raises(NotFoundError):
        DeliveryInventoryBridge().manual_adjust(lot_id, manager, -10, 'Recount')

    assert warehouse.current_capacity == 200
