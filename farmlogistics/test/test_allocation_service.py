"""
Tests for choosing a warehouse for an incoming delivery and booking it in
"""

import pytest

from farmlogistics.buisness.warehousing.allocation_service import AllocationService
from farmlogistics.buisness.warehousing.delivery_inventory_bridge import DeliveryInventoryBridge
from farmlogistics.buisness.warehousing.errors import CapacityError, ValidationError

PICKUP = (19.99, 73.79)


@pytest.fixture
def two_warehouses(make_user, make_warehouse):
    near_manager = make_user('warehouse_manager', location='Near', coordinates=PICKUP)
    far_manager = make_user('warehouse_manager', location='Far', coordinates=(18.52, 73.86))
    near = make_warehouse('Near', 1000, manager=near_manager, coordinates=PICKUP)
    far = make_warehouse('Far', 1000, manager=far_manager, coordinates=(18.52, 73.86))
    return near, far


def test_allocates_to_the_best_warehouse(two_warehouses, make_user, make_delivery):
    near, far = two_warehouses
    delivery = make_delivery('Onion', 200, farmer=make_user('farmer'), pickup=PICKUP)

    result = AllocationService().allocate_delivery(delivery)

    assert result.location == 'Near'
    assert result.attempts == 1
    assert result.lot.owner_id == near.manager_id
    assert near.current_capacity == 200
    assert delivery.warehouse_location == 'Near'


def test_skips_warehouses_without_room(two_warehouses, make_user, make_delivery):
    near, _ = two_warehouses
    farmer = make_user('farmer')
    DeliveryInventoryBridge().stock_from_farmer(farmer, 'Wheat', 900, 'kg', 'Near')
    delivery = make_delivery('Onion', 200, farmer=farmer, pickup=PICKUP)

    result = AllocationService().allocate_delivery(delivery)

    assert result.location == 'Far'


def test_no_room_anywhere(two_warehouses, make_delivery):
    delivery = make_delivery('Onion', 1500, pickup=PICKUP)

    with pytest.raises(CapacityError):
        AllocationService().allocate_delivery(delivery)
    assert not delivery.received_by_warehouse


def test_rechecks_room_before_receipt(two_warehouses, make_user, make_delivery, monkeypatch):
    near, far = two_warehouses
    farmer = make_user('farmer')
    delivery = make_delivery('Onion', 200, farmer=farmer, pickup=PICKUP)
    service = AllocationService()
    stale_ranking = service.selector.rank(PICKUP, 200)
    assert stale_ranking[0].location == 'Near'

    # Another allocation fills the winner after the ranking was taken
    DeliveryInventoryBridge().stock_from_farmer(farmer, 'Wheat', 900, 'kg', 'Near')
    monkeypatch.setattr(service.selector, 'rank', lambda *args, **kwargs: stale_ranking)

    result = service.allocate_delivery(delivery)

    assert result.location == 'Far'
    assert result.attempts == 2
    assert near.current_capacity == 900
    assert far.current_capacity == 200


def test_received_delivery_is_not_allocated_again(two_warehouses, make_delivery):
    delivery = make_delivery('Onion', 100, pickup=PICKUP)
    service = AllocationService()
    service.allocate_delivery(delivery)

    with pytest.raises(ValidationError):
        service.allocate_delivery(delivery)
