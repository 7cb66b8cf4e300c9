"""
Tests for warehouse ranking using in-memory registry and tracker doubles
"""

import pytest

from farmlogistics.buisness.warehousing.errors import ValidationError
from farmlogistics.buisness.warehousing.utilization_tracker import Utilization
from farmlogistics.buisness.warehousing.warehouse_selector import WarehouseSelector, utilization_points

KM_PER_DEGREE_LAT = 111.195
ORIGIN = (19.0, 73.0)


def north_of_origin(km):
    return (ORIGIN[0] + km / KM_PER_DEGREE_LAT, ORIGIN[1])


class FakeWarehouse:
    def __init__(self, location, capacity_limit, coordinates=None):
        self.location = location
        self.capacity_limit = capacity_limit
        self.coordinates = coordinates


class FakeRegistry:
    def __init__(self, warehouses):
        self.warehouses = warehouses

    def all_with_capacity(self):
        return [w for w in self.warehouses if w.capacity_limit > 0]


class FakeTracker:
    def __init__(self, registry, used):
        self.registry = registry
        self.used = used

    def utilization(self, location):
        for warehouse in self.registry.warehouses:
            if warehouse.location == location:
                stock = self.used.get(location, 0)
                limit = warehouse.capacity_limit
                return Utilization(
                    location=location,
                    current_stock=stock,
                    capacity_limit=limit,
                    utilization_rate=round(stock / limit * 100, 2),
                    free_space=max(0, limit - stock),
                )
        return None


def make_selector(warehouses, used=None):
    registry = FakeRegistry(warehouses)
    return WarehouseSelector(registry=registry, tracker=FakeTracker(registry, used or {}))


def test_warehouse_without_room_is_rejected():
    selector = make_selector(
        [FakeWarehouse("X", 1000), FakeWarehouse("Y", 1000)],
        used={"X": 400, "Y": 900},
    )

    ranked = selector.rank(None, 300)

    assert [c.location for c in ranked] == ["X"], "Y has only 100 free and must not be offered"
    assert selector.find_optimal_warehouse(None, 300).location == "X"


def test_closer_warehouse_wins_when_otherwise_equal():
    far = FakeWarehouse("Far", 1000, north_of_origin(50))
    near = FakeWarehouse("Near", 1000, north_of_origin(5))
    selector = make_selector([far, near])

    ranked = selector.rank(ORIGIN, 100)

    assert ranked[0].location == "Near"
    assert ranked[0].scores.proximity == pytest.approx(30.0, abs=0.1)
    assert ranked[1].scores.proximity == 0


def test_ties_go_to_the_earlier_registered_warehouse():
    selector = make_selector([FakeWarehouse("First", 1000), FakeWarehouse("Second", 1000)])

    ranked = selector.rank(None, 10)

    assert ranked[0].total == ranked[1].total
    assert [c.location for c in ranked] == ["First", "Second"]


def test_missing_coordinates_score_zero_proximity_but_stay_eligible():
    selector = make_selector([FakeWarehouse("NoCoords", 1000)])

    best = selector.find_optimal_warehouse(ORIGIN, 10)

    assert best is not None
    assert best.scores.proximity == 0
    assert best.scores.to_dict()['distance_km'] is None


def test_preferred_location_earns_bonus():
    selector = make_selector([FakeWarehouse("A", 1000), FakeWarehouse("B", 1000)])

    ranked = selector.rank(None, 10, preferred_location="B")

    assert ranked[0].location == "B"
    assert ranked[0].scores.preference == 10
    assert ranked[0].total - ranked[1].total == pytest.approx(10)


def test_score_breakdown():
    selector = make_selector([FakeWarehouse("A", 1000, ORIGIN)], used={"A": 400})

    scores = selector.rank(ORIGIN, 100)[0].scores

    assert scores.proximity == pytest.approx(40.0)
    assert scores.capacity == pytest.approx(18.0), "600 of 1000 free is 18 of 30 points"
    assert scores.utilization == 20
    assert scores.total == pytest.approx(78.0)


@pytest.mark.parametrize("rate, points", [
    (0, 10),
    (19.99, 10),
    (20, 20),
    (55, 20),
    (90, 20),
    (90.01, 5),
    (100, 5),
])
def test_utilization_points(rate, points):
    assert utilization_points(rate) == points


def test_never_offers_a_warehouse_that_cannot_take_the_quantity():
    warehouses = [FakeWarehouse(f"W{i}", 500) for i in range(6)]
    used = {f"W{i}": i * 100 for i in range(6)}
    selector = make_selector(warehouses, used)

    for quantity in (1, 100, 250, 400, 500):
        for candidate in selector.rank(None, quantity):
            assert candidate.usage.free_space >= quantity


def test_closer_never_scores_lower():
    selector = make_selector([FakeWarehouse("A", 1000)])
    previous = None
    for km in (0, 2, 5, 10, 19, 25, 100):
        selector.registry.warehouses[0].coordinates = north_of_origin(km)
        total = selector.rank(ORIGIN, 10)[0].total
        if previous is not None:
            assert total <= previous
        previous = total


def test_no_candidates_returns_none():
    selector = make_selector([FakeWarehouse("Full", 100)], used={"Full": 100})
    assert selector.find_optimal_warehouse(None, 1) is None


def test_min_free_space_override_keeps_full_warehouses():
    selector = make_selector([FakeWarehouse("Full", 100)], used={"Full": 100})
    assert selector.find_optimal_warehouse(None, 50, min_free_space=0).location == "Full"


def test_locations_restrict_the_pool():
    selector = make_selector([FakeWarehouse("A", 1000), FakeWarehouse("B", 1000)])
    assert [c.location for c in selector.rank(None, 10, locations=["B"])] == ["B"]


@pytest.mark.parametrize("quantity", [0, -5, 2.5, None, True, False])
def test_rejects_non_positive_quantities(quantity):
    selector = make_selector([FakeWarehouse("A", 1000)])
    with pytest.raises(ValidationError):
        selector.rank(None, quantity)
