from __future__ import annotations

import math
from dataclasses import dataclass

from farmlogistics.buisness.warehousing.errors import ValidationError
from farmlogistics.buisness.warehousing.geo_scorer import GeoScorer
from farmlogistics.buisness.warehousing.utilization_tracker import Utilization, UtilizationTracker
from farmlogistics.buisness.warehousing.warehouse_registry import WarehouseRegistry
from farmlogistics.utils.logger import get_logger

logger = get_logger("farm_logistics.buisness.warehousing.selector")

MAX_CAPACITY_POINTS = 30.0
LOW_UTILIZATION_PERCENT = 20
HIGH_UTILIZATION_PERCENT = 90
LOW_UTILIZATION_POINTS = 10
HIGH_UTILIZATION_POINTS = 5
BAND_UTILIZATION_POINTS = 20
PREFERENCE_POINTS = 10


@dataclass(frozen=True)
class ScoreBreakdown:
    distance_km: float
    proximity: float
    capacity: float
    utilization: float
    preference: float

    @property
    def total(self) -> float:
        return self.proximity + self.capacity + self.utilization + self.preference

    def to_dict(self) -> dict:
        return {
            'distance_km': None if math.isinf(self.distance_km) else round(self.distance_km, 2),
            'proximity': round(self.proximity, 2),
            'capacity': round(self.capacity, 2),
            'utilization': self.utilization,
            'preference': self.preference,
            'total': round(self.total, 2),
        }


@dataclass(frozen=True)
class WarehouseCandidate:
    warehouse: object
    usage: Utilization
    scores: ScoreBreakdown

    @property
    def location(self) -> str:
        return self.warehouse.location

    @property
    def total(self) -> float:
        return self.scores.total


def utilization_points(rate: float) -> int:
    if rate < LOW_UTILIZATION_PERCENT:
        return LOW_UTILIZATION_POINTS
    if rate > HIGH_UTILIZATION_PERCENT:
        return HIGH_UTILIZATION_POINTS
    return BAND_UTILIZATION_POINTS


class WarehouseSelector:
    """
    Ranks candidate warehouses for a pending quantity.

    Score (max 100) = proximity (0-40) + headroom (0-30) + utilization band (5/10/20)
    + preference (10). Warehouses without room for the whole quantity are dropped.

    Collaborators are injected:
    - registry: `all_with_capacity()` -> warehouses in registration order
    - tracker: `utilization(location)` -> Utilization or None
    """

    def __init__(self, registry=None, tracker=None, scorer=GeoScorer):
        self.registry = registry or WarehouseRegistry()
        self.tracker = tracker or UtilizationTracker(registry=self.registry)
        self.scorer = scorer

    def score(self, warehouse, usage: Utilization, origin, preferred_location=None) -> ScoreBreakdown:
        destination = getattr(warehouse, 'coordinates', None)
        if destination is None:
            logger.warning(f"Warehouse {warehouse.location} has no coordinates; proximity scored as 0")
        distance, proximity = self.scorer.score(origin, destination)

        capacity = min(MAX_CAPACITY_POINTS, usage.free_space / usage.capacity_limit * MAX_CAPACITY_POINTS)
        preference = PREFERENCE_POINTS if preferred_location and warehouse.location == preferred_location else 0

        return ScoreBreakdown(
            distance_km=distance,
            proximity=proximity,
            capacity=capacity,
            utilization=utilization_points(usage.utilization_rate),
            preference=preference,
        )

    def rank(self, origin, requested_quantity: int, preferred_location: str | None = None,
             locations=None, min_free_space: int | None = None) -> list[WarehouseCandidate]:
        """
        All warehouses able to take `requested_quantity`, best first.

        Args:
            origin: (latitude, longitude) of the goods, or None
            requested_quantity: Units that must fit in the warehouse
            preferred_location: Location that earns the preference bonus
            locations: Optional restriction of the candidate pool
            min_free_space: Headroom a warehouse needs to stay in the pool
                (defaults to requested_quantity; 0 when picking a source of stock)

        Returns:
            list[WarehouseCandidate]: Stable-sorted by total score, descending
        """
        if (not isinstance(requested_quantity, int) or isinstance(requested_quantity, bool)
                or requested_quantity <= 0):
            raise ValidationError("Requested quantity must be a positive integer")

        allowed = set(locations) if locations is not None else None
        required_space = requested_quantity if min_free_space is None else min_free_space
        candidates = []

        for warehouse in self.registry.all_with_capacity():
            if not warehouse.capacity_limit or warehouse.capacity_limit <= 0:
                continue
            if allowed is not None and warehouse.location not in allowed:
                continue

            usage = self.tracker.utilization(warehouse.location)
            if usage is None:
                continue
            if usage.free_space < required_space:
                logger.debug(f"Rejecting {warehouse.location}: {usage.free_space} free < {required_space} required")
                continue

            scores = self.score(warehouse, usage, origin, preferred_location)
            logger.debug(f"Scored {warehouse.location}: {scores.to_dict()}")
            candidates.append(WarehouseCandidate(warehouse=warehouse, usage=usage, scores=scores))

        # sorted() is stable with reverse=True: earlier warehouses win ties
        return sorted(candidates, key=lambda c: c.total, reverse=True)

    def find_optimal_warehouse(self, origin, requested_quantity: int, preferred_location: str | None = None,
                               locations=None, min_free_space: int | None = None) -> WarehouseCandidate | None:
        ranked = self.rank(origin, requested_quantity, preferred_location, locations, min_free_space)
        if not ranked:
            logger.info(f"No warehouse can take {requested_quantity} units")
            return None

        best = ranked[0]
        logger.info(f"Selected warehouse {best.location} (score {best.total:.2f}) for {requested_quantity} units")
        return best
