from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0

MAX_PROXIMITY_POINTS = 40.0
PROXIMITY_POINTS_PER_KM = 2.0


class GeoScorer:
    """
    Great-circle distance and the proximity part of the warehouse ranking.

    Coordinates are (latitude, longitude) pairs in degrees. A missing pair means
    "no proximity information": the distance is infinite and the score is 0.
    """

    @staticmethod
    def distance_km(a: tuple[float, float] | None, b: tuple[float, float] | None) -> float:
        if a is None or b is None:
            return math.inf
        lat1, lon1 = a
        lat2, lon2 = b
        if None in (lat1, lon1, lat2, lon2):
            return math.inf

        d_lat = math.radians(lat2 - lat1)
        d_lon = math.radians(lon2 - lon1)
        h = (math.sin(d_lat / 2) ** 2
             + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
        return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    @staticmethod
    def proximity_score(distance_km: float) -> float:
        # 40 at 0 km, 0 from 20 km on
        if math.isinf(distance_km):
            return 0.0
        return max(0.0, MAX_PROXIMITY_POINTS - PROXIMITY_POINTS_PER_KM * distance_km)

    @classmethod
    def score(cls, origin, destination) -> tuple[float, float]:
        """Return (distance_km, proximity_score) for a pair of coordinates"""
        distance = cls.distance_km(origin, destination)
        return distance, cls.proximity_score(distance)
