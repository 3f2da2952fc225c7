import math
from typing import NamedTuple


EARTH_RADIUS_M = 6_371_000.0
METERS_PER_MILE = 1609.34
KM_PER_MILE = 1.60934


class Coordinate(NamedTuple):
    """WGS84 point in signed decimal degrees."""

    lat: float
    lon: float


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Haversine great-circle distance between two coordinates, in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlambda = math.radians(b.lon - a.lon)
    h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(h), math.sqrt(max(1e-12, 1.0 - h)))
    return EARTH_RADIUS_M * c


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def disc_area_km2(radius_miles: float) -> float:
    return math.pi * miles_to_km(radius_miles) ** 2


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like Math.round on the scaled value (0.5 goes up), not banker's rounding."""
    if not math.isfinite(float(value)):
        return 0.0
    factor = 10 ** digits
    return math.floor(float(value) * factor + 0.5) / factor
