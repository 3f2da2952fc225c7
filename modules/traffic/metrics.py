from typing import NamedTuple

from .geo_math import round_half_up
from .schemas import ScoringConfig


class CongestionEstimate(NamedTuple):
    score: int
    level: str


def _capped(value: float, threshold: float, weight: float) -> float:
    """min(value / threshold, 1) * weight, with non-positive values scoring 0."""
    if threshold <= 0:
        return weight if value > 0 else 0.0
    return max(0.0, min(value / threshold, 1.0)) * weight


def _as_score(total: float) -> int:
    return int(max(0.0, min(100.0, round_half_up(total))))


def road_density(total_length_km: float, area_km2: float) -> float:
    """Kilometres of road per km², rounded to 2 decimals."""
    if area_km2 <= 0:
        return 0.0
    return round_half_up(total_length_km / area_km2, 2)


def connectivity_score(
    intersections: int,
    traffic_signals: int,
    density: float,
    bus_stops: int,
    railway_stations: int,
    scoring: ScoringConfig = ScoringConfig(),
) -> int:
    total = (
        _capped(intersections, scoring.intersections_threshold, scoring.intersections_weight)
        + _capped(traffic_signals, scoring.signals_threshold, scoring.signals_weight)
        + _capped(density, scoring.density_threshold, scoring.density_weight)
        + _capped(bus_stops + railway_stations, scoring.transit_threshold, scoring.transit_weight)
    )
    return _as_score(total)


def congestion_level(score: int, scoring: ScoringConfig = ScoringConfig()) -> str:
    if score >= scoring.heavy_min:
        return "Heavy"
    if score >= scoring.moderate_min:
        return "Moderate"
    if score >= scoring.light_min:
        return "Light"
    return "Minimal"


def congestion_score(
    traffic_signals: int,
    intersections: int,
    one_way_roads: int,
    way_count: int,
    density: float,
    area_km2: float,
    scoring: ScoringConfig = ScoringConfig(),
) -> int:
    """
    Traffic-pressure estimate from infrastructure.

    The one-way ratio is taken over every road way retrieved (`way_count`),
    not over the distinct named road total.
    """
    if area_km2 > 0:
        signal_density = traffic_signals / area_km2
        intersection_density = intersections / area_km2
    else:
        signal_density = intersection_density = 0.0
    one_way_ratio = min(one_way_roads / way_count, 1.0) if way_count > 0 else 0.0

    total = (
        _capped(signal_density, scoring.signal_density_threshold, scoring.signal_density_weight)
        + _capped(intersection_density, scoring.intersection_density_threshold, scoring.intersection_density_weight)
        + one_way_ratio * scoring.one_way_weight
        + _capped(density, scoring.congestion_density_threshold, scoring.congestion_density_weight)
    )
    return _as_score(total)


def estimate_congestion(
    traffic_signals: int,
    intersections: int,
    one_way_roads: int,
    way_count: int,
    density: float,
    area_km2: float,
    scoring: ScoringConfig = ScoringConfig(),
) -> CongestionEstimate:
    score = congestion_score(
        traffic_signals, intersections, one_way_roads, way_count, density, area_km2, scoring
    )
    return CongestionEstimate(score, congestion_level(score, scoring))
