from datetime import datetime, timezone
from typing import Optional

from .aggregator import IntermediateCounters
from .geo_math import Coordinate, miles_to_km, round_half_up
from .metrics import connectivity_score, estimate_congestion, road_density
from .schemas import (
    AnalysisMetadata,
    AnalysisResult,
    CenterPoint,
    RoadSummary,
    ScoringConfig,
    TrafficAnalysisResponse,
)


def _iso_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_analysis_result(
    counters: IntermediateCounters,
    area_km2: float,
    way_count: int,
    scoring: ScoringConfig = ScoringConfig(),
) -> AnalysisResult:
    total_length_km = counters.total_length_m / 1000.0
    density = road_density(total_length_km, area_km2)
    intersections = counters.intersections
    congestion = estimate_congestion(
        traffic_signals=counters.traffic_signals,
        intersections=intersections,
        one_way_roads=counters.one_way_roads,
        way_count=way_count,
        density=density,
        area_km2=area_km2,
        scoring=scoring,
    )
    return AnalysisResult(
        roads=RoadSummary(
            total=counters.total_roads,
            unnamed=counters.unnamed_roads,
            by_type=dict(counters.road_types),
            total_length=round_half_up(total_length_km, 2),
        ),
        intersections=intersections,
        traffic_signals=counters.traffic_signals,
        speed_limits=dict(counters.speed_limits),
        one_way_roads=counters.one_way_roads,
        parking_areas=counters.parking_areas,
        bus_stops=counters.bus_stops,
        railway_stations=counters.railway_stations,
        bridges_and_tunnels=counters.bridges_and_tunnels,
        road_density=density,
        connectivity_score=connectivity_score(
            intersections,
            counters.traffic_signals,
            density,
            counters.bus_stops,
            counters.railway_stations,
            scoring,
        ),
        congestion_score=congestion.score,
        congestion_level=congestion.level,
    )


def build_metadata(
    center: Coordinate,
    radius_miles: float,
    area_km2: float,
    elements_processed: int,
    now: Optional[datetime] = None,
) -> AnalysisMetadata:
    return AnalysisMetadata(
        center=CenterPoint(lat=center.lat, lon=center.lon),
        radius_miles=radius_miles,
        radius_km=round_half_up(miles_to_km(radius_miles), 2),
        area_km2=round_half_up(area_km2, 2),
        elements_processed=elements_processed,
        timestamp=_iso_timestamp(now),
    )


def assemble_response(
    result: AnalysisResult,
    metadata: AnalysisMetadata,
) -> TrafficAnalysisResponse:
    return TrafficAnalysisResponse(success=True, data=result, metadata=metadata)
