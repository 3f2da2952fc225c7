import math
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, field_validator
from pydantic.alias_generators import to_camel


class FetchConfig(BaseModel):
    """Retry / failover parameters of one Overpass fetch."""

    model_config = ConfigDict(frozen=True)

    endpoints: List[str] = Field(..., min_length=1, description="Rotated round-robin per attempt")
    max_attempts: int = Field(3, ge=1)
    attempt_timeout_s: float = Field(60.0, gt=0, description="Client-side hard deadline per attempt")
    backoff_base_s: float = Field(1.0, ge=0, description="Sleep before retry n is base * 2^n")
    user_agent: str = "TrafficAnalysis/1.0 (osm-traffic-analysis)"


class QueryConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    roads_timeout_s: int = Field(45, gt=0)
    infra_timeout_s: int = Field(30, gt=0)
    road_geometry: Literal["geom", "center"] = "geom"


class ScoringConfig(BaseModel):
    """Thresholds (value giving a full sub-score) and weights of the composite scores."""

    model_config = ConfigDict(frozen=True)

    # connectivity
    intersections_threshold: float = 100.0
    intersections_weight: float = 30.0
    signals_threshold: float = 50.0
    signals_weight: float = 20.0
    density_threshold: float = 15.0
    density_weight: float = 30.0
    transit_threshold: float = 20.0
    transit_weight: float = 20.0

    # congestion
    signal_density_threshold: float = 15.0
    signal_density_weight: float = 35.0
    intersection_density_threshold: float = 50.0
    intersection_density_weight: float = 35.0
    one_way_weight: float = 15.0
    congestion_density_threshold: float = 25.0
    congestion_density_weight: float = 15.0

    # congestion levels, evaluated high to low, inclusive
    heavy_min: int = 70
    moderate_min: int = 45
    light_min: int = 20


class PipelineConfig(BaseModel):
    """Everything one analysis run needs, passed explicitly into each component."""

    model_config = ConfigDict(frozen=True)

    fetch: FetchConfig
    query: QueryConfig = Field(default_factory=QueryConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    max_radius_miles: float = Field(5.0, gt=0)
    default_radius_miles: float = Field(5.0, gt=0)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _finite_number(value: Any) -> float:
    """JSON number as float; rejects bools, strings and ints too large for a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    try:
        number = float(value)
    except OverflowError as exc:
        raise ValueError("number out of range") from exc
    if not math.isfinite(number):
        raise ValueError("must be a finite number")
    return number


class TrafficAnalysisRequest(CamelModel):
    """
    Inbound body `{lat, lon, radiusMiles?}`.
    Zero coordinates count as missing, matching the web client.
    """

    lat: StrictFloat = Field(..., ge=-90, le=90, description="Latitude (WGS84)")
    lon: StrictFloat = Field(..., ge=-180, le=180, description="Longitude (WGS84)")
    radius_miles: Optional[StrictFloat] = Field(None, gt=0, description="Disc radius, clamped to the configured maximum")

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coordinate_present(cls, value: Any) -> float:
        if not value:
            raise ValueError("coordinate is required")
        return _finite_number(value)

    @field_validator("radius_miles", mode="before")
    @classmethod
    def _radius_number(cls, value: Any) -> Optional[float]:
        if value is None:
            return None
        return _finite_number(value)


class RoadSummary(CamelModel):
    total: int = Field(0, description="Distinct named roads")
    unnamed: int = Field(0, description="Road ways without a name tag")
    by_type: Dict[str, int] = Field(default_factory=dict)
    total_length: float = Field(0.0, description="Total road length (km)")


class AnalysisResult(CamelModel):
    roads: RoadSummary
    intersections: int = 0
    traffic_signals: int = 0
    speed_limits: Dict[str, int] = Field(default_factory=dict)
    one_way_roads: int = 0
    parking_areas: int = 0
    bus_stops: int = 0
    railway_stations: int = 0
    bridges_and_tunnels: int = 0
    road_density: float = Field(0.0, description="km of road per km²")
    connectivity_score: int = Field(0, ge=0, le=100)
    congestion_score: int = Field(0, ge=0, le=100)
    congestion_level: Literal["Heavy", "Moderate", "Light", "Minimal"] = "Minimal"


class CenterPoint(CamelModel):
    lat: float
    lon: float


class AnalysisMetadata(CamelModel):
    center: CenterPoint
    radius_miles: float
    radius_km: float
    area_km2: float
    elements_processed: int
    timestamp: str


class TrafficAnalysisResponse(CamelModel):
    success: bool = True
    data: AnalysisResult
    metadata: AnalysisMetadata


class TrafficErrorResponse(CamelModel):
    success: bool = False
    error: str
