import asyncio
import logging
from datetime import datetime
from typing import Any, NamedTuple, Optional

import httpx
from pydantic import ValidationError

from core.config import Settings
from core.exceptions import InvalidInputError

from .aggregator import aggregate_elements
from .assembler import assemble_response, build_analysis_result, build_metadata
from .fetcher import ResilientFetcher, SleepFunc
from .geo_math import Coordinate, disc_area_km2, miles_to_meters
from .query_builder import build_traffic_queries
from .schemas import (
    FetchConfig,
    PipelineConfig,
    QueryConfig,
    TrafficAnalysisRequest,
    TrafficAnalysisResponse,
)


logger = logging.getLogger(__name__)

COORDINATES_REQUIRED = "Latitude and longitude are required"
RANGE_MESSAGES = {
    "lat": "Latitude must be between -90 and 90",
    "lon": "Longitude must be between -180 and 180",
}


class AnalysisRequest(NamedTuple):
    center: Coordinate
    radius_miles: float


def pipeline_config_from_settings(settings: Settings) -> PipelineConfig:
    return PipelineConfig(
        fetch=FetchConfig(
            endpoints=list(settings.overpass_endpoints),
            max_attempts=settings.overpass_max_attempts,
            attempt_timeout_s=settings.overpass_attempt_timeout_s,
            backoff_base_s=settings.overpass_backoff_base_s,
            user_agent=settings.overpass_user_agent,
        ),
        query=QueryConfig(
            roads_timeout_s=settings.roads_query_timeout_s,
            infra_timeout_s=settings.infra_query_timeout_s,
            road_geometry=settings.road_geometry_mode,
        ),
        max_radius_miles=settings.max_radius_miles,
        default_radius_miles=settings.default_radius_miles,
    )


def _invalid_input(exc: ValidationError) -> InvalidInputError:
    """Map the first failing field to the client-facing 400 message; coordinates take precedence."""
    errors = exc.errors()
    for err in errors:
        field = str(err["loc"][0]) if err["loc"] else ""
        if field not in ("lat", "lon"):
            continue
        if err["type"] in ("greater_than_equal", "less_than_equal"):
            return InvalidInputError(RANGE_MESSAGES[field], field=field)
        return InvalidInputError(COORDINATES_REQUIRED, field="lat/lon")
    for err in errors:
        if err["loc"] and err["loc"][0] in ("radiusMiles", "radius_miles"):
            return InvalidInputError("radiusMiles must be a positive number", field="radiusMiles")
    return InvalidInputError(COORDINATES_REQUIRED)


def parse_analysis_request(payload: Any, config: PipelineConfig) -> AnalysisRequest:
    """
    Validate the inbound JSON body `{lat, lon, radiusMiles?}`.

    Raises:
        InvalidInputError: missing / falsy / non-numeric coordinates, out-of-range
            coordinates, or a non-positive radius.
    """
    try:
        body = TrafficAnalysisRequest.model_validate(payload)
    except ValidationError as exc:
        raise _invalid_input(exc) from exc

    radius = body.radius_miles if body.radius_miles is not None else config.default_radius_miles
    return AnalysisRequest(Coordinate(body.lat, body.lon), float(radius))


def effective_radius_miles(radius_miles: float, max_radius_miles: float = 5.0) -> float:
    """Query radius after clamping to the supported maximum."""
    return min(radius_miles, max_radius_miles)


async def analyze_traffic(
    request: AnalysisRequest,
    config: PipelineConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep: SleepFunc = asyncio.sleep,
    now: Optional[datetime] = None,
) -> TrafficAnalysisResponse:
    """
    One stateless fetch-aggregate-respond cycle for a disc around `request.center`.

    Raises:
        FetchExhaustedError: either Overpass query failed on every attempt.
    """
    radius_miles = effective_radius_miles(request.radius_miles, config.max_radius_miles)
    radius_m = miles_to_meters(radius_miles)
    area_km2 = disc_area_km2(radius_miles)

    logger.info(
        "Analyzing traffic around (%s, %s) with radius %s miles (%dm)",
        request.center.lat, request.center.lon, radius_miles, round(radius_m),
    )
    queries = build_traffic_queries(request.center, radius_m, config.query)

    async with httpx.AsyncClient(transport=transport, timeout=config.fetch.attempt_timeout_s) as client:
        fetcher = ResilientFetcher(client, config.fetch, sleep=sleep)
        # independent tasks: one query's retries never hold up the other
        roads_result, infra_result = await asyncio.gather(
            fetcher.fetch(queries.roads, kind="roads"),
            fetcher.fetch(queries.infrastructure, kind="infrastructure"),
            return_exceptions=True,
        )
    for result in (roads_result, infra_result):
        if isinstance(result, BaseException):
            raise result
    road_elements, infra_elements = roads_result, infra_result

    logger.info(
        "Retrieved %d roads, %d infrastructure elements",
        len(road_elements), len(infra_elements),
    )

    counters = aggregate_elements(road_elements, infra_elements)
    result = build_analysis_result(
        counters,
        area_km2=area_km2,
        way_count=len(road_elements),
        scoring=config.scoring,
    )
    metadata = build_metadata(
        request.center,
        radius_miles,
        area_km2,
        elements_processed=len(road_elements) + len(infra_elements),
        now=now,
    )
    logger.info(
        "Analysis complete. Signals: %d, connectivity: %d, congestion: %d (%s)",
        result.traffic_signals, result.connectivity_score, result.congestion_score, result.congestion_level,
    )
    return assemble_response(result, metadata)
