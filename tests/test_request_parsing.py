import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))

from core.exceptions import InvalidInputError
from modules.traffic.core import COORDINATES_REQUIRED, parse_analysis_request
from modules.traffic.schemas import FetchConfig, PipelineConfig, TrafficAnalysisRequest

CONFIG = PipelineConfig(
    fetch=FetchConfig(endpoints=["http://overpass.test/api/interpreter"]),
    default_radius_miles=3.0,
)


def test_valid_body_with_radius_alias():
    request = parse_analysis_request({"lat": 40.7128, "lon": -74, "radiusMiles": 2}, CONFIG)
    assert request.center.lat == 40.7128
    assert request.center.lon == -74.0
    assert isinstance(request.center.lon, float)
    assert request.radius_miles == 2.0


def test_missing_radius_uses_configured_default():
    assert parse_analysis_request({"lat": 1.5, "lon": 2.5}, CONFIG).radius_miles == 3.0
    assert parse_analysis_request({"lat": 1.5, "lon": 2.5, "radiusMiles": None}, CONFIG).radius_miles == 3.0


def test_model_accepts_field_names_too():
    body = TrafficAnalysisRequest.model_validate({"lat": 1.0, "lon": 2.0, "radius_miles": 4})
    assert body.radius_miles == 4.0


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        "lat=1",
        {"lat": 0, "lon": 10.0},
        {"lat": 10.0, "lon": 0.0},
        {"lat": False, "lon": 10.0},
        {"lat": "40.7", "lon": 10.0},
        {"lat": [40.7], "lon": 10.0},
        {"lat": float("nan"), "lon": 10.0},
        {"lat": 10 ** 400, "lon": 10.0},
    ],
)
def test_bad_coordinates(payload):
    with pytest.raises(InvalidInputError) as exc_info:
        parse_analysis_request(payload, CONFIG)
    assert exc_info.value.message == COORDINATES_REQUIRED
    assert exc_info.value.code == 400


@pytest.mark.parametrize(
    "payload,message",
    [
        ({"lat": 90.5, "lon": 10.0}, "Latitude must be between -90 and 90"),
        ({"lat": -91, "lon": 10.0}, "Latitude must be between -90 and 90"),
        ({"lat": 10.0, "lon": 180.1}, "Longitude must be between -180 and 180"),
    ],
)
def test_out_of_range_coordinates(payload, message):
    with pytest.raises(InvalidInputError) as exc_info:
        parse_analysis_request(payload, CONFIG)
    assert exc_info.value.message == message


@pytest.mark.parametrize("radius", [0, -1.5, "5", True, 10 ** 400, float("inf")])
def test_bad_radius(radius):
    with pytest.raises(InvalidInputError) as exc_info:
        parse_analysis_request({"lat": 1.0, "lon": 2.0, "radiusMiles": radius}, CONFIG)
    assert exc_info.value.message == "radiusMiles must be a positive number"


def test_coordinate_errors_reported_before_radius():
    with pytest.raises(InvalidInputError) as exc_info:
        parse_analysis_request({"lat": "x", "lon": 2.0, "radiusMiles": -1}, CONFIG)
    assert exc_info.value.message == COORDINATES_REQUIRED
