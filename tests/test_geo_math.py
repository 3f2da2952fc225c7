import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))

from modules.traffic.geo_math import (
    Coordinate,
    disc_area_km2,
    distance_meters,
    miles_to_meters,
    round_half_up,
)

NYC = Coordinate(40.7128, -74.006)
LONDON = Coordinate(51.5074, -0.1278)


@pytest.mark.parametrize(
    "a,b",
    [
        (NYC, LONDON),
        (Coordinate(0.0, 0.0), Coordinate(0.0, 179.9)),
        (Coordinate(-33.8688, 151.2093), Coordinate(35.6762, 139.6503)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert distance_meters(a, b) == distance_meters(b, a)


def test_distance_to_self_is_zero():
    assert distance_meters(NYC, NYC) == pytest.approx(0.0, abs=1e-6)


def test_distance_nyc_london():
    # ~5570 km great-circle
    assert distance_meters(NYC, LONDON) == pytest.approx(5_570_000, rel=0.01)


def test_one_degree_latitude():
    d = distance_meters(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0))
    assert d == pytest.approx(6_371_000 * math.pi / 180, rel=1e-6)


def test_unit_conversions():
    assert miles_to_meters(1) == pytest.approx(1609.34)
    assert miles_to_meters(5) == pytest.approx(8046.7)
    assert disc_area_km2(1) == pytest.approx(math.pi * 1.60934 ** 2)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(3.14159, 2) == 3.14
    assert round_half_up(float("nan"), 2) == 0.0
