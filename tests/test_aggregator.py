import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))

from modules.traffic.aggregator import (
    DEFAULT_ROAD_LENGTH_M,
    RawElement,
    TrafficAggregator,
    aggregate_elements,
    estimate_length_by_type,
    measure_geometry_length,
    select_length_strategy,
)
from modules.traffic.geo_math import Coordinate, distance_meters


def _way(way_id, highway="residential", nodes=None, geometry=None, center=None, **tags):
    element = {"type": "way", "id": way_id, "tags": {"highway": highway, **tags}}
    if nodes is not None:
        element["nodes"] = nodes
    if geometry is not None:
        element["geometry"] = [{"lat": lat, "lon": lon} for lat, lon in geometry]
    if center is not None:
        element["center"] = {"lat": center[0], "lon": center[1]}
    return element


def _node(node_id, **tags):
    return {"type": "node", "id": node_id, "lat": 0.0, "lon": 0.0, "tags": tags}


def test_total_counts_distinct_named_roads_only():
    roads = [
        _way(1, name="Main St", nodes=[1, 2]),
        _way(2, name="Main St", nodes=[2, 3]),
        _way(3, highway="service", nodes=[3, 4]),
    ]
    counters = aggregate_elements(roads, [])
    assert counters.total_roads == 1
    assert counters.unnamed_roads == 1
    assert counters.road_types == {"residential": 2, "service": 1}
    assert sum(counters.road_types.values()) == 3


def test_intersection_needs_three_way_references():
    roads = [
        _way(1, nodes=[10, 20]),
        _way(2, nodes=[10, 21]),
        _way(3, nodes=[10, 22]),
        _way(4, nodes=[30, 23]),
        _way(5, nodes=[30, 24]),
    ]
    counters = aggregate_elements(roads, [])
    assert counters.node_degree[10] == 3
    assert counters.node_degree[30] == 2
    assert counters.intersections == 1


def test_repeated_node_within_one_way_counts_each_occurrence():
    # closed loop: first and last node are the same id
    counters = aggregate_elements([_way(1, nodes=[5, 6, 7, 5]), _way(2, nodes=[5, 8])], [])
    assert counters.node_degree[5] == 3
    assert counters.intersections == 1


def test_geometry_length_is_summed():
    points = [(40.0, -74.0), (40.001, -74.0), (40.001, -74.001)]
    counters = aggregate_elements([_way(1, geometry=points)], [])
    expected = distance_meters(Coordinate(*points[0]), Coordinate(*points[1])) + distance_meters(
        Coordinate(*points[1]), Coordinate(*points[2])
    )
    assert counters.total_length_m == pytest.approx(expected)


def test_geometry_with_unresolved_vertex_skips_that_segment():
    element = RawElement.from_dict(
        {
            "type": "way",
            "id": 1,
            "tags": {"highway": "primary"},
            "geometry": [{"lat": 0.0, "lon": 0.0}, None, {"lat": 0.0, "lon": 0.001}, {"lat": 0.0, "lon": 0.002}],
        }
    )
    expected = distance_meters(Coordinate(0.0, 0.001), Coordinate(0.0, 0.002))
    assert measure_geometry_length(element) == pytest.approx(expected)


def test_center_only_falls_back_to_type_average():
    roads = [
        _way(1, highway="motorway", center=(1.0, 1.0)),
        _way(2, highway="living_street", center=(1.0, 1.0)),
        _way(3, highway="busway", center=(1.0, 1.0)),
    ]
    counters = aggregate_elements(roads, [])
    assert counters.total_length_m == 2000 + 150 + DEFAULT_ROAD_LENGTH_M


def test_length_strategy_selected_by_geometry_presence():
    with_geom = RawElement.from_dict(_way(1, geometry=[(0.0, 0.0), (0.0, 0.001)]))
    without = RawElement.from_dict(_way(2, center=(0.0, 0.0)))
    assert select_length_strategy(with_geom) is measure_geometry_length
    assert select_length_strategy(without) is estimate_length_by_type


def test_oneway_and_raw_speed_limits():
    roads = [
        _way(1, oneway="yes", maxspeed="25 mph"),
        _way(2, oneway="no", maxspeed="25 mph"),
        _way(3, oneway="-1", maxspeed="40"),
    ]
    counters = aggregate_elements(roads, [])
    assert counters.one_way_roads == 1
    assert counters.speed_limits == {"25 mph": 2, "40": 1}


def test_non_road_elements_are_ignored():
    roads = [
        {"type": "node", "id": 1, "tags": {"highway": "residential"}},
        {"type": "way", "id": 2, "tags": {"name": "Nothing"}},
        {"type": "way", "id": 3},
    ]
    counters = aggregate_elements(roads, [])
    assert counters.road_types == {}
    assert counters.total_roads == 0
    assert counters.skipped == 0


def test_malformed_elements_are_skipped():
    roads = [
        "not-an-element",
        {"id": 1, "tags": {"highway": "primary"}},
        {"type": "way", "id": "x", "tags": {"highway": "primary"}},
        {"type": "way", "id": 2, "tags": ["highway"]},
        _way(3, name="Elm St", nodes=[1, 2]),
    ]
    counters = aggregate_elements(roads, [None])
    assert counters.skipped == 5
    assert counters.total_roads == 1


def test_infrastructure_counts():
    infra = [
        _node(1, highway="traffic_signals"),
        _node(2, highway="traffic_signals"),
        _node(3, highway="bus_stop"),
        _node(4, railway="station"),
        {"type": "way", "id": 5, "tags": {"amenity": "parking"}},
        {"type": "way", "id": 6, "tags": {"bridge": "yes", "highway": "primary"}},
        {"type": "way", "id": 7, "tags": {"tunnel": "yes", "highway": "primary"}},
        {"type": "way", "id": 8, "tags": {"bridge": "yes", "tunnel": "yes", "highway": "primary"}},
        # a way tagged like a signal is not a signal
        {"type": "way", "id": 9, "tags": {"highway": "traffic_signals"}},
    ]
    counters = aggregate_elements([], infra)
    assert counters.traffic_signals == 2
    assert counters.bus_stops == 1
    assert counters.railway_stations == 1
    assert counters.parking_areas == 1
    assert counters.bridges_and_tunnels == 3


def test_aggregators_do_not_share_state():
    first = TrafficAggregator()
    first.add_road(_way(1, name="Main St"))
    second = TrafficAggregator()
    assert second.counters.total_roads == 0
    assert first.counters.total_roads == 1
