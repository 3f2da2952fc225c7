from typing import NamedTuple, Tuple

from .geo_math import Coordinate
from .schemas import QueryConfig


ROAD_HIGHWAY_TYPES: Tuple[str, ...] = (
    "motorway",
    "trunk",
    "primary",
    "secondary",
    "tertiary",
    "residential",
    "service",
    "unclassified",
    "living_street",
)

# Output statements of the roads query. Both keep the node id list ("body"),
# which intersection detection depends on.
ROAD_OUTPUT = {
    "geom": "out body geom;",
    "center": "out body center;",
}


class TrafficQueries(NamedTuple):
    roads: str
    infrastructure: str


def _around(radius_m: float, center: Coordinate) -> str:
    return f"(around:{radius_m:.2f},{center.lat:.7f},{center.lon:.7f})"


def build_roads_query(center: Coordinate, radius_m: float, config: QueryConfig) -> str:
    regex = "|".join(ROAD_HIGHWAY_TYPES)
    output = ROAD_OUTPUT.get(config.road_geometry, ROAD_OUTPUT["geom"])
    return f"""
[out:json][timeout:{int(config.roads_timeout_s)}];
way["highway"~"^({regex})$"]{_around(radius_m, center)};
{output}
"""


def build_infrastructure_query(center: Coordinate, radius_m: float, config: QueryConfig) -> str:
    around = _around(radius_m, center)
    # bridges/tunnels also need a highway tag so pipelines and rail bridges are excluded
    return f"""
[out:json][timeout:{int(config.infra_timeout_s)}];
(
  node["highway"="traffic_signals"]{around};
  node["highway"="bus_stop"]{around};
  node["railway"="station"]{around};
  way["amenity"="parking"]{around};
  way["bridge"="yes"]["highway"]{around};
  way["tunnel"="yes"]["highway"]{around};
);
out center tags;
"""


def build_traffic_queries(center: Coordinate, radius_m: float, config: QueryConfig) -> TrafficQueries:
    """
    Build the roads and infrastructure Overpass QL queries for a disc.

    `radius_m` must already be the clamped (effective) radius.
    """
    return TrafficQueries(
        roads=build_roads_query(center, radius_m, config),
        infrastructure=build_infrastructure_query(center, radius_m, config),
    )
