import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Set, Tuple

from .geo_math import Coordinate, distance_meters


logger = logging.getLogger(__name__)

# Average way length (m) per highway type, used when no geometry was requested
AVERAGE_ROAD_LENGTH_M: Dict[str, float] = {
    "motorway": 2000.0,
    "trunk": 1500.0,
    "primary": 800.0,
    "secondary": 500.0,
    "tertiary": 400.0,
    "residential": 200.0,
    "service": 100.0,
    "unclassified": 300.0,
    "living_street": 150.0,
}
DEFAULT_ROAD_LENGTH_M = 200.0

INTERSECTION_MIN_DEGREE = 3


def _to_coordinate(value: Any) -> Optional[Coordinate]:
    if not isinstance(value, Mapping):
        return None
    try:
        lat = float(value["lat"])
        lon = float(value["lon"])
    except (KeyError, TypeError, ValueError):
        return None
    return Coordinate(lat, lon)


@dataclass(frozen=True)
class RawElement:
    """One Overpass element (node or way) as returned by the service."""

    kind: str
    id: int
    tags: Mapping[str, str] = field(default_factory=dict)
    geometry: Tuple[Optional[Coordinate], ...] = ()
    nodes: Tuple[int, ...] = ()
    center: Optional[Coordinate] = None

    @classmethod
    def from_dict(cls, data: Any) -> "RawElement":
        """
        Parse a decoded JSON element.

        Raises:
            ValueError: the element lacks its type / id or carries malformed fields.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"element is not an object: {data!r}")
        kind = data.get("type")
        if kind not in ("node", "way", "relation"):
            raise ValueError(f"unknown element type: {kind!r}")
        element_id = data.get("id")
        if isinstance(element_id, bool) or not isinstance(element_id, int):
            raise ValueError(f"element id is not an integer: {element_id!r}")

        tags = data.get("tags") or {}
        if not isinstance(tags, Mapping):
            raise ValueError(f"element {element_id} has non-object tags")

        nodes = data.get("nodes") or []
        if not isinstance(nodes, list):
            raise ValueError(f"element {element_id} has non-array nodes")

        geometry = data.get("geometry") or []
        if not isinstance(geometry, list):
            raise ValueError(f"element {element_id} has non-array geometry")

        return cls(
            kind=kind,
            id=element_id,
            tags={str(k): str(v) for k, v in tags.items()},
            # Overpass emits null for vertices it could not resolve
            geometry=tuple(_to_coordinate(pt) for pt in geometry),
            nodes=tuple(n for n in nodes if isinstance(n, int) and not isinstance(n, bool)),
            center=_to_coordinate(data.get("center")),
        )


def measure_geometry_length(element: RawElement) -> float:
    """Exact length: sum of Haversine distances between consecutive resolved vertices."""
    total = 0.0
    for p1, p2 in zip(element.geometry, element.geometry[1:]):
        if p1 is None or p2 is None:
            continue
        total += distance_meters(p1, p2)
    return total


def estimate_length_by_type(element: RawElement) -> float:
    """Fallback length from the per-type average table."""
    return AVERAGE_ROAD_LENGTH_M.get(element.tags.get("highway", ""), DEFAULT_ROAD_LENGTH_M)


def select_length_strategy(element: RawElement) -> Callable[[RawElement], float]:
    if element.geometry:
        return measure_geometry_length
    return estimate_length_by_type


@dataclass
class IntermediateCounters:
    road_types: Dict[str, int] = field(default_factory=dict)
    total_length_m: float = 0.0
    node_degree: Dict[int, int] = field(default_factory=dict)
    named_roads: Set[str] = field(default_factory=set)
    unnamed_roads: int = 0
    one_way_roads: int = 0
    speed_limits: Dict[str, int] = field(default_factory=dict)
    traffic_signals: int = 0
    bus_stops: int = 0
    railway_stations: int = 0
    parking_areas: int = 0
    bridges_and_tunnels: int = 0
    skipped: int = 0

    @property
    def total_roads(self) -> int:
        """Headline road count: distinct named streets only."""
        return len(self.named_roads)

    @property
    def intersections(self) -> int:
        return sum(1 for degree in self.node_degree.values() if degree >= INTERSECTION_MIN_DEGREE)


class TrafficAggregator:
    """Folds raw road and infrastructure elements into request-scoped counters."""

    def __init__(self):
        self.counters = IntermediateCounters()

    def _parse(self, raw: Any, kind: str) -> Optional[RawElement]:
        try:
            return RawElement.from_dict(raw)
        except ValueError as exc:
            self.counters.skipped += 1
            logger.debug("Skipping malformed %s element: %s", kind, exc)
            return None

    def add_road(self, raw: Any) -> None:
        element = self._parse(raw, "road")
        if element is None or element.kind != "way":
            return
        road_type = element.tags.get("highway")
        if not road_type:
            return

        c = self.counters
        c.road_types[road_type] = c.road_types.get(road_type, 0) + 1

        name = element.tags.get("name")
        if name:
            c.named_roads.add(name)
        else:
            c.unnamed_roads += 1

        c.total_length_m += select_length_strategy(element)(element)

        if element.tags.get("oneway") == "yes":
            c.one_way_roads += 1

        maxspeed = element.tags.get("maxspeed")
        if maxspeed:
            c.speed_limits[maxspeed] = c.speed_limits.get(maxspeed, 0) + 1

        # every occurrence counts, repeated ids within one way are not collapsed
        for node_id in element.nodes:
            c.node_degree[node_id] = c.node_degree.get(node_id, 0) + 1

    def add_infrastructure(self, raw: Any) -> None:
        element = self._parse(raw, "infrastructure")
        if element is None:
            return
        tags = element.tags
        c = self.counters
        if element.kind == "node":
            if tags.get("highway") == "traffic_signals":
                c.traffic_signals += 1
            if tags.get("highway") == "bus_stop":
                c.bus_stops += 1
            if tags.get("railway") == "station":
                c.railway_stations += 1
        elif element.kind == "way":
            if tags.get("amenity") == "parking":
                c.parking_areas += 1
            if tags.get("bridge") == "yes" or tags.get("tunnel") == "yes":
                c.bridges_and_tunnels += 1


def aggregate_elements(
    road_elements: Iterable[Any],
    infra_elements: Iterable[Any],
) -> IntermediateCounters:
    aggregator = TrafficAggregator()
    for raw in road_elements:
        aggregator.add_road(raw)
    for raw in infra_elements:
        aggregator.add_infrastructure(raw)
    if aggregator.counters.skipped:
        logger.warning("Skipped %d malformed elements during aggregation", aggregator.counters.skipped)
    return aggregator.counters
