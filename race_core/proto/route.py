"""
Route Schema.

A route is an ordered sequence of waypoints: the first is the start, the last
is the end, everything in between is a checkpoint. Waypoints are addressed by
their positional index in the route.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple


class WaypointRole(Enum):
    """Role of a waypoint within its route."""

    START = "start"
    CHECKPOINT = "checkpoint"
    END = "end"


@dataclass(frozen=True)
class Coordinate:
    """Geographic coordinate in decimal degrees (WGS84)."""

    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate coordinate range."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude out of range: {self.longitude}")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class Waypoint:
    """
    Single point of a route.

    Attributes:
        coordinate: Waypoint location
        role: START, CHECKPOINT or END
        index: Position within the route's coordinate sequence
        radius_m: Optional proximity zone radius override (m)
    """

    coordinate: Coordinate
    role: WaypointRole
    index: int
    radius_m: Optional[float] = None

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Waypoint index cannot be negative: {self.index}")
        if self.radius_m is not None and self.radius_m <= 0:
            raise ValueError(f"Zone radius must be positive: {self.radius_m}")


@dataclass
class Route:
    """
    Ordered sequence of waypoints plus the route's race history.

    The waypoint sequence is stored as a tuple, so it cannot change while a
    race runs against it. Race history is appended to by the result sink.
    """

    name: str
    waypoints: Tuple[Waypoint, ...]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    race_history: list = field(default_factory=list)

    def __post_init__(self):
        """Validate waypoint ordering and roles."""
        self.waypoints = tuple(self.waypoints)
        if len(self.waypoints) < 2:
            raise ValueError(
                f"Route needs at least a start and an end, got {len(self.waypoints)} waypoints"
            )

        last = len(self.waypoints) - 1
        for i, waypoint in enumerate(self.waypoints):
            if waypoint.index != i:
                raise ValueError(f"Waypoint at position {i} has index {waypoint.index}")
            expected = _role_for_index(i, last)
            if waypoint.role != expected:
                raise ValueError(
                    f"Waypoint {i} has role {waypoint.role.name}, expected {expected.name}"
                )

    @classmethod
    def from_coordinates(
        cls,
        name: str,
        coordinates: Iterable,
        radius_m: Optional[float] = None,
        **kwargs,
    ) -> "Route":
        """
        Build a route from (lat, lon) pairs or Coordinate objects.

        Roles and indices are assigned from position.
        """
        coords: List[Coordinate] = [
            c if isinstance(c, Coordinate) else Coordinate(float(c[0]), float(c[1]))
            for c in coordinates
        ]
        last = len(coords) - 1
        waypoints = tuple(
            Waypoint(coordinate=c, role=_role_for_index(i, last), index=i, radius_m=radius_m)
            for i, c in enumerate(coords)
        )
        return cls(name=name, waypoints=waypoints, **kwargs)

    @property
    def waypoint_count(self) -> int:
        return len(self.waypoints)

    @property
    def last_index(self) -> int:
        return len(self.waypoints) - 1

    @property
    def start(self) -> Waypoint:
        return self.waypoints[0]

    @property
    def end(self) -> Waypoint:
        return self.waypoints[-1]

    @property
    def coordinates(self) -> Sequence[Coordinate]:
        return [w.coordinate for w in self.waypoints]

    @property
    def planned_distance_m(self) -> float:
        """Sum of great-circle legs between consecutive waypoints (m)."""
        from race_core.localization.geodesy import path_length_m
        return path_length_m(self.coordinates)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'created_date': self.created_date.isoformat(),
            'coordinates': [
                {
                    'latitude': w.coordinate.latitude,
                    'longitude': w.coordinate.longitude,
                    'radius_m': w.radius_m,
                }
                for w in self.waypoints
            ],
            'race_history': [r.to_dict() for r in self.race_history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Route":
        """Rebuild a route (and its history) from `to_dict` output."""
        from race_core.proto.race_result import RaceResult, parse_utc_datetime

        kwargs = {}
        if 'id' in data:
            kwargs['id'] = data['id']
        if 'created_date' in data:
            kwargs['created_date'] = parse_utc_datetime(data['created_date'])

        # Per-waypoint radius wins over the route-level one
        default_radius = data.get('radius_m')
        entries = data['coordinates']
        last = len(entries) - 1
        waypoints = tuple(
            Waypoint(
                coordinate=Coordinate(float(c['latitude']), float(c['longitude'])),
                role=_role_for_index(i, last),
                index=i,
                radius_m=c['radius_m'] if c.get('radius_m') is not None else default_radius,
            )
            for i, c in enumerate(entries)
        )

        route = cls(name=data.get('name', ''), waypoints=waypoints, **kwargs)
        route.race_history = [RaceResult.from_dict(r) for r in data.get('race_history', [])]
        return route


def _role_for_index(index: int, last_index: int) -> WaypointRole:
    if index == 0:
        return WaypointRole.START
    if index == last_index:
        return WaypointRole.END
    return WaypointRole.CHECKPOINT
