"""
Proximity Zone Schemas.

A proximity zone is a circular region around a waypoint used to detect
arrival. Zone events are delivered asynchronously by the monitoring facility
(or synthesized by the zone manager when a zone is armed around a position
that is already inside it).
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from race_core.proto.route import Coordinate


class ZoneEventKind(IntEnum):
    """Type of zone transition."""
    ENTERED = 0        # Crossed from outside to inside
    EXITED = 1         # Crossed from inside to outside
    INITIAL_STATE = 2  # State determined right after monitoring started


@dataclass
class ProximityZone:
    """
    Circular proximity zone.

    Attributes:
        zone_id: Unique identifier (see domain.identifiers)
        center: Zone center
        radius_m: Zone radius (m)
        active: True while the zone is monitored
    """

    zone_id: str
    center: Coordinate
    radius_m: float
    active: bool = True

    def __post_init__(self):
        if not self.zone_id:
            raise ValueError("Zone identifier cannot be empty")
        if self.radius_m <= 0:
            raise ValueError(f"Zone radius must be positive: {self.radius_m}")


@dataclass(frozen=True)
class ZoneEvent:
    """
    Zone transition event.

    Attributes:
        zone_id: Identifier of the zone
        kind: ENTERED, EXITED or INITIAL_STATE
        inside: For INITIAL_STATE, whether the position is inside the zone
        synthesized: True when produced by the zone manager rather than the
            monitoring facility
    """

    zone_id: str
    kind: ZoneEventKind
    inside: Optional[bool] = None
    synthesized: bool = False

    def __post_init__(self):
        if self.kind == ZoneEventKind.INITIAL_STATE and self.inside is None:
            raise ValueError("INITIAL_STATE events must carry an inside flag")

    @property
    def is_entry(self) -> bool:
        """True for an entry or an initial state of 'inside'."""
        if self.kind == ZoneEventKind.ENTERED:
            return True
        return self.kind == ZoneEventKind.INITIAL_STATE and bool(self.inside)

    @classmethod
    def entered(cls, zone_id: str) -> "ZoneEvent":
        return cls(zone_id, ZoneEventKind.ENTERED)

    @classmethod
    def exited(cls, zone_id: str) -> "ZoneEvent":
        return cls(zone_id, ZoneEventKind.EXITED)

    @classmethod
    def initial_state(cls, zone_id: str, inside: bool, synthesized: bool = False) -> "ZoneEvent":
        return cls(zone_id, ZoneEventKind.INITIAL_STATE, inside=inside, synthesized=synthesized)
