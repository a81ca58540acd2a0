"""
Race Notification Schemas.

The race state machine exposes plain state snapshots and emits these events
to subscribers (UI layers, loggers, the replay tool) instead of relying on
observed properties.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from race_core.proto.race_result import RaceResult
from race_core.proto.route import Coordinate


class RaceState(Enum):
    """Lifecycle state of a race."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AnomalyReason(Enum):
    """Recoverable anomalies observed by the state machine."""
    NEGATIVE_SEGMENT = "negative_segment"
    NOT_IN_PROGRESS = "not_in_progress"
    OUT_OF_SEQUENCE = "out_of_sequence"
    CURSOR_OVERRUN = "cursor_overrun"


@dataclass(frozen=True)
class RaceStarted:
    """Emitted when a race transitions to IN_PROGRESS."""
    route_id: str
    first_target_index: int


@dataclass(frozen=True)
class SegmentCompleted:
    """
    Emitted for each recorded split.

    Attributes:
        segment_index: 0-based index of the split
        zone_id: Zone whose entry closed the segment
        duration_s: Split duration (s), already clamped to >= 0
        elapsed_s: Race elapsed time at the split (s)
    """
    segment_index: int
    zone_id: str
    duration_s: float
    elapsed_s: float


@dataclass(frozen=True)
class RaceCompleted:
    """Emitted once when a race transitions to COMPLETED."""
    route_id: str
    result: RaceResult


@dataclass(frozen=True)
class RaceAnomaly:
    """Recoverable anomaly (never fatal)."""
    reason: AnomalyReason
    zone_id: Optional[str] = None
    detail: str = ""


@dataclass(frozen=True)
class RaceSnapshot:
    """
    Point-in-time view of a race for display.

    Attributes:
        state: Race state
        elapsed_s: Elapsed time (s)
        cursor: Index of the next unreached waypoint
        next_target: Coordinate of the next target, None when not racing
        segment_durations_s: Splits recorded so far
        distance_raced_m: Distance travelled since race start (m)
        remaining_distance_m: Planned distance minus distance raced (m)
        speed_m_s: Current speed (m/s)
        in_start_zone: Whether the position is inside the start zone
    """
    state: RaceState
    elapsed_s: float
    cursor: int
    next_target: Optional[Coordinate]
    segment_durations_s: Tuple[float, ...]
    distance_raced_m: float
    remaining_distance_m: float
    speed_m_s: float
    in_start_zone: bool

    @property
    def is_racing(self) -> bool:
        return self.state == RaceState.IN_PROGRESS
