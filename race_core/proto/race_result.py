"""
Race Result Record.

Immutable output of a completed race. Created once by the race state machine
and handed to the result sink, which attaches it to the route's history.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence, Tuple


@dataclass(frozen=True)
class RaceResult:
    """
    Result of one completed race.

    Attributes:
        date: Wall-clock time at which the race started
        total_duration_s: Elapsed race time (s)
        segment_durations_s: Split per leg (count = waypoint count - 1)
        total_distance_m: Distance travelled during the race (m)
        average_speed_m_s: total_distance_m / total_duration_s, 0 if duration is 0
        id: Unique result identifier
    """

    date: datetime
    total_duration_s: float
    segment_durations_s: Tuple[float, ...]
    total_distance_m: float
    average_speed_m_s: float
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self):
        """Validate result."""
        object.__setattr__(self, 'segment_durations_s', tuple(self.segment_durations_s))

        if self.total_duration_s < 0:
            raise ValueError(f"Total duration cannot be negative: {self.total_duration_s}")
        if self.total_distance_m < 0:
            raise ValueError(f"Total distance cannot be negative: {self.total_distance_m}")
        if any(d < 0 for d in self.segment_durations_s):
            raise ValueError(f"Segment durations cannot be negative: {self.segment_durations_s}")

    @property
    def segment_count(self) -> int:
        return len(self.segment_durations_s)

    @property
    def average_speed_kmh(self) -> float:
        return self.average_speed_m_s * 3.6

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'total_duration_s': self.total_duration_s,
            'segment_durations_s': list(self.segment_durations_s),
            'total_distance_m': self.total_distance_m,
            'average_speed_m_s': self.average_speed_m_s,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RaceResult":
        return cls(
            id=data['id'],
            date=parse_utc_datetime(data['date']),
            total_duration_s=float(data['total_duration_s']),
            segment_durations_s=tuple(float(d) for d in data['segment_durations_s']),
            total_distance_m=float(data['total_distance_m']),
            average_speed_m_s=float(data['average_speed_m_s']),
        )


def parse_utc_datetime(text: str) -> datetime:
    """Parse an ISO-8601 timestamp; timestamps without an offset are taken as UTC."""
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def compute_average_speed(total_distance_m: float, total_duration_s: float) -> float:
    """Average speed in m/s; 0 when no time has elapsed."""
    if total_duration_s <= 0:
        return 0.0
    return total_distance_m / total_duration_s


def create_race_result(
    date: datetime,
    total_duration_s: float,
    segment_durations_s: Sequence[float],
    total_distance_m: float,
) -> RaceResult:
    """
    Create a race result, deriving the average speed.

    Args:
        date: Race start time
        total_duration_s: Elapsed race time (s)
        segment_durations_s: Ordered splits (s)
        total_distance_m: Distance travelled (m)

    Returns:
        RaceResult
    """
    return RaceResult(
        date=date,
        total_duration_s=total_duration_s,
        segment_durations_s=tuple(segment_durations_s),
        total_distance_m=total_distance_m,
        average_speed_m_s=compute_average_speed(total_distance_m, total_duration_s),
    )
