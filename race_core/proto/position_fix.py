"""
Position Fix Schemas.

Defines the raw position reading delivered by a position source and the
accepted fix produced after accuracy filtering.
"""

from dataclasses import dataclass

from race_core.proto.route import Coordinate


@dataclass(frozen=True)
class PositionFix:
    """
    Raw position reading from a position source.

    Attributes:
        coordinate: Latitude/longitude in degrees
        horizontal_accuracy_m: Horizontal accuracy radius (m); negative means invalid
        speed_m_s: Instantaneous speed (m/s); negative means invalid
        timestamp: Time of the reading (s)
    """

    coordinate: Coordinate
    horizontal_accuracy_m: float
    speed_m_s: float
    timestamp: float

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'latitude': self.coordinate.latitude,
            'longitude': self.coordinate.longitude,
            'horizontal_accuracy_m': self.horizontal_accuracy_m,
            'speed_m_s': self.speed_m_s,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PositionFix":
        """Build a fix from a replay-log record."""
        return cls(
            coordinate=Coordinate(float(data['latitude']), float(data['longitude'])),
            horizontal_accuracy_m=float(data.get('horizontal_accuracy_m', 5.0)),
            speed_m_s=float(data.get('speed_m_s', -1.0)),
            timestamp=float(data['timestamp']),
        )


@dataclass(frozen=True)
class AcceptedFix:
    """
    Position fix that passed accuracy filtering.

    Attributes:
        coordinate: Latitude/longitude in degrees
        horizontal_accuracy_m: Horizontal accuracy (m), always in [0, threshold)
        speed_m_s: Speed clamped to >= 0 (m/s)
        timestamp: Time of the reading (s)
    """

    coordinate: Coordinate
    horizontal_accuracy_m: float
    speed_m_s: float
    timestamp: float

    def __post_init__(self):
        if self.speed_m_s < 0:
            raise ValueError(f"Accepted speed cannot be negative: {self.speed_m_s}")
