"""
Protocol Module: Record and event schemas.

Plain dataclasses shared between the sensing side (localization), the race
logic (domain) and the collaborators at the edge (io).
"""

from .route import (
    Coordinate,
    WaypointRole,
    Waypoint,
    Route,
)
from .position_fix import (
    PositionFix,
    AcceptedFix,
)
from .zone_event import (
    ProximityZone,
    ZoneEventKind,
    ZoneEvent,
)
from .race_result import (
    RaceResult,
    compute_average_speed,
    create_race_result,
    parse_utc_datetime,
)
from .race_events import (
    RaceState,
    AnomalyReason,
    RaceStarted,
    SegmentCompleted,
    RaceCompleted,
    RaceAnomaly,
    RaceSnapshot,
)

__all__ = [
    # Route
    'Coordinate',
    'WaypointRole',
    'Waypoint',
    'Route',
    # Position
    'PositionFix',
    'AcceptedFix',
    # Zones
    'ProximityZone',
    'ZoneEventKind',
    'ZoneEvent',
    # Results
    'RaceResult',
    'compute_average_speed',
    'create_race_result',
    'parse_utc_datetime',
    # Race events
    'RaceState',
    'AnomalyReason',
    'RaceStarted',
    'SegmentCompleted',
    'RaceCompleted',
    'RaceAnomaly',
    'RaceSnapshot',
]
