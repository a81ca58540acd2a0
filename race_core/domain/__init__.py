"""
Domain Module: Race sequencing logic.

Implements:
- Zone identifier scheme
- Proximity zone bookkeeping and initial-state synthesis
- Waypoint-sequencing race state machine
"""

from .identifiers import (
    START_ZONE_ID,
    FINISH_ZONE_ID,
    checkpoint_zone_id,
    parse_checkpoint_index,
    zone_id_for_index,
)
from .proximity_zones import (
    GeofenceMonitor,
    ProximityZoneManager,
    ZoneConfig,
)
from .race_state_machine import RaceStateMachine
from .formatting import (
    format_duration,
    format_distance_km,
    format_speed_kmh,
)

__all__ = [
    # Identifiers
    'START_ZONE_ID',
    'FINISH_ZONE_ID',
    'checkpoint_zone_id',
    'parse_checkpoint_index',
    'zone_id_for_index',
    # Zones
    'GeofenceMonitor',
    'ProximityZoneManager',
    'ZoneConfig',
    # Race
    'RaceStateMachine',
    # Formatting
    'format_duration',
    'format_distance_km',
    'format_speed_kmh',
]
