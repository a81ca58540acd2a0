"""
Localization Module: position filtering, distance accumulation, geofencing.

Key classes:
- PositionFilter: Accuracy gate + speed clamping for raw fixes
- DistanceAccumulator: Cumulative distance with noise/glitch rejection
- PositionTracker: One tracking session (filter + accumulator)
- ScalarKalmanFilter: Optional speed smoother
- SimulatedGeofenceMonitor: Position-driven proximity monitoring facility
"""

from .geodesy import (
    EARTH_RADIUS_M,
    haversine_m,
    distance_between,
    path_length_m,
    offset_coordinate,
)
from .kalman import (
    ScalarKalmanFilter,
    ScalarKalmanConfig,
)
from .position_filter import (
    PositionFilter,
    PositionFilterConfig,
    create_default_filter,
)
from .distance_accumulator import (
    DistanceAccumulator,
    DistanceAccumulatorConfig,
    DistanceDelta,
)
from .position_tracker import (
    PositionTracker,
    PositionSource,
    TrackingMode,
    TrackingUpdate,
)
from .geofence_monitor import SimulatedGeofenceMonitor

__all__ = [
    # Geometry
    'EARTH_RADIUS_M',
    'haversine_m',
    'distance_between',
    'path_length_m',
    'offset_coordinate',
    # Smoothing
    'ScalarKalmanFilter',
    'ScalarKalmanConfig',
    # Filtering / distance
    'PositionFilter',
    'PositionFilterConfig',
    'create_default_filter',
    'DistanceAccumulator',
    'DistanceAccumulatorConfig',
    'DistanceDelta',
    # Tracking session
    'PositionTracker',
    'PositionSource',
    'TrackingMode',
    'TrackingUpdate',
    # Geofencing
    'SimulatedGeofenceMonitor',
]
