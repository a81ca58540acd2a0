"""
Simulated Proximity Monitoring Facility.

Reference implementation of the platform geofencing service, driven by
positions instead of a device. Used by the replay tool and the tests.

A zone is "inside" when the great-circle distance from the position to the
zone center is <= radius. Transitions are detected per zone by comparing the
inside flag with the previous position's, the same way a crossing is
detected by a sign change.
"""

import logging
from typing import Callable, Dict, Optional

from race_core.proto.route import Coordinate
from race_core.proto.zone_event import ProximityZone, ZoneEvent
from race_core.localization.geodesy import distance_between

logger = logging.getLogger(__name__)


class SimulatedGeofenceMonitor:
    """
    Position-driven geofence monitor.

    Usage:
        monitor = SimulatedGeofenceMonitor(event_sink=loop.post)
        zone_manager = ProximityZoneManager(monitor, event_sink=loop.post)

        monitor.update_position(fix.coordinate)   # may post ENTERED/EXITED
    """

    def __init__(self, event_sink: Optional[Callable[[ZoneEvent], None]] = None):
        """
        Initialize monitor.

        Args:
            event_sink: Receives asynchronous zone events (e.g. event loop post)
        """
        self.event_sink = event_sink
        self._zones: Dict[str, ProximityZone] = {}
        self._inside: Dict[str, bool] = {}
        self._position: Optional[Coordinate] = None

    @property
    def monitored_ids(self):
        return set(self._zones)

    @property
    def position(self) -> Optional[Coordinate]:
        return self._position

    def start_monitoring(self, zone: ProximityZone):
        """Start watching a zone (replaces a zone with the same id)."""
        self._zones[zone.zone_id] = zone
        state = self._contains(zone)
        self._inside[zone.zone_id] = bool(state)
        logger.debug("Monitoring %s r=%.1fm", zone.zone_id, zone.radius_m)

    def stop_monitoring(self, zone_id: str):
        """Stop watching a zone; unknown ids are ignored."""
        self._zones.pop(zone_id, None)
        self._inside.pop(zone_id, None)

    def request_state(self, zone: ProximityZone) -> Optional[bool]:
        """
        Synchronous inside query against the last known position.

        Returns:
            True/False, or None if no position is known yet
        """
        return self._contains(zone)

    def update_position(self, coordinate: Coordinate):
        """
        Feed a new position and emit transitions for monitored zones.

        Args:
            coordinate: Current position
        """
        self._position = coordinate

        for zone_id, zone in list(self._zones.items()):
            inside = bool(self._contains(zone))
            was_inside = self._inside.get(zone_id, False)
            self._inside[zone_id] = inside

            if inside == was_inside:
                continue

            event = ZoneEvent.entered(zone_id) if inside else ZoneEvent.exited(zone_id)
            logger.debug("Zone %s %s", zone_id, event.kind.name)
            if self.event_sink is not None:
                self.event_sink(event)

    def _contains(self, zone: ProximityZone) -> Optional[bool]:
        if self._position is None:
            return None
        return distance_between(self._position, zone.center) <= zone.radius_m
