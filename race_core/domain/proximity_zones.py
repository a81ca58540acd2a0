"""
Proximity Zone Manager.

Owns the set of active circular zones (one per pending race target) on top
of a platform proximity monitoring facility.

Owned logic:
- id -> active zone bookkeeping (re-arming an id replaces the old zone)
- per-zone inside state, which drives the start-zone precondition
- initial-state synthesis: a zone armed around a position that is already
  inside it produces an INITIAL_STATE(inside=True) event, handled as an entry

Synthesized events go to the event sink (normally the race event loop), so
they are processed after the operation that armed the zone, never
re-entrantly inside it.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from race_core.proto.route import Coordinate
from race_core.proto.zone_event import ProximityZone, ZoneEvent, ZoneEventKind
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class GeofenceMonitor(Protocol):
    """Platform proximity monitoring facility."""

    def start_monitoring(self, zone: ProximityZone) -> None:
        ...

    def stop_monitoring(self, zone_id: str) -> None:
        ...

    def request_state(self, zone: ProximityZone) -> Optional[bool]:
        """Synchronous "is the current position inside" query (None if unknown)."""
        ...


@dataclass
class ZoneConfig:
    """
    Configuration for the zone manager.

    Attributes:
        default_radius_m: Radius used when neither caller nor waypoint overrides it (m)
    """

    default_radius_m: float = 30.0

    def __post_init__(self):
        assert self.default_radius_m > 0, "default radius must be positive"


class ProximityZoneManager:
    """
    Bookkeeping layer over a geofence monitor.

    Usage:
        manager = ProximityZoneManager(monitor, event_sink=loop.post)

        manager.arm("checkpoint_1", waypoint.coordinate)
        ...
        entered_id = manager.handle_event(event)   # from the monitor
        if entered_id is not None:
            race.on_zone_entered(entered_id)
    """

    def __init__(
        self,
        monitor: GeofenceMonitor,
        event_sink: Optional[Callable[[ZoneEvent], None]] = None,
        config: Optional[ZoneConfig] = None,
    ):
        """
        Initialize zone manager.

        Args:
            monitor: Platform proximity monitoring facility
            event_sink: Receives synthesized events. If None they are queued
                internally and returned by drain_events().
            config: Zone configuration (uses defaults if None)
        """
        self.monitor = monitor
        self.event_sink = event_sink
        self.config = config or ZoneConfig()
        self.metrics = get_metrics()

        self._zones: "OrderedDict[str, ProximityZone]" = OrderedDict()
        self._inside: Dict[str, bool] = {}
        self._outbox: List[ZoneEvent] = []

    @property
    def active_zone_ids(self) -> List[str]:
        """Identifiers of active zones, in arming order."""
        return list(self._zones)

    def get_zone(self, zone_id: str) -> Optional[ProximityZone]:
        return self._zones.get(zone_id)

    def is_armed(self, zone_id: str) -> bool:
        return zone_id in self._zones

    def is_inside(self, zone_id: str) -> bool:
        """Last known inside state of an active zone (False if not armed)."""
        return self._inside.get(zone_id, False)

    def arm(
        self,
        zone_id: str,
        center: Coordinate,
        radius_m: Optional[float] = None,
    ) -> ProximityZone:
        """
        Start monitoring a zone.

        Args:
            zone_id: Zone identifier; an existing zone with this id is disarmed first
            center: Zone center
            radius_m: Radius override (m); config default if None

        Returns:
            The armed zone
        """
        if zone_id in self._zones:
            self.disarm(zone_id)

        radius = radius_m if radius_m is not None else self.config.default_radius_m
        zone = ProximityZone(zone_id=zone_id, center=center, radius_m=radius)

        self.monitor.start_monitoring(zone)
        self._zones[zone_id] = zone
        self.metrics.increment('zones_armed')
        logger.info(
            "Monitoring %s at (%.6f, %.6f), r=%.1fm",
            zone_id, center.latitude, center.longitude, radius,
        )

        inside = self.monitor.request_state(zone)
        self._inside[zone_id] = bool(inside)
        if inside:
            logger.info("Already inside %s when armed, synthesizing entry", zone_id)
            self._emit(ZoneEvent.initial_state(zone_id, inside=True, synthesized=True))

        return zone

    def disarm(self, zone_id: str):
        """Stop monitoring a zone. Unknown ids are a no-op."""
        zone = self._zones.pop(zone_id, None)
        if zone is None:
            return

        self.monitor.stop_monitoring(zone_id)
        zone.active = False
        self._inside.pop(zone_id, None)
        self.metrics.increment('zones_disarmed')
        logger.info("Stopped monitoring %s", zone_id)

    def disarm_all(self):
        """Stop monitoring every active zone. Safe when none are active."""
        if not self._zones:
            return
        for zone_id in list(self._zones):
            self.disarm(zone_id)
        logger.info("Stopped all zones")

    def handle_event(self, event: ZoneEvent) -> Optional[str]:
        """
        Apply an incoming zone event.

        Args:
            event: Event from the monitor (or a synthesized one)

        Returns:
            The zone id if the event counts as an entry into an active zone,
            None otherwise
        """
        self.metrics.increment('zone_events_in')

        if event.zone_id not in self._zones:
            self.metrics.increment_drop('inactive_zone')
            logger.debug("Ignoring %s for inactive zone %s", event.kind.name, event.zone_id)
            return None

        if event.kind == ZoneEventKind.ENTERED:
            self._inside[event.zone_id] = True
        elif event.kind == ZoneEventKind.EXITED:
            self._inside[event.zone_id] = False
        else:
            self._inside[event.zone_id] = bool(event.inside)

        logger.debug("Zone %s -> %s", event.zone_id, event.kind.name)

        return event.zone_id if event.is_entry else None

    def drain_events(self) -> List[ZoneEvent]:
        """Return and clear events synthesized while no sink was attached."""
        events, self._outbox = self._outbox, []
        return events

    def _emit(self, event: ZoneEvent):
        if self.event_sink is not None:
            self.event_sink(event)
        else:
            self._outbox.append(event)
