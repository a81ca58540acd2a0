"""
Live race wiring.

Builds the engine for a real device: the platform geofence monitor and
position source post into one background event loop, and a periodic ticker
posts Tick events so elapsed time is serialized with everything else.

Usage:
    live = create_live_race(route, monitor, source=gps)
    live.loop.start()
    live.loop.call(live.race.prepare).result()
    ...
    live.loop.call(live.race.start).result()
    ...
    live.shutdown()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from race_core import config
from race_core.proto.route import Route
from race_core.domain.proximity_zones import ProximityZoneManager, ZoneConfig
from race_core.domain.race_state_machine import RaceStateMachine
from race_core.localization.distance_accumulator import (
    DistanceAccumulator,
    DistanceAccumulatorConfig,
)
from race_core.localization.position_filter import PositionFilter, PositionFilterConfig
from race_core.localization.position_tracker import PositionSource, PositionTracker
from race_core.io.event_loop import RaceEventLoop, Tick
from race_core.io.ticker import PeriodicTicker

logger = logging.getLogger(__name__)


@dataclass
class LiveRace:
    """Engine components wired for live use."""

    race: RaceStateMachine
    loop: RaceEventLoop
    zone_manager: ProximityZoneManager
    tracker: PositionTracker
    ticker: PeriodicTicker

    def shutdown(self, timeout: float = 1.0):
        """Abandon any race in progress, then stop the ticker and the loop."""
        if self.loop.is_running:
            self.loop.call(self.race.cleanup).result(timeout)
        else:
            self.race.cleanup()
        self.ticker.stop(timeout)
        self.loop.stop(timeout)


def create_live_race(
    route: Route,
    monitor,
    source: Optional[PositionSource] = None,
    result_sink=None,
    radius_m: Optional[float] = None,
) -> LiveRace:
    """
    Wire a race for live use from the configuration defaults.

    Args:
        route: Route to race
        monitor: Platform geofence monitor; its event_sink is pointed at the loop
        source: Optional platform position source (fixes go to loop.post)
        result_sink: Optional sink for completed results
        radius_m: Zone radius override (default from ZONE_CONFIG)

    Returns:
        LiveRace (loop not started)
    """
    zone_manager = ProximityZoneManager(
        monitor,
        config=ZoneConfig(
            default_radius_m=radius_m if radius_m is not None
            else config.ZONE_CONFIG["default_radius_m"]
        ),
    )
    tracker = PositionTracker(
        position_filter=PositionFilter(PositionFilterConfig(**config.FILTER_CONFIG)),
        accumulator=DistanceAccumulator(DistanceAccumulatorConfig(**config.DISTANCE_CONFIG)),
        source=source,
    )
    race = RaceStateMachine(
        route, zone_manager, tracker,
        result_sink=result_sink,
        arm_start_zone=False,
    )
    loop = RaceEventLoop(
        race, zone_manager, tracker,
        maxsize=config.RACE_CONFIG["event_queue_size"],
    )
    zone_manager.event_sink = loop.post
    if hasattr(monitor, 'event_sink'):
        monitor.event_sink = loop.post

    # The race starts and stops the ticker; ticks reach it through the loop
    race.ticker = PeriodicTicker(
        lambda: loop.post(Tick()),
        interval_s=config.RACE_CONFIG["tick_interval_s"],
    )

    logger.info(
        "Live race wired for route '%s' (tick %.2fs, queue %d)",
        route.name, race.ticker.interval_s, config.RACE_CONFIG["event_queue_size"],
    )
    return LiveRace(race, loop, zone_manager, tracker, race.ticker)
