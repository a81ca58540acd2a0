"""
Offline race replay.

Runs a recorded fix log through the complete engine (filter, accumulator,
simulated geofencing, event loop, state machine) on a simulated clock taken
from the fix timestamps. The race starts automatically at the first fix that
puts the racer inside the start zone.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from race_core import config
from race_core.exceptions import PreconditionError
from race_core.proto.position_fix import PositionFix
from race_core.proto.route import Route
from race_core.proto.race_result import RaceResult
from race_core.proto.race_events import RaceSnapshot, RaceState
from race_core.domain.proximity_zones import ProximityZoneManager, ZoneConfig
from race_core.domain.race_state_machine import RaceStateMachine
from race_core.localization.distance_accumulator import (
    DistanceAccumulator,
    DistanceAccumulatorConfig,
)
from race_core.localization.geofence_monitor import SimulatedGeofenceMonitor
from race_core.localization.position_filter import PositionFilter, PositionFilterConfig
from race_core.localization.position_tracker import PositionTracker
from race_core.io.event_loop import RaceEventLoop, Tick

logger = logging.getLogger(__name__)


class SimulatedClock:
    """Clock whose time is set explicitly."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@dataclass
class ReplayOutcome:
    """
    Result of a replay.

    Attributes:
        result: RaceResult, or None if the finish was never reached
        snapshot: Final race snapshot
        events: Every race notification emitted, in order
        fixes_processed: Number of fixes replayed
    """

    result: Optional[RaceResult]
    snapshot: RaceSnapshot
    events: List[object] = field(default_factory=list)
    fixes_processed: int = 0

    @property
    def finished(self) -> bool:
        return self.result is not None


def run_replay(
    route: Route,
    fixes: Iterable[PositionFix],
    radius_m: Optional[float] = None,
    result_sink=None,
) -> ReplayOutcome:
    """
    Replay fixes against a route.

    Args:
        route: Route to race
        fixes: Fixes in timestamp order
        radius_m: Zone radius override (default from ZONE_CONFIG)
        result_sink: Optional sink for the completed result

    Returns:
        ReplayOutcome
    """
    clock = SimulatedClock()

    monitor = SimulatedGeofenceMonitor()
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
    )
    race = RaceStateMachine(
        route, zone_manager, tracker,
        result_sink=result_sink,
        clock=clock,
        arm_start_zone=False,
    )
    loop = RaceEventLoop(
        race, zone_manager, tracker,
        on_fix=lambda fix: monitor.update_position(fix.coordinate),
        maxsize=config.RACE_CONFIG["event_queue_size"],
    )
    monitor.event_sink = loop.post
    zone_manager.event_sink = loop.post

    events: List[object] = []
    race.subscribe(events.append)

    race.prepare()
    tracker.start_tracking(for_race=False)

    count = 0
    for fix in fixes:
        count += 1
        clock.now = fix.timestamp
        loop.post(Tick(fix.timestamp))
        loop.post(fix)
        loop.run_pending()

        if race.state == RaceState.NOT_STARTED and race.is_in_start_zone:
            try:
                race.start()
            except PreconditionError as exc:
                logger.warning("Replay could not start race: %s", exc)
            loop.run_pending()

        if race.state == RaceState.COMPLETED:
            break

    snapshot = race.snapshot()
    if race.state != RaceState.COMPLETED:
        logger.warning(
            "Replay ended without reaching the finish (cursor %d of %d)",
            race.cursor, route.last_index,
        )
    race.cleanup()
    race.unsubscribe(events.append)

    return ReplayOutcome(
        result=race.last_result,
        snapshot=snapshot,
        events=events,
        fixes_processed=count,
    )


def load_fixes(path: Union[str, Path]) -> List[PositionFix]:
    """Load a JSON list of fix records (see PositionFix.from_dict)."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    fixes = [PositionFix.from_dict(item) for item in data]
    fixes.sort(key=lambda f: f.timestamp)
    return fixes
