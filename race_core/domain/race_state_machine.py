"""
Race State Machine.

Sequences a route's waypoints during a race: arms one proximity zone at a
time, turns zone entries into segment splits and emits the final result.

States:
    NOT_STARTED -> IN_PROGRESS -> COMPLETED
    COMPLETED   -> IN_PROGRESS   (re-race, via start())

Cursor:
    Index of the next unreached waypoint. 1 right after start, never
    decreases, never exceeds the last index while the race is in progress.

Timing:
    Elapsed time advances on tick() (every 100 ms when a ticker is attached).
    A split uses whatever elapsed value is current when the entry is
    processed, so splits are accurate to the tick interval.

Threading:
    Not thread-safe. All mutating calls (start, on_zone_entered, complete,
    cleanup, tick) must come from one consumer, normally RaceEventLoop.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from race_core.exceptions import PreconditionError
from race_core.proto.route import Coordinate, Route
from race_core.proto.race_result import RaceResult, create_race_result
from race_core.proto.race_events import (
    AnomalyReason,
    RaceAnomaly,
    RaceCompleted,
    RaceSnapshot,
    RaceStarted,
    RaceState,
    SegmentCompleted,
)
from race_core.domain.identifiers import (
    START_ZONE_ID,
    FINISH_ZONE_ID,
    parse_checkpoint_index,
    zone_id_for_index,
)
from race_core.domain.proximity_zones import ProximityZoneManager
from race_core.domain.formatting import format_duration
from race_core.localization.position_tracker import PositionTracker, TrackingUpdate
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RaceStateMachine:
    """
    Orchestrates one route's races.

    Usage:
        race = RaceStateMachine(route, zone_manager, tracker, result_sink=sink)
        # start zone is armed on construction

        race.start()                       # PreconditionError if not in start zone
        race.on_zone_entered("checkpoint_1")
        race.on_zone_entered("race_finish")

        print(race.last_result)
    """

    def __init__(
        self,
        route: Route,
        zone_manager: ProximityZoneManager,
        tracker: PositionTracker,
        result_sink=None,
        ticker=None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = _utc_now,
        arm_start_zone: bool = True,
    ):
        """
        Initialize race state machine.

        Args:
            route: Route to race (read-only)
            zone_manager: Zone manager used to arm/disarm targets
            tracker: Position tracker supplying distance
            result_sink: Optional object with record(route, result)
            ticker: Optional object with start()/stop() driving tick()
            clock: Monotonic clock (s) for elapsed time
            wall_clock: Wall clock for the result's start date
            arm_start_zone: Arm the start zone immediately
        """
        self.route = route
        self.zone_manager = zone_manager
        self.tracker = tracker
        self.result_sink = result_sink
        self.ticker = ticker
        self.clock = clock
        self.wall_clock = wall_clock
        self.metrics = get_metrics()

        self._state = RaceState.NOT_STARTED
        self._cursor = 0
        self._elapsed = 0.0
        self._last_split = 0.0
        self._segments: List[float] = []
        self._start_time: Optional[float] = None
        self._start_date: Optional[datetime] = None
        self._accruing = False
        self._last_result: Optional[RaceResult] = None

        self._planned_distance = route.planned_distance_m
        self._distance_raced = 0.0
        self._remaining = self._planned_distance
        self._speed = 0.0

        self._listeners: List[Callable[[object], None]] = []

        logger.info(
            "Race prepared for route '%s': %d waypoints, planned distance %.1fm",
            route.name, route.waypoint_count, self._planned_distance,
        )

        if arm_start_zone:
            self.prepare()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> RaceState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def elapsed_s(self) -> float:
        return self._elapsed

    @property
    def segment_durations(self) -> tuple:
        return tuple(self._segments)

    @property
    def last_result(self) -> Optional[RaceResult]:
        return self._last_result

    @property
    def planned_distance_m(self) -> float:
        return self._planned_distance

    @property
    def distance_raced_m(self) -> float:
        return self._distance_raced

    @property
    def remaining_distance_m(self) -> float:
        return self._remaining

    @property
    def speed_m_s(self) -> float:
        return self._speed

    @property
    def is_in_start_zone(self) -> bool:
        return self.zone_manager.is_inside(START_ZONE_ID)

    @property
    def next_target(self) -> Optional[Coordinate]:
        """Coordinate of the waypoint at the cursor while racing."""
        if self._state != RaceState.IN_PROGRESS:
            return None
        return self.route.waypoints[self._cursor].coordinate

    @property
    def formatted_time(self) -> str:
        return format_duration(self._elapsed)

    def snapshot(self) -> RaceSnapshot:
        """Point-in-time view for display."""
        return RaceSnapshot(
            state=self._state,
            elapsed_s=self._elapsed,
            cursor=self._cursor,
            next_target=self.next_target,
            segment_durations_s=tuple(self._segments),
            distance_raced_m=self._distance_raced,
            remaining_distance_m=self._remaining,
            speed_m_s=self._speed,
            in_start_zone=self.is_in_start_zone,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[object], None]):
        """Register a listener for RaceStarted/SegmentCompleted/RaceCompleted/RaceAnomaly."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[object], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event):
        for listener in list(self._listeners):
            listener(event)

    def _anomaly(self, reason: AnomalyReason, zone_id: Optional[str] = None, detail: str = ""):
        self.metrics.increment('race_anomalies')
        self._emit(RaceAnomaly(reason=reason, zone_id=zone_id, detail=detail))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def prepare(self):
        """Arm the start zone so the start precondition can be observed."""
        start = self.route.start
        self.zone_manager.arm(START_ZONE_ID, start.coordinate, start.radius_m)

    def start(self):
        """
        Start (or restart) the race.

        Raises:
            PreconditionError: if a race is already in progress, or the
                position is not inside the start zone. Nothing is changed.
        """
        if self._state == RaceState.IN_PROGRESS:
            logger.warning("Cannot start: race already in progress")
            raise PreconditionError("Race already in progress")

        if not self.is_in_start_zone:
            logger.warning("Cannot start: not inside the start zone")
            raise PreconditionError("Not inside the start zone")

        logger.info("Starting race for route '%s'", self.route.name)

        self._elapsed = 0.0
        self._last_split = 0.0
        self._segments = []
        self._cursor = 1
        self._last_result = None

        self.tracker.start_tracking(for_race=True)
        self._distance_raced = 0.0
        self._remaining = self._planned_distance
        self._speed = 0.0

        self.zone_manager.disarm(START_ZONE_ID)

        self._state = RaceState.IN_PROGRESS
        self._arm_cursor_target()
        self._start_accrual()

        self.metrics.increment('races_started')
        self._emit(RaceStarted(route_id=self.route.id, first_target_index=self._cursor))

    def on_zone_entered(self, zone_id: str):
        """
        Handle an entry into a proximity zone.

        Entries that are not for the current target (and not the finish) are
        ignored: no split, no cursor change, nothing new armed.
        """
        if self._state == RaceState.NOT_STARTED and zone_id == START_ZONE_ID:
            # Sitting in the start area before start is the normal waiting position
            logger.debug("In start zone, waiting for start")
            return

        if self._state != RaceState.IN_PROGRESS:
            logger.info(
                "Ignoring entry for %s, race not in progress (state=%s)",
                zone_id, self._state.value,
            )
            self.metrics.increment_drop('not_in_progress')
            self._anomaly(AnomalyReason.NOT_IN_PROGRESS, zone_id)
            return

        self.zone_manager.disarm(zone_id)

        is_finish = zone_id == FINISH_ZONE_ID
        # Missed or stale checkpoints are ignored, never force-advanced: the
        # rider has to go back for the target. Checked before the split so an
        # ignored entry never adds a segment.
        if not is_finish and parse_checkpoint_index(zone_id) != self._cursor:
            logger.warning(
                "Out-of-sequence entry %s, expected target index %d; ignoring",
                zone_id, self._cursor,
            )
            self.metrics.increment_drop('out_of_sequence')
            self._anomaly(
                AnomalyReason.OUT_OF_SEQUENCE, zone_id,
                f"expected index {self._cursor}",
            )
            return

        self._record_split(zone_id)

        if is_finish:
            logger.info("Finish entered")
            self.complete()
            return

        next_cursor = self._cursor + 1
        if next_cursor <= self.route.last_index:
            self._cursor = next_cursor
            self._arm_cursor_target()
        else:
            # Finish id is always assigned to the last index, so this only
            # happens if a checkpoint id was issued for it.
            logger.error("Ran past the last waypoint after %s, forcing completion", zone_id)
            self._anomaly(AnomalyReason.CURSOR_OVERRUN, zone_id)
            self.complete()

    def complete(self) -> Optional[RaceResult]:
        """
        Finish the race and emit the result.

        Returns:
            The RaceResult, or None if no race was in progress
        """
        if self._state != RaceState.IN_PROGRESS:
            logger.info("complete() ignored, race not in progress (state=%s)", self._state.value)
            return None

        final_distance = self.tracker.total_distance_m

        self._stop_accrual()
        self.tracker.stop_tracking()
        self.zone_manager.disarm_all()
        self._state = RaceState.COMPLETED
        self._distance_raced = final_distance

        result = create_race_result(
            date=self._start_date,
            total_duration_s=self._elapsed,
            segment_durations_s=self._segments,
            total_distance_m=final_distance,
        )
        self._last_result = result

        self.metrics.increment('races_completed')
        logger.info(
            "Race completed: %s (%.1fs), %.1fm, avg %.2f m/s, splits %s",
            format_duration(result.total_duration_s), result.total_duration_s,
            result.total_distance_m, result.average_speed_m_s,
            [format_duration(d) for d in result.segment_durations_s],
        )

        self._emit(RaceCompleted(route_id=self.route.id, result=result))

        if self.result_sink is not None:
            self.result_sink.record(self.route, result)

        return result

    def cleanup(self):
        """
        Abandon the race view: stop elapsed accrual and disarm all zones.

        Callable in any state, any number of times. Recorded splits and the
        last result are left as they are. A race in progress is abandoned
        (back to NOT_STARTED) so that prepare() + start() can run again.
        """
        self._stop_accrual()
        self.zone_manager.disarm_all()

        if self._state == RaceState.IN_PROGRESS:
            logger.info("Race abandoned at %s", format_duration(self._elapsed))
            self._state = RaceState.NOT_STARTED

    def tick(self, now: Optional[float] = None):
        """
        Advance elapsed time.

        Args:
            now: Clock reading to use (defaults to clock())
        """
        if not self._accruing:
            return
        t = self.clock() if now is None else now
        self._elapsed = max(0.0, t - self._start_time)

    def on_position_update(self, update: TrackingUpdate):
        """Store speed/distance for display; remaining distance only while racing."""
        self._speed = update.speed_m_s
        self._distance_raced = update.cumulative_distance_m
        if self._state == RaceState.IN_PROGRESS:
            self._remaining = max(0.0, self._planned_distance - update.cumulative_distance_m)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _arm_cursor_target(self):
        waypoint = self.route.waypoints[self._cursor]
        zone_id = zone_id_for_index(self._cursor, self.route.last_index)
        logger.info("Next target %s (index %d)", zone_id, self._cursor)
        self.zone_manager.arm(zone_id, waypoint.coordinate, waypoint.radius_m)

    def _record_split(self, zone_id: str):
        duration = self._elapsed - self._last_split
        if duration < 0:
            logger.warning("Negative segment duration %.3fs for %s, recording 0", duration, zone_id)
            self._anomaly(AnomalyReason.NEGATIVE_SEGMENT, zone_id, f"{duration:.3f}s")
            duration = 0.0

        self._segments.append(duration)
        self._last_split = self._elapsed

        self.metrics.increment('segments_completed')
        self.metrics.record_histogram('segment_duration_s', duration)
        logger.info(
            "Segment %d: %s for %s", len(self._segments), format_duration(duration), zone_id
        )

        self._emit(SegmentCompleted(
            segment_index=len(self._segments) - 1,
            zone_id=zone_id,
            duration_s=duration,
            elapsed_s=self._elapsed,
        ))

    def _start_accrual(self):
        self._start_time = self.clock()
        self._start_date = self.wall_clock()
        self._accruing = True
        if self.ticker is not None:
            self.ticker.start()

    def _stop_accrual(self):
        self._accruing = False
        if self.ticker is not None:
            self.ticker.stop()
