"""
Ordered event channel for the race engine.

Position fixes, zone events and timer ticks arrive asynchronously from the
sensing side. They are posted into one bounded queue and consumed by a
single consumer, which runs each event to completion before taking the next.
No race state is touched from any other thread.

The consumer is either the caller (run_pending) or a background daemon
thread (start/stop).
"""

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from race_core.proto.position_fix import PositionFix
from race_core.proto.zone_event import ZoneEvent
from race_core.domain.proximity_zones import ProximityZoneManager
from race_core.domain.race_state_machine import RaceStateMachine
from race_core.localization.position_tracker import PositionTracker
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tick:
    """Elapsed-time tick. `now` overrides the race clock when set."""
    now: Optional[float] = None


@dataclass
class _Call:
    fn: Callable
    args: tuple
    future: Future


class RaceEventLoop:
    """
    Single-consumer dispatcher in front of the race state machine.

    Usage:
        loop = RaceEventLoop(race, zone_manager, tracker)
        monitor.event_sink = loop.post

        loop.post(fix)
        loop.post(zone_event)
        loop.run_pending()

        # or, threaded
        loop.start()
        loop.call(race.start).result()    # PreconditionError re-raised here
        loop.stop()
    """

    def __init__(
        self,
        race: RaceStateMachine,
        zone_manager: ProximityZoneManager,
        tracker: PositionTracker,
        on_fix: Optional[Callable[[PositionFix], None]] = None,
        maxsize: int = 1024,
    ):
        """
        Initialize event loop.

        Args:
            race: Race state machine
            zone_manager: Zone manager that filters zone events
            tracker: Position tracker fed with fixes
            on_fix: Optional observer receiving every raw fix after tracking
                (e.g. a simulated geofence monitor)
            maxsize: Queue bound; events posted to a full queue are dropped
        """
        self.race = race
        self.zone_manager = zone_manager
        self.tracker = tracker
        self.on_fix = on_fix
        self.metrics = get_metrics()

        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._running

    def post(self, event) -> bool:
        """
        Enqueue an event without blocking.

        Returns:
            False if the queue was full and the event was dropped
        """
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            self.metrics.increment_drop('queue_full')
            logger.warning("Event queue full, dropping %s", type(event).__name__)
            return False

    def call(self, fn: Callable, *args) -> Future:
        """
        Run fn(*args) on the consumer, in order with other events.

        Returns:
            Future holding the return value or the raised exception
        """
        future: Future = Future()
        if not self.post(_Call(fn, args, future)):
            future.set_exception(RuntimeError("event queue full"))
        return future

    def dispatch(self, event):
        """Process one event to completion."""
        if isinstance(event, PositionFix):
            update = self.tracker.process(event)
            if update is not None:
                self.race.on_position_update(update)
            if self.on_fix is not None:
                self.on_fix(event)
        elif isinstance(event, ZoneEvent):
            entered = self.zone_manager.handle_event(event)
            if entered is not None:
                self.race.on_zone_entered(entered)
        elif isinstance(event, Tick):
            self.race.tick(event.now)
        elif isinstance(event, _Call):
            if not event.future.set_running_or_notify_cancel():
                return
            try:
                event.future.set_result(event.fn(*event.args))
            except Exception as exc:
                event.future.set_exception(exc)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def run_pending(self) -> int:
        """
        Drain the queue on the calling thread.

        Events posted while draining are processed too.

        Returns:
            Number of events processed
        """
        processed = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return processed
            self.dispatch(event)
            processed += 1

    def start(self):
        """Start the background consumer thread (no-op if running)."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._run, name="race-event-loop", daemon=True)
        self._thread.start()
        logger.info("Race event loop started")

    def stop(self, timeout: float = 1.0):
        """Stop the background consumer; pending events stay queued."""
        if not self._running:
            return
        self._running = False
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None
        logger.info("Race event loop stopped")

    def _run(self):
        while self._running:
            try:
                event = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue

            try:
                self.dispatch(event)
            except Exception:
                logger.exception("Error while processing %s", type(event).__name__)
