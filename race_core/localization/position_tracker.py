"""
Position Tracking Session.

Combines the position filter and the distance accumulator into one tracking
session, and forwards session start/stop to the platform position source.

Usage:
    tracker = PositionTracker(source=platform_source)
    tracker.start_tracking(for_race=True)

    for fix in fixes:
        update = tracker.process(fix)
        if update is not None:
            print(update.speed_m_s, update.cumulative_distance_m)

    tracker.stop_tracking()
    print(tracker.total_distance_m)   # still readable after stop
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from race_core.proto.position_fix import PositionFix, AcceptedFix
from race_core.localization.position_filter import PositionFilter
from race_core.localization.distance_accumulator import DistanceAccumulator, DistanceDelta
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class TrackingMode(Enum):
    """Update mode requested from the position source."""
    GENERAL = "general"   # 10 m distance filter
    RACE = "race"         # every update, best accuracy


class PositionSource(Protocol):
    """Platform position source. Fixes are delivered through the event loop."""

    def start_tracking(self, for_race: bool) -> None:
        ...

    def stop_tracking(self) -> None:
        ...


@dataclass(frozen=True)
class TrackingUpdate:
    """
    Published result of an accepted fix.

    Attributes:
        fix: The accepted fix
        speed_m_s: Instantaneous speed (m/s, >= 0)
        cumulative_distance_m: Distance travelled in this session (m)
        delta: Accumulator outcome for this fix
    """

    fix: AcceptedFix
    speed_m_s: float
    cumulative_distance_m: float
    delta: DistanceDelta


class PositionTracker:
    """
    One tracking session: filter -> accumulator -> published update.
    """

    def __init__(
        self,
        position_filter: Optional[PositionFilter] = None,
        accumulator: Optional[DistanceAccumulator] = None,
        source: Optional[PositionSource] = None,
    ):
        """
        Initialize tracker.

        Args:
            position_filter: Fix filter (default configuration if None)
            accumulator: Distance accumulator (default configuration if None)
            source: Optional platform position source to start/stop
        """
        self.position_filter = position_filter or PositionFilter()
        self.accumulator = accumulator or DistanceAccumulator()
        self.source = source
        self.metrics = get_metrics()

        self._tracking = False
        self._mode: Optional[TrackingMode] = None
        self._current: Optional[AcceptedFix] = None
        self._speed = 0.0

    @property
    def is_tracking(self) -> bool:
        return self._tracking

    @property
    def mode(self) -> Optional[TrackingMode]:
        return self._mode

    @property
    def current_location(self) -> Optional[AcceptedFix]:
        return self._current

    @property
    def speed_m_s(self) -> float:
        return self._speed

    @property
    def total_distance_m(self) -> float:
        return self.accumulator.cumulative

    def start_tracking(self, for_race: bool = False):
        """
        Open a new tracking session.

        Resets the cumulative distance, the previous-fix pointer and the
        filter's smoothing state.
        """
        self._mode = TrackingMode.RACE if for_race else TrackingMode.GENERAL
        self.accumulator.reset()
        self.position_filter.reset()
        self._current = None
        self._speed = 0.0
        self._tracking = True

        if self.source is not None:
            self.source.start_tracking(for_race)

        logger.info("Tracking started (mode=%s), distance reset", self._mode.value)

    def stop_tracking(self):
        """Close the session. The cumulative distance stays readable."""
        if self.source is not None and self._tracking:
            self.source.stop_tracking()
        self._tracking = False
        logger.info("Tracking stopped, final distance %.1fm", self.total_distance_m)

    def process(self, fix: PositionFix) -> Optional[TrackingUpdate]:
        """
        Run one raw fix through the session.

        Args:
            fix: Raw position fix

        Returns:
            TrackingUpdate for accepted fixes, None otherwise
        """
        if not self._tracking:
            self.metrics.increment_drop('not_tracking')
            return None

        accepted = self.position_filter.accept(fix)
        if accepted is None:
            return None

        self._current = accepted
        self._speed = accepted.speed_m_s

        delta = self.accumulator.add(accepted)

        return TrackingUpdate(
            fix=accepted,
            speed_m_s=accepted.speed_m_s,
            cumulative_distance_m=delta.cumulative_m,
            delta=delta,
        )
