"""
Cumulative Distance Accumulator.

Turns consecutive accepted fixes into a travelled-distance counter while
rejecting GPS jitter and tracking glitches.

Gating per delta:
    delta <= noise_floor_m      -> noise, ignored
    delta >= glitch_ceiling_m   -> glitch, ignored
    otherwise                   -> added to cumulative

The previous-fix pointer advances on every accepted fix, including ignored
deltas, so the next delta is always measured from the latest good point.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from race_core.proto.position_fix import AcceptedFix
from race_core.localization.geodesy import distance_between
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class DistanceAccumulatorConfig:
    """
    Configuration for the distance accumulator.

    Attributes:
        noise_floor_m: Deltas at or below this are jitter (m)
        glitch_ceiling_m: Deltas at or above this are glitches (m)
    """

    noise_floor_m: float = 0.2
    glitch_ceiling_m: float = 200.0

    def __post_init__(self):
        assert self.noise_floor_m >= 0, "noise floor must be non-negative"
        assert self.glitch_ceiling_m > self.noise_floor_m, "glitch ceiling must exceed noise floor"


@dataclass(frozen=True)
class DistanceDelta:
    """
    Outcome of one accumulator update.

    Attributes:
        delta_m: Measured distance from the previous fix (0 for the first fix)
        accepted: True if delta_m was added to the cumulative distance
        reason: "first_fix", "accepted", "noise" or "glitch"
        cumulative_m: Cumulative distance after the update
    """

    delta_m: float
    accepted: bool
    reason: str
    cumulative_m: float


class DistanceAccumulator:
    """
    Streaming travelled-distance counter.

    Usage:
        accumulator = DistanceAccumulator()
        accumulator.reset()               # once per session

        for accepted in accepted_fixes:
            accumulator.add(accepted)

        print(accumulator.cumulative)
    """

    def __init__(
        self,
        config: Optional[DistanceAccumulatorConfig] = None,
        distance_fn: Callable[[object, object], float] = distance_between,
    ):
        """
        Initialize accumulator.

        Args:
            config: Accumulator configuration (uses defaults if None)
            distance_fn: Distance in meters between two coordinates
        """
        self.config = config or DistanceAccumulatorConfig()
        self.distance_fn = distance_fn
        self.metrics = get_metrics()

        self._cumulative = 0.0
        self._previous: Optional[AcceptedFix] = None

    @property
    def cumulative(self) -> float:
        """Cumulative accepted distance since the last reset (m)."""
        return self._cumulative

    @property
    def previous(self) -> Optional[AcceptedFix]:
        """Fix the next delta will be measured from, None at session start."""
        return self._previous

    def add(self, current: AcceptedFix) -> DistanceDelta:
        """Update from the internally held previous fix."""
        return self.update(self._previous, current)

    def update(self, previous: Optional[AcceptedFix], current: AcceptedFix) -> DistanceDelta:
        """
        Measure the delta between two fixes and gate it.

        Args:
            previous: Previous accepted fix, None for the first fix of a session
            current: Current accepted fix

        Returns:
            DistanceDelta describing what happened
        """
        self._previous = current

        if previous is None:
            return DistanceDelta(0.0, False, "first_fix", self._cumulative)

        delta = self.distance_fn(previous.coordinate, current.coordinate)

        if delta <= self.config.noise_floor_m:
            self.metrics.increment_drop('distance_noise')
            return DistanceDelta(delta, False, "noise", self._cumulative)

        if delta >= self.config.glitch_ceiling_m:
            self.metrics.increment_drop('distance_glitch')
            logger.warning(
                "Large delta skipped: %.1fm (accuracy current %.1fm / previous %.1fm)",
                delta, current.horizontal_accuracy_m, previous.horizontal_accuracy_m,
            )
            return DistanceDelta(delta, False, "glitch", self._cumulative)

        self._cumulative += delta
        self.metrics.record_histogram('distance_delta_m', delta)
        return DistanceDelta(delta, True, "accepted", self._cumulative)

    def reset(self):
        """Zero the cumulative distance and forget the previous fix."""
        self._cumulative = 0.0
        self._previous = None
