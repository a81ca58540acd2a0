"""
Position Fix Filter.

Rejects low-quality raw fixes and turns the rest into accepted fixes with a
usable (non-negative) speed.

Rules:
- horizontal accuracy < 0 means the source has no valid fix
- horizontal accuracy >= max_horizontal_accuracy_m is too coarse to use
- negative speed means "invalid" for many providers and is treated as 0
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from race_core.proto.position_fix import PositionFix, AcceptedFix
from race_core.localization.kalman import ScalarKalmanFilter, ScalarKalmanConfig
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class PositionFilterConfig:
    """
    Configuration for the position filter.

    Attributes:
        max_horizontal_accuracy_m: Fixes at or above this accuracy are rejected (m)
        smooth_speed: Fold accepted speeds through a scalar Kalman filter
        speed_kalman: Smoother configuration (used when smooth_speed is True)
    """

    max_horizontal_accuracy_m: float = 65.0
    smooth_speed: bool = False
    speed_kalman: Optional[ScalarKalmanConfig] = None

    def __post_init__(self):
        assert self.max_horizontal_accuracy_m > 0, "accuracy threshold must be positive"


class PositionFilter:
    """
    Accept/reject filter for raw position fixes.

    Usage:
        position_filter = PositionFilter()

        accepted = position_filter.accept(fix)
        if accepted is not None:
            accumulator.add(accepted)

    Rejected fixes never touch distance or speed state. They can still be
    forwarded to a display-only callback (e.g. to keep a map marker moving).
    """

    def __init__(
        self,
        config: Optional[PositionFilterConfig] = None,
        on_display_fix: Optional[Callable[[PositionFix], None]] = None,
    ):
        """
        Initialize position filter.

        Args:
            config: Filter configuration (uses defaults if None)
            on_display_fix: Optional callback receiving every raw fix
        """
        self.config = config or PositionFilterConfig()
        self.on_display_fix = on_display_fix
        self.metrics = get_metrics()
        self._speed_filter = ScalarKalmanFilter(self.config.speed_kalman)

    def is_acceptable(self, fix: PositionFix) -> bool:
        """True if the fix's horizontal accuracy is usable."""
        accuracy = fix.horizontal_accuracy_m
        return 0 <= accuracy < self.config.max_horizontal_accuracy_m

    def accept(self, fix: PositionFix) -> Optional[AcceptedFix]:
        """
        Filter one raw fix.

        Args:
            fix: Raw position fix

        Returns:
            AcceptedFix, or None if the fix was rejected
        """
        self.metrics.increment('fixes_in')

        if self.on_display_fix is not None:
            self.on_display_fix(fix)

        if not self.is_acceptable(fix):
            self.metrics.increment_drop('poor_accuracy')
            logger.debug(
                "Poor accuracy %.1fm, fix ignored for distance", fix.horizontal_accuracy_m
            )
            return None

        speed = fix.speed_m_s if fix.speed_m_s >= 0 else 0.0
        if self.config.smooth_speed:
            speed = max(0.0, self._speed_filter.filter(speed))

        self.metrics.increment('fixes_accepted')
        self.metrics.record_histogram('fix_accuracy_m', fix.horizontal_accuracy_m)

        return AcceptedFix(
            coordinate=fix.coordinate,
            horizontal_accuracy_m=fix.horizontal_accuracy_m,
            speed_m_s=speed,
            timestamp=fix.timestamp,
        )

    def reset(self):
        """Reset smoothing state (start of a tracking session)."""
        self._speed_filter.reset()


def create_default_filter() -> PositionFilter:
    """
    Create position filter with the default 65 m accuracy threshold.

    Returns:
        Configured PositionFilter
    """
    config = PositionFilterConfig(
        max_horizontal_accuracy_m=65.0,
        smooth_speed=False,
    )

    return PositionFilter(config)
