"""
Scalar Kalman smoother.

One-dimensional random-walk Kalman filter used to optionally smooth the
speed reported with each fix.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ScalarKalmanConfig:
    """
    Configuration for the scalar Kalman filter.

    Attributes:
        q: Process noise variance
        r: Measurement noise variance
        initial_p: Initial estimation error variance
    """

    q: float = 0.1
    r: float = 5.0
    initial_p: float = 1.0

    def __post_init__(self):
        assert self.q >= 0, "q must be non-negative"
        assert self.r > 0, "r must be positive"
        assert self.initial_p > 0, "initial_p must be positive"


class ScalarKalmanFilter:
    """
    Random-walk Kalman filter for a single value.

    The first measurement initializes the estimate and is returned as-is.
    """

    def __init__(self, config: Optional[ScalarKalmanConfig] = None):
        self.config = config or ScalarKalmanConfig()
        self._p = self.config.initial_p
        self._gain = 1.0
        # None until the first measurement
        self._estimate: Optional[float] = None

    def is_initialized(self) -> bool:
        return self._estimate is not None

    @property
    def estimate(self) -> Optional[float]:
        return self._estimate

    @property
    def gain(self) -> float:
        return self._gain

    def filter(self, measurement: float) -> float:
        """
        Fold a measurement into the estimate.

        Args:
            measurement: New measurement

        Returns:
            Updated estimate
        """
        if self._estimate is None:
            self._estimate = measurement
            return measurement

        # Predict
        self._p += self.config.q

        # Update
        self._gain = self._p / (self._p + self.config.r)
        self._estimate += self._gain * (measurement - self._estimate)
        self._p *= (1 - self._gain)

        return self._estimate

    def reset(self):
        """Forget the estimate."""
        self._p = self.config.initial_p
        self._gain = 1.0
        self._estimate = None
