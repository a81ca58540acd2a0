"""
Unit tests for the position filter and the scalar Kalman smoother.

Tests cover:
- Accuracy gate boundaries (negative, 0, just below and at the threshold)
- Negative speed clamping
- Display callback receives rejected fixes too
- Optional speed smoothing
"""

import pytest

from race_core.localization import (
    PositionFilter,
    PositionFilterConfig,
    ScalarKalmanConfig,
    ScalarKalmanFilter,
    create_default_filter,
)
from race_core.metrics import get_metrics
from tests.conftest import make_fix


# =============================================================================
# Accuracy gate
# =============================================================================


class TestAccuracyGate:

    @pytest.mark.parametrize("accuracy", [0.0, 5.0, 64.9])
    def test_usable_accuracy_accepted(self, accuracy):
        accepted = PositionFilter().accept(make_fix(0.0, accuracy=accuracy))

        assert accepted is not None
        assert accepted.horizontal_accuracy_m == accuracy

    @pytest.mark.parametrize("accuracy", [-1.0, 65.0, 120.0])
    def test_unusable_accuracy_rejected(self, accuracy):
        """Negative means no fix; 65 m and above is too coarse."""
        assert PositionFilter().accept(make_fix(0.0, accuracy=accuracy)) is None

    def test_rejection_counted(self):
        position_filter = PositionFilter()

        position_filter.accept(make_fix(0.0, accuracy=80.0))
        position_filter.accept(make_fix(0.0, accuracy=5.0))

        metrics = get_metrics()
        assert metrics.get_counter('fixes_in') == 2
        assert metrics.get_counter('fixes_accepted') == 1
        assert metrics.get_drop_count('poor_accuracy') == 1

    def test_custom_threshold(self):
        position_filter = PositionFilter(PositionFilterConfig(max_horizontal_accuracy_m=10.0))

        assert position_filter.accept(make_fix(0.0, accuracy=9.9)) is not None
        assert position_filter.accept(make_fix(0.0, accuracy=10.0)) is None

    def test_default_factory(self):
        position_filter = create_default_filter()
        assert position_filter.config.max_horizontal_accuracy_m == 65.0
        assert not position_filter.config.smooth_speed


# =============================================================================
# Speed handling
# =============================================================================


class TestSpeed:

    def test_negative_speed_clamped_to_zero(self):
        accepted = PositionFilter().accept(make_fix(0.0, speed=-1.0))
        assert accepted.speed_m_s == 0.0

    def test_valid_speed_passed_through(self):
        accepted = PositionFilter().accept(make_fix(0.0, speed=4.2))
        assert accepted.speed_m_s == 4.2

    def test_smoothing_damps_spike(self):
        position_filter = PositionFilter(PositionFilterConfig(smooth_speed=True))

        first = position_filter.accept(make_fix(0.0, speed=5.0))
        spike = position_filter.accept(make_fix(1.0, speed=25.0))

        assert first.speed_m_s == 5.0
        assert 5.0 < spike.speed_m_s < 25.0

    def test_reset_forgets_smoothing(self):
        position_filter = PositionFilter(PositionFilterConfig(smooth_speed=True))
        position_filter.accept(make_fix(0.0, speed=5.0))

        position_filter.reset()
        accepted = position_filter.accept(make_fix(0.0, speed=12.0))

        assert accepted.speed_m_s == 12.0


# =============================================================================
# Display callback
# =============================================================================


class TestDisplayCallback:

    def test_callback_receives_every_fix(self):
        seen = []
        position_filter = PositionFilter(on_display_fix=seen.append)

        good = make_fix(0.0, accuracy=5.0)
        bad = make_fix(1.0, accuracy=100.0)
        position_filter.accept(good)
        position_filter.accept(bad)

        assert seen == [good, bad]


# =============================================================================
# Scalar Kalman filter
# =============================================================================


class TestScalarKalmanFilter:

    def test_first_measurement_initializes(self):
        kf = ScalarKalmanFilter()
        assert not kf.is_initialized()
        assert kf.estimate is None

        assert kf.filter(3.0) == 3.0
        assert kf.is_initialized()

    def test_converges_towards_constant_measurement(self):
        kf = ScalarKalmanFilter()
        kf.filter(0.0)

        for _ in range(200):
            estimate = kf.filter(10.0)

        assert estimate == pytest.approx(10.0, abs=0.1)

    def test_gain_in_unit_interval(self):
        kf = ScalarKalmanFilter(ScalarKalmanConfig(q=0.1, r=5.0, initial_p=1.0))
        kf.filter(1.0)
        kf.filter(2.0)

        assert 0.0 < kf.gain < 1.0

    def test_invalid_config_rejected(self):
        with pytest.raises(AssertionError):
            ScalarKalmanConfig(r=0.0)
