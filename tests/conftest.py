"""
Pytest configuration and shared fixtures for the race engine tests.

Provides routes, a controllable geofence monitor, a fake clock and helpers
to build fixes at metric offsets from a base point.
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional, Set

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from race_core.metrics import reset_metrics
from race_core.proto import Coordinate, PositionFix, ProximityZone, Route
from race_core.domain import ProximityZoneManager
from race_core.domain.race_state_machine import RaceStateMachine
from race_core.localization import PositionTracker, offset_coordinate


BASE_LAT = 22.2900
BASE_LON = 114.1700


# =============================================================================
# Helpers
# =============================================================================


def coord_at(north_m: float, east_m: float = 0.0) -> Coordinate:
    """Coordinate offset from the base point by a local north/east offset."""
    lat, lon = offset_coordinate(BASE_LAT, BASE_LON, north_m, east_m)
    return Coordinate(lat, lon)


def make_fix(
    north_m: float,
    east_m: float = 0.0,
    t: float = 0.0,
    accuracy: float = 5.0,
    speed: float = 2.0,
) -> PositionFix:
    """Raw fix at a local offset from the base point."""
    return PositionFix(
        coordinate=coord_at(north_m, east_m),
        horizontal_accuracy_m=accuracy,
        speed_m_s=speed,
        timestamp=t,
    )


class FakeClock:
    """Monotonic clock controlled by the test."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingMonitor:
    """
    Geofence monitor double.

    Records calls; request_state answers from `inside_ids`.
    """

    def __init__(self, inside_ids: Optional[Set[str]] = None):
        self.inside_ids: Set[str] = set(inside_ids or ())
        self.monitored = {}
        self.calls: List[tuple] = []

    def start_monitoring(self, zone: ProximityZone):
        self.monitored[zone.zone_id] = zone
        self.calls.append(('start', zone.zone_id))

    def stop_monitoring(self, zone_id: str):
        self.monitored.pop(zone_id, None)
        self.calls.append(('stop', zone_id))

    def request_state(self, zone: ProximityZone) -> Optional[bool]:
        return zone.zone_id in self.inside_ids


class StubTracker:
    """Position tracker double with a settable total distance."""

    def __init__(self, total_distance_m: float = 0.0):
        self.total_distance_m = total_distance_m
        self.is_tracking = False
        self.starts: List[bool] = []
        self.stops = 0

    def start_tracking(self, for_race: bool = False):
        self.starts.append(for_race)
        self.total_distance_m = 0.0
        self.is_tracking = True

    def stop_tracking(self):
        self.stops += 1
        self.is_tracking = False


class RecordingSink:
    """Result sink double."""

    def __init__(self):
        self.records = []

    def record(self, route, result):
        self.records.append((route, result))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Reset the global metrics collector around each test."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def three_point_route() -> Route:
    """Start, one checkpoint 500 m north, end 1000 m north."""
    return Route.from_coordinates(
        "Harbour sprint",
        [coord_at(0.0), coord_at(500.0), coord_at(1000.0)],
    )


@pytest.fixture
def five_point_route() -> Route:
    """Start, three checkpoints every 400 m north, end at 1600 m."""
    return Route.from_coordinates(
        "Long course",
        [coord_at(400.0 * i) for i in range(5)],
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def monitor() -> RecordingMonitor:
    """Monitor that reports the position inside the start zone."""
    return RecordingMonitor(inside_ids={'race_start'})


@pytest.fixture
def make_race(monitor, fake_clock) -> Callable:
    """
    Factory building a race state machine around the shared monitor/clock.

    Synthesized zone events are queued on the zone manager (no sink), so
    tests decide when to deliver them.
    """

    def _make(route: Route, tracker=None, sink=None) -> RaceStateMachine:
        zone_manager = ProximityZoneManager(monitor)
        return RaceStateMachine(
            route,
            zone_manager,
            tracker if tracker is not None else StubTracker(),
            result_sink=sink,
            clock=fake_clock,
        )

    return _make


@pytest.fixture
def real_tracker() -> PositionTracker:
    return PositionTracker()
