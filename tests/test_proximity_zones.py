"""
Unit tests for the proximity zone manager.

Tests cover:
- Arming, re-arming and radius selection
- Idempotent disarm / disarm_all
- Initial-state synthesis (outbox and sink)
- Event filtering for inactive zones
"""

import pytest

from race_core.domain import ProximityZoneManager, ZoneConfig
from race_core.metrics import get_metrics
from race_core.proto import ZoneEvent, ZoneEventKind
from tests.conftest import RecordingMonitor, coord_at


@pytest.fixture
def outside_monitor():
    return RecordingMonitor()


# =============================================================================
# Arming
# =============================================================================


class TestArm:

    def test_arm_registers_zone(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)

        zone = manager.arm("checkpoint_1", coord_at(100.0))

        assert manager.is_armed("checkpoint_1")
        assert manager.get_zone("checkpoint_1") is zone
        assert zone.radius_m == 30.0
        assert zone.active
        assert "checkpoint_1" in outside_monitor.monitored

    def test_radius_override_and_config_default(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor, config=ZoneConfig(default_radius_m=50.0))

        assert manager.arm("a", coord_at(0.0)).radius_m == 50.0
        assert manager.arm("b", coord_at(0.0), radius_m=12.0).radius_m == 12.0

    def test_rearm_replaces_zone(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)

        first = manager.arm("checkpoint_1", coord_at(100.0))
        second = manager.arm("checkpoint_1", coord_at(200.0))

        assert not first.active
        assert manager.get_zone("checkpoint_1") is second
        assert manager.active_zone_ids == ["checkpoint_1"]
        assert outside_monitor.calls == [
            ('start', 'checkpoint_1'),
            ('stop', 'checkpoint_1'),
            ('start', 'checkpoint_1'),
        ]

    def test_active_ids_in_arming_order(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        for zone_id in ("race_start", "checkpoint_1", "race_finish"):
            manager.arm(zone_id, coord_at(0.0))

        assert manager.active_zone_ids == ["race_start", "checkpoint_1", "race_finish"]


# =============================================================================
# Disarming
# =============================================================================


class TestDisarm:

    def test_disarm_unknown_is_noop(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)

        manager.disarm("never_armed")

        assert outside_monitor.calls == []

    def test_disarm_all_twice_is_noop(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        manager.arm("checkpoint_1", coord_at(0.0))
        manager.arm("race_finish", coord_at(10.0))

        manager.disarm_all()
        calls_after_first = list(outside_monitor.calls)
        manager.disarm_all()

        assert manager.active_zone_ids == []
        assert outside_monitor.calls == calls_after_first
        assert get_metrics().get_counter('zones_disarmed') == 2

    def test_disarm_all_on_empty_set(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)

        manager.disarm_all()
        manager.disarm_all()

        assert outside_monitor.calls == []

    def test_disarm_clears_inside_state(self):
        monitor = RecordingMonitor(inside_ids={"race_start"})
        manager = ProximityZoneManager(monitor)
        manager.arm("race_start", coord_at(0.0))
        assert manager.is_inside("race_start")

        manager.disarm("race_start")

        assert not manager.is_inside("race_start")


# =============================================================================
# Initial-state synthesis
# =============================================================================


class TestInitialState:

    def test_no_event_when_outside(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        manager.arm("checkpoint_1", coord_at(0.0))

        assert manager.drain_events() == []
        assert not manager.is_inside("checkpoint_1")

    def test_synthesized_entry_queued_without_sink(self):
        manager = ProximityZoneManager(RecordingMonitor(inside_ids={"checkpoint_1"}))

        manager.arm("checkpoint_1", coord_at(0.0))
        events = manager.drain_events()

        assert len(events) == 1
        event = events[0]
        assert event.kind == ZoneEventKind.INITIAL_STATE
        assert event.inside is True
        assert event.synthesized
        assert event.is_entry
        assert manager.drain_events() == []

    def test_synthesized_entry_sent_to_sink(self):
        posted = []
        manager = ProximityZoneManager(
            RecordingMonitor(inside_ids={"race_finish"}), event_sink=posted.append
        )

        manager.arm("race_finish", coord_at(0.0))

        assert [e.zone_id for e in posted] == ["race_finish"]
        assert manager.drain_events() == []

    def test_unknown_state_treated_as_outside(self):
        class UnknownMonitor(RecordingMonitor):
            def request_state(self, zone):
                return None

        manager = ProximityZoneManager(UnknownMonitor())
        manager.arm("checkpoint_1", coord_at(0.0))

        assert not manager.is_inside("checkpoint_1")
        assert manager.drain_events() == []


# =============================================================================
# Event handling
# =============================================================================


class TestHandleEvent:

    def test_entry_for_active_zone(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        manager.arm("checkpoint_1", coord_at(0.0))

        assert manager.handle_event(ZoneEvent.entered("checkpoint_1")) == "checkpoint_1"
        assert manager.is_inside("checkpoint_1")

    def test_exit_updates_state_and_is_not_an_entry(self):
        manager = ProximityZoneManager(RecordingMonitor(inside_ids={"race_start"}))
        manager.arm("race_start", coord_at(0.0))

        assert manager.handle_event(ZoneEvent.exited("race_start")) is None
        assert not manager.is_inside("race_start")

    def test_initial_state_outside_is_not_an_entry(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        manager.arm("checkpoint_1", coord_at(0.0))

        event = ZoneEvent.initial_state("checkpoint_1", inside=False)
        assert manager.handle_event(event) is None

    def test_event_for_inactive_zone_dropped(self, outside_monitor):
        manager = ProximityZoneManager(outside_monitor)
        manager.arm("checkpoint_1", coord_at(0.0))
        manager.disarm("checkpoint_1")

        assert manager.handle_event(ZoneEvent.entered("checkpoint_1")) is None
        assert get_metrics().get_drop_count('inactive_zone') == 1

    def test_initial_state_requires_inside_flag(self):
        with pytest.raises(ValueError):
            ZoneEvent("checkpoint_1", ZoneEventKind.INITIAL_STATE)
