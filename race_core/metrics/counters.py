"""
Race engine diagnostics: counters, drop reasons and histograms.

Counter groups:
- fixes:  fixes_in, fixes_accepted
- zones:  zone_events_in, zones_armed, zones_disarmed
- races:  races_started, races_completed, segments_completed, race_anomalies

Every rejected fix and every ignored zone event is counted under a reason
code, so a race that fails to advance can be diagnosed after the fact.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CounterSnapshot:
    """Copy of the collector state at one point in time."""

    timestamp: float
    counters: Dict[str, int]
    drop_reasons: Dict[str, int]
    histograms: Dict[str, List[float]]

    def total_dropped(self) -> int:
        return sum(self.drop_reasons.values())

    def fix_acceptance_pct(self) -> float:
        """Share of raw fixes that passed the accuracy gate (%)."""
        fixes_in = self.counters.get('fixes_in', 0)
        if fixes_in == 0:
            return 0.0
        return self.counters.get('fixes_accepted', 0) / fixes_in * 100.0


class MetricsCollector:
    """
    Thread-safe counters shared by every race engine component.

    Usage:
        metrics = get_metrics()
        metrics.increment('fixes_in')
        metrics.increment_drop('poor_accuracy')
        metrics.record_histogram('segment_duration_s', 12.3)
    """

    DROP_REASONS = {
        'poor_accuracy': 'Horizontal accuracy negative or above threshold',
        'distance_noise': 'Distance delta at or below noise floor',
        'distance_glitch': 'Distance delta at or above glitch ceiling',
        'not_tracking': 'Fix arrived while no tracking session was open',
        'not_in_progress': 'Zone entry while no race was in progress',
        'out_of_sequence': 'Zone entry for a waypoint other than the next target',
        'inactive_zone': 'Zone event for an identifier that is not armed',
        'queue_full': 'Bounded event queue overflow',
    }

    COUNTER_GROUPS = {
        'FIXES': ('fixes_in', 'fixes_accepted'),
        'ZONES': ('zone_events_in', 'zones_armed', 'zones_disarmed'),
        'RACES': ('races_started', 'races_completed', 'segments_completed', 'race_anomalies'),
    }

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = defaultdict(int)
        self._drop_reasons: Dict[str, int] = defaultdict(int)
        self._histograms: Dict[str, deque] = {}
        self._start_time = time.time()
        self._zero_known_keys()

    def _zero_known_keys(self):
        # Known keys always show up in snapshots, even when never hit
        with self._lock:
            for names in self.COUNTER_GROUPS.values():
                for name in names:
                    self._counters.setdefault(name, 0)
            for reason in self.DROP_REASONS:
                self._drop_reasons.setdefault(reason, 0)

    def increment(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] += value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count a dropped fix or event under a reason code.

        Also bumps the 'events_dropped' total. Unknown reasons are logged
        and still counted.
        """
        if reason not in self.DROP_REASONS:
            logger.warning("Unknown drop reason '%s'", reason)

        with self._lock:
            self._drop_reasons[reason] += value
            self._counters['events_dropped'] += value

    def get_counter(self, counter_name: str) -> int:
        with self._lock:
            return self._counters.get(counter_name, 0)

    def get_drop_count(self, reason: str) -> int:
        with self._lock:
            return self._drop_reasons.get(reason, 0)

    def record_histogram(self, histogram_name: str, value: float, max_samples: int = 10000):
        """Record a sample; only the newest `max_samples` are kept."""
        with self._lock:
            samples = self._histograms.get(histogram_name)
            if samples is None:
                samples = self._histograms[histogram_name] = deque(maxlen=max_samples)
            samples.append(value)

    def get_histogram_stats(self, histogram_name: str) -> Optional[Dict[str, float]]:
        """
        Summary statistics for a histogram.

        Returns:
            Dict with count, min, max, mean and p95, or None if empty
        """
        with self._lock:
            samples = sorted(self._histograms.get(histogram_name, ()))

        if not samples:
            return None

        count = len(samples)
        return {
            'count': count,
            'min': samples[0],
            'max': samples[-1],
            'mean': sum(samples) / count,
            'p95': samples[min(count - 1, int(count * 0.95))],
        }

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                timestamp=time.time(),
                counters=dict(self._counters),
                drop_reasons=dict(self._drop_reasons),
                histograms={k: list(v) for k, v in self._histograms.items()},
            )

    def reset(self):
        """Clear everything in place; holders of this collector see the reset."""
        with self._lock:
            self._counters.clear()
            self._drop_reasons.clear()
            self._histograms.clear()
            self._start_time = time.time()
        self._zero_known_keys()

    def print_summary(self):
        """Print counters grouped by concern, drop reasons and histograms."""
        snapshot = self.snapshot()
        uptime = time.time() - self._start_time

        print("\n" + "=" * 70)
        print(f"  METRICS SUMMARY (uptime: {uptime:.1f}s)")
        print("=" * 70)

        for group, names in self.COUNTER_GROUPS.items():
            print(f"\n{group}:")
            for name in names:
                print(f"  {name:30s}: {snapshot.counters.get(name, 0):8d}")
        print(f"  {'fix acceptance':30s}: {snapshot.fix_acceptance_pct():7.1f}%")

        total_dropped = snapshot.total_dropped()
        if total_dropped > 0:
            print("\nDROPS:")
            for reason, count in sorted(snapshot.drop_reasons.items()):
                if count > 0:
                    print(f"  {reason:30s}: {count:8d} ({count / total_dropped * 100:5.1f}%)")

        if snapshot.histograms:
            print("\nHISTOGRAMS:")
            for name in sorted(snapshot.histograms):
                stats = self.get_histogram_stats(name)
                if stats:
                    print(f"  {name}: count={stats['count']}, mean={stats['mean']:.3f}, "
                          f"p95={stats['p95']:.3f}, max={stats['max']:.3f}")
