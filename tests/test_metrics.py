"""
Unit tests for metrics module.

Tests cover:
- Counter increment (single-threaded and multi-threaded)
- Drop reason tracking
- Histogram recording and statistics
- Snapshot and reset functionality
"""

import logging
import threading

import pytest

from race_core.metrics import MetricsCollector, get_metrics, reset_metrics


class TestMetricsCollectorBasic:
    """Tests for basic metrics collector functionality."""

    def test_initialization(self):
        """Standard counters and drop reasons start at 0."""
        collector = MetricsCollector()

        assert collector.get_counter('fixes_in') == 0
        assert collector.get_counter('races_completed') == 0
        assert collector.get_counter('unknown_counter') == 0
        assert collector.get_drop_count('poor_accuracy') == 0

    def test_increment_counter(self):
        collector = MetricsCollector()

        collector.increment('fixes_in')
        assert collector.get_counter('fixes_in') == 1

        collector.increment('fixes_in', 5)
        assert collector.get_counter('fixes_in') == 6

    def test_increment_drop_with_valid_reason(self):
        collector = MetricsCollector()

        collector.increment_drop('distance_glitch')
        assert collector.get_counter('events_dropped') == 1

        snapshot = collector.snapshot()
        assert snapshot.drop_reasons['distance_glitch'] == 1

    def test_increment_drop_unknown_reason(self, caplog):
        """Unknown reasons are logged but still counted."""
        collector = MetricsCollector()

        with caplog.at_level(logging.WARNING):
            collector.increment_drop('unknown_reason')

        assert 'unknown_reason' in caplog.text
        assert collector.get_counter('events_dropped') == 1

    def test_multiple_drop_reasons(self):
        collector = MetricsCollector()

        collector.increment_drop('poor_accuracy', 3)
        collector.increment_drop('distance_noise', 5)
        collector.increment_drop('out_of_sequence', 2)

        snapshot = collector.snapshot()

        assert snapshot.drop_reasons['poor_accuracy'] == 3
        assert snapshot.drop_reasons['distance_noise'] == 5
        assert snapshot.drop_reasons['out_of_sequence'] == 2
        assert snapshot.total_dropped() == 10

    def test_fix_acceptance_pct(self):
        collector = MetricsCollector()
        assert collector.snapshot().fix_acceptance_pct() == 0.0

        collector.increment('fixes_in', 8)
        collector.increment('fixes_accepted', 6)

        assert collector.snapshot().fix_acceptance_pct() == pytest.approx(75.0)


class TestHistograms:
    """Tests for histogram functionality."""

    def test_record_histogram(self):
        collector = MetricsCollector()

        collector.record_histogram('segment_duration_s', 12.3)
        collector.record_histogram('segment_duration_s', 17.7)

        stats = collector.get_histogram_stats('segment_duration_s')

        assert stats['count'] == 2
        assert stats['min'] == 12.3
        assert stats['max'] == 17.7
        assert stats['mean'] == pytest.approx(15.0)

    def test_histogram_empty(self):
        collector = MetricsCollector()
        assert collector.get_histogram_stats('nonexistent') is None

    def test_histogram_bounded(self):
        """Old samples are discarded beyond max_samples."""
        collector = MetricsCollector()

        for i in range(25):
            collector.record_histogram('bounded', float(i), max_samples=10)

        stats = collector.get_histogram_stats('bounded')
        assert stats['count'] == 10
        assert stats['min'] == 15.0
        assert stats['max'] == 24.0


class TestSnapshotAndReset:

    def test_snapshot_is_a_copy(self):
        collector = MetricsCollector()
        collector.increment('fixes_in')

        snapshot = collector.snapshot()
        collector.increment('fixes_in')

        assert snapshot.counters['fixes_in'] == 1

    def test_reset_reinitializes_standard_counters(self):
        collector = MetricsCollector()

        collector.increment('fixes_in', 100)
        collector.increment('custom', 3)
        collector.reset()

        counters = collector.snapshot().counters
        assert counters['fixes_in'] == 0
        assert 'custom' not in counters

    def test_print_summary(self, capsys):
        collector = MetricsCollector()
        collector.increment_drop('poor_accuracy')
        collector.record_histogram('distance_delta_m', 1.5)

        collector.print_summary()

        out = capsys.readouterr().out
        assert 'METRICS SUMMARY' in out
        assert 'poor_accuracy' in out
        assert 'distance_delta_m' in out
        assert 'RACES:' in out


class TestThreadSafety:

    def test_concurrent_increment(self):
        collector = MetricsCollector()
        num_threads = 10
        increments_per_thread = 1000

        def worker():
            for _ in range(increments_per_thread):
                collector.increment('fixes_in')

        threads = [threading.Thread(target=worker) for _ in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert collector.get_counter('fixes_in') == num_threads * increments_per_thread


class TestGlobalSingleton:

    def test_get_metrics_returns_same_instance(self):
        assert get_metrics() is get_metrics()

    def test_reset_metrics_clears_shared_instance(self):
        """Components keep their reference; reset clears it in place."""
        held = get_metrics()
        held.increment('test_counter', 42)

        reset_metrics()

        assert get_metrics() is held
        assert held.get_counter('test_counter') == 0
