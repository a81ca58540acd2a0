"""
Metrics Module: Diagnostics, counters, histograms.

Usage:
    from race_core.metrics import get_metrics

    metrics = get_metrics()
    metrics.increment('fixes_in')
    metrics.increment_drop('poor_accuracy')
    metrics.record_histogram('segment_duration_s', 12.3)
"""

from .counters import MetricsCollector

# Global singleton for easy access
_global_metrics = None


def get_metrics() -> MetricsCollector:
    """
    Get the global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics


def reset_metrics():
    """Reset global metrics in place (for testing)."""
    get_metrics().reset()


__all__ = ['MetricsCollector', 'get_metrics', 'reset_metrics']
