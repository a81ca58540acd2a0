"""
Race replay tool.

Replays a recorded fix log against a route and prints the race result.

    python race_replay.py --route route.json --fixes fixes.json
"""

import sys
import logging
import argparse

from race_core import config
from race_core.domain.formatting import format_distance_km, format_duration, format_speed_kmh
from race_core.io.replay import load_fixes, run_replay
from race_core.io.result_sink import RouteHistorySink, load_routes
from race_core.metrics import get_metrics

logger = logging.getLogger(__name__)


def print_result(outcome):
    """Print a replay outcome."""
    print("=" * 60)
    if outcome.result is None:
        snapshot = outcome.snapshot
        print("  DID NOT FINISH")
        print(f"  fixes replayed : {outcome.fixes_processed}")
        print(f"  state          : {snapshot.state.value}")
        print(f"  next target    : index {snapshot.cursor}")
        print(f"  splits so far  : {[format_duration(d) for d in snapshot.segment_durations_s]}")
        print("=" * 60)
        return

    result = outcome.result
    print("  RACE RESULT")
    print("=" * 60)
    print(f"  total time     : {format_duration(result.total_duration_s)} "
          f"({result.total_duration_s:.1f}s)")
    print(f"  distance       : {format_distance_km(result.total_distance_m)}")
    print(f"  average speed  : {format_speed_kmh(result.average_speed_m_s)}")
    for i, split in enumerate(result.segment_durations_s, start=1):
        print(f"  segment {i:<7d}: {format_duration(split)} ({split:.1f}s)")
    print("=" * 60)


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Replay a recorded race')
    parser.add_argument('--route', '-r', type=str, required=True,
                        help='Route JSON file (first route is used)')
    parser.add_argument('--fixes', '-f', type=str, required=True,
                        help='Fix log JSON file')
    parser.add_argument('--radius', type=float, default=None,
                        help='Zone radius in meters')
    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Write the route with its updated history to this file')
    parser.add_argument('--metrics', action='store_true',
                        help='Print metrics summary')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOGGING_CONFIG["level"]),
        format=config.LOGGING_CONFIG["format"],
    )
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        routes = load_routes(args.route)
        fixes = load_fixes(args.fixes)
    except (OSError, ValueError, KeyError) as e:
        logger.error("Could not load input: %s", e)
        return 2

    if not routes:
        logger.error("No route found in %s", args.route)
        return 2

    sink = RouteHistorySink(path=args.output, routes=routes) if args.output else None
    outcome = run_replay(routes[0], fixes, radius_m=args.radius, result_sink=sink)

    print_result(outcome)
    if args.metrics:
        get_metrics().print_summary()

    return 0 if outcome.finished else 1


if __name__ == "__main__":
    sys.exit(main())
