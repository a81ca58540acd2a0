"""
I/O Module: event channel, timers, result sinks, replay.

- Bounded event queue with a single consumer (no re-entrant race updates)
- Restartable periodic ticker for elapsed time
- Injected result sink (route history, optional JSON file)
- Offline replay of recorded fix logs
- Live wiring of monitor, loop and ticker from the config defaults
"""

from .event_loop import RaceEventLoop, Tick
from .ticker import PeriodicTicker
from .result_sink import ResultSink, RouteHistorySink, load_routes
from .replay import ReplayOutcome, SimulatedClock, run_replay, load_fixes
from .live import LiveRace, create_live_race

__all__ = [
    'RaceEventLoop',
    'Tick',
    'PeriodicTicker',
    'ResultSink',
    'RouteHistorySink',
    'load_routes',
    'ReplayOutcome',
    'SimulatedClock',
    'run_replay',
    'load_fixes',
    'LiveRace',
    'create_live_race',
]
