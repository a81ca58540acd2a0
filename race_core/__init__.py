"""
Waypoint Race Engine Core Package.

Races a recorded route: tracks position, detects arrival at each waypoint in
sequence through proximity zones, times the segments and reports the result.

Package structure:
- proto: Record and event schemas (route, fixes, zones, results)
- localization: Fix filtering, distance accumulation, geofence simulation
- domain: Zone bookkeeping and the race state machine
- io: Event loop, ticker, result sinks, replay
- metrics: Diagnostics, counters, histograms
"""

__version__ = "0.1.0"
