"""
Race engine exceptions.

Only precondition failures are raised. Anomalies and sensor degradation are
recovered locally and reported through logging, metrics and RaceAnomaly
events.
"""


class RaceError(Exception):
    """Base class for race engine errors."""


class PreconditionError(RaceError):
    """An operation was attempted in a state that does not allow it."""
