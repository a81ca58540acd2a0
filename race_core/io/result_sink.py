"""
Result sinks.

The race engine hands every completed RaceResult to an injected sink. The
sink owns attaching it to the right route's history and storing it.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union

from race_core.proto.route import Route
from race_core.proto.race_result import RaceResult

logger = logging.getLogger(__name__)


class ResultSink(Protocol):
    """Receives one RaceResult per completed race."""

    def record(self, route: Route, result: RaceResult) -> None:
        ...


class RouteHistorySink:
    """
    Appends results to their route's history, newest first.

    If a path is given, every known route (with history) is written to it as
    a JSON list after each result.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, routes: Optional[List[Route]] = None):
        """
        Initialize sink.

        Args:
            path: Optional JSON file to keep in sync
            routes: Routes already known (e.g. from load_routes)
        """
        self.path = Path(path) if path is not None else None
        self._routes: Dict[str, Route] = {r.id: r for r in (routes or [])}

    @property
    def routes(self) -> List[Route]:
        return list(self._routes.values())

    def record(self, route: Route, result: RaceResult):
        known = self._routes.setdefault(route.id, route)
        if known is not route:
            logger.warning("Route %s recorded through a different instance", route.id)

        known.race_history.append(result)
        known.race_history.sort(key=lambda r: r.date, reverse=True)
        logger.info(
            "Result %s added to route '%s' (%d races)",
            result.id, known.name, len(known.race_history),
        )

        if self.path is not None:
            self.save()

    def save(self):
        """Write all known routes to the sink's path."""
        if self.path is None:
            raise ValueError("RouteHistorySink has no path to save to")
        payload = [r.to_dict() for r in self._routes.values()]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_routes(path: Union[str, Path]) -> List[Route]:
    """
    Load routes written by RouteHistorySink.save().

    A single route object (not in a list) is accepted too.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    return [Route.from_dict(item) for item in data]
