"""
Zone identifier scheme.

    race_start      start zone, only armed before a race begins
    checkpoint_<i>  interior waypoint at route index i
    race_finish     last waypoint of the route
"""

from typing import Optional

START_ZONE_ID = "race_start"
FINISH_ZONE_ID = "race_finish"
CHECKPOINT_PREFIX = "checkpoint_"


def checkpoint_zone_id(index: int) -> str:
    """Identifier for the interior waypoint at `index`."""
    return f"{CHECKPOINT_PREFIX}{index}"


def parse_checkpoint_index(zone_id: str) -> Optional[int]:
    """
    Extract the route index from a checkpoint identifier.

    Returns:
        Index, or None if the identifier is not a well-formed checkpoint id
    """
    if not zone_id.startswith(CHECKPOINT_PREFIX):
        return None
    suffix = zone_id[len(CHECKPOINT_PREFIX):]
    if not suffix.isdigit():
        return None
    return int(suffix)


def zone_id_for_index(index: int, last_index: int) -> str:
    """
    Identifier of the zone armed for a race target.

    Args:
        index: Route index of the target (>= 1)
        last_index: Index of the route's last waypoint

    Returns:
        FINISH_ZONE_ID for the last waypoint, a checkpoint id otherwise
    """
    if index == last_index:
        return FINISH_ZONE_ID
    return checkpoint_zone_id(index)
