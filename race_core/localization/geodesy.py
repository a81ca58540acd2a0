"""
Great-circle geometry on a spherical Earth.

Distances between consecutive fixes are a few meters to a few hundred
meters, where the haversine formula on the mean Earth radius is accurate to
well under the 0.2 m noise floor used by the distance accumulator.
"""

import math
from typing import Sequence

import numpy as np

# IUGG mean Earth radius (m)
EARTH_RADIUS_M = 6371008.8


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points.

    Args:
        lat1, lon1: First point (degrees)
        lat2, lon2: Second point (degrees)

    Returns:
        Distance in meters
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def distance_between(a, b) -> float:
    """Distance in meters between two objects exposing latitude/longitude."""
    return haversine_m(a.latitude, a.longitude, b.latitude, b.longitude)


def path_length_m(coordinates: Sequence) -> float:
    """
    Total length of a polyline (sum of great-circle legs).

    Args:
        coordinates: Sequence of objects exposing latitude/longitude

    Returns:
        Length in meters (0 for fewer than two points)
    """
    if len(coordinates) < 2:
        return 0.0

    lat = np.radians(np.array([c.latitude for c in coordinates], dtype=float))
    lon = np.radians(np.array([c.longitude for c in coordinates], dtype=float))

    dphi = np.diff(lat)
    dlambda = np.diff(lon)

    a = np.sin(dphi / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlambda / 2) ** 2
    legs = 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1 - a))

    return float(np.sum(legs))


def offset_coordinate(latitude: float, longitude: float, north_m: float, east_m: float):
    """
    Move a point by a local north/east offset.

    Inverse of the small-distance haversine; used to build synthetic tracks.

    Returns:
        (latitude, longitude) in degrees
    """
    dlat = north_m / EARTH_RADIUS_M
    dlon = east_m / (EARTH_RADIUS_M * math.cos(math.radians(latitude)))
    return (latitude + math.degrees(dlat), longitude + math.degrees(dlon))
