"""Great-circle distance and bearing helpers on a spherical Earth."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .models import LatLon

MetricArray = NDArray[np.float64]

EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(a: LatLon, b: LatLon) -> float:
    """Return the great-circle distance in metres between two (lat, lon) points."""

    lat1, lon1 = a
    lat2, lon2 = b
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    h = math.sin(dlat / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(
        dlon / 2.0
    ) ** 2
    # Clamp: rounding can push h a hair above 1 for antipodal points.
    h = min(max(h, 0.0), 1.0)
    return EARTH_RADIUS_M * 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def bearing(origin: LatLon, target: LatLon) -> float:
    """Return the initial bearing in radians from ``origin`` toward ``target``."""

    lat1, lon1 = math.radians(origin[0]), math.radians(origin[1])
    lat2, lon2 = math.radians(target[0]), math.radians(target[1])
    delta_lon = lon2 - lon1
    y = math.sin(delta_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        delta_lon
    )
    return math.atan2(y, x)


def haversine_many(origin: LatLon, lats: MetricArray, lons: MetricArray) -> MetricArray:
    """Vectorised ``haversine_distance`` from one origin to many points."""

    phi1 = math.radians(origin[0])
    lam1 = math.radians(origin[1])
    phi2 = np.radians(lats)
    lam2 = np.radians(lons)
    h = (
        np.sin((phi2 - phi1) / 2.0) ** 2
        + math.cos(phi1) * np.cos(phi2) * np.sin((lam2 - lam1) / 2.0) ** 2
    )
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))


def bearing_many(origin: LatLon, lats: MetricArray, lons: MetricArray) -> MetricArray:
    """Vectorised ``bearing`` from one origin to many points."""

    phi1 = math.radians(origin[0])
    lam1 = math.radians(origin[1])
    phi2 = np.radians(lats)
    delta_lon = np.radians(lons) - lam1
    y = np.sin(delta_lon) * np.cos(phi2)
    x = math.cos(phi1) * np.sin(phi2) - math.sin(phi1) * np.cos(phi2) * np.cos(
        delta_lon
    )
    return np.arctan2(y, x)


def consecutive_distances(points: Sequence[LatLon]) -> MetricArray:
    """Return the ``len(points) - 1`` distances between consecutive points."""

    if len(points) < 2:
        return np.zeros(0, dtype=float)
    array = np.asarray(points, dtype=float)
    phi = np.radians(array[:, 0])
    lam = np.radians(array[:, 1])
    dphi = np.diff(phi)
    dlam = np.diff(lam)
    h = np.sin(dphi / 2.0) ** 2 + np.cos(phi[:-1]) * np.cos(phi[1:]) * np.sin(
        dlam / 2.0
    ) ** 2
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))


def cumulative_distances(points: Sequence[LatLon]) -> MetricArray:
    """Return distances along the track from the first point, starting at 0."""

    if not points:
        return np.zeros(0, dtype=float)
    return np.concatenate(([0.0], np.cumsum(consecutive_distances(points))))


__all__ = [
    "EARTH_RADIUS_M",
    "haversine_distance",
    "bearing",
    "haversine_many",
    "bearing_many",
    "consecutive_distances",
    "cumulative_distances",
]
