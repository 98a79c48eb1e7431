"""Geodesic Douglas-Peucker simplification and uniform down-sampling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from numpy.typing import NDArray

from .geodesy import (
    EARTH_RADIUS_M,
    bearing,
    bearing_many,
    haversine_distance,
    haversine_many,
)
from .models import LatLon

MetricArray = NDArray[np.float64]

# Endpoints closer than this (in degrees) are treated as the same point.
_DEGENERATE_SEGMENT_DEG = 1e-10


@dataclass(slots=True)
class SimplificationStats:
    """Summary of how much a simplification pass removed."""

    original_points: int
    simplified_points: int
    compression_ratio: float
    tolerance_used: float


def simplify_track(points: Sequence[LatLon], tolerance_m: float) -> List[LatLon]:
    """Simplify a (lat, lon) sequence, keeping points that deviate > ``tolerance_m``.

    The first and last points are always kept. Sequences of two points or
    fewer, and non-positive tolerances, return a copy of the input.
    """

    if len(points) <= 2 or tolerance_m <= 0:
        return [tuple(pt) for pt in points]  # type: ignore[misc]
    keep = _douglas_peucker_mask(np.asarray(points, dtype=float), tolerance_m)
    return [tuple(points[idx]) for idx in np.flatnonzero(keep)]  # type: ignore[misc]


def perpendicular_distance(point: LatLon, line_start: LatLon, line_end: LatLon) -> float:
    """Distance in metres from ``point`` to the segment ``line_start``-``line_end``.

    Uses cross-track distance when the point projects onto the segment and
    the distance to the nearer endpoint when it projects past either end.
    """

    lats = np.asarray([point[0]], dtype=float)
    lons = np.asarray([point[1]], dtype=float)
    return float(_perpendicular_distances(lats, lons, line_start, line_end)[0])


def sample_uniform_points(points: Sequence[LatLon], target_len: int) -> List[LatLon]:
    """Pick ``target_len`` points at an even stride, keeping both endpoints."""

    count = len(points)
    if target_len <= 0:
        return []
    if target_len >= count or count <= 2:
        return [tuple(pt) for pt in points]  # type: ignore[misc]
    indices = uniform_indices(count, max(target_len, 2))
    return [tuple(points[idx]) for idx in indices]  # type: ignore[misc]


def uniform_indices(count: int, target_len: int) -> List[int]:
    """Return sorted, unique source indices spread evenly over ``count`` items."""

    if count <= 0 or target_len <= 0:
        return []
    if target_len == 1:
        return [0]
    if target_len >= count:
        return list(range(count))
    # Integer round-half-up of i * (count - 1) / (target_len - 1); the same
    # positions the profile resampler reads, so side channels stay aligned.
    span = count - 1
    denominator = target_len - 1
    steps = np.arange(target_len, dtype=np.int64)
    rounded = (2 * steps * span + denominator) // (2 * denominator)
    rounded = np.clip(rounded, 0, span)
    return [int(idx) for idx in np.unique(rounded)]


def get_simplification_stats(
    original: Sequence[LatLon], simplified: Sequence[LatLon], tolerance: float
) -> SimplificationStats:
    compression_ratio = len(simplified) / len(original) if original else 0.0
    return SimplificationStats(
        original_points=len(original),
        simplified_points=len(simplified),
        compression_ratio=compression_ratio,
        tolerance_used=tolerance,
    )


def _douglas_peucker_mask(array: MetricArray, tolerance_m: float) -> NDArray[np.bool_]:
    """Return a boolean mask of the points Douglas-Peucker keeps.

    Works from an explicit stack of (start, end) windows instead of
    recursion; split points and output order match the recursive form.
    """

    count = array.shape[0]
    keep = np.zeros(count, dtype=bool)
    keep[0] = True
    keep[-1] = True
    lats = array[:, 0]
    lons = array[:, 1]
    stack = [(0, count - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue
        distances = _perpendicular_distances(
            lats[start + 1 : end],
            lons[start + 1 : end],
            (float(lats[start]), float(lons[start])),
            (float(lats[end]), float(lons[end])),
        )
        offset = int(np.argmax(distances))
        max_distance = float(distances[offset])
        if max_distance > tolerance_m:
            split = start + 1 + offset
            keep[split] = True
            stack.append((split, end))
            stack.append((start, split))
    return keep


def _perpendicular_distances(
    lats: MetricArray,
    lons: MetricArray,
    line_start: LatLon,
    line_end: LatLon,
) -> MetricArray:
    if (
        abs(line_start[0] - line_end[0]) < _DEGENERATE_SEGMENT_DEG
        and abs(line_start[1] - line_end[1]) < _DEGENERATE_SEGMENT_DEG
    ):
        return haversine_many(line_start, lats, lons)

    dist_from_start = haversine_many(line_start, lats, lons)
    angular = dist_from_start / EARTH_RADIUS_M
    delta = bearing_many(line_start, lats, lons) - bearing(line_start, line_end)
    cross_track = np.abs(angular * np.sin(delta)) * EARTH_RADIUS_M
    along_track = angular * np.cos(delta) * EARTH_RADIUS_M
    line_length = haversine_distance(line_start, line_end)

    result = cross_track.copy()
    before = along_track < 0.0
    result[before] = dist_from_start[before]
    after = along_track > line_length
    if after.any():
        result[after] = haversine_many(line_end, lats[after], lons[after])
    return result


__all__ = [
    "SimplificationStats",
    "simplify_track",
    "perpendicular_distance",
    "sample_uniform_points",
    "uniform_indices",
    "get_simplification_stats",
]
