"""Distance-windowed slope statistics from a track and its elevation profile.

Slopes are computed over physical distance windows rather than between
adjacent samples, so irregular sampling rates and GPS elevation noise do not
produce spikes:

1. elevations are smoothed with a linearly weighted +/-50m window,
2. each point's slope spans the first/last samples within +/-25m,
3. min, max and a distance-weighted average are taken over all points,
4. a fixed 11-bucket histogram accumulates distance per slope band,
5. runs of similar slope are merged into segments for profile colouring.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import SlopeConfig
from .geodesy import consecutive_distances
from .models import HistogramBucket, LatLon, SlopeMetrics, SlopeSegment

_LOG = logging.getLogger(__name__)

MetricArray = NDArray[np.float64]

SLOPE_HISTOGRAM_BUCKETS: Tuple[Tuple[float, float], ...] = (
    (-60.0, -30.0),
    (-30.0, -15.0),
    (-15.0, -8.0),
    (-8.0, -4.0),
    (-4.0, 0.0),
    (0.0, 4.0),
    (4.0, 8.0),
    (8.0, 12.0),
    (12.0, 18.0),
    (18.0, 25.0),
    (25.0, 60.0),
)


def can_calculate_slopes(
    points: Sequence[LatLon], elevation_profile: Sequence[Optional[float]]
) -> bool:
    """Return True when ``calculate_slope_metrics`` would produce real metrics."""

    return _precondition_failure(points, elevation_profile) is None


def calculate_slope_metrics(
    points: Sequence[LatLon],
    elevation_profile: Sequence[Optional[float]],
    config: Optional[SlopeConfig] = None,
    track_name: Optional[str] = None,
) -> SlopeMetrics:
    """Compute slope statistics, or ``SlopeMetrics.empty()`` when not computable.

    Args:
        points: Track points as (lat, lon) tuples.
        elevation_profile: One elevation per point; ``None`` marks a missing
            sample. Any missing sample makes the metrics not computable.
        config: Window and merge settings; defaults when omitted.
        track_name: Optional label used only in log messages.

    Returns:
        Fully populated ``SlopeMetrics`` or the all-absent value.
    """

    label = track_name or "<unnamed>"
    failure = _precondition_failure(points, elevation_profile)
    if failure is not None:
        _LOG.debug("Track '%s': slope metrics not computable (%s)", label, failure)
        return SlopeMetrics.empty()

    config = config or SlopeConfig()
    elevations = np.asarray(elevation_profile, dtype=float)
    distances = consecutive_distances(points)
    cumulative = np.concatenate(([0.0], np.cumsum(distances)))

    smoothed = smooth_elevation_by_distance(
        elevations, cumulative, config.elevation_smoothing_window_m
    )
    slopes = calculate_slope_by_distance_window(
        smoothed, cumulative, config.slope_window_m
    )
    if slopes.size == 0:
        _LOG.debug("Track '%s': no slope samples after windowing", label)
        return SlopeMetrics.empty()

    # Slope i is weighted by the distance to the next point; the last point
    # has no outgoing segment and carries zero weight.
    weights = np.zeros(slopes.size, dtype=float)
    weights[: distances.size] = distances

    slope_min = float(np.min(slopes))
    slope_max = float(np.max(slopes))
    total_weight = float(np.sum(weights))
    slope_avg = (
        float(np.sum(slopes * weights) / total_weight) if total_weight > 0.0 else None
    )

    metrics = SlopeMetrics(
        slope_min=slope_min,
        slope_max=slope_max,
        slope_avg=slope_avg,
        slope_histogram=tuple(build_slope_histogram(slopes, weights)),
        slope_segments=tuple(
            merge_slope_segments(
                slopes,
                weights,
                config.merge_delta_percent,
                config.merge_min_length_m,
            )
        ),
    )
    _LOG.debug(
        "Track '%s' slopes: min=%.1f%% max=%.1f%% avg=%s",
        label,
        slope_min,
        slope_max,
        "n/a" if slope_avg is None else f"{slope_avg:.1f}%",
    )
    return metrics


def recalculate_slope_metrics(
    coordinates: Sequence[LatLon],
    elevation_profile: Sequence[float],
    config: Optional[SlopeConfig] = None,
    track_name: Optional[str] = None,
) -> SlopeMetrics:
    """Recompute metrics from a dense elevation list, e.g. after enrichment."""

    return calculate_slope_metrics(
        coordinates,
        [float(value) for value in elevation_profile],
        config=config,
        track_name=track_name,
    )


def smooth_elevation_by_distance(
    elevations: Sequence[float],
    cumulative_distances: Sequence[float],
    window_half_size: float,
) -> MetricArray:
    """Weighted average of elevations within +/-``window_half_size`` metres.

    Weights fall linearly from 1 at the centre to 0 at the window edge. Inputs
    shorter than three points, or with mismatched lengths, are returned as is.
    """

    elev = np.asarray(elevations, dtype=float)
    dist = np.asarray(cumulative_distances, dtype=float)
    if elev.size < 3 or dist.size != elev.size or window_half_size <= 0:
        return elev.copy()

    smoothed = elev.copy()
    # Cumulative distance is non-decreasing, so each window is a contiguous slice.
    lower = np.searchsorted(dist, dist - window_half_size, side="left")
    upper = np.searchsorted(dist, dist + window_half_size, side="right")
    for i in range(elev.size):
        window = slice(int(lower[i]), int(upper[i]))
        diff = np.abs(dist[window] - dist[i])
        weights = 1.0 - diff / window_half_size
        total = float(np.sum(weights))
        if total > 0.0:
            smoothed[i] = float(np.sum(elev[window] * weights) / total)
    return smoothed


def calculate_slope_by_distance_window(
    elevations: Sequence[float],
    cumulative_distances: Sequence[float],
    window_half_size: float,
) -> MetricArray:
    """Per-point slope (percent) across the +/-``window_half_size`` window.

    The window runs from the first point at or after ``centre - half`` to the
    last point at or before ``centre + half``. When that collapses to one
    point, the immediate neighbours are used; at the track edges the slope
    falls back to 0.
    """

    elev = np.asarray(elevations, dtype=float)
    dist = np.asarray(cumulative_distances, dtype=float)
    count = elev.size
    if count < 2 or dist.size != count:
        return np.zeros(0, dtype=float)

    starts = np.searchsorted(dist, dist - window_half_size, side="left")
    ends = np.searchsorted(dist, dist + window_half_size, side="right") - 1
    slopes = np.zeros(count, dtype=float)
    for i in range(count):
        start = int(starts[i])
        end = int(ends[i])
        if end > start:
            delta_distance = dist[end] - dist[start]
            if delta_distance > 0.0:
                slopes[i] = (elev[end] - elev[start]) / delta_distance * 100.0
                continue
        slopes[i] = _neighbour_slope(elev, dist, i)
    return slopes


def build_slope_histogram(
    slopes: Sequence[float], weights: Sequence[float]
) -> List[HistogramBucket]:
    """Accumulate segment distance per fixed slope bucket.

    Slopes outside the bucket range contribute to no bucket.
    """

    totals = [0.0] * len(SLOPE_HISTOGRAM_BUCKETS)
    for slope, weight in zip(slopes, weights):
        for idx, (low, high) in enumerate(SLOPE_HISTOGRAM_BUCKETS):
            if low <= slope < high:
                totals[idx] += float(weight)
                break
    return [
        HistogramBucket(bucket_from=low, bucket_to=high, distance_m=total)
        for (low, high), total in zip(SLOPE_HISTOGRAM_BUCKETS, totals)
    ]


def merge_slope_segments(
    slopes: Sequence[float],
    weights: Sequence[float],
    merge_delta_percent: float,
    merge_min_length_m: float,
) -> List[SlopeSegment]:
    """Merge consecutive similar slopes into segments for visualisation.

    A segment's reference slope is its first sample. Each following sample
    within ``merge_delta_percent`` of the reference extends the segment;
    otherwise the segment closes and is kept only if it is at least
    ``merge_min_length_m`` long. Start distances advance past dropped
    segments too, so kept segments stay anchored to the track.
    """

    if len(slopes) == 0:
        return []
    segments: List[SlopeSegment] = []
    current_slope = float(slopes[0])
    current_start = 0.0
    current_length = 0.0
    for slope, weight in zip(slopes[1:], weights[1:]):
        slope = float(slope)
        if abs(slope - current_slope) <= merge_delta_percent:
            current_length += float(weight)
            continue
        if current_length >= merge_min_length_m:
            segments.append(
                SlopeSegment(
                    distance_m=current_start,
                    slope_percent=current_slope,
                    length_m=current_length,
                )
            )
        current_slope = slope
        current_start += current_length
        current_length = float(weight)
    if current_length >= merge_min_length_m:
        segments.append(
            SlopeSegment(
                distance_m=current_start,
                slope_percent=current_slope,
                length_m=current_length,
            )
        )
    return segments


def _neighbour_slope(elev: MetricArray, dist: MetricArray, i: int) -> float:
    if 0 < i < elev.size - 1:
        delta_distance = dist[i + 1] - dist[i - 1]
        if delta_distance > 0.0:
            return float((elev[i + 1] - elev[i - 1]) / delta_distance * 100.0)
    return 0.0


def _precondition_failure(
    points: Sequence[LatLon], elevation_profile: Sequence[Optional[float]]
) -> Optional[str]:
    if len(points) < 2:
        return f"{len(points)} points"
    if len(elevation_profile) == 0:
        return "no elevation profile"
    if len(points) != len(elevation_profile):
        return (
            f"{len(points)} points but {len(elevation_profile)} elevation samples"
        )
    valid = sum(1 for value in elevation_profile if _is_valid_elevation(value))
    if valid < 2:
        return f"{valid} valid elevations"
    if valid != len(points):
        # Interpolating gaps is possible but deliberately not done.
        return f"{len(points) - valid} missing elevations"
    return None


def _is_valid_elevation(value: Optional[float]) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


__all__ = [
    "SLOPE_HISTOGRAM_BUCKETS",
    "can_calculate_slopes",
    "calculate_slope_metrics",
    "recalculate_slope_metrics",
    "smooth_elevation_by_distance",
    "calculate_slope_by_distance_window",
    "build_slope_histogram",
    "merge_slope_segments",
]
