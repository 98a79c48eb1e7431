"""Describe discontinuities in a track: segment boundaries and recording pauses."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_PAUSE_GAP_SECONDS
from .geodesy import haversine_distance
from .models import GapEndpoint, GapInfo, LatLon
from .utils import parse_iso_datetime, to_utc_aware

GapLists = Tuple[Optional[List[GapInfo]], Optional[List[GapInfo]]]


def compute_gap_metadata(
    segments: Optional[Sequence[Sequence[LatLon]]],
    time_data: Optional[Sequence[object]] = None,
    pause_threshold_s: float = DEFAULT_PAUSE_GAP_SECONDS,
) -> GapLists:
    """Return ``(segment_gaps, pause_gaps)``; each is None when empty.

    Segment gaps connect the last point of one segment to the first point of
    the next. Pause gaps are only looked for on single-segment tracks whose
    time channel is aligned with the points.
    """

    if not segments:
        return None, None
    segment_gaps = _segment_gaps(segments)
    pause_gaps: List[GapInfo] = []
    if len(segments) == 1 and time_data is not None:
        pause_gaps = _pause_gaps(segments[0], time_data, pause_threshold_s)
    return segment_gaps or None, pause_gaps or None


def _segment_gaps(segments: Sequence[Sequence[LatLon]]) -> List[GapInfo]:
    gaps: List[GapInfo] = []
    for idx in range(len(segments) - 1):
        before, after = segments[idx], segments[idx + 1]
        if not before or not after:
            continue
        from_pt, to_pt = before[-1], after[0]
        gaps.append(
            GapInfo(
                kind="segment",
                start=GapEndpoint(from_pt[0], from_pt[1], idx, len(before) - 1),
                end=GapEndpoint(to_pt[0], to_pt[1], idx + 1, 0),
                distance_m=haversine_distance(from_pt, to_pt),
            )
        )
    return gaps


def _pause_gaps(
    coords: Sequence[LatLon],
    time_data: Sequence[object],
    threshold_s: float,
) -> List[GapInfo]:
    if len(coords) != len(time_data) or len(coords) < 2:
        return []
    times = [parse_iso_datetime(value) for value in time_data]
    gaps: List[GapInfo] = []
    for i in range(1, len(coords)):
        t1, t2 = times[i - 1], times[i]
        if t1 is None or t2 is None:
            continue
        delta = int((to_utc_aware(t2) - to_utc_aware(t1)).total_seconds())
        if delta < threshold_s:
            continue
        gaps.append(
            GapInfo(
                kind="pause",
                start=GapEndpoint(coords[i - 1][0], coords[i - 1][1], 0, i - 1),
                end=GapEndpoint(coords[i][0], coords[i][1], 0, i),
                distance_m=haversine_distance(coords[i - 1], coords[i]),
                duration_seconds=delta,
            )
        )
    return gaps


__all__ = ["compute_gap_metadata"]
