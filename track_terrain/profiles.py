"""Keep side-channel arrays index-aligned with simplified geometry."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, TypeVar

from .config import PROFILE_BYPASS_THRESHOLD
from .models import TrackMode

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

# Chart payload caps per rendering mode.
CHART_MAX_POINTS_OVERVIEW = 500
CHART_MAX_POINTS_DETAIL = 1500


def simplify_profile_data(
    data: Sequence[T],
    original_track_length: int,
    simplified_track_length: int,
) -> List[T]:
    """Pick the side-channel values matching a simplified track of the given length.

    Target index ``i`` reads source index
    ``round(i * (original - 1) / (simplified - 1))``. When ``data`` does not
    match ``original_track_length`` the array is sampled proportionally
    instead of failing.
    """

    if not data or simplified_track_length <= 0:
        return []
    if len(data) != original_track_length:
        _LOG.debug(
            "Side channel length %d != track length %d; sampling proportionally",
            len(data),
            original_track_length,
        )
        return sample_uniform(data, simplified_track_length)
    if simplified_track_length == 1:
        return [data[0]]

    last = len(data) - 1
    span = original_track_length - 1
    denominator = simplified_track_length - 1
    result: List[T] = []
    for i in range(simplified_track_length):
        # Integer round-half-up of i * span / denominator.
        source = (2 * i * span + denominator) // (2 * denominator)
        result.append(data[min(source, last)])
    return result


def simplify_profile_array_adaptive(
    data: Optional[Sequence[T]],
    original_track_length: int,
    simplified_track_length: int,
    bypass_threshold: int = PROFILE_BYPASS_THRESHOLD,
) -> Optional[List[T]]:
    """Resample a side channel unless the track is small or was not simplified."""

    if data is None:
        return None
    if (
        original_track_length <= bypass_threshold
        or original_track_length == simplified_track_length
    ):
        return list(data)
    return simplify_profile_data(data, original_track_length, simplified_track_length)


def sample_uniform(data: Sequence[T], target_length: int) -> List[T]:
    """Sample ``target_length`` values by position, keeping the first and last."""

    if not data or target_length <= 0:
        return []
    count = len(data)
    if target_length == 1:
        return [data[0]]
    last = count - 1
    denominator = target_length - 1
    return [
        data[min((2 * i * last + denominator) // (2 * denominator), last)]
        for i in range(target_length)
    ]


def sample_chart_data(
    data: Optional[Sequence[T]], mode: TrackMode
) -> Optional[List[T]]:
    """Sample a chart series down to the mode's point cap, keeping both ends."""

    if data is None:
        return None
    max_points = (
        CHART_MAX_POINTS_OVERVIEW if mode.is_overview else CHART_MAX_POINTS_DETAIL
    )
    if len(data) <= max_points:
        return list(data)
    return sample_uniform(data, max_points)


__all__ = [
    "CHART_MAX_POINTS_OVERVIEW",
    "CHART_MAX_POINTS_DETAIL",
    "simplify_profile_data",
    "simplify_profile_array_adaptive",
    "sample_uniform",
    "sample_chart_data",
]
