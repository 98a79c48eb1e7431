"""Elevation gain/loss and range summaries for an elevation profile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np


@dataclass(frozen=True, slots=True)
class ElevationMetrics:
    elevation_gain: Optional[float] = None
    elevation_loss: Optional[float] = None
    elevation_min: Optional[float] = None
    elevation_max: Optional[float] = None

    @property
    def elevation_range(self) -> Optional[float]:
        if self.elevation_min is None or self.elevation_max is None:
            return None
        return self.elevation_max - self.elevation_min

    def to_dict(self) -> dict:
        return {
            "elevation_gain": self.elevation_gain,
            "elevation_loss": self.elevation_loss,
            "elevation_min": self.elevation_min,
            "elevation_max": self.elevation_max,
        }


def calculate_elevation_metrics(
    elevations: Sequence[Optional[float]],
) -> ElevationMetrics:
    """Return gain, loss, min and max over the finite samples of a profile.

    Missing (``None``) and non-finite samples are skipped, so gain and loss
    are measured between consecutive *valid* samples.
    """

    valid = _finite_values(elevations)
    if valid.size == 0:
        return ElevationMetrics()
    diffs = np.diff(valid)
    return ElevationMetrics(
        elevation_gain=float(np.sum(diffs[diffs > 0.0])),
        elevation_loss=float(np.abs(np.sum(diffs[diffs < 0.0]))),
        elevation_min=float(np.min(valid)),
        elevation_max=float(np.max(valid)),
    )


def smooth_elevation_data(elevations: Sequence[float], window_size: int = 3) -> List[float]:
    """Centred moving average; windows shrink at the edges."""

    values = [float(value) for value in elevations]
    if window_size <= 0 or len(values) < window_size:
        return values
    half = window_size // 2
    cumsum = np.concatenate(([0.0], np.cumsum(values)))
    smoothed: List[float] = []
    for i in range(len(values)):
        start = max(i - half, 0)
        end = min(i + half + 1, len(values))
        smoothed.append(float((cumsum[end] - cumsum[start]) / (end - start)))
    return smoothed


def _as_float(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _finite_values(elevations: Sequence[Optional[float]]) -> np.ndarray:
    # Samples that do not parse as numbers are treated like gaps.
    numeric = [number for number in map(_as_float, elevations) if number is not None]
    array = np.asarray(numeric, dtype=float)
    return array[np.isfinite(array)]


__all__ = ["ElevationMetrics", "calculate_elevation_metrics", "smooth_elevation_data"]
