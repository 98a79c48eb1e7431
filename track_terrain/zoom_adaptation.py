"""Zoom-aware simplification: tolerance tables, point budgets and retention guards.

Two entry points serve the two request shapes:

* ``simplify_track_for_zoom`` picks a tolerance from the zoom level and the
  track size, then enforces retention guards so moderate and huge tracks are
  not collapsed to a handful of points (single-track detail view).
* ``get_simplification_params`` / ``apply_simplification_params`` compute a
  tolerance plus a point budget from the rendering mode (multi-track
  overview listings and the detail pass-through).
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import List, Optional, Sequence

from .config import REFINEMENT_TOLERANCE_FLOOR_RATIO, SimplificationConfig
from .models import AdaptiveResult, LatLon, SimplificationParams, TrackMode
from .simplification import sample_uniform_points, simplify_track

_LOG = logging.getLogger(__name__)

DEFAULT_ZOOM = 12.0

# Point-count buckets for the adaptive scale.
_BYPASS_MAX_POINTS = 1000
_MILD_MAX_POINTS = 5000
_MODERATE_MAX_POINTS = 20000
_STRONG_MAX_POINTS = 50000

# Detail mode only touches tracks above this size.
_DETAIL_SIMPLIFY_MIN_POINTS = 50000

# Zoom levels are clamped to this range before bucketing.
_MIN_ZOOM = -1.0
_MAX_ZOOM = 30.0

STRATEGY_BYPASS = "bypass"
STRATEGY_DOUGLAS_PEUCKER = "douglas_peucker"
STRATEGY_REFINED = "refined"
STRATEGY_UNIFORM = "uniform"


class ZoomTable(str, Enum):
    """Which zoom-to-tolerance step table to use."""

    FINE = "fine"
    COARSE = "coarse"


def _zoom_bucket(zoom: float) -> int:
    # Truncate toward zero like a saturating integer cast; NaN counts as fully
    # zoomed out and infinities land in the outermost buckets.
    if zoom is None or math.isnan(zoom):
        return 0
    return int(min(max(zoom, _MIN_ZOOM), _MAX_ZOOM))


def tolerance_for_zoom(zoom: float) -> float:
    """Return the simplification tolerance in metres for a map zoom level."""

    z = _zoom_bucket(zoom)
    if z <= 8:
        return 100.0
    if z <= 10:
        return 50.0
    if z <= 12:
        return 25.0
    if z <= 14:
        return 10.0
    if z <= 16:
        return 5.0
    return 2.0


def coarse_tolerance_for_zoom(zoom: float) -> float:
    """Return the tolerance from the coarser world-to-street table."""

    z = _zoom_bucket(zoom)
    if z <= 5:
        return 1000.0
    if z <= 8:
        return 500.0
    if z <= 11:
        return 100.0
    if z <= 14:
        return 50.0
    if z <= 17:
        return 10.0
    return 5.0


def base_tolerance(zoom: float, table: ZoomTable = ZoomTable.FINE) -> float:
    if table is ZoomTable.COARSE:
        return coarse_tolerance_for_zoom(zoom)
    return tolerance_for_zoom(zoom)


def adaptive_tolerance_scale(
    point_count: int, bypass_threshold: int = _BYPASS_MAX_POINTS
) -> Optional[float]:
    """Return the tolerance multiplier for a track size, or None to skip simplification.

    ``bypass_threshold`` must match the one used for side channels so that
    bypassed geometry keeps full-length profiles and vice versa.
    """

    if point_count <= bypass_threshold:
        return None
    if point_count <= _MILD_MAX_POINTS:
        return 0.5
    if point_count <= _MODERATE_MAX_POINTS:
        return 1.0
    if point_count <= _STRONG_MAX_POINTS:
        return 1.5
    return 2.0


def moderate_min_points(point_count: int) -> int:
    """Minimum output size for 5001-20000 point tracks: just over a third."""

    return point_count // 3 + 1


def large_min_points(point_count: int, config: SimplificationConfig) -> int:
    """Minimum output size for tracks above 20000 points."""

    required = max(
        config.min_retention_points,
        int(round(point_count * config.min_retention_ratio)),
    )
    return min(required, point_count)


def simplify_track_for_zoom(
    points: Sequence[LatLon],
    zoom: float,
    config: Optional[SimplificationConfig] = None,
    table: ZoomTable = ZoomTable.FINE,
) -> AdaptiveResult:
    """Simplify one sequence for ``zoom``, honouring the retention guards."""

    config = config or SimplificationConfig()
    count = len(points)
    base = base_tolerance(zoom, table)
    scale = adaptive_tolerance_scale(count, config.profile_bypass_threshold)
    if scale is None:
        return AdaptiveResult(
            points=[tuple(pt) for pt in points],  # type: ignore[misc]
            tolerance_m=0.0,
            base_tolerance_m=base,
            strategy=STRATEGY_BYPASS,
        )

    tolerance = base * scale
    simplified = simplify_track(points, tolerance)

    if count <= _MODERATE_MAX_POINTS:
        if count > _MILD_MAX_POINTS:
            min_points = moderate_min_points(count)
            if len(simplified) < min_points:
                _LOG.debug(
                    "Retention guard: %d of %d points kept at %.1fm; resampling to %d",
                    len(simplified),
                    count,
                    tolerance,
                    min_points,
                )
                return AdaptiveResult(
                    points=sample_uniform_points(points, min_points),
                    tolerance_m=tolerance,
                    base_tolerance_m=base,
                    strategy=STRATEGY_UNIFORM,
                    diagnostics={"min_points": min_points},
                )
        return AdaptiveResult(
            points=simplified,
            tolerance_m=tolerance,
            base_tolerance_m=base,
            strategy=STRATEGY_DOUGLAS_PEUCKER,
        )

    return _refine_large_track(points, simplified, tolerance, base, config)


def _refine_large_track(
    points: Sequence[LatLon],
    simplified: List[LatLon],
    tolerance: float,
    base: float,
    config: SimplificationConfig,
) -> AdaptiveResult:
    count = len(points)
    min_required = large_min_points(count, config)
    diagnostics = {"min_points": min_required, "initial_points": len(simplified)}
    if len(simplified) >= min_required:
        return AdaptiveResult(
            points=simplified,
            tolerance_m=tolerance,
            base_tolerance_m=base,
            strategy=STRATEGY_DOUGLAS_PEUCKER,
            diagnostics=diagnostics,
        )

    floor = base * REFINEMENT_TOLERANCE_FLOOR_RATIO
    iterations = 0
    while (
        len(simplified) < min_required
        and iterations < config.max_refinements
        and tolerance / 2.0 >= floor
    ):
        tolerance /= 2.0
        iterations += 1
        simplified = simplify_track(points, tolerance)
        _LOG.debug(
            "Refinement %d: %d points at %.2fm (need %d)",
            iterations,
            len(simplified),
            tolerance,
            min_required,
        )

    if len(simplified) >= min_required:
        return AdaptiveResult(
            points=simplified,
            tolerance_m=tolerance,
            base_tolerance_m=base,
            strategy=STRATEGY_REFINED,
            iterations=iterations,
            diagnostics=diagnostics,
        )

    _LOG.debug(
        "Refinement exhausted after %d rounds with %d points; uniform resample to %d",
        iterations,
        len(simplified),
        min_required,
    )
    return AdaptiveResult(
        points=sample_uniform_points(points, min_required),
        tolerance_m=tolerance,
        base_tolerance_m=base,
        strategy=STRATEGY_UNIFORM,
        iterations=iterations,
        diagnostics=diagnostics,
    )


def max_points_for_zoom(zoom: float, is_overview: bool) -> int:
    """Return the output point budget for a zoom level and rendering mode."""

    z = _zoom_bucket(zoom)
    if is_overview:
        if z <= 8:
            return 200
        if z <= 10:
            return 500
        if z <= 12:
            return 1000
        if z <= 14:
            return 2000
        return 3000
    if z <= 8:
        return 1000
    if z <= 10:
        return 2000
    if z <= 12:
        return 5000
    if z <= 14:
        return 7500
    return 10000


def get_simplification_params(
    mode: TrackMode,
    zoom: Optional[float],
    original_points: int,
) -> SimplificationParams:
    """Compute tolerance and point budget for a mode/zoom request."""

    zoom_level = DEFAULT_ZOOM if zoom is None else zoom
    base = tolerance_for_zoom(zoom_level)

    if mode.is_overview:
        if original_points > _MODERATE_MAX_POINTS:
            tolerance = base * 2.0
        elif original_points > _MILD_MAX_POINTS:
            tolerance = base * 1.5
        elif original_points > _BYPASS_MAX_POINTS:
            tolerance = base
        else:
            tolerance = 0.0
        return SimplificationParams(
            tolerance_meters=tolerance,
            max_points=max_points_for_zoom(zoom_level, True),
            min_points=50,
        )

    tolerance = base * 0.5 if original_points > _DETAIL_SIMPLIFY_MIN_POINTS else 0.0
    return SimplificationParams(
        tolerance_meters=tolerance,
        max_points=10000,
        min_points=100,
    )


def apply_simplification_params(
    points: Sequence[LatLon], params: SimplificationParams
) -> List[LatLon]:
    """Simplify ``points`` to fit ``params``; the input is returned if no work is needed."""

    count = len(points)
    if not params.should_simplify(count):
        return [tuple(pt) for pt in points]  # type: ignore[misc]

    simplified = simplify_track(points, params.effective_tolerance(count))
    floor = min(params.min_points, count)
    if len(simplified) < floor:
        return sample_uniform_points(points, floor)
    if len(simplified) > params.max_points:
        return sample_uniform_points(simplified, max(params.max_points, floor))
    return simplified


__all__ = [
    "ZoomTable",
    "DEFAULT_ZOOM",
    "STRATEGY_BYPASS",
    "STRATEGY_DOUGLAS_PEUCKER",
    "STRATEGY_REFINED",
    "STRATEGY_UNIFORM",
    "tolerance_for_zoom",
    "coarse_tolerance_for_zoom",
    "base_tolerance",
    "adaptive_tolerance_scale",
    "moderate_min_points",
    "large_min_points",
    "simplify_track_for_zoom",
    "max_points_for_zoom",
    "get_simplification_params",
    "apply_simplification_params",
]
