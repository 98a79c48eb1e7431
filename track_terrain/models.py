"""Dataclasses describing track geometry inputs and engine results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


LatLon = Tuple[float, float]
SideChannelValue = Union[float, int, str, None]


class TrackMode(str, Enum):
    """Rendering mode requested by the caller."""

    OVERVIEW = "overview"
    DETAIL = "detail"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "TrackMode":
        """Parse a mode name case-insensitively; unknown names mean overview."""

        if value is not None and value.strip().lower() == "detail":
            return cls.DETAIL
        return cls.OVERVIEW

    @property
    def is_overview(self) -> bool:
        return self is TrackMode.OVERVIEW

    @property
    def is_detail(self) -> bool:
        return self is TrackMode.DETAIL


def _coords_for(points: List[LatLon]) -> List[List[float]]:
    # GeoJSON order is [lon, lat].
    return [[lon, lat] for lat, lon in points]


@dataclass(frozen=True, slots=True)
class LineGeometry:
    """A single continuous sequence of (lat, lon) points."""

    points: Tuple[LatLon, ...] = ()

    @property
    def segments(self) -> List[List[LatLon]]:
        return [list(self.points)] if self.points else []

    @property
    def point_count(self) -> int:
        return len(self.points)

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": "LineString", "coordinates": _coords_for(list(self.points))}


@dataclass(frozen=True, slots=True)
class MultiLineGeometry:
    """Several sequences produced by gap splitting; order is significant."""

    lines: Tuple[Tuple[LatLon, ...], ...] = ()

    @property
    def segments(self) -> List[List[LatLon]]:
        return [list(line) for line in self.lines]

    @property
    def point_count(self) -> int:
        return sum(len(line) for line in self.lines)

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "MultiLineString",
            "coordinates": [_coords_for(list(line)) for line in self.lines],
        }


Geometry = Union[LineGeometry, MultiLineGeometry]


@dataclass(frozen=True, slots=True)
class SimplificationParams:
    """Tolerance and point budget computed once per render request."""

    tolerance_meters: float
    max_points: int
    min_points: int

    def should_simplify(self, original_points: int) -> bool:
        """Return True when simplification should run for this many points."""

        return self.tolerance_meters > 0.0 or original_points > self.max_points

    def effective_tolerance(self, original_points: int) -> float:
        """Return the tolerance to use, deriving one when only the budget applies."""

        if (
            original_points > self.max_points
            and self.tolerance_meters == 0.0
            and self.max_points > 0
        ):
            # Logarithmic growth with how far over budget the track is.
            ratio = original_points / float(self.max_points)
            return 5.0 * math.log(ratio)
        return self.tolerance_meters


@dataclass(frozen=True, slots=True)
class HistogramBucket:
    """Distance covered at slopes within ``[bucket_from, bucket_to)``."""

    bucket_from: float
    bucket_to: float
    distance_m: float = 0.0

    def contains(self, slope: float) -> bool:
        return self.bucket_from <= slope < self.bucket_to

    def to_dict(self) -> Dict[str, float]:
        return {
            "bucket_from": self.bucket_from,
            "bucket_to": self.bucket_to,
            "distance_m": self.distance_m,
        }


@dataclass(frozen=True, slots=True)
class SlopeSegment:
    """A run of near-constant slope used for profile colouring."""

    distance_m: float
    slope_percent: float
    length_m: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "distance_m": self.distance_m,
            "slope_percent": self.slope_percent,
            "length_m": self.length_m,
        }


@dataclass(frozen=True, slots=True)
class SlopeMetrics:
    """Slope statistics for a track.

    Either every field is populated (``slope_avg`` may still be None when the
    track has zero length) or every field is None, meaning the metrics could
    not be computed. A flat track yields present, near-zero values.
    """

    slope_min: Optional[float] = None
    slope_max: Optional[float] = None
    slope_avg: Optional[float] = None
    slope_histogram: Optional[Tuple[HistogramBucket, ...]] = None
    slope_segments: Optional[Tuple[SlopeSegment, ...]] = None

    @classmethod
    def empty(cls) -> "SlopeMetrics":
        return cls()

    @property
    def is_computed(self) -> bool:
        return self.slope_histogram is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slope_min": self.slope_min,
            "slope_max": self.slope_max,
            "slope_avg": self.slope_avg,
            "slope_histogram": (
                [bucket.to_dict() for bucket in self.slope_histogram]
                if self.slope_histogram is not None
                else None
            ),
            "slope_segments": (
                [segment.to_dict() for segment in self.slope_segments]
                if self.slope_segments is not None
                else None
            ),
        }


@dataclass(frozen=True, slots=True)
class GapEndpoint:
    lat: float
    lon: float
    segment_index: int
    point_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "segment_index": self.segment_index,
            "point_index": self.point_index,
        }


@dataclass(frozen=True, slots=True)
class GapInfo:
    """A discontinuity: a segment boundary or a pause on a continuous track."""

    kind: str
    start: GapEndpoint
    end: GapEndpoint
    distance_m: float
    duration_seconds: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "from": self.start.to_dict(),
            "to": self.end.to_dict(),
            "distance_m": self.distance_m,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(slots=True)
class AdaptiveResult:
    """Outcome of zoom-adaptive simplification for one sequence."""

    points: List[LatLon]
    tolerance_m: float
    base_tolerance_m: float
    strategy: str
    iterations: int = 0
    diagnostics: Dict[str, Any] = field(default_factory=dict)


__all__ = [
    "LatLon",
    "SideChannelValue",
    "TrackMode",
    "LineGeometry",
    "MultiLineGeometry",
    "Geometry",
    "SimplificationParams",
    "HistogramBucket",
    "SlopeSegment",
    "SlopeMetrics",
    "GapEndpoint",
    "GapInfo",
    "AdaptiveResult",
]
