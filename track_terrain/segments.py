"""Gap splitting and conversion between point sequences and GeoJSON.

Internally every point is ``(lat, lon)``. GeoJSON uses ``[lon, lat]``; the
swap happens only in this module (``parse_geometry`` on the way in and
``Geometry.to_geojson`` on the way out).
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from polyline import decode as polyline_decode
from polyline import encode as polyline_encode
from shapely.geometry import LineString, MultiLineString

from .config import DEFAULT_MAX_GAP_METERS
from .errors import (
    InvalidCoordinateError,
    MissingCoordinatesError,
    UnsupportedGeometryError,
)
from .geodesy import consecutive_distances
from .models import Geometry, LatLon, LineGeometry, MultiLineGeometry

GeometryInput = Union[Geometry, Mapping[str, Any], Any]


def split_points_by_gap(
    points: Sequence[LatLon], max_gap_meters: Optional[float] = None
) -> List[List[LatLon]]:
    """Split a point sequence wherever consecutive points jump too far apart."""

    if not points:
        return []
    threshold = DEFAULT_MAX_GAP_METERS if max_gap_meters is None else max_gap_meters
    distances = consecutive_distances(points)
    segments: List[List[LatLon]] = []
    current: List[LatLon] = [tuple(points[0])]  # type: ignore[list-item]
    for idx, step in enumerate(distances, start=1):
        if step > threshold:
            segments.append(current)
            current = []
        current.append(tuple(points[idx]))  # type: ignore[arg-type]
    segments.append(current)
    return segments


def geometry_from_segments(segments: Iterable[Sequence[LatLon]]) -> Geometry:
    """Build a line (one sequence) or multi-line (several) from sequences."""

    non_empty = [tuple(tuple(pt) for pt in seg) for seg in segments if len(seg) > 0]
    if not non_empty:
        return LineGeometry(())
    if len(non_empty) == 1:
        return LineGeometry(non_empty[0])  # type: ignore[arg-type]
    return MultiLineGeometry(tuple(non_empty))  # type: ignore[arg-type]


def geojson_from_segments(segments: Iterable[Sequence[LatLon]]) -> dict:
    """Shortcut for ``geometry_from_segments(...).to_geojson()``."""

    return geometry_from_segments(segments).to_geojson()


def parse_geometry(value: GeometryInput) -> Geometry:
    """Parse a GeoJSON mapping (or ``__geo_interface__`` object) into a Geometry."""

    if isinstance(value, (LineGeometry, MultiLineGeometry)):
        return value
    mapping = _as_mapping(value)
    geom_type = mapping.get("type")
    if "coordinates" not in mapping or mapping["coordinates"] is None:
        raise MissingCoordinatesError(f"{geom_type or 'Geometry'} has no coordinates")
    coordinates = mapping["coordinates"]
    if geom_type == "LineString":
        return LineGeometry(tuple(_parse_line(coordinates, ())))
    if geom_type == "MultiLineString":
        if not _is_sequence(coordinates):
            raise MissingCoordinatesError("MultiLineString coordinates must be an array")
        lines = tuple(
            tuple(_parse_line(line, (line_idx,)))
            for line_idx, line in enumerate(coordinates)
        )
        return MultiLineGeometry(lines)
    raise UnsupportedGeometryError(
        f"Unsupported geometry type {geom_type!r}; expected LineString or MultiLineString"
    )


def segments_from_geometry(value: GeometryInput) -> List[List[LatLon]]:
    """Return the ordered point sequences of a line or multi-line geometry."""

    return parse_geometry(value).segments


def length_km_for_segments(segments: Iterable[Sequence[LatLon]]) -> float:
    """Sum per-segment lengths in kilometres; gaps between segments are excluded."""

    total_m = 0.0
    for segment in segments:
        total_m += float(consecutive_distances(segment).sum())
    return total_m / 1000.0


def encode_polylines(value: GeometryInput, precision: int = 5) -> List[str]:
    """Encode each sequence of a geometry as a Google encoded polyline."""

    return [
        polyline_encode(segment, precision)
        for segment in segments_from_geometry(value)
    ]


def decode_polyline(encoded: str, precision: int = 5) -> List[LatLon]:
    """Decode an encoded polyline string into a list of (lat, lon) tuples."""

    if not encoded:
        return []
    try:
        decoded = polyline_decode(encoded, precision)
    except (ValueError, TypeError, IndexError) as exc:
        raise InvalidCoordinateError("Unable to decode polyline") from exc
    return [(float(lat), float(lon)) for lat, lon in decoded]


def to_shapely(value: GeometryInput) -> Union[LineString, MultiLineString]:
    """Return a shapely line (x=lon, y=lat) for a parsed geometry."""

    geometry = parse_geometry(value)
    if isinstance(geometry, MultiLineGeometry):
        return MultiLineString(
            [[(lon, lat) for lat, lon in line] for line in geometry.lines]
        )
    return LineString([(lon, lat) for lat, lon in geometry.points])


def _as_mapping(value: Any) -> Mapping[str, Any]:
    if isinstance(value, Mapping):
        return value
    interface = getattr(value, "__geo_interface__", None)
    if isinstance(interface, Mapping):
        return interface
    raise UnsupportedGeometryError(
        f"Expected a GeoJSON geometry mapping, got {type(value).__name__}"
    )


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _parse_line(coordinates: Any, path: Tuple[int, ...]) -> List[LatLon]:
    if not _is_sequence(coordinates):
        raise MissingCoordinatesError(
            f"Line at {list(path) or 'root'} has no coordinate array"
        )
    return [
        _parse_coordinate(coord, path + (idx,)) for idx, coord in enumerate(coordinates)
    ]


def _parse_coordinate(coord: Any, path: Tuple[int, ...]) -> LatLon:
    if not _is_sequence(coord) or len(coord) < 2:
        raise InvalidCoordinateError(
            f"Coordinate {list(path)} must have at least two components", path
        )
    lon, lat = coord[0], coord[1]
    for name, component in (("longitude", lon), ("latitude", lat)):
        if isinstance(component, bool) or not isinstance(component, Real):
            raise InvalidCoordinateError(
                f"Coordinate {list(path)} has non-numeric {name} {component!r}", path
            )
        if not math.isfinite(float(component)):
            raise InvalidCoordinateError(
                f"Coordinate {list(path)} has non-finite {name}", path
            )
    return (float(lat), float(lon))


__all__ = [
    "split_points_by_gap",
    "geometry_from_segments",
    "geojson_from_segments",
    "parse_geometry",
    "segments_from_geometry",
    "length_km_for_segments",
    "encode_polylines",
    "decode_polyline",
    "to_shapely",
]
