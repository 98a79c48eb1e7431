"""Assemble zoom-adapted render payloads for one or many tracks."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import SimplificationConfig
from .gaps import compute_gap_metadata
from .models import Geometry, GapInfo, SideChannelValue
from .profiles import simplify_profile_array_adaptive
from .segments import (
    GeometryInput,
    geometry_from_segments,
    length_km_for_segments,
    parse_geometry,
    split_points_by_gap,
)
from .zoom_adaptation import simplify_track_for_zoom

_LOG = logging.getLogger(__name__)

SideChannels = Mapping[str, Optional[Sequence[SideChannelValue]]]

# Side channel whose values are timestamps and drive pause detection.
TIME_CHANNEL = "time"


@dataclass(slots=True)
class RenderPayload:
    """Simplified geometry plus index-aligned side channels for one track."""

    geometry: Geometry
    zoom: float
    original_points: int
    simplified_points: int
    length_km: float
    strategies: List[str] = field(default_factory=list)
    tolerances_m: List[float] = field(default_factory=list)
    side_channels: Dict[str, Optional[List[SideChannelValue]]] = field(
        default_factory=dict
    )
    segment_gaps: Optional[List[GapInfo]] = None
    pause_gaps: Optional[List[GapInfo]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "geometry": self.geometry.to_geojson(),
            "zoom": self.zoom,
            "original_points": self.original_points,
            "simplified_points": self.simplified_points,
            "length_km": self.length_km,
            "strategies": list(self.strategies),
            "tolerances_m": list(self.tolerances_m),
            "side_channels": {
                name: (list(values) if values is not None else None)
                for name, values in self.side_channels.items()
            },
            "segment_gaps": (
                [gap.to_dict() for gap in self.segment_gaps]
                if self.segment_gaps is not None
                else None
            ),
            "pause_gaps": (
                [gap.to_dict() for gap in self.pause_gaps]
                if self.pause_gaps is not None
                else None
            ),
        }


@dataclass(frozen=True, slots=True)
class RenderRequest:
    geometry: GeometryInput
    zoom: float
    side_channels: Optional[SideChannels] = None
    config: Optional[SimplificationConfig] = None


def build_render_payload(
    geometry: GeometryInput,
    zoom: float,
    side_channels: Optional[SideChannels] = None,
    config: Optional[SimplificationConfig] = None,
) -> RenderPayload:
    """Simplify a track for ``zoom`` and keep its side channels aligned.

    Args:
        geometry: A ``Geometry``, a GeoJSON mapping or a ``__geo_interface__``
            object.
        zoom: Map zoom level.
        side_channels: Named per-point arrays (elevation, time, heart rate...)
            aligned with the flattened input points. ``None`` values stay
            ``None``.
        config: Gap threshold and retention settings; defaults when omitted.

    Raises:
        TrackGeometryError: If the geometry cannot be parsed.
    """

    config = config or SimplificationConfig()
    parsed = parse_geometry(geometry)
    segments: List[List] = []
    for part in parsed.segments:
        segments.extend(split_points_by_gap(part, config.max_gap_meters))

    results = [simplify_track_for_zoom(segment, zoom, config) for segment in segments]
    simplified_segments = [result.points for result in results]
    original_count = sum(len(segment) for segment in segments)
    simplified_count = sum(len(segment) for segment in simplified_segments)

    channels: Dict[str, Optional[List[SideChannelValue]]] = {}
    for name, values in (side_channels or {}).items():
        channels[name] = simplify_profile_array_adaptive(
            values,
            original_count,
            simplified_count,
            bypass_threshold=config.profile_bypass_threshold,
        )

    segment_gaps, pause_gaps = compute_gap_metadata(
        simplified_segments,
        channels.get(TIME_CHANNEL),
        pause_threshold_s=config.pause_gap_seconds,
    )
    payload = RenderPayload(
        geometry=geometry_from_segments(simplified_segments),
        zoom=zoom,
        original_points=original_count,
        simplified_points=simplified_count,
        length_km=length_km_for_segments(segments),
        strategies=[result.strategy for result in results],
        tolerances_m=[result.tolerance_m for result in results],
        side_channels=channels,
        segment_gaps=segment_gaps,
        pause_gaps=pause_gaps,
    )
    _LOG.debug(
        "Render payload zoom=%s: %d -> %d points across %d segment(s)",
        zoom,
        original_count,
        simplified_count,
        len(segments),
    )
    return payload


def build_render_payloads(
    requests: Sequence[RenderRequest],
    max_workers: Optional[int] = None,
) -> List[RenderPayload]:
    """Build payloads concurrently; results keep the order of ``requests``.

    The first failing request's exception propagates to the caller.
    """

    if not requests:
        return []
    results: List[Optional[RenderPayload]] = [None] * len(requests)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_map = {
            executor.submit(
                build_render_payload,
                request.geometry,
                request.zoom,
                request.side_channels,
                request.config,
            ): index
            for index, request in enumerate(requests)
        }
        for future in as_completed(future_map):
            results[future_map[future]] = future.result()
    return [payload for payload in results if payload is not None]


__all__ = [
    "TIME_CHANNEL",
    "RenderPayload",
    "RenderRequest",
    "build_render_payload",
    "build_render_payloads",
]
