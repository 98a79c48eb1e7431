"""Adaptive track simplification and terrain metrics."""

from .config import SimplificationConfig, SlopeConfig
from .errors import ConfigError, TrackGeometryError
from .models import LineGeometry, MultiLineGeometry, SlopeMetrics, TrackMode
from .render import RenderPayload, build_render_payload, build_render_payloads
from .slope import calculate_slope_metrics
from .zoom_adaptation import simplify_track_for_zoom

__all__ = [
    "SimplificationConfig",
    "SlopeConfig",
    "ConfigError",
    "TrackGeometryError",
    "LineGeometry",
    "MultiLineGeometry",
    "SlopeMetrics",
    "TrackMode",
    "RenderPayload",
    "build_render_payload",
    "build_render_payloads",
    "calculate_slope_metrics",
    "simplify_track_for_zoom",
]
