"""Central error types used across the package."""

from __future__ import annotations


class TrackGeometryError(ValueError):
    """Base error for geometry payloads that cannot be parsed."""


class UnsupportedGeometryError(TrackGeometryError):
    """Raised when a geometry is neither a LineString nor a MultiLineString."""


class MissingCoordinatesError(TrackGeometryError):
    """Raised when a geometry has no usable ``coordinates`` array."""


class InvalidCoordinateError(TrackGeometryError):
    """Raised when a coordinate has fewer than two components or bad values."""

    def __init__(self, message: str, path: tuple[int, ...] = ()) -> None:
        super().__init__(message)
        self.path = path


class ConfigError(ValueError):
    """Raised when a configuration value is out of range."""


__all__ = [
    "TrackGeometryError",
    "UnsupportedGeometryError",
    "MissingCoordinatesError",
    "InvalidCoordinateError",
    "ConfigError",
]
