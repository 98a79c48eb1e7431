"""Command-line tools built on the track terrain engine."""

from .analyze_track import analyze_track

__all__ = ["analyze_track"]
