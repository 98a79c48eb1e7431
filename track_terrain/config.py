"""Configuration for the simplification and terrain metrics engine.

Algorithms take explicit config objects; nothing in the package reads the
environment on its own. Callers that want environment overrides (optionally
via a local `.env`) build their configs with ``load_simplification_config``
and ``load_slope_config``.
"""

from __future__ import annotations

import importlib
import os
from dataclasses import dataclass

from .errors import ConfigError


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _load_dotenv() -> None:
    """Load .env variables when python-dotenv is available."""

    try:
        dotenv_mod = importlib.import_module("dotenv")
    except ImportError:
        return
    load = getattr(dotenv_mod, "load_dotenv", None)
    if callable(load):
        # Load .env from the current directory or any parent folder.
        load()


# ---------------------------------------------------------------------------
# Geometry defaults
# ---------------------------------------------------------------------------
# Consecutive points farther apart than this start a new segment. Large on
# purpose: it detects recording teleports, not GPS jitter.
DEFAULT_MAX_GAP_METERS = 100_000.0

# Tracks at or below this many points are rendered without simplification,
# and their side channels are passed through untouched.
PROFILE_BYPASS_THRESHOLD = 1000

# Retention guard for tracks above 20k points.
DEFAULT_MIN_RETENTION_RATIO = 0.01
DEFAULT_MIN_RETENTION_POINTS = 500
DEFAULT_MAX_REFINEMENTS = 4

# Refinement stops once the tolerance would fall below this share of the
# unscaled zoom tolerance.
REFINEMENT_TOLERANCE_FLOOR_RATIO = 0.1

# Three minutes without samples on a continuous track marks a pause gap.
DEFAULT_PAUSE_GAP_SECONDS = 180


# ---------------------------------------------------------------------------
# Slope defaults
# ---------------------------------------------------------------------------
# Half-window (metres) for elevation smoothing: +/-50m is a 100m window.
DEFAULT_ELEVATION_SMOOTHING_WINDOW_M = 50.0

# Half-window (metres) for slope estimation: +/-25m is a 50m window.
DEFAULT_SLOPE_WINDOW_M = 25.0

# Consecutive slopes within this many percentage points merge into one
# visual segment; merged segments shorter than the minimum are dropped.
DEFAULT_MERGE_DELTA_PERCENT = 1.0
DEFAULT_MERGE_MIN_LENGTH_M = 15.0


@dataclass(frozen=True, slots=True)
class SimplificationConfig:
    """Tuning knobs for gap splitting and the retention guards."""

    max_gap_meters: float = DEFAULT_MAX_GAP_METERS
    min_retention_ratio: float = DEFAULT_MIN_RETENTION_RATIO
    min_retention_points: int = DEFAULT_MIN_RETENTION_POINTS
    max_refinements: int = DEFAULT_MAX_REFINEMENTS
    profile_bypass_threshold: int = PROFILE_BYPASS_THRESHOLD
    pause_gap_seconds: float = DEFAULT_PAUSE_GAP_SECONDS

    def __post_init__(self) -> None:
        if not self.max_gap_meters > 0:
            raise ConfigError("max_gap_meters must be greater than zero")
        if not 0.0 <= self.min_retention_ratio <= 1.0:
            raise ConfigError("min_retention_ratio must be within [0, 1]")
        if self.min_retention_points < 2:
            raise ConfigError("min_retention_points must be at least 2")
        if self.max_refinements < 0:
            raise ConfigError("max_refinements cannot be negative")
        if self.profile_bypass_threshold < 0:
            raise ConfigError("profile_bypass_threshold cannot be negative")
        if self.pause_gap_seconds <= 0:
            raise ConfigError("pause_gap_seconds must be greater than zero")


@dataclass(frozen=True, slots=True)
class SlopeConfig:
    """Window sizes and merge rules for slope calculation."""

    elevation_smoothing_window_m: float = DEFAULT_ELEVATION_SMOOTHING_WINDOW_M
    slope_window_m: float = DEFAULT_SLOPE_WINDOW_M
    merge_delta_percent: float = DEFAULT_MERGE_DELTA_PERCENT
    merge_min_length_m: float = DEFAULT_MERGE_MIN_LENGTH_M

    def __post_init__(self) -> None:
        if not self.elevation_smoothing_window_m > 0:
            raise ConfigError("elevation_smoothing_window_m must be positive")
        if not self.slope_window_m > 0:
            raise ConfigError("slope_window_m must be positive")
        if self.merge_delta_percent < 0:
            raise ConfigError("merge_delta_percent cannot be negative")
        if self.merge_min_length_m < 0:
            raise ConfigError("merge_min_length_m cannot be negative")


def load_simplification_config(use_dotenv: bool = True) -> SimplificationConfig:
    """Build a ``SimplificationConfig`` from environment overrides."""

    if use_dotenv:
        _load_dotenv()
    return SimplificationConfig(
        max_gap_meters=_env_float("TRACK_MAX_GAP_METERS", DEFAULT_MAX_GAP_METERS),
        min_retention_ratio=_env_float(
            "SIMPLIFY_MIN_RETENTION_RATIO", DEFAULT_MIN_RETENTION_RATIO
        ),
        min_retention_points=_env_int(
            "SIMPLIFY_MIN_POINTS", DEFAULT_MIN_RETENTION_POINTS
        ),
        max_refinements=_env_int("SIMPLIFY_MAX_REFINEMENTS", DEFAULT_MAX_REFINEMENTS),
        profile_bypass_threshold=_env_int(
            "PROFILE_BYPASS_THRESHOLD", PROFILE_BYPASS_THRESHOLD
        ),
        pause_gap_seconds=_env_float("PAUSE_GAP_SECONDS", DEFAULT_PAUSE_GAP_SECONDS),
    )


def load_slope_config(use_dotenv: bool = True) -> SlopeConfig:
    """Build a ``SlopeConfig`` from environment overrides."""

    if use_dotenv:
        _load_dotenv()
    return SlopeConfig(
        elevation_smoothing_window_m=_env_float(
            "SLOPE_ELEVATION_SMOOTHING_WINDOW", DEFAULT_ELEVATION_SMOOTHING_WINDOW_M
        ),
        slope_window_m=_env_float("SLOPE_CALCULATION_WINDOW", DEFAULT_SLOPE_WINDOW_M),
        merge_delta_percent=_env_float(
            "SLOPE_MERGE_DELTA_PERCENT", DEFAULT_MERGE_DELTA_PERCENT
        ),
        merge_min_length_m=_env_float(
            "SLOPE_MERGE_MIN_LENGTH_M", DEFAULT_MERGE_MIN_LENGTH_M
        ),
    )


__all__ = [
    "SimplificationConfig",
    "SlopeConfig",
    "load_simplification_config",
    "load_slope_config",
    "DEFAULT_MAX_GAP_METERS",
    "PROFILE_BYPASS_THRESHOLD",
]
