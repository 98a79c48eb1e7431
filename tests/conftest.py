"""Global pytest fixtures & helpers.

Adds project root to path and provides track factories shared by the
simplification, slope and render tests.
"""
from __future__ import annotations

import os
import sys
from typing import List, Tuple

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


LatLon = Tuple[float, float]


# --- Factory helpers -------------------------------------------------
def make_straight_track(
    count: int,
    start_lat: float = 45.0,
    lon: float = 7.0,
    step_deg: float = 1e-4,
) -> List[LatLon]:
    """Points marching north along a meridian, roughly 11m apart."""

    return [(start_lat + i * step_deg, lon) for i in range(count)]


def make_zigzag_track(
    count: int,
    start_lat: float = 45.0,
    lon: float = 7.0,
    step_deg: float = 1e-3,
    amplitude_deg: float = 1e-3,
) -> List[LatLon]:
    """Points alternating east/west of a meridian; every vertex matters."""

    return [
        (start_lat + i * step_deg, lon + (amplitude_deg if i % 2 else 0.0))
        for i in range(count)
    ]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def straight_track():
    return make_straight_track


@pytest.fixture
def zigzag_track():
    return make_zigzag_track


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in (
        "TRACK_MAX_GAP_METERS",
        "SIMPLIFY_MIN_RETENTION_RATIO",
        "SIMPLIFY_MIN_POINTS",
        "SIMPLIFY_MAX_REFINEMENTS",
        "PROFILE_BYPASS_THRESHOLD",
        "PAUSE_GAP_SECONDS",
        "SLOPE_ELEVATION_SMOOTHING_WINDOW",
        "SLOPE_CALCULATION_WINDOW",
        "SLOPE_MERGE_DELTA_PERCENT",
        "SLOPE_MERGE_MIN_LENGTH_M",
    ):
        monkeypatch.delenv(key, raising=False)
