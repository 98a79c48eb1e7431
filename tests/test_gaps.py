"""Segment and pause gap metadata."""

from __future__ import annotations

import pytest

from track_terrain.gaps import compute_gap_metadata
from track_terrain.geodesy import haversine_distance

FIRST = [(45.0, 7.0), (45.001, 7.0)]
SECOND = [(46.35, 7.0), (46.351, 7.0), (46.352, 7.0)]


class TestSegmentGaps:
    def test_one_gap_per_boundary(self):
        segment_gaps, pause_gaps = compute_gap_metadata([FIRST, SECOND])
        assert pause_gaps is None
        assert len(segment_gaps) == 1
        gap = segment_gaps[0]
        assert gap.kind == "segment"
        assert (gap.start.segment_index, gap.start.point_index) == (0, 1)
        assert (gap.end.segment_index, gap.end.point_index) == (1, 0)
        assert gap.distance_m == pytest.approx(haversine_distance(FIRST[-1], SECOND[0]))

    def test_serialised_endpoints(self):
        segment_gaps, _ = compute_gap_metadata([FIRST, SECOND])
        payload = segment_gaps[0].to_dict()
        assert payload["from"] == {"lat": 45.001, "lon": 7.0, "segment_index": 0, "point_index": 1}
        assert payload["to"]["lat"] == 46.35
        assert payload["duration_seconds"] is None

    def test_nothing_to_report(self):
        assert compute_gap_metadata([]) == (None, None)
        assert compute_gap_metadata([FIRST]) == (None, None)

    def test_multi_segment_tracks_skip_pauses(self):
        times = ["2024-05-01T10:00:00Z"] * 5
        _, pause_gaps = compute_gap_metadata([FIRST, SECOND], times)
        assert pause_gaps is None


class TestPauseGaps:
    def test_long_stop_is_reported(self):
        times = [
            "2024-05-01T10:00:00Z",
            "2024-05-01T10:01:00Z",
            "2024-05-01T10:11:00Z",
        ]
        segment_gaps, pause_gaps = compute_gap_metadata([SECOND], times)
        assert segment_gaps is None
        assert len(pause_gaps) == 1
        gap = pause_gaps[0]
        assert gap.kind == "pause"
        assert gap.duration_seconds == 600
        assert (gap.start.point_index, gap.end.point_index) == (1, 2)

    def test_threshold_is_inclusive(self):
        times = ["2024-05-01T10:00:00+00:00", "2024-05-01T10:03:00+00:00"]
        _, pause_gaps = compute_gap_metadata([FIRST], times)
        assert pause_gaps[0].duration_seconds == 180

    def test_custom_threshold(self):
        times = ["2024-05-01T10:00:00Z", "2024-05-01T10:03:00Z"]
        _, pause_gaps = compute_gap_metadata([FIRST], times, pause_threshold_s=600)
        assert pause_gaps is None

    def test_misaligned_or_unparseable_times(self):
        assert compute_gap_metadata([SECOND], ["2024-05-01T10:00:00Z"]) == (None, None)
        times = ["2024-05-01T10:00:00Z", "not a time", "2024-05-01T11:00:00Z"]
        assert compute_gap_metadata([SECOND], times) == (None, None)
