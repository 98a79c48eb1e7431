"""End-to-end render payload assembly."""

from __future__ import annotations

import pytest

from track_terrain.config import SimplificationConfig
from track_terrain.errors import UnsupportedGeometryError
from track_terrain.render import (
    RenderRequest,
    build_render_payload,
    build_render_payloads,
)


def _linestring(points):
    return {"type": "LineString", "coordinates": [[lon, lat] for lat, lon in points]}


def _index_of(point, start_lat=45.0, step_deg=1e-4):
    return int(round((point[0] - start_lat) / step_deg))


class TestSingleTrack:
    def test_small_track_passes_through(self, straight_track):
        points = straight_track(800)
        elevation = [float(i) for i in range(800)]
        payload = build_render_payload(_linestring(points), 14, {"elevation": elevation})
        assert payload.strategies == ["bypass"]
        assert payload.simplified_points == 800
        assert payload.side_channels["elevation"] == elevation
        assert payload.geometry.to_geojson()["coordinates"][0] == [7.0, 45.0]

    def test_side_channels_follow_simplified_points(self, straight_track):
        points = straight_track(6000)
        payload = build_render_payload(
            _linestring(points),
            12,
            {"elevation": [float(i) for i in range(6000)], "heart_rate": None},
        )
        kept = payload.geometry.segments[0]
        elevation = payload.side_channels["elevation"]
        assert len(elevation) == len(kept) == payload.simplified_points
        assert payload.side_channels["heart_rate"] is None
        for point, value in zip(kept, elevation):
            assert _index_of(point) == int(value)

    @pytest.mark.parametrize(
        "count, threshold, expected",
        [(3000, 5000, 3000), (800, 500, 2)],
    )
    def test_bypass_threshold_shared_by_geometry_and_channels(
        self, straight_track, count, threshold, expected
    ):
        points = straight_track(count)
        payload = build_render_payload(
            _linestring(points),
            12,
            {"elevation": [float(i) for i in range(count)]},
            SimplificationConfig(profile_bypass_threshold=threshold),
        )
        elevation = payload.side_channels["elevation"]
        assert payload.simplified_points == expected
        assert len(elevation) == expected
        assert elevation[0] == 0.0
        assert elevation[-1] == float(count - 1)

    def test_gap_produces_multi_line(self):
        points = [(45.0, 7.0), (45.001, 7.0), (46.35, 7.0), (46.351, 7.0)]
        payload = build_render_payload(_linestring(points), 12)
        geojson = payload.geometry.to_geojson()
        assert geojson["type"] == "MultiLineString"
        assert len(geojson["coordinates"]) == 2
        assert len(payload.segment_gaps) == 1
        assert payload.segment_gaps[0].distance_m > 100_000
        # Only the two short hops count toward the length.
        assert payload.length_km == pytest.approx(0.2224, rel=1e-3)

    def test_pause_from_time_channel(self, straight_track):
        points = straight_track(4)
        times = [
            "2024-05-01T10:00:00Z",
            "2024-05-01T10:00:05Z",
            "2024-05-01T10:30:05Z",
            "2024-05-01T10:30:10Z",
        ]
        payload = build_render_payload(_linestring(points), 12, {"time": times})
        assert payload.segment_gaps is None
        assert [gap.duration_seconds for gap in payload.pause_gaps] == [1800]

    def test_to_dict(self, straight_track):
        payload = build_render_payload(_linestring(straight_track(10)), 12.5)
        data = payload.to_dict()
        assert data["geometry"]["type"] == "LineString"
        assert data["original_points"] == 10
        assert data["segment_gaps"] is None
        assert data["side_channels"] == {}

    def test_empty_line(self):
        payload = build_render_payload({"type": "LineString", "coordinates": []}, 12)
        assert payload.original_points == 0
        assert payload.length_km == 0.0

    def test_malformed_geometry_raises(self):
        with pytest.raises(UnsupportedGeometryError):
            build_render_payload({"type": "Polygon", "coordinates": []}, 12)


class TestBatch:
    def test_results_keep_request_order(self, straight_track):
        sizes = [800, 6000, 10]
        requests = [
            RenderRequest(geometry=_linestring(straight_track(size)), zoom=12)
            for size in sizes
        ]
        payloads = build_render_payloads(requests, max_workers=3)
        assert [payload.original_points for payload in payloads] == sizes

    def test_empty_batch(self):
        assert build_render_payloads([]) == []

    def test_errors_propagate(self, straight_track):
        requests = [
            RenderRequest(geometry=_linestring(straight_track(5)), zoom=12),
            RenderRequest(geometry={"type": "Point", "coordinates": [7.0, 45.0]}, zoom=12),
        ]
        with pytest.raises(UnsupportedGeometryError):
            build_render_payloads(requests)
