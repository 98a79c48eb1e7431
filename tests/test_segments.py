"""Gap splitting, GeoJSON conversion and polyline helpers."""

from __future__ import annotations

import math

import pytest
from shapely.geometry import LineString

from track_terrain.errors import (
    InvalidCoordinateError,
    MissingCoordinatesError,
    TrackGeometryError,
    UnsupportedGeometryError,
)
from track_terrain.models import LineGeometry, MultiLineGeometry
from track_terrain.segments import (
    decode_polyline,
    encode_polylines,
    geojson_from_segments,
    geometry_from_segments,
    length_km_for_segments,
    parse_geometry,
    segments_from_geometry,
    split_points_by_gap,
    to_shapely,
)


class TestCoordinateOrder:
    def test_geojson_lon_lat_becomes_lat_lon(self):
        geometry = parse_geometry(
            {"type": "LineString", "coordinates": [[7.0, 45.0], [7.1, 45.2]]}
        )
        assert geometry.points == ((45.0, 7.0), (45.2, 7.1))

    def test_output_is_lon_lat(self):
        geojson = geojson_from_segments([[(45.0, 7.0), (45.2, 7.1)]])
        assert geojson == {
            "type": "LineString",
            "coordinates": [[7.0, 45.0], [7.1, 45.2]],
        }

    def test_line_round_trip(self):
        source = {"type": "LineString", "coordinates": [[7.0, 45.0], [7.5, 45.5]]}
        assert parse_geometry(source).to_geojson() == source

    def test_multi_line_round_trip(self):
        source = {
            "type": "MultiLineString",
            "coordinates": [
                [[7.0, 45.0], [7.1, 45.1]],
                [[8.0, 46.0], [8.1, 46.1], [8.2, 46.2]],
            ],
        }
        assert parse_geometry(source).to_geojson() == source

    def test_extra_components_are_dropped(self):
        geometry = parse_geometry(
            {"type": "LineString", "coordinates": [[7.0, 45.0, 312.5], [7.1, 45.1, 320]]}
        )
        assert geometry.points == ((45.0, 7.0), (45.1, 7.1))

    def test_integer_coordinates_become_floats(self):
        geometry = parse_geometry({"type": "LineString", "coordinates": [[7, 45]]})
        assert geometry.points == ((45.0, 7.0),)
        assert isinstance(geometry.points[0][0], float)


class TestGapSplitting:
    def test_points_150km_apart_split_in_two(self):
        points = [(45.0, 7.0), (46.35, 7.0)]
        segments = split_points_by_gap(points)
        assert segments == [[(45.0, 7.0)], [(46.35, 7.0)]]
        geometry = geometry_from_segments(segments)
        assert isinstance(geometry, MultiLineGeometry)
        assert geometry.to_geojson()["coordinates"] == [[[7.0, 45.0]], [[7.0, 46.35]]]

    def test_split_keeps_points_in_order(self):
        points = [(45.0, 7.0), (45.001, 7.0), (46.35, 7.0), (46.351, 7.0)]
        segments = split_points_by_gap(points)
        assert segments == [points[:2], points[2:]]

    def test_continuous_track_is_one_segment(self, straight_track):
        points = straight_track(50)
        assert split_points_by_gap(points) == [points]

    def test_custom_threshold(self):
        points = [(45.0, 7.0), (45.001, 7.0), (45.002, 7.0)]
        assert len(split_points_by_gap(points, max_gap_meters=50.0)) == 3

    def test_empty_input(self):
        assert split_points_by_gap([]) == []


class TestGeometryFromSegments:
    def test_single_segment_is_line(self):
        geometry = geometry_from_segments([[(45.0, 7.0), (45.1, 7.0)]])
        assert isinstance(geometry, LineGeometry)

    def test_empty_segments_are_dropped(self):
        geometry = geometry_from_segments([[], [(45.0, 7.0), (45.1, 7.0)], []])
        assert isinstance(geometry, LineGeometry)
        assert geometry.point_count == 2

    def test_nothing_left_gives_empty_line(self):
        geometry = geometry_from_segments([[], []])
        assert geometry.to_geojson() == {"type": "LineString", "coordinates": []}


class TestMalformedGeometry:
    def test_unsupported_type(self):
        with pytest.raises(UnsupportedGeometryError):
            parse_geometry({"type": "Point", "coordinates": [7.0, 45.0]})

    def test_not_a_mapping(self):
        with pytest.raises(UnsupportedGeometryError):
            parse_geometry("LINESTRING (0 0, 1 1)")

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "LineString"},
            {"type": "LineString", "coordinates": None},
            {"type": "LineString", "coordinates": "7,45"},
        ],
    )
    def test_missing_coordinates(self, payload):
        with pytest.raises(MissingCoordinatesError):
            parse_geometry(payload)

    def test_short_coordinate_reports_path(self):
        with pytest.raises(InvalidCoordinateError) as excinfo:
            parse_geometry({"type": "LineString", "coordinates": [[7.0, 45.0], [7.0]]})
        assert excinfo.value.path == (1,)

    def test_multi_line_path_includes_line_index(self):
        with pytest.raises(InvalidCoordinateError) as excinfo:
            parse_geometry(
                {
                    "type": "MultiLineString",
                    "coordinates": [[[7.0, 45.0]], [[7.0, "north"]]],
                }
            )
        assert excinfo.value.path == (1, 0)

    @pytest.mark.parametrize("bad", [math.nan, math.inf, True, None])
    def test_bad_components(self, bad):
        with pytest.raises(InvalidCoordinateError):
            parse_geometry({"type": "LineString", "coordinates": [[7.0, bad]]})

    def test_errors_share_a_base(self):
        assert issubclass(InvalidCoordinateError, TrackGeometryError)
        assert issubclass(TrackGeometryError, ValueError)


class TestInputs:
    def test_geo_interface_objects(self):
        line = LineString([(7.0, 45.0), (7.1, 45.1)])
        assert segments_from_geometry(line) == [[(45.0, 7.0), (45.1, 7.1)]]

    def test_geometry_passes_through(self):
        geometry = LineGeometry(((45.0, 7.0),))
        assert parse_geometry(geometry) is geometry

    def test_to_shapely_round_trip(self):
        source = {
            "type": "MultiLineString",
            "coordinates": [[[7.0, 45.0], [7.1, 45.1]], [[8.0, 46.0], [8.1, 46.1]]],
        }
        shape = to_shapely(source)
        assert shape.geom_type == "MultiLineString"
        assert parse_geometry(shape).to_geojson() == source

    def test_to_shapely_line_uses_lon_as_x(self):
        shape = to_shapely({"type": "LineString", "coordinates": [[7.0, 45.0], [7.1, 45.1]]})
        assert list(shape.coords)[0] == (7.0, 45.0)


class TestLength:
    def test_length_excludes_gaps(self):
        first = [(0.0, 0.0), (1.0, 0.0)]
        second = [(10.0, 0.0), (11.0, 0.0)]
        one_degree_km = 6371.0 * math.pi / 180.0
        assert length_km_for_segments([first, second]) == pytest.approx(
            2 * one_degree_km
        )

    def test_empty(self):
        assert length_km_for_segments([]) == 0.0


class TestPolyline:
    GEOMETRY = {
        "type": "LineString",
        "coordinates": [[-120.2, 38.5], [-120.95, 40.7], [-126.453, 43.252]],
    }
    ENCODED = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"

    def test_encode(self):
        assert encode_polylines(self.GEOMETRY) == [self.ENCODED]

    def test_decode(self):
        decoded = decode_polyline(self.ENCODED)
        expected = [(38.5, -120.2), (40.7, -120.95), (43.252, -126.453)]
        for got, want in zip(decoded, expected):
            assert got == pytest.approx(want)

    def test_decode_empty(self):
        assert decode_polyline("") == []
