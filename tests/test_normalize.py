"""
Tests for cycle_access.normalize (Geometry Normalizer).
"""

from __future__ import annotations

import geopandas as gpd
import pytest
from shapely.geometry import (
    GeometryCollection,
    LineString,
    MultiLineString,
    Point,
    Polygon,
    box,
)

from cycle_access.errors import ConfigurationError, InputGeometryError
from cycle_access.normalize import (
    disc_area,
    normalize_geometry,
    normalize_lines,
    normalize_points,
)


class TestNormalizeGeometry:
    def test_plain_line_unchanged(self):
        line = LineString([(0, 0), (10, 0)])
        assert normalize_geometry(line) == [line]

    def test_polygon_becomes_boundary(self):
        square = Polygon([(0, 0), (10, 0), (10, 10), (0, 10)])
        lines = normalize_geometry(square)
        assert len(lines) == 1
        assert lines[0].geom_type == "LineString"
        assert lines[0].length == pytest.approx(40.0)
        assert lines[0].is_closed

    def test_polygon_with_hole_gives_two_rings(self):
        outer = [(0, 0), (10, 0), (10, 10), (0, 10)]
        hole = [(4, 4), (6, 4), (6, 6), (4, 6)]
        lines = normalize_geometry(Polygon(outer, [hole]))
        assert len(lines) == 2

    def test_point_is_discarded(self):
        with pytest.raises(InputGeometryError):
            normalize_geometry(Point(0, 0))

    def test_none_and_empty_are_errors(self):
        with pytest.raises(InputGeometryError):
            normalize_geometry(None)
        with pytest.raises(InputGeometryError):
            normalize_geometry(LineString())

    def test_multiline_is_exploded(self):
        multi = MultiLineString([[(0, 0), (1, 0)], [(5, 5), (6, 5)]])
        lines = normalize_geometry(multi)
        assert [line.geom_type for line in lines] == ["LineString", "LineString"]

    def test_collection_keeps_only_lines(self):
        collection = GeometryCollection([Point(0, 0), LineString([(0, 0), (3, 0)])])
        lines = normalize_geometry(collection)
        assert len(lines) == 1
        assert lines[0].length == pytest.approx(3.0)

    def test_clip_to_disc(self):
        area = disc_area(Point(0, 0), 100)
        lines = normalize_geometry(LineString([(-200, 0), (200, 0)]), area)
        assert len(lines) == 1
        assert lines[0].length == pytest.approx(200.0, rel=1e-3)
        assert all(area.buffer(1e-6).contains(line) for line in lines)

    def test_clip_splits_into_pieces(self):
        area = box(0, 0, 10, 10).union(box(20, 0, 30, 10))
        lines = normalize_geometry(LineString([(-5, 5), (35, 5)]), area)
        assert len(lines) == 2
        assert sorted(line.length for line in lines) == pytest.approx([10.0, 10.0])

    def test_outside_area_is_dropped(self):
        with pytest.raises(InputGeometryError):
            normalize_geometry(LineString([(500, 500), (600, 500)]), disc_area(Point(0, 0), 100))

    def test_disc_radius_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            disc_area(Point(0, 0), 0)


class TestNormalizeLines:
    def _frame(self, crs="EPSG:28992"):
        return gpd.GeoDataFrame(
            {"highway": ["residential", "footway", "bus_stop"], "name": ["a", "b", "c"]},
            geometry=[
                LineString([(-5, 5), (35, 5)]),
                Polygon([(0, 0), (5, 0), (5, 5), (0, 5)]),
                Point(1, 1),
            ],
            crs=crs,
        )

    def test_tags_copied_to_every_piece(self):
        area = box(-1, -1, 10, 10).union(box(20, 0, 30, 10))
        result = normalize_lines(self._frame(), area)

        pieces = result[result["source_index"] == 0]
        assert len(pieces) == 2
        assert set(pieces["highway"]) == {"residential"}
        assert set(pieces["name"]) == {"a"}

    def test_points_dropped_polygons_kept(self):
        result = normalize_lines(self._frame())
        assert set(result["source_index"]) == {0, 1}
        assert (result.geometry.geom_type == "LineString").all()
        assert result.crs == "EPSG:28992"

    def test_everything_outside_gives_empty_frame(self):
        result = normalize_lines(self._frame(), box(1000, 1000, 1001, 1001))
        assert result.empty
        assert "highway" in result.columns

    def test_geographic_crs_refused(self):
        with pytest.raises(ConfigurationError):
            normalize_lines(self._frame(crs="EPSG:4326"))


class TestNormalizePoints:
    def test_polygons_reduced_and_outside_dropped(self):
        pois = gpd.GeoDataFrame(
            {"amenity": ["cafe", "school", "pub"]},
            geometry=[Point(1, 1), box(2, 2, 4, 4), Point(500, 500)],
            crs="EPSG:28992",
        )
        result = normalize_points(pois, box(0, 0, 10, 10))
        assert list(result["amenity"]) == ["cafe", "school"]
        assert (result.geometry.geom_type == "Point").all()
        assert box(2, 2, 4, 4).contains(result.geometry.iloc[1])
