"""
Tests for the Graph Builder, node resolution and the StreetGraph model.
"""

from __future__ import annotations

import numpy as np
import pytest
from shapely.geometry import LineString

from cycle_access.config import NetworkConfig
from cycle_access.errors import DegenerateSegmentError
from cycle_access.network.builder import GraphBuilder, build_graph
from cycle_access.network.model import Segment, StreetGraph, Suitability, suitability_filter
from cycle_access.network.nodes import NodeIndex


class TestNodeIndex:
    def test_coordinates_within_tolerance_share_a_node(self):
        graph = StreetGraph()
        index = NodeIndex(graph, tolerance=0.01)
        ids = index.resolve([(0, 0), (0.005, 0), (5, 5), (0, 0.001)])
        assert ids[0] == ids[1] == ids[3]
        assert ids[2] != ids[0]
        assert graph.number_of_nodes() == 2

    def test_first_seen_coordinate_is_representative(self):
        graph = StreetGraph()
        ids = NodeIndex(graph, tolerance=0.01).resolve([(1.001, 1.0), (1.0, 1.0)])
        assert graph.node_coords(int(ids[0])) == (1.001, 1.0)

    def test_existing_nodes_are_reused(self):
        graph = StreetGraph()
        existing = graph.add_node(10.0, 10.0)
        index = NodeIndex(graph, tolerance=0.5)
        ids = index.resolve([(10.2, 10.0), (20.0, 20.0)])
        assert ids[0] == existing
        assert graph.number_of_nodes() == 2

    def test_lookup_does_not_create(self):
        graph = StreetGraph()
        graph.add_node(0.0, 0.0)
        index = NodeIndex(graph, tolerance=1.0)
        assert index.lookup([(0.5, 0.0), (3.0, 0.0)]).tolist() == [0, -1]
        assert graph.number_of_nodes() == 1

    def test_ids_follow_input_order(self):
        graph = StreetGraph()
        ids = NodeIndex(graph, tolerance=1e-6).resolve([(3, 3), (1, 1), (2, 2)])
        assert ids.tolist() == [0, 1, 2]


class TestGraphBuilder:
    def test_shared_endpoints_become_one_node(self, make_segment):
        segments = [
            make_segment([(0, 0), (10, 0)]),
            make_segment([(10, 0), (10, 10)]),
            make_segment([(10, 10), (0, 0)]),
        ]
        graph = build_graph(segments)
        assert graph.number_of_nodes() == 3
        assert graph.number_of_edges() == 3

    def test_node_count_bounded_by_twice_segments(self, make_segment):
        rng = np.random.RandomState(0)
        segments = [
            make_segment([tuple(rng.uniform(0, 100, 2)), tuple(rng.uniform(0, 100, 2))])
            for _ in range(25)
        ]
        graph = build_graph(segments)
        assert graph.number_of_nodes() <= 2 * len(segments)
        assert graph.number_of_edges() == len(segments)

    def test_tolerance_merges_near_endpoints(self, make_segment):
        segments = [make_segment([(0, 0), (10, 0)]), make_segment([(10.0004, 0), (20, 0)])]
        assert build_graph(segments, NetworkConfig(tolerance=1e-3)).number_of_nodes() == 3
        assert build_graph(segments, NetworkConfig(tolerance=1e-6)).number_of_nodes() == 4

    def test_edge_carries_attributes_and_geometry(self, make_segment):
        segment = make_segment([(0, 0), (5, 5), (10, 0)], suitability=Suitability.GOOD, highway="cycleway")
        graph = build_graph([segment])
        (u, v, key, data), = list(graph.edges())
        assert data["geometry"].equals(segment.geometry)
        assert data["length"] == pytest.approx(segment.length)
        assert data["travel_time"] == pytest.approx(segment.travel_time)
        assert data["suitability"] is Suitability.GOOD
        assert graph.node_coords(u) == (0.0, 0.0)
        assert graph.node_coords(v) == (10.0, 0.0)
        assert graph.segment(u, v, key).highway == "cycleway"

    def test_closed_loop_kept_as_self_loop(self, make_segment):
        ring = make_segment([(0, 0), (10, 0), (10, 10), (0, 0)])
        builder = GraphBuilder()
        graph = builder.build([ring, make_segment([(0, 0), (-10, 0)])])
        assert builder.report.self_loops == 1
        assert graph.number_of_edges() == 2
        assert graph.degree(0) == 3  # self-loop counts twice

    def test_closed_loop_dropped_by_policy(self, make_segment):
        ring = make_segment([(50, 50), (60, 50), (60, 60), (50, 50)])
        builder = GraphBuilder(NetworkConfig(degenerate_policy="drop"))
        graph = builder.build([ring, make_segment([(0, 0), (10, 0)])])
        assert builder.report.dropped_self_loops == 1
        assert graph.number_of_edges() == 1
        # No orphaned node left behind for the dropped loop
        assert graph.number_of_nodes() == 2

    def test_empty_input(self):
        graph = build_graph([])
        assert graph.number_of_nodes() == 0
        assert graph.number_of_edges() == 0

    def test_linestrings_with_z_use_planar_endpoints(self, make_segment):
        segments = [
            make_segment([(0, 0, 1.5), (10, 0, 2.0)]),
            make_segment([(10, 0, 2.0), (10, 10, 4.0)]),
        ]
        graph = build_graph(segments)
        assert graph.number_of_nodes() == 3
        assert graph.node_coords(1) == (10.0, 0.0)

    def test_parallel_edges_kept(self, make_segment):
        segments = [
            make_segment([(0, 0), (10, 0)]),
            make_segment([(0, 0), (5, 3), (10, 0)]),
        ]
        graph = build_graph(segments)
        assert graph.number_of_nodes() == 2
        assert graph.number_of_edges() == 2


class TestSegment:
    def test_zero_length_segment_rejected(self):
        with pytest.raises(DegenerateSegmentError):
            Segment(LineString([(0, 0), (0, 0)]), length=0.0, speed=20.0,
                    travel_time=0.0, suitability=Suitability.LOW)

    def test_with_geometry_recomputes_length_and_time(self, make_segment):
        parent = make_segment([(0, 0), (1000, 0)], suitability=Suitability.MEDIUM)
        child = parent.with_geometry(LineString([(0, 0), (250, 0)]))
        assert child.length == pytest.approx(250.0)
        assert child.travel_time == pytest.approx(parent.travel_time / 4)
        assert child.suitability is Suitability.MEDIUM
        assert child.speed == parent.speed


class TestStreetGraphView:
    def test_view_filters_edges_without_copying(self, square_graph_low_ab):
        view = square_graph_low_ab.view(suitability_filter("good", "medium"))
        assert view.is_view
        assert view.number_of_edges() == 3
        assert view.number_of_nodes() == 4
        assert square_graph_low_ab.number_of_edges() == 4

    def test_view_is_read_only(self, square_graph):
        view = square_graph.view(suitability_filter("good"))
        with pytest.raises(TypeError):
            view.add_node(1.0, 1.0)

    def test_to_geodataframes(self, square_graph):
        nodes, edges = square_graph.to_geodataframes()
        assert len(nodes) == 4
        assert len(edges) == 4
        assert set(edges["suitability"]) == {"good", "medium"}
        assert (nodes["degree"] == 2).all()
