"""
Topology Cleaner

Street data frequently joins two ways at a vertex that is interior to one (or
both) of them, so an endpoint-only graph misses the junction. The cleaner
splits every edge at each interior vertex that coincides, within
``config.tolerance``, with a vertex of a different edge.

All vertices go into one ``cKDTree`` and coincident pairs come from
``query_pairs``, so a pass costs O(V log V) rather than a pairwise scan over
edges. Passes repeat until nothing is split; subdividing the result again is
therefore a no-op.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree
from shapely.geometry import LineString
from tqdm.auto import tqdm

from ..config import NetworkConfig
from .model import StreetGraph
from .nodes import NodeIndex

logger = logging.getLogger(__name__)


class TopologyCleaner:
    """Subdivide edges at shared interior vertices."""

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()
        self.passes = 0
        self.splits = 0

    def subdivide(self, graph: StreetGraph) -> StreetGraph:
        """Return a new graph where connectivity reflects all coincident vertices."""
        result = graph.copy()
        self.passes = 0
        self.splits = 0
        n_nodes, n_edges = result.number_of_nodes(), result.number_of_edges()

        passes = tqdm(range(self.config.max_clean_passes), desc="Subdividing",
                      disable=not self.config.show_progress)
        for _ in passes:
            self.passes += 1
            split = self._split_pass(result)
            self.splits += split
            if split == 0:
                break
        else:
            logger.warning(f"Subdivision still splitting after {self.config.max_clean_passes} passes")

        logger.info(
            f"Subdivided {self.splits} edges in {self.passes} passes: "
            f"{n_nodes} -> {result.number_of_nodes()} nodes, "
            f"{n_edges} -> {result.number_of_edges()} edges"
        )
        return result

    def find_split_vertices(self, graph: StreetGraph) -> Dict[Tuple[int, int, int], List[int]]:
        """Interior vertex indices to split at, per edge ``(u, v, key)``."""
        edges = list(graph.edges())
        coords, owner, position, n_coords = [], [], [], []
        for edge_idx, (_, _, _, data) in enumerate(edges):
            line_coords = np.asarray(data['geometry'].coords, dtype=float)[:, :2]
            coords.append(line_coords)
            owner.append(np.full(len(line_coords), edge_idx))
            position.append(np.arange(len(line_coords)))
            n_coords.append(len(line_coords))

        if not edges:
            return {}

        coords = np.vstack(coords)
        owner = np.concatenate(owner)
        position = np.concatenate(position)
        last = np.asarray(n_coords)[owner] - 1
        interior = (position > 0) & (position < last)

        pairs = cKDTree(coords).query_pairs(r=self.config.tolerance, output_type='ndarray')
        if not len(pairs):
            return {}
        i, j = pairs[:, 0], pairs[:, 1]
        across = owner[i] != owner[j]
        i, j = i[across], j[across]

        marked = np.concatenate([i[interior[i]], j[interior[j]]])
        splits = defaultdict(set)
        for vertex in marked.tolist():
            splits[int(owner[vertex])].add(int(position[vertex]))

        result = {}
        for e, idx in splits.items():
            usable = _usable_splits(list(edges[e][3]['geometry'].coords), sorted(idx))
            if usable:
                result[edges[e][:3]] = usable
        return result

    def _split_pass(self, graph: StreetGraph) -> int:
        split_vertices = self.find_split_vertices(graph)
        if not split_vertices:
            return 0

        # Resolve every split point in one go so that edges split at the
        # same location end up sharing the node.
        order = list(split_vertices.items())
        points = []
        for (u, v, key), indices in order:
            line_coords = graph.edge_data(u, v, key)['geometry'].coords
            points.extend(line_coords[k][:2] for k in indices)
        node_ids = NodeIndex(graph, self.config.tolerance).resolve(points)

        split_count = 0
        offset = 0
        for (u, v, key), indices in order:
            split_nodes = node_ids[offset:offset + len(indices)].tolist()
            offset += len(indices)
            self._split_edge(graph, u, v, key, indices, split_nodes)
            split_count += 1
        return split_count

    @staticmethod
    def _split_edge(graph: StreetGraph, u: int, v: int, key: int,
                    indices: List[int], split_nodes: List[int]) -> None:
        segment = graph.segment(u, v, key)
        line_coords = list(segment.geometry.coords)
        bounds = [0] + list(indices) + [len(line_coords) - 1]
        nodes = [u] + list(split_nodes) + [v]

        graph.remove_edge(u, v, key)
        for (start, end), (a, b) in zip(zip(bounds, bounds[1:]), zip(nodes, nodes[1:])):
            piece = LineString(line_coords[start:end + 1])
            graph.add_edge(a, b, segment.with_geometry(piece))


def _usable_splits(line_coords: List[tuple], indices: List[int]) -> List[int]:
    """Drop split indices that would leave a zero-length piece."""
    kept = []
    start = 0
    for k in indices:
        if LineString(line_coords[start:k + 1]).length > 0:
            kept.append(k)
            start = k
    if kept and LineString(line_coords[kept[-1]:]).length == 0:
        kept.pop()
    return kept


def subdivide(graph: StreetGraph, config: Optional[NetworkConfig] = None) -> StreetGraph:
    """Convenience wrapper around :class:`TopologyCleaner`."""
    return TopologyCleaner(config).subdivide(graph)
