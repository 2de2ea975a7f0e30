"""
Tolerance-based resolution of raw coordinates to graph nodes.

A coordinate within ``tolerance`` of an existing node resolves to that node
(the nearest one). Remaining coordinates are grouped greedily in input order:
the first unresolved coordinate becomes a new node and absorbs every other
unresolved coordinate within ``tolerance`` of it. The result therefore depends
only on input order, never on hash or tree iteration order.
"""

import logging

import numpy as np
from scipy.spatial import cKDTree

from .model import StreetGraph

logger = logging.getLogger(__name__)


class NodeIndex:
    """Spatial index over the nodes of a (writable) StreetGraph."""

    def __init__(self, graph: StreetGraph, tolerance: float):
        self.graph = graph
        self.tolerance = tolerance
        self._rebuild()

    def _rebuild(self):
        self._ids = np.fromiter(self.graph.nodes(), dtype=np.int64,
                                count=self.graph.number_of_nodes())
        if len(self._ids):
            coords = np.array([self.graph.node_coords(n) for n in self._ids], dtype=float)
            self._tree = cKDTree(coords)
        else:
            self._tree = None

    def lookup(self, coords) -> np.ndarray:
        """Existing node id for each coordinate, or -1 where none is in range."""
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        result = np.full(len(coords), -1, dtype=np.int64)
        if self._tree is None or not len(coords):
            return result
        dist, idx = self._tree.query(coords, distance_upper_bound=np.nextafter(self.tolerance, np.inf))
        hit = np.isfinite(dist) & (dist <= self.tolerance)
        result[hit] = self._ids[idx[hit]]
        return result

    def resolve(self, coords) -> np.ndarray:
        """Node id for each coordinate, creating nodes as needed."""
        coords = np.asarray(coords, dtype=float).reshape(-1, 2)
        result = self.lookup(coords)

        pending = np.flatnonzero(result < 0)
        if len(pending):
            pending_coords = coords[pending]
            pending_tree = cKDTree(pending_coords)
            for pos, i in enumerate(pending):
                if result[i] >= 0:
                    continue
                node = self.graph.add_node(*coords[i])
                for member in pending_tree.query_ball_point(pending_coords[pos], r=self.tolerance):
                    j = pending[member]
                    if result[j] < 0:
                        result[j] = node
            logger.debug(f"Created {len(set(result[pending].tolist()))} nodes for {len(pending)} coordinates")
            self._rebuild()

        return result
