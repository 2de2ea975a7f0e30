"""
Snapping of query points to the network.

``mode="edge"`` projects a point onto the nearest edge (shapely ``STRtree``)
and records a virtual attachment: the edge plus the fraction of its length
from ``from_node`` to the projected point. ``mode="node"`` attaches to the
nearest node (scipy ``cKDTree``). Either way the graph is left untouched.

The off-network distance from the query point to its attachment is reported
but never added to a routing cost.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np
from scipy.spatial import cKDTree
from shapely.geometry import Point
from shapely.strtree import STRtree

from ..errors import ConfigurationError, EmptyNetworkError, SnapFailure
from ..network.model import StreetGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attachment:
    """Where a query point joins the network."""

    point: Point
    distance: float
    node: Optional[int] = None
    edge: Optional[Tuple[int, int, int]] = None
    fraction: float = 0.0

    @property
    def on_node(self) -> bool:
        return self.node is not None


class NetworkSnapper:
    """Nearest-element lookup over a StreetGraph (or a filtered view)."""

    def __init__(self, graph: StreetGraph, mode: str = "edge", max_distance: float = float('inf')):
        if mode not in ("edge", "node"):
            raise ConfigurationError(f"Unknown snap mode '{mode}'")
        self.graph = graph
        self.mode = mode
        self.max_distance = max_distance

        if mode == "edge":
            self._edges = [(u, v, key) for u, v, key, _ in graph.edges()]
            if not self._edges:
                raise EmptyNetworkError("Cannot snap to a graph without edges")
            self._geoms = [graph.edge_data(*e)['geometry'] for e in self._edges]
            self._tree = STRtree(self._geoms)
        else:
            self._nodes = np.fromiter(graph.nodes(), dtype=np.int64, count=graph.number_of_nodes())
            if not len(self._nodes):
                raise EmptyNetworkError("Cannot snap to a graph without nodes")
            coords = np.array([graph.node_coords(n) for n in self._nodes], dtype=float)
            self._tree = cKDTree(coords)

    def snap(self, point: Point) -> Attachment:
        """Attach ``point`` to the network.

        Raises:
            SnapFailure: if the nearest element is beyond ``max_distance``.
        """
        if self.mode == "edge":
            return self._snap_to_edge(point)
        return self._snap_to_node(point)

    def snap_many(self, points: Iterable[Point]) -> List[Attachment]:
        return [self.snap(p) for p in points]

    def _snap_to_node(self, point: Point) -> Attachment:
        distance, idx = self._tree.query([point.x, point.y])
        self._check_distance(point, distance)
        return Attachment(point=point, distance=float(distance), node=int(self._nodes[idx]))

    def _snap_to_edge(self, point: Point) -> Attachment:
        indices, distances = self._tree.query_nearest(point, return_distance=True, all_matches=True)
        # Equidistant edges: lowest index, i.e. earliest edge, wins
        idx = int(np.min(indices))
        distance = float(np.min(distances))
        self._check_distance(point, distance)

        geometry = self._geoms[idx]
        fraction = geometry.project(point) / geometry.length
        fraction = min(max(fraction, 0.0), 1.0)
        u, v, key = self._edges[idx]

        # Projections onto an endpoint are plain node attachments
        if fraction == 0.0:
            return Attachment(point=point, distance=distance, node=u)
        if fraction == 1.0:
            return Attachment(point=point, distance=distance, node=v)
        return Attachment(point=point, distance=distance, edge=(u, v, key), fraction=fraction)

    def _check_distance(self, point: Point, distance: float):
        if distance > self.max_distance:
            raise SnapFailure(point, distance, self.max_distance)
