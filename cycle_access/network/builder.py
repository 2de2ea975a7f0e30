"""
Graph Builder

Each Segment becomes one edge; its two endpoints are resolved to nodes through
``NodeIndex`` so that endpoints closer than ``config.tolerance`` share a node.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import numpy as np

from ..config import NetworkConfig
from .model import Segment, StreetGraph
from .nodes import NodeIndex

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Counts recorded while building a graph."""

    segments: int = 0
    edges: int = 0
    nodes: int = 0
    self_loops: int = 0
    dropped_self_loops: int = 0


class GraphBuilder:
    """Build a StreetGraph from attributed segments."""

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()
        self.report = BuildReport()

    def build(self, segments: Iterable[Segment], crs: Any = None) -> StreetGraph:
        segments = list(segments)
        graph = StreetGraph(crs=crs)
        report = BuildReport(segments=len(segments))

        if not segments:
            logger.warning("No segments to build a graph from")
            self.report = report
            return graph

        # Endpoints in segment order: A0, B0, A1, B1, ...
        endpoints = np.empty((2 * len(segments), 2), dtype=float)
        for i, segment in enumerate(segments):
            coords = segment.geometry.coords
            endpoints[2 * i] = coords[0][:2]
            endpoints[2 * i + 1] = coords[-1][:2]

        node_ids = NodeIndex(graph, self.config.tolerance).resolve(endpoints)

        drop_loops = self.config.degenerate_policy == "drop"
        for i, segment in enumerate(segments):
            u, v = int(node_ids[2 * i]), int(node_ids[2 * i + 1])
            if u == v:
                report.self_loops += 1
                if drop_loops:
                    report.dropped_self_loops += 1
                    continue
            graph.add_edge(u, v, segment)

        if report.dropped_self_loops:
            # Nodes created only for dropped loops
            isolated = [n for n in graph.nodes() if graph.degree(n) == 0]
            graph.nx_graph.remove_nodes_from(isolated)
            logger.warning(f"Dropped {report.dropped_self_loops} closed-loop segments")
        elif report.self_loops:
            logger.info(f"Kept {report.self_loops} closed-loop segments as self-loops")

        report.edges = graph.number_of_edges()
        report.nodes = graph.number_of_nodes()
        self.report = report
        logger.info(f"Built graph with {report.nodes} nodes and {report.edges} edges "
                    f"from {report.segments} segments")
        return graph


def build_graph(segments: Iterable[Segment], config: Optional[NetworkConfig] = None,
                crs: Any = None) -> StreetGraph:
    """Convenience wrapper around :class:`GraphBuilder`."""
    return GraphBuilder(config).build(segments, crs=crs)
