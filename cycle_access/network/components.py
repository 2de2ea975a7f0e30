"""
Component Reducer

Components are enumerated by breadth-first search over the undirected
adjacency (edge direction ignored), starting from nodes in creation order.
The largest component is the one with the most nodes; on a tie the component
enumerated first wins, which is the one containing the lowest node id.
"""

import logging
from dataclasses import dataclass
from typing import List, Set

import networkx as nx

from .model import StreetGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComponentSummary:
    """Connectivity counts for reporting."""

    total_nodes: int
    total_edges: int
    n_components: int
    largest_nodes: int
    largest_edges: int

    @property
    def largest_fraction(self) -> float:
        """Share of all nodes that sit in the largest component."""
        if self.total_nodes == 0:
            return 0.0
        return self.largest_nodes / self.total_nodes


def connected_components(graph: StreetGraph) -> List[Set[int]]:
    """All components, in enumeration order (see module docstring)."""
    return list(nx.connected_components(graph.nx_graph))


def _largest(components: List[Set[int]]) -> Set[int]:
    # max() keeps the first of equally large components
    return max(components, key=len)


def largest_component(graph: StreetGraph) -> StreetGraph:
    """Induced subgraph of the largest connected component, as a new graph."""
    if graph.number_of_nodes() == 0:
        return graph.copy()

    components = connected_components(graph)
    keep = _largest(components)
    if len(keep) == graph.number_of_nodes():
        return graph.copy()

    reduced = graph.subgraph(keep)
    logger.info(
        f"Kept largest of {len(components)} components: "
        f"{reduced.number_of_nodes()}/{graph.number_of_nodes()} nodes, "
        f"{reduced.number_of_edges()}/{graph.number_of_edges()} edges"
    )
    return reduced


def component_summary(graph: StreetGraph) -> ComponentSummary:
    components = connected_components(graph)
    if not components:
        return ComponentSummary(0, 0, 0, 0, 0)
    largest = _largest(components)
    largest_edges = graph.nx_graph.subgraph(largest).number_of_edges()
    return ComponentSummary(
        total_nodes=graph.number_of_nodes(),
        total_edges=graph.number_of_edges(),
        n_components=len(components),
        largest_nodes=len(largest),
        largest_edges=largest_edges,
    )
