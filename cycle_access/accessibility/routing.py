"""
Single-source shortest paths over a StreetGraph.

Runs ``networkx.single_source_dijkstra_path_length`` from each seeded node and
keeps the cheapest total per node, so that an origin snapped to the middle of
an edge starts from both endpoints with the matching partial costs. The
weight callable hides the reverse direction of one-way edges and picks the
cheapest of parallel edges; edge filters come for free through the
``subgraph_view`` a filtered StreetGraph wraps.
"""

import logging
import math
import numbers
from typing import Callable, Dict, Mapping, Optional

import networkx as nx

from ..errors import ConfigurationError, EmptyNetworkError, QueryCancelled
from ..network.model import StreetGraph

logger = logging.getLogger(__name__)


def validate_weight(graph: StreetGraph, weight_key: str) -> None:
    """Fail before any routing if ``weight_key`` is unusable on this graph."""
    if graph.number_of_nodes() == 0 or graph.number_of_edges() == 0:
        raise EmptyNetworkError("Cannot route over an empty graph")
    missing = graph.missing_attribute(weight_key)
    if missing:
        raise ConfigurationError(
            f"Weight '{weight_key}' is missing on {missing} of {graph.number_of_edges()} edges"
        )
    for _, _, _, data in graph.edges():
        value = data[weight_key]
        if not isinstance(value, numbers.Real) or isinstance(value, bool) \
                or math.isnan(value) or value < 0:
            raise ConfigurationError(
                f"Weight '{weight_key}' must be a non-negative number, found {value!r}"
            )


def directed_weight(weight_key: str,
                    should_cancel: Optional[Callable[[], bool]] = None) -> Callable:
    """networkx weight function for a StreetGraph's MultiGraph.

    networkx calls it as ``weight(from, to, {key: data})``; it returns the
    cheapest parallel edge traversable from ``from``, or None (edge hidden)
    when every one of them is a one-way edge digitised the other way.
    """
    def _weight(u, v, keyed):
        if should_cancel is not None and should_cancel():
            raise QueryCancelled(f"Search cancelled while expanding node {u}")
        costs = [data[weight_key] for data in keyed.values()
                 if not (data.get('oneway') and data['from_node'] != u)]
        return min(costs) if costs else None

    return _weight


def dijkstra(graph: StreetGraph,
             sources: Mapping[int, float],
             weight_key: str,
             cutoff: Optional[float] = None,
             should_cancel: Optional[Callable[[], bool]] = None) -> Dict[int, float]:
    """Least cost from the seeded sources to every reachable node.

    Args:
        graph: Graph or filtered view to route over.
        sources: Initial cost per source node.
        weight_key: Edge attribute used as the (non-negative) weight.
        cutoff: Nodes costing more than this are left out.
        should_cancel: Polled before each source and on every edge
            relaxation; returning True aborts.

    Raises:
        QueryCancelled: if ``should_cancel`` asked to stop.
    """
    weight = directed_weight(weight_key, should_cancel)
    dist: Dict[int, float] = {}
    for node, offset in sources.items():
        if should_cancel is not None and should_cancel():
            raise QueryCancelled(f"Search cancelled before leaving node {node}")
        if cutoff is not None and offset > cutoff:
            continue
        lengths = nx.single_source_dijkstra_path_length(
            graph.nx_graph, node,
            cutoff=None if cutoff is None else cutoff - offset,
            weight=weight,
        )
        for target, length in lengths.items():
            cost = offset + length
            if cost < dist.get(target, math.inf):
                dist[target] = cost
    return dist
