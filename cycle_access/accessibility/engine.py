"""
Accessibility Engine

Computes origin x destination travel-cost matrices over a StreetGraph (or an
edge-filtered view of it) and classifies destinations as reachable when their
cost is strictly below a threshold. The cumulative-opportunities metric is the
number of reachable destinations per origin.

Points are always snapped to the unfiltered network. A point attached to the
interior of an edge the filter excludes cannot be reached over (or leave
through) the permitted edges, so it costs ``numpy.inf``; a point attached to a
node is routed from or to that node as usual.

Unreachable destinations get ``numpy.inf``; they are data, not errors. The
engine never converts units: weights are used as stored (see
``units.EDGE_UNITS``) and a ``Quantity`` threshold must already be in the
weight's unit.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

import geopandas as gpd
import numpy as np
import pandas as pd
from shapely.geometry import Point
from tqdm.auto import tqdm

from ..config import NetworkConfig
from ..errors import ConfigurationError
from ..network.model import EdgeFilter, StreetGraph
from ..units import EDGE_UNITS, Quantity, strip_unit
from .routing import dijkstra, validate_weight
from .snapping import Attachment, NetworkSnapper

logger = logging.getLogger(__name__)

PointsLike = Union[gpd.GeoDataFrame, gpd.GeoSeries, Point, Iterable[Any]]


def as_points(points: PointsLike) -> Tuple[pd.Index, List[Point]]:
    """Labels and shapely Points for any supported point collection."""
    if isinstance(points, gpd.GeoDataFrame):
        points = points.geometry
    if isinstance(points, gpd.GeoSeries):
        return points.index, list(points)
    if isinstance(points, Point):
        return pd.RangeIndex(1), [points]
    geoms = [p if isinstance(p, Point) else Point(p) for p in points]
    return pd.RangeIndex(len(geoms)), geoms


def threshold_value(threshold: Union[Quantity, float], weight_key: str) -> float:
    """Raw threshold, refusing a Quantity whose unit differs from the weight's."""
    if isinstance(threshold, Quantity) and weight_key not in EDGE_UNITS:
        raise ConfigurationError(f"No unit is declared for weight '{weight_key}'; pass a plain number")
    return strip_unit(threshold, EDGE_UNITS.get(weight_key, ""), what="threshold")


def reachable_mask(costs, threshold: float) -> np.ndarray:
    """True where cost < threshold (a cost equal to the threshold is not reachable)."""
    return np.asarray(costs, dtype=float) < threshold


def cumulative_opportunities(costs, threshold: float) -> np.ndarray:
    """Number of reachable destinations per origin."""
    return reachable_mask(costs, threshold).sum(axis=-1)


@dataclass
class AccessibilityResult:
    """Costs and reachability for one accessibility query."""

    costs: pd.DataFrame
    threshold: float
    weight_key: str

    @property
    def reachable(self) -> pd.DataFrame:
        return self.costs < self.threshold

    @property
    def counts(self) -> pd.Series:
        """Cumulative opportunities per origin."""
        return self.reachable.sum(axis=1).rename('reachable')

    def reachable_destinations(self, origin=None) -> pd.Index:
        """Destination labels reachable from ``origin`` (from any origin when None)."""
        if origin is None:
            return self.costs.columns[self.reachable.any(axis=0).to_numpy()]
        return self.costs.columns[self.reachable.loc[origin].to_numpy()]

    def summary(self) -> Dict[str, Any]:
        n_dest = self.costs.shape[1]
        counts = self.counts
        return {
            'weight_key': self.weight_key,
            'threshold': self.threshold,
            'origins': int(self.costs.shape[0]),
            'destinations': int(n_dest),
            'reachable_mean': float(counts.mean()) if len(counts) else 0.0,
            'unreachable_any': int(np.isinf(self.costs.to_numpy()).any(axis=0).sum()),
        }


class AccessibilityEngine:
    """Shortest-path accessibility queries against one StreetGraph."""

    def __init__(self, graph: StreetGraph, config: Optional[NetworkConfig] = None):
        self.graph = graph
        self.config = config or NetworkConfig()

    def _routing_graph(self, edge_filter: Optional[EdgeFilter]) -> StreetGraph:
        if edge_filter is None:
            return self.graph
        return self.graph.view(edge_filter)

    def snapper(self, graph: Optional[StreetGraph] = None) -> NetworkSnapper:
        return NetworkSnapper(graph if graph is not None else self.graph,
                              mode=self.config.snap_mode,
                              max_distance=self.config.max_snap_distance)

    def cost_matrix(self,
                    origins: PointsLike,
                    destinations: PointsLike,
                    weight_key: str = "travel_time",
                    edge_filter: Optional[EdgeFilter] = None,
                    cutoff: Optional[float] = None,
                    should_cancel: Optional[Callable[[], bool]] = None) -> np.ndarray:
        """Least ``weight_key`` cost from every origin to every destination.

        Returns:
            Array of shape (n_origins, n_destinations); ``inf`` where a
            destination cannot be reached (or costs more than ``cutoff``).

        Raises:
            ConfigurationError: if ``weight_key`` is missing or negative on any edge.
            EmptyNetworkError: if the (filtered) graph has no edges.
            SnapFailure: if a point is beyond ``max_snap_distance`` of the
                unfiltered network.
        """
        graph = self._routing_graph(edge_filter)
        validate_weight(graph, weight_key)

        _, origin_points = as_points(origins)
        _, destination_points = as_points(destinations)
        # Snap against the full network; the filter only restricts routing
        snapper = self.snapper()
        origin_att = snapper.snap_many(origin_points)
        destination_att = snapper.snap_many(destination_points)

        costs = np.full((len(origin_att), len(destination_att)), np.inf)
        if not len(origin_att) or not len(destination_att):
            return costs

        def _row(i: int) -> np.ndarray:
            dist = dijkstra(graph, _seeds(graph, origin_att[i], weight_key), weight_key,
                            cutoff=cutoff, should_cancel=should_cancel)
            row = np.array([
                _destination_cost(graph, dist, origin_att[i], dest, weight_key)
                for dest in destination_att
            ])
            if cutoff is not None:
                row[row > cutoff] = np.inf
            return row

        workers = self.config.max_workers or 1
        progress = dict(total=len(origin_att), desc="Routing origins",
                        disable=not self.config.show_progress)
        if workers > 1 and len(origin_att) > 1:
            # Workers only read the graph
            with ThreadPoolExecutor(max_workers=workers) as executor:
                rows = list(tqdm(executor.map(_row, range(len(origin_att))), **progress))
        else:
            rows = [_row(i) for i in tqdm(range(len(origin_att)), **progress)]

        costs[:] = np.vstack(rows)
        logger.debug(f"Computed {costs.shape[0]}x{costs.shape[1]} '{weight_key}' cost matrix")
        return costs

    def evaluate(self,
                 origins: PointsLike,
                 destinations: PointsLike,
                 threshold: Union[Quantity, float],
                 weight_key: str = "travel_time",
                 edge_filter: Optional[EdgeFilter] = None) -> AccessibilityResult:
        """Cost matrix plus reachability against ``threshold``."""
        limit = threshold_value(threshold, weight_key)
        origin_labels, origin_points = as_points(origins)
        destination_labels, destination_points = as_points(destinations)
        costs = self.cost_matrix(origin_points, destination_points, weight_key,
                                 edge_filter=edge_filter)
        result = AccessibilityResult(
            costs=pd.DataFrame(costs, index=origin_labels, columns=destination_labels),
            threshold=limit,
            weight_key=weight_key,
        )
        logger.info(
            f"{int(result.reachable.to_numpy().sum())} of {costs.size} origin-destination "
            f"pairs reachable within {limit} ({weight_key})"
        )
        return result


def _seeds(graph: StreetGraph, attachment: Attachment, weight_key: str) -> Dict[int, float]:
    if attachment.on_node:
        return {attachment.node: 0.0}
    u, v, key = attachment.edge
    if not graph.has_edge(u, v, key):
        return {}
    data = graph.edge_data(u, v, key)
    weight = data[weight_key]
    t = attachment.fraction
    seeds = {v: (1.0 - t) * weight}
    if not data.get('oneway'):
        seeds[u] = min(seeds.get(u, math.inf), t * weight)
    return seeds


def _destination_cost(graph: StreetGraph, dist: Dict[int, float],
                      origin: Attachment, destination: Attachment, weight_key: str) -> float:
    if destination.on_node:
        return dist.get(destination.node, math.inf)

    u, v, key = destination.edge
    if not graph.has_edge(u, v, key):
        return math.inf
    data = graph.edge_data(u, v, key)
    weight = data[weight_key]
    oneway = bool(data.get('oneway'))
    t = destination.fraction

    best = dist.get(u, math.inf) + t * weight
    if not oneway:
        best = min(best, dist.get(v, math.inf) + (1.0 - t) * weight)

    # Both points on the same edge: travel along it directly
    if origin.edge == destination.edge:
        delta = t - origin.fraction
        if delta >= 0:
            best = min(best, delta * weight)
        elif not oneway:
            best = min(best, -delta * weight)
    return best


def travel_cost_matrix(graph: StreetGraph,
                       origins: PointsLike,
                       destinations: PointsLike,
                       weight_key: str = "travel_time",
                       edge_filter: Optional[EdgeFilter] = None,
                       config: Optional[NetworkConfig] = None,
                       **kwargs) -> np.ndarray:
    """Functional form of :meth:`AccessibilityEngine.cost_matrix`."""
    return AccessibilityEngine(graph, config).cost_matrix(
        origins, destinations, weight_key, edge_filter=edge_filter, **kwargs
    )
