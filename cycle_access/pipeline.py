"""
End-to-end cycling accessibility pipeline.

Runs the stages in order:

    normalize -> attribute -> build -> subdivide -> largest component -> query

Usage::

    from cycle_access import AccessibilityPipeline, NetworkConfig, disc_area

    pipeline = AccessibilityPipeline(NetworkConfig(tolerance=0.01))
    network = pipeline.build_network(streets_gdf, area=disc_area(home, 3000),
                                     gradient_fn=elevation.gradient)
    result = pipeline.evaluate(network, home, supermarkets_gdf, threshold=15,
                               suitability=("good", "medium"))
    result.counts
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import geopandas as gpd
from shapely.geometry.base import BaseGeometry

from .accessibility.engine import AccessibilityEngine, AccessibilityResult, PointsLike
from .attributes import EdgeAttributer, GradientFn
from .config import NetworkConfig
from .network.builder import BuildReport, GraphBuilder
from .network.cleaner import TopologyCleaner
from .network.components import ComponentSummary, component_summary, largest_component
from .network.model import StreetGraph, suitability_filter
from .normalize import normalize_lines, normalize_points
from .units import Quantity

logger = logging.getLogger(__name__)


@dataclass
class NetworkBuild:
    """The routable network plus what happened while building it."""

    graph: StreetGraph
    build_report: BuildReport
    cleaned_summary: ComponentSummary
    summary: ComponentSummary
    segments: int
    clean_passes: int


class AccessibilityPipeline:
    """Build a routable cycling network and query accessibility on it."""

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()
        self.attributer = EdgeAttributer(self.config)
        logger.info(f"Initialized AccessibilityPipeline (tolerance={self.config.tolerance}, "
                    f"snap_mode={self.config.snap_mode})")

    def build_network(self,
                      lines: gpd.GeoDataFrame,
                      area: Optional[BaseGeometry] = None,
                      gradient_fn: Optional[GradientFn] = None,
                      gradient_column: Optional[str] = None) -> NetworkBuild:
        """Turn raw street geometries into the largest connected routable graph."""
        logger.info(f"Building network from {len(lines)} raw geometries")

        normalized = normalize_lines(lines, area)
        segments = self.attributer.attribute_frame(normalized, gradient_fn=gradient_fn,
                                                   gradient_column=gradient_column)

        builder = GraphBuilder(self.config)
        raw_graph = builder.build(segments, crs=lines.crs)

        cleaner = TopologyCleaner(self.config)
        cleaned = cleaner.subdivide(raw_graph)
        cleaned_summary = component_summary(cleaned)
        logger.info(
            f"Cleaned network: {cleaned_summary.total_nodes} nodes in "
            f"{cleaned_summary.n_components} components, largest holds "
            f"{cleaned_summary.largest_fraction:.1%}"
        )

        graph = largest_component(cleaned)
        return NetworkBuild(
            graph=graph,
            build_report=builder.report,
            cleaned_summary=cleaned_summary,
            summary=component_summary(graph),
            segments=len(segments),
            clean_passes=cleaner.passes,
        )

    def evaluate(self,
                 network: Union[NetworkBuild, StreetGraph],
                 origins: PointsLike,
                 destinations: PointsLike,
                 threshold: Union[Quantity, float],
                 weight_key: str = "travel_time",
                 suitability: Optional[Iterable[str]] = None,
                 area: Optional[BaseGeometry] = None) -> AccessibilityResult:
        """Reachability of ``destinations`` from ``origins`` within ``threshold``.

        ``suitability`` restricts routing to edges of those classes (a view,
        the network itself is unchanged). Destination GeoDataFrames are
        reduced to points inside ``area`` first.
        """
        graph = network.graph if isinstance(network, NetworkBuild) else network
        if isinstance(destinations, gpd.GeoDataFrame):
            destinations = normalize_points(destinations, area)

        edge_filter = suitability_filter(*suitability) if suitability is not None else None
        engine = AccessibilityEngine(graph, self.config)
        return engine.evaluate(origins, destinations, threshold, weight_key=weight_key,
                               edge_filter=edge_filter)
