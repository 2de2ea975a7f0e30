"""
Street network construction: data model, builder, topology cleaning and
component reduction.
"""

from .builder import BuildReport, GraphBuilder, build_graph
from .cleaner import TopologyCleaner, subdivide
from .components import ComponentSummary, component_summary, connected_components, largest_component
from .model import Segment, StreetGraph, Suitability, suitability_filter
from .nodes import NodeIndex

__all__ = [
    'BuildReport',
    'ComponentSummary',
    'GraphBuilder',
    'NodeIndex',
    'Segment',
    'StreetGraph',
    'Suitability',
    'TopologyCleaner',
    'build_graph',
    'component_summary',
    'connected_components',
    'largest_component',
    'subdivide',
    'suitability_filter',
]
