"""
cycle_access: cumulative-opportunities cycling accessibility on street networks.

Turns raw street centrelines into a topologically consistent, travel-time
weighted graph and counts the destinations reachable from an origin within a
time budget, optionally only over edges of a given cycling suitability.
"""

from .accessibility import (
    AccessibilityEngine,
    AccessibilityResult,
    Attachment,
    NetworkSnapper,
    cumulative_opportunities,
    reachable_mask,
    travel_cost_matrix,
)
from .attributes import EdgeAttributer, SegmentTags, classify_suitability, cycling_speed
from .config import NetworkConfig
from .errors import (
    ConfigurationError,
    CycleAccessError,
    DegenerateSegmentError,
    EmptyNetworkError,
    InputGeometryError,
    QueryCancelled,
    SnapFailure,
    UnitMismatchError,
)
from .network import (
    ComponentSummary,
    GraphBuilder,
    Segment,
    StreetGraph,
    Suitability,
    TopologyCleaner,
    build_graph,
    component_summary,
    connected_components,
    largest_component,
    subdivide,
    suitability_filter,
)
from .normalize import disc_area, normalize_geometry, normalize_lines, normalize_points
from .pipeline import AccessibilityPipeline, NetworkBuild
from .units import Quantity, metres, minutes

__version__ = "0.1.0"

__all__ = [
    'AccessibilityEngine',
    'AccessibilityPipeline',
    'AccessibilityResult',
    'Attachment',
    'ComponentSummary',
    'ConfigurationError',
    'CycleAccessError',
    'DegenerateSegmentError',
    'EdgeAttributer',
    'EmptyNetworkError',
    'GraphBuilder',
    'InputGeometryError',
    'NetworkBuild',
    'NetworkConfig',
    'NetworkSnapper',
    'Quantity',
    'QueryCancelled',
    'Segment',
    'SegmentTags',
    'SnapFailure',
    'StreetGraph',
    'Suitability',
    'TopologyCleaner',
    'UnitMismatchError',
    'build_graph',
    'classify_suitability',
    'component_summary',
    'connected_components',
    'cumulative_opportunities',
    'cycling_speed',
    'disc_area',
    'largest_component',
    'metres',
    'minutes',
    'normalize_geometry',
    'normalize_lines',
    'normalize_points',
    'reachable_mask',
    'subdivide',
    'suitability_filter',
    'travel_cost_matrix',
]
