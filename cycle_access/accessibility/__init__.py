"""
Accessibility queries: snapping, shortest paths and the cumulative
opportunities metric.
"""

from .engine import (
    AccessibilityEngine,
    AccessibilityResult,
    as_points,
    cumulative_opportunities,
    reachable_mask,
    travel_cost_matrix,
)
from .routing import dijkstra, validate_weight
from .snapping import Attachment, NetworkSnapper

__all__ = [
    'AccessibilityEngine',
    'AccessibilityResult',
    'Attachment',
    'NetworkSnapper',
    'as_points',
    'cumulative_opportunities',
    'dijkstra',
    'reachable_mask',
    'travel_cost_matrix',
    'validate_weight',
]
