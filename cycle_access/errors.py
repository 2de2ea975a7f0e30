"""
Exception taxonomy for cycle_access.

Per-geometry failures (InputGeometryError, DegenerateSegmentError) are caught
where segments are produced and the offending row is skipped. Structural
failures (ConfigurationError, EmptyNetworkError, SnapFailure) propagate to the
caller. Unreachable destinations are never an exception; they are reported as
an infinite cost.
"""


class CycleAccessError(ValueError):
    """Base class for all errors raised by cycle_access."""


class InputGeometryError(CycleAccessError):
    """A raw geometry is malformed or empty after clipping."""


class DegenerateSegmentError(CycleAccessError):
    """A segment has zero length (or is otherwise unusable as an edge)."""


class ConfigurationError(CycleAccessError):
    """Invalid configuration, weight key or CRS."""


class UnitMismatchError(ConfigurationError):
    """A quantity was passed in a unit different from the one expected."""

    def __init__(self, expected: str, got: str, what: str = "value"):
        super().__init__(f"{what} must be expressed in '{expected}', got '{got}'")
        self.expected = expected
        self.got = got


class EmptyNetworkError(CycleAccessError):
    """The graph has no nodes or no edges to route over."""


class SnapFailure(CycleAccessError):
    """A query point is too far from every graph element to be snapped."""

    def __init__(self, point, distance: float, max_distance: float):
        super().__init__(
            f"Point ({point.x:.2f}, {point.y:.2f}) is {distance:.2f} from the "
            f"network, beyond max_snap_distance={max_distance:.2f}"
        )
        self.point = point
        self.distance = distance
        self.max_distance = max_distance


class QueryCancelled(CycleAccessError):
    """A shortest-path search was cancelled by its caller."""
