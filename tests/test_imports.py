"""
Import smoke tests for the cycle_access package.

Each import is isolated in its own test function so failures are independent.

Also includes routing compliance tests that verify shortest paths go through
networkx rather than a hand-rolled priority queue, and that library code logs
instead of printing.
"""

from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
PACKAGE_DIR = PROJECT_ROOT / "cycle_access"


# ---------------------------------------------------------------------------
# Network construction
# ---------------------------------------------------------------------------


class TestNetworkImports:
    def test_import_package_init(self):
        import cycle_access
        assert hasattr(cycle_access, "AccessibilityPipeline")
        assert hasattr(cycle_access, "__version__")

    def test_import_model(self):
        from cycle_access.network.model import Segment, StreetGraph, Suitability
        assert Segment is not None
        assert StreetGraph is not None
        assert [s.value for s in Suitability] == ["good", "medium", "low"]

    def test_import_builder(self):
        from cycle_access.network.builder import GraphBuilder, build_graph
        assert callable(build_graph)
        assert GraphBuilder is not None

    def test_import_cleaner(self):
        from cycle_access.network.cleaner import TopologyCleaner, subdivide
        assert callable(subdivide)
        assert TopologyCleaner is not None

    def test_import_components(self):
        from cycle_access.network.components import largest_component
        assert callable(largest_component)

    def test_import_attributes(self):
        from cycle_access.attributes import EdgeAttributer, cycling_speed
        assert callable(cycling_speed)
        assert EdgeAttributer is not None

    def test_import_normalize(self):
        from cycle_access.normalize import normalize_lines
        assert callable(normalize_lines)


# ---------------------------------------------------------------------------
# Accessibility
# ---------------------------------------------------------------------------


class TestAccessibilityImports:
    def test_import_engine(self):
        from cycle_access.accessibility.engine import AccessibilityEngine
        assert AccessibilityEngine is not None

    def test_import_routing(self):
        from cycle_access.accessibility.routing import dijkstra
        assert callable(dijkstra)

    def test_import_snapping(self):
        from cycle_access.accessibility.snapping import NetworkSnapper
        assert NetworkSnapper is not None

    def test_errors_share_a_base(self):
        from cycle_access import errors
        for name in ("InputGeometryError", "DegenerateSegmentError", "ConfigurationError",
                     "UnitMismatchError", "EmptyNetworkError", "SnapFailure", "QueryCancelled"):
            assert issubclass(getattr(errors, name), errors.CycleAccessError)


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------

BANNED_PATTERNS = [
    "import heapq",
    "heapq.heappush",
    "print(",
]


def _code_lines():
    for py_file in PACKAGE_DIR.rglob("*.py"):
        rel_path = py_file.relative_to(PROJECT_ROOT)
        with open(py_file, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                if line.lstrip().startswith("#"):
                    continue
                yield rel_path, line_num, line


class TestCompliance:
    @pytest.mark.parametrize("pattern", BANNED_PATTERNS)
    def test_no_banned_usage(self, pattern):
        violations = [
            f"{rel_path}:{line_num}: {line.rstrip()}"
            for rel_path, line_num, line in _code_lines()
            if pattern in line
        ]
        if violations:
            violation_report = "\n".join(violations)
            pytest.fail(f"Found banned usage of '{pattern}':\n{violation_report}")

    def test_every_module_has_a_logger(self):
        missing = []
        for py_file in PACKAGE_DIR.rglob("*.py"):
            if py_file.name == "__init__.py" or py_file.name in ("errors.py", "units.py"):
                continue
            if "logger = logging.getLogger(__name__)" not in py_file.read_text(encoding="utf-8"):
                missing.append(str(py_file.relative_to(PROJECT_ROOT)))
        assert not missing, f"Modules without a module logger: {missing}"
