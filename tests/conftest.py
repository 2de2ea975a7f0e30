"""
Shared synthetic networks for the cycle_access tests.

All coordinates are metres in a projected CRS; nothing touches the disk or
the network.
"""

from __future__ import annotations

import pytest
from shapely.geometry import LineString

from cycle_access.network.builder import build_graph
from cycle_access.network.model import Segment, Suitability

SQUARE = {
    "A": (0.0, 0.0),
    "B": (100.0, 0.0),
    "C": (100.0, 100.0),
    "D": (0.0, 100.0),
}


def _make_segment(coords, travel_time=None, suitability=Suitability.LOW,
                  oneway=False, speed=20.0, highway=None):
    """Segment over ``coords``; travel time defaults to length at ``speed`` km/h."""
    line = LineString(coords)
    if travel_time is None:
        travel_time = line.length / 1000.0 / speed * 60.0
    return Segment(
        geometry=line,
        length=line.length,
        speed=speed,
        travel_time=travel_time,
        suitability=suitability,
        oneway=oneway,
        highway=highway,
    )


@pytest.fixture
def make_segment():
    return _make_segment


def square_segments(ab_suitability=Suitability.GOOD, ab_oneway=False):
    """A-B-C-D-A, 100 m sides, each side exactly 1 minute."""
    a, b, c, d = (SQUARE[k] for k in "ABCD")
    return [
        _make_segment([a, b], travel_time=1.0, suitability=ab_suitability, oneway=ab_oneway),
        _make_segment([b, c], travel_time=1.0, suitability=Suitability.GOOD),
        _make_segment([c, d], travel_time=1.0, suitability=Suitability.MEDIUM),
        _make_segment([d, a], travel_time=1.0, suitability=Suitability.GOOD),
    ]


@pytest.fixture
def square_graph():
    return build_graph(square_segments())


@pytest.fixture
def square_graph_low_ab():
    """Square whose A-B side is only LOW suitability."""
    return build_graph(square_segments(ab_suitability=Suitability.LOW))


@pytest.fixture
def square_graph_oneway_ab():
    """Square whose A-B side may only be ridden from A to B."""
    return build_graph(square_segments(ab_oneway=True))


@pytest.fixture
def crossing_segments():
    """Two streets crossing at a vertex interior to both."""
    return [
        _make_segment([(0, 0), (50, 0), (100, 0)], suitability=Suitability.GOOD),
        _make_segment([(50, -50), (50, 0), (50, 50)], suitability=Suitability.MEDIUM),
    ]
