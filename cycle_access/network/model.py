"""
Street network data model.

A ``Segment`` is an attributed simple polyline; ``StreetGraph`` stores segments
as edges of an undirected ``networkx.MultiGraph`` whose nodes are integer ids
assigned in creation order. Direction is an edge attribute (``oneway`` plus the
digitised ``from_node``/``to_node``), never a structural property, so one-way
streets need no separate graph type.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple

import geopandas as gpd
import networkx as nx
import pandas as pd
from shapely.geometry import LineString, Point

from ..errors import DegenerateSegmentError
from ..units import KMH, METRE, Quantity, travel_minutes

logger = logging.getLogger(__name__)

EdgeKey = Tuple[int, int, int]
EdgeFilter = Callable[[Dict[str, Any]], bool]


class Suitability(str, Enum):
    """Cycling suitability class of a segment."""

    GOOD = "good"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Segment:
    """A street centreline piece with its travel attributes.

    Lengths are metres, speeds km/h and travel times minutes (see
    ``units.EDGE_UNITS``).
    """

    geometry: LineString
    length: float
    speed: float
    travel_time: float
    suitability: Suitability
    oneway: bool = False
    highway: Optional[str] = None
    tags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.length > 0:
            raise DegenerateSegmentError(f"segment length must be positive, got {self.length}")
        if not self.speed > 0:
            raise DegenerateSegmentError(f"segment speed must be positive, got {self.speed}")

    def with_geometry(self, geometry: LineString) -> "Segment":
        """Same attributes on a sub-geometry; length and time recomputed."""
        length = geometry.length
        if not length > 0:
            raise DegenerateSegmentError("sub-segment has zero length")
        travel_time = travel_minutes(Quantity(length, METRE), Quantity(self.speed, KMH)).value
        return replace(self, geometry=geometry, length=length, travel_time=travel_time)

    def edge_attributes(self) -> Dict[str, Any]:
        return {
            'geometry': self.geometry,
            'length': self.length,
            'speed': self.speed,
            'travel_time': self.travel_time,
            'suitability': self.suitability,
            'oneway': self.oneway,
            'highway': self.highway,
            'tags': dict(self.tags),
        }

    @classmethod
    def from_edge_attributes(cls, data: Mapping[str, Any]) -> "Segment":
        return cls(
            geometry=data['geometry'],
            length=data['length'],
            speed=data['speed'],
            travel_time=data['travel_time'],
            suitability=data['suitability'],
            oneway=data.get('oneway', False),
            highway=data.get('highway'),
            tags=data.get('tags', {}),
        )


def suitability_filter(*classes) -> EdgeFilter:
    """Edge predicate keeping only the given suitability classes."""
    allowed = {Suitability(c) for c in classes}

    def _keep(data: Dict[str, Any]) -> bool:
        return data.get('suitability') in allowed

    return _keep


class StreetGraph:
    """Routable street network.

    Wraps an undirected ``networkx.MultiGraph`` (parallel edges and self-loops
    allowed). Nodes carry ``x``/``y``; edges carry the Segment attributes plus
    ``from_node``/``to_node``. A StreetGraph returned by :meth:`view` shares
    storage with its parent and must be treated as read-only.
    """

    def __init__(self, graph: Optional[nx.MultiGraph] = None, crs: Any = None,
                 next_node_id: Optional[int] = None, edge_filter: Optional[EdgeFilter] = None):
        self._graph = graph if graph is not None else nx.MultiGraph()
        self.crs = crs
        if next_node_id is None:
            next_node_id = max(self._graph.nodes, default=-1) + 1
        self._next_node_id = next_node_id
        self._edge_filter = edge_filter

    # ------------------------------------------------------------------
    # Construction (used by the builder and cleaner only)
    # ------------------------------------------------------------------

    def add_node(self, x: float, y: float) -> int:
        self._check_writable()
        node = self._next_node_id
        self._graph.add_node(node, x=float(x), y=float(y))
        self._next_node_id += 1
        return node

    def add_edge(self, u: int, v: int, segment: Segment) -> int:
        self._check_writable()
        if u not in self._graph or v not in self._graph:
            raise KeyError(f"Cannot add edge ({u}, {v}): endpoint missing from graph")
        return self._graph.add_edge(u, v, from_node=u, to_node=v, **segment.edge_attributes())

    def remove_edge(self, u: int, v: int, key: int) -> None:
        self._check_writable()
        self._graph.remove_edge(u, v, key)

    def _check_writable(self):
        if self.is_view:
            raise TypeError("Filtered graph views are read-only")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_view(self) -> bool:
        return self._edge_filter is not None

    @property
    def nx_graph(self) -> nx.MultiGraph:
        """The underlying networkx graph (or graph view)."""
        return self._graph

    @property
    def next_node_id(self) -> int:
        return self._next_node_id

    def number_of_nodes(self) -> int:
        return self._graph.number_of_nodes()

    def number_of_edges(self) -> int:
        return self._graph.number_of_edges()

    def __len__(self) -> int:
        return self.number_of_nodes()

    def __contains__(self, node) -> bool:
        return node in self._graph

    def nodes(self) -> Iterator[int]:
        """Node ids in creation order."""
        return iter(self._graph.nodes)

    def node_coords(self, node: int) -> Tuple[float, float]:
        data = self._graph.nodes[node]
        return data['x'], data['y']

    def node_point(self, node: int) -> Point:
        return Point(self.node_coords(node))

    def edges(self) -> Iterator[Tuple[int, int, int, Dict[str, Any]]]:
        """Iterate ``(u, v, key, data)`` with ``u``/``v`` in digitised order."""
        for u, v, key, data in self._graph.edges(keys=True, data=True):
            yield data['from_node'], data['to_node'], key, data

    def has_edge(self, u: int, v: int, key: int) -> bool:
        """Whether edge ``(u, v, key)`` exists (and passes the filter, on a view)."""
        return self._graph.has_edge(u, v, key)

    def edge_data(self, u: int, v: int, key: int) -> Dict[str, Any]:
        return self._graph.edges[u, v, key]

    def segment(self, u: int, v: int, key: int) -> Segment:
        return Segment.from_edge_attributes(self.edge_data(u, v, key))

    def degree(self, node: int) -> int:
        return self._graph.degree(node)

    def missing_attribute(self, name: str) -> int:
        """Number of edges lacking attribute ``name`` (or holding None)."""
        return sum(1 for _, _, data in self._graph.edges(data=True) if data.get(name) is None)

    # ------------------------------------------------------------------
    # Derived graphs
    # ------------------------------------------------------------------

    def view(self, edge_filter: EdgeFilter) -> "StreetGraph":
        """Read-only view containing only edges for which ``edge_filter(data)`` holds.

        All nodes stay visible; nothing is copied.
        """
        base = self._graph

        def _filter_edge(u, v, key):
            return edge_filter(base.edges[u, v, key])

        filtered = nx.subgraph_view(base, filter_edge=_filter_edge)
        return StreetGraph(filtered, crs=self.crs, next_node_id=self._next_node_id,
                           edge_filter=edge_filter)

    def subgraph(self, nodes) -> "StreetGraph":
        """Independent copy of the subgraph induced by ``nodes``."""
        return StreetGraph(self._graph.subgraph(nodes).copy(), crs=self.crs,
                           next_node_id=self._next_node_id)

    def copy(self) -> "StreetGraph":
        return StreetGraph(self._graph.copy(), crs=self.crs,
                           next_node_id=self._next_node_id)

    def to_geodataframes(self) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
        """Node and edge GeoDataFrames for plotting and reporting."""
        node_rows = [
            {'node': n, 'x': d['x'], 'y': d['y'], 'degree': self._graph.degree(n),
             'geometry': Point(d['x'], d['y'])}
            for n, d in self._graph.nodes(data=True)
        ]
        nodes_gdf = gpd.GeoDataFrame(
            pd.DataFrame(node_rows, columns=['node', 'x', 'y', 'degree', 'geometry']),
            geometry='geometry', crs=self.crs,
        ).set_index('node')

        edge_rows = []
        for u, v, key, data in self.edges():
            row = {k: val for k, val in data.items() if k not in ('tags', 'from_node', 'to_node')}
            row['suitability'] = Suitability(row['suitability']).value
            edge_rows.append({'u': u, 'v': v, 'key': key, **row})
        columns = ['u', 'v', 'key', 'geometry', 'length', 'speed', 'travel_time',
                   'suitability', 'oneway', 'highway']
        edges_gdf = gpd.GeoDataFrame(
            pd.DataFrame(edge_rows, columns=columns), geometry='geometry', crs=self.crs,
        )
        return nodes_gdf, edges_gdf

    def __repr__(self) -> str:
        kind = "StreetGraph view" if self.is_view else "StreetGraph"
        return f"<{kind}: {self.number_of_nodes()} nodes, {self.number_of_edges()} edges>"
