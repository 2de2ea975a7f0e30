"""
Edge Attributer

Assigns each normalized line a length, a gradient-dependent cycling speed, a
travel time and a suitability class derived from its OSM tags.

Suitability (first match wins):

    1. highway=cycleway                               -> good
    2. highway=residential / living_street            -> medium
    3. cycleway[:left|:right|:both] is a lane/shared  -> medium
    4. highway=footway with bicycle=yes/designated    -> medium
    5. anything else                                  -> low
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

import geopandas as gpd
from shapely.geometry import LineString

from .config import NetworkConfig
from .errors import DegenerateSegmentError
from .network.model import Segment, Suitability
from .units import KMH, METRE, Quantity, travel_minutes

logger = logging.getLogger(__name__)

GradientFn = Callable[[LineString], float]

CYCLE_PATHS = frozenset({'cycleway'})
RESIDENTIAL = frozenset({'residential', 'living_street'})
FOOTWAYS = frozenset({'footway'})
CYCLEWAY_KEYS = ('cycleway', 'cycleway:left', 'cycleway:right', 'cycleway:both')
CYCLE_LANES = frozenset({'lane', 'shared_lane', 'share_busway', 'shared'})
BICYCLE_ALLOWED = frozenset({'yes', 'designated'})
ONEWAY_FORWARD = frozenset({'yes', 'true', '1'})
ONEWAY_REVERSE = frozenset({'-1', 'reverse'})


def _tag_values(value: Any) -> Tuple[str, ...]:
    """Normalize an OSM tag value to a tuple of lower-case strings.

    Merged ways carry list values; missing values arrive as None or NaN.
    """
    if value is None:
        return ()
    if isinstance(value, float) and math.isnan(value):
        return ()
    if isinstance(value, bool):
        return ('yes',) if value else ('no',)
    if isinstance(value, (list, tuple, set, frozenset)):
        values = []
        for v in value:
            values.extend(_tag_values(v))
        return tuple(values)
    return (str(value).strip().lower(),)


def _matches(value: Any, accepted: frozenset) -> bool:
    return any(v in accepted for v in _tag_values(value))


@dataclass(frozen=True)
class SegmentTags:
    """The handful of tags the attributer looks at."""

    highway: Any = None
    cycleway: Mapping[str, Any] = field(default_factory=dict)
    bicycle: Any = None
    oneway: Any = None

    @classmethod
    def from_mapping(cls, tags: Mapping[str, Any]) -> "SegmentTags":
        return cls(
            highway=tags.get('highway'),
            cycleway={k: tags.get(k) for k in CYCLEWAY_KEYS if k in tags},
            bicycle=tags.get('bicycle'),
            oneway=tags.get('oneway'),
        )

    @property
    def primary_highway(self) -> Optional[str]:
        values = _tag_values(self.highway)
        return values[0] if values else None


def cycling_speed(gradient: float,
                  default_speed: float = 20.0,
                  max_speed: float = 30.0,
                  min_speed: float = 5.0,
                  downhill_factor: float = 0.8,
                  uphill_factor: float = 1.4) -> float:
    """Cycling speed (km/h) on a signed percentage grade.

    Downhill speeds up by ``downhill_factor`` per percent up to ``max_speed``;
    uphill slows down by ``uphill_factor`` per percent down to ``min_speed``.
    """
    if gradient < 0:
        return min(default_speed + downhill_factor * abs(gradient), max_speed)
    return max(default_speed - uphill_factor * gradient, min_speed)


def classify_suitability(tags: SegmentTags) -> Suitability:
    if _matches(tags.highway, CYCLE_PATHS):
        return Suitability.GOOD
    if _matches(tags.highway, RESIDENTIAL):
        return Suitability.MEDIUM
    if any(_matches(value, CYCLE_LANES) for value in tags.cycleway.values()):
        return Suitability.MEDIUM
    if _matches(tags.highway, FOOTWAYS) and _matches(tags.bicycle, BICYCLE_ALLOWED):
        return Suitability.MEDIUM
    return Suitability.LOW


class EdgeAttributer:
    """Turn normalized lines into attributed Segments."""

    def __init__(self, config: Optional[NetworkConfig] = None):
        self.config = config or NetworkConfig()

    def speed(self, gradient: float) -> float:
        c = self.config
        return cycling_speed(gradient, c.default_speed, c.max_speed, c.min_speed,
                             c.downhill_factor, c.uphill_factor)

    def attribute(self, geometry: LineString, gradient: float = 0.0,
                  tags: Optional[Mapping[str, Any]] = None) -> Segment:
        """Build the Segment for one line.

        Raises:
            DegenerateSegmentError: if the line has zero length.
        """
        tags = dict(tags or {})
        length = geometry.length
        if not length > 0:
            raise DegenerateSegmentError("zero-length segment")

        if gradient is None or not math.isfinite(gradient):
            logger.debug(f"Non-finite gradient {gradient!r}, treating segment as flat")
            gradient = 0.0

        parsed = SegmentTags.from_mapping(tags)
        oneway = False
        if self.config.respect_oneway:
            if _matches(parsed.oneway, ONEWAY_REVERSE):
                geometry = LineString(list(geometry.coords)[::-1])
                gradient = -gradient
                oneway = True
            elif _matches(parsed.oneway, ONEWAY_FORWARD):
                oneway = True

        speed = self.speed(gradient)
        travel_time = travel_minutes(Quantity(length, METRE), Quantity(speed, KMH)).value
        return Segment(
            geometry=geometry,
            length=length,
            speed=speed,
            travel_time=travel_time,
            suitability=classify_suitability(parsed),
            oneway=oneway,
            highway=parsed.primary_highway,
            tags=tags,
        )

    def attribute_many(self, lines: Iterable[Tuple[LineString, Mapping[str, Any]]],
                       gradient_fn: Optional[GradientFn] = None) -> List[Segment]:
        """Attribute ``(geometry, tags)`` pairs, skipping degenerate lines."""
        segments = []
        skipped = 0
        for geometry, tags in lines:
            gradient = gradient_fn(geometry) if gradient_fn is not None else 0.0
            try:
                segments.append(self.attribute(geometry, gradient, tags))
            except DegenerateSegmentError as e:
                logger.debug(f"Skipping segment: {e}")
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} degenerate segments")
        return segments

    def attribute_frame(self, lines: gpd.GeoDataFrame,
                        gradient_fn: Optional[GradientFn] = None,
                        gradient_column: Optional[str] = None) -> List[Segment]:
        """Attribute every row of a normalized GeoDataFrame.

        The gradient comes from ``gradient_column`` when given, otherwise from
        ``gradient_fn(geometry)``, otherwise the segment is treated as flat.
        """
        geometry_name = lines.geometry.name
        tag_columns = [c for c in lines.columns if c not in (geometry_name, gradient_column)]

        def _rows():
            for _, row in lines.iterrows():
                yield row[geometry_name], {c: row[c] for c in tag_columns}

        if gradient_column is not None:
            gradients = iter(lines[gradient_column].tolist())
            segments = self.attribute_many(_rows(), gradient_fn=lambda _: next(gradients))
        else:
            segments = self.attribute_many(_rows(), gradient_fn=gradient_fn)

        logger.info(f"Attributed {len(segments)} of {len(lines)} segments")
        return segments
