"""
Geometry Normalizer

Turns raw street geometries (linestrings, closed ways that arrive as polygons,
multi-part collections) into simple LineStrings clipped to an area of interest.
Each output line is one segment candidate for the attributer.
"""

import logging
from typing import List, Optional

import geopandas as gpd
import pandas as pd
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry

from .errors import ConfigurationError, InputGeometryError

logger = logging.getLogger(__name__)

_POLYGONAL = ('Polygon', 'MultiPolygon')
_LINEAR = ('LineString', 'LinearRing', 'MultiLineString')


def disc_area(center: Point, radius: float) -> BaseGeometry:
    """Circular clipping area of ``radius`` CRS units around ``center``."""
    if radius <= 0:
        raise ConfigurationError(f"radius must be positive, got {radius}")
    return center.buffer(radius)


def ensure_projected(gdf: gpd.GeoDataFrame) -> None:
    """Refuse geographic coordinates; lengths must come out in metres."""
    if gdf.crs is not None and gdf.crs.is_geographic:
        raise ConfigurationError(
            f"Expected a projected CRS in metres, got {gdf.crs.to_string()}. "
            f"Reproject with gdf.to_crs(...) before building the network."
        )


def _explode_lines(geometry: BaseGeometry) -> List[LineString]:
    """Flatten any geometry into its simple linear parts, dropping the rest."""
    if geometry is None or geometry.is_empty:
        return []
    kind = geometry.geom_type
    if kind == 'LineString':
        return [geometry]
    if kind == 'LinearRing':
        return [LineString(geometry.coords)]
    if kind in _POLYGONAL:
        return _explode_lines(geometry.boundary)
    if hasattr(geometry, 'geoms'):
        lines = []
        for part in geometry.geoms:
            lines.extend(_explode_lines(part))
        return lines
    # Points and anything else non-linear
    return []


def normalize_geometry(geometry: Optional[BaseGeometry],
                       area: Optional[BaseGeometry] = None) -> List[LineString]:
    """Normalize one raw geometry into clipped simple lines.

    Polygon rings become boundary lines, non-line geometry is discarded,
    lines are clipped to ``area`` and multi-part results are exploded.

    Raises:
        InputGeometryError: if nothing usable remains.
    """
    if geometry is None or geometry.is_empty:
        raise InputGeometryError("empty geometry")
    if not geometry.is_valid and geometry.geom_type in _POLYGONAL:
        geometry = geometry.buffer(0)

    lines = _explode_lines(geometry)
    if area is not None:
        clipped = []
        for line in lines:
            clipped.extend(_explode_lines(line.intersection(area)))
        lines = clipped

    lines = [line for line in lines if line.length > 0]
    if not lines:
        raise InputGeometryError(f"{geometry.geom_type} is empty after clipping")
    return lines


def normalize_lines(lines: gpd.GeoDataFrame,
                    area: Optional[BaseGeometry] = None) -> gpd.GeoDataFrame:
    """Normalize a GeoDataFrame of raw street geometries.

    Every attribute column of a source row is copied to each of its pieces.
    The original row label is kept in a ``source_index`` column.
    """
    ensure_projected(lines)
    logger.info(f"Normalizing {len(lines)} raw geometries")

    geometry_name = lines.geometry.name
    records = []
    dropped = 0
    for idx, row in lines.iterrows():
        try:
            pieces = normalize_geometry(row[geometry_name], area)
        except InputGeometryError as e:
            logger.debug(f"Dropping geometry {idx}: {e}")
            dropped += 1
            continue
        attrs = row.drop(labels=[geometry_name]).to_dict()
        for piece in pieces:
            records.append({**attrs, 'source_index': idx, 'geometry': piece})

    if dropped:
        logger.warning(f"Dropped {dropped} geometries that were empty or outside the area")

    if not records:
        columns = [c for c in lines.columns if c != geometry_name] + ['source_index']
        return gpd.GeoDataFrame({c: [] for c in columns},
                                geometry=gpd.GeoSeries([], crs=lines.crs))

    result = gpd.GeoDataFrame(pd.DataFrame.from_records(records), geometry='geometry', crs=lines.crs)
    logger.info(f"Normalized into {len(result)} simple line segments")
    return result


def normalize_points(points: gpd.GeoDataFrame,
                     area: Optional[BaseGeometry] = None) -> gpd.GeoDataFrame:
    """Reduce points of interest to single points inside ``area``.

    Polygon POIs (e.g. a building mapped as an area) are replaced by their
    representative point; empty geometries are dropped.
    """
    ensure_projected(points)
    result = points[~(points.geometry.isna() | points.geometry.is_empty)].copy()
    if (result.geometry.geom_type != 'Point').any():
        result[result.geometry.name] = result.geometry.apply(
            lambda g: g if g.geom_type == 'Point' else g.representative_point()
        )
    if area is not None:
        result = result[result.geometry.intersects(area)]
    logger.info(f"Kept {len(result)} of {len(points)} points of interest")
    return result
