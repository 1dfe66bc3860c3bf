"""Geometry utilities for region handling and pixel masking."""
import math
import re

import geopandas as gpd
import numpy as np
from affine import Affine
from pyproj import CRS
from rasterio.features import geometry_mask
from rasterio.windows import Window, from_bounds
from shapely.geometry import box, mapping, shape
from shapely.validation import explain_validity

from heatzone.errors import RegionGeometryInvalid


def normalize_region_name(raw_name):
    """
    Normalize a zone name into a lowercase snake_case key.

    Args:
        raw_name: Raw zone name, e.g. "Bare Soil" or "resArea"

    Returns:
        Normalized name
    """
    cleaned = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", str(raw_name).strip())
    cleaned = re.sub(r"[^0-9a-zA-Z]+", "_", cleaned)
    return cleaned.strip("_").lower()


def ensure_polygonal(geom, name="region"):
    """
    Check that a geometry is a usable, non-degenerate polygon.

    Args:
        geom: shapely geometry or GeoJSON mapping
        name: Name used in error messages

    Returns:
        shapely geometry
    """
    if isinstance(geom, dict):
        try:
            geom = shape(geom)
        except (ValueError, KeyError, TypeError) as e:
            raise RegionGeometryInvalid(f"{name}: cannot parse geometry ({e})")

    if geom is None or geom.is_empty:
        raise RegionGeometryInvalid(f"{name}: geometry is empty")
    if geom.geom_type not in ("Polygon", "MultiPolygon"):
        raise RegionGeometryInvalid(f"{name}: expected a polygon, got {geom.geom_type}")
    if not geom.is_valid:
        raise RegionGeometryInvalid(f"{name}: {explain_validity(geom)}")
    if geom.area <= 0:
        raise RegionGeometryInvalid(f"{name}: polygon has zero area")
    return geom


def reproject_geometry(geom, src_crs, dst_crs):
    """Reproject a shapely geometry between coordinate reference systems."""
    if src_crs is None or dst_crs is None:
        return geom
    if CRS.from_user_input(src_crs) == CRS.from_user_input(dst_crs):
        return geom
    return gpd.GeoSeries([geom], crs=src_crs).to_crs(dst_crs).iloc[0]


def load_geojson(geojson_path, crs=None):
    """
    Load a GeoJSON (or any OGR vector file) as a GeoDataFrame.

    Args:
        geojson_path: Path to the vector file
        crs: Target CRS; features are reprojected when given

    Returns:
        GeoDataFrame
    """
    gdf = gpd.read_file(geojson_path)
    if gdf.crs is None:
        gdf = gdf.set_crs(epsg=4326)
    if crs is not None:
        gdf = gdf.to_crs(crs)
    return gdf


def area_sqkm(geom, crs):
    """Area of a geometry in square kilometres using an equal-area CRS."""
    series = gpd.GeoSeries([geom], crs=crs).to_crs(epsg=6933)  # World Cylindrical Equal Area
    return float(series.area.sum() / 1e6)


def raster_footprint(transform, shape_hw):
    """Bounding polygon of a raster grid."""
    height, width = shape_hw
    x0, y0 = transform * (0, 0)
    x1, y1 = transform * (width, height)
    return box(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))


def calculate_coverage(footprint, region_geom):
    """
    Calculate how much of a region is covered by a scene footprint.

    Returns:
        Coverage percentage (0-100)
    """
    intersect_area = footprint.intersection(region_geom).area
    return (intersect_area / region_geom.area) * 100


def region_mask(geom, shape_hw, transform):
    """
    Boolean mask of pixels whose centre falls inside the geometry.

    Args:
        geom: shapely geometry in the raster CRS
        shape_hw: (height, width) of the raster
        transform: Affine transform of the raster

    Returns:
        np.ndarray of bool, True inside the geometry
    """
    if geom.is_empty or not raster_footprint(transform, shape_hw).intersects(geom):
        return np.zeros(shape_hw, dtype=bool)
    return geometry_mask([mapping(geom)], out_shape=shape_hw, transform=transform, invert=True)


def bounds_window(bounds, transform, shape_hw=None):
    """
    Pixel window covering ``bounds``.

    Args:
        bounds: (minx, miny, maxx, maxy) in the raster CRS
        transform: Affine transform of the raster
        shape_hw: (height, width) of the raster; when given the window is
            limited to the grid, otherwise it may extend past it

    Returns:
        rasterio Window with integer offsets, or None when disjoint
    """
    window = from_bounds(*bounds, transform=transform)
    row_start = math.floor(round(window.row_off, 6))
    col_start = math.floor(round(window.col_off, 6))
    row_stop = math.ceil(round(window.row_off + window.height, 6))
    col_stop = math.ceil(round(window.col_off + window.width, 6))
    if shape_hw is not None:
        height, width = shape_hw
        row_start, col_start = max(0, row_start), max(0, col_start)
        row_stop, col_stop = min(height, row_stop), min(width, col_stop)
    if row_stop <= row_start or col_stop <= col_start:
        return None
    return Window(col_start, row_start, col_stop - col_start, row_stop - row_start)


def snapped_grid(bounds, resolution):
    """
    North-up grid covering ``bounds`` with edges on multiples of ``resolution``.

    Returns:
        tuple: (Affine transform, (height, width))
    """
    minx, miny, maxx, maxy = bounds
    x0 = math.floor(round(minx / resolution, 6)) * resolution
    y1 = math.ceil(round(maxy / resolution, 6)) * resolution
    width = max(1, math.ceil(round((maxx - x0) / resolution, 6)))
    height = max(1, math.ceil(round((y1 - miny) / resolution, 6)))
    return Affine(resolution, 0.0, x0, 0.0, -resolution, y1), (height, width)


def projected_crs(geom, crs):
    """
    CRS to lay a pixel grid over ``geom``.

    Projected CRSs are kept; geographic ones are replaced by the UTM zone of the geometry.
    """
    crs = crs or "EPSG:4326"
    if CRS.from_user_input(crs).is_projected:
        return crs
    return gpd.GeoSeries([geom], crs=crs).estimate_utm_crs().to_string()
