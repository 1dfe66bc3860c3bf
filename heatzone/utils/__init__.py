"""Utility functions."""

from heatzone.utils.geometry import (
    normalize_region_name,
    ensure_polygonal,
    reproject_geometry,
    load_geojson,
    area_sqkm,
    raster_footprint,
    calculate_coverage,
    region_mask,
    bounds_window,
    snapped_grid,
    projected_crs,
)
from heatzone.utils.dates import (
    parse_date,
    validate_date_range,
    subdivide_date_range,
    to_stac_interval,
)

__all__ = [
    "normalize_region_name",
    "ensure_polygonal",
    "reproject_geometry",
    "load_geojson",
    "area_sqkm",
    "raster_footprint",
    "calculate_coverage",
    "region_mask",
    "bounds_window",
    "snapped_grid",
    "projected_crs",
    "parse_date",
    "validate_date_range",
    "subdivide_date_range",
    "to_stac_interval",
]
