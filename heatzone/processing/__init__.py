"""Raster processing stages: filter, derive, composite, zonal statistics."""

from heatzone.processing.filter import filter_scenes
from heatzone.processing.bands import BandDeriver, compute_lst, compute_ndvi, LST_BAND, NDVI_BAND
from heatzone.processing.composite import build_composite, build_composites
from heatzone.processing.zonal import ZonalAggregator, extract_zone_pixels
from heatzone.processing.correlation import ZonalCorrelation, pearson

__all__ = [
    "filter_scenes",
    "BandDeriver",
    "compute_lst",
    "compute_ndvi",
    "LST_BAND",
    "NDVI_BAND",
    "build_composite",
    "build_composites",
    "ZonalAggregator",
    "extract_zone_pixels",
    "ZonalCorrelation",
    "pearson",
]
