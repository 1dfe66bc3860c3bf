"""Derived bands: NDVI and land surface temperature."""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from heatzone.config import config

logger = logging.getLogger(__name__)

NDVI_BAND = "NDVI"
LST_BAND = "LST"

# default for raw_nodata: read from config (an explicit None disables masking)
_FROM_CONFIG = object()


def mask_raw_nodata(grid, raw_nodata=None):
    """Replace raw fill values with NaN."""
    grid = np.asarray(grid, dtype=np.float64)
    if raw_nodata is None:
        return grid
    return np.where(grid == raw_nodata, np.nan, grid)


def compute_ndvi(nir, red, scale=100.0, raw_nodata=None):
    """
    Normalized difference vegetation index, scaled.

    ``(NIR - RED) / (NIR + RED) * scale``; pixels where ``NIR + RED == 0`` (or
    either input is no-data) are NaN.

    Args:
        nir: Near-infrared grid
        red: Red grid
        scale: Multiplier applied to the index (100 maps [-1, 1] to [-100, 100])
        raw_nodata: Raw fill value to treat as no-data

    Returns:
        np.ndarray of float64
    """
    nir = mask_raw_nodata(nir, raw_nodata)
    red = mask_raw_nodata(red, raw_nodata)
    denominator = nir + red
    ndvi = np.full(np.broadcast(nir, red).shape, np.nan, dtype=np.float64)
    valid = np.isfinite(denominator) & (denominator != 0)
    np.divide(nir - red, denominator, out=ndvi, where=valid)
    return ndvi * scale


def compute_lst(thermal, multiplier=0.00341802, offset=149.0, kelvin_offset=273.0, raw_nodata=None):
    """
    Land surface temperature in Celsius from a raw thermal digital number.

    ``DN * multiplier + offset`` gives Kelvin; ``kelvin_offset`` (273, not
    273.15) converts to Celsius.

    Args:
        thermal: Raw thermal grid
        multiplier: Radiometric scale factor
        offset: Radiometric offset in Kelvin
        kelvin_offset: Subtracted to convert Kelvin to Celsius
        raw_nodata: Raw fill value to treat as no-data

    Returns:
        np.ndarray of float64
    """
    thermal = mask_raw_nodata(thermal, raw_nodata)
    return (thermal * multiplier + offset) - kelvin_offset


class BandDeriver:
    """Appends NDVI and LST to scenes using a configurable band mapping."""

    def __init__(
        self,
        band_map=None,
        ndvi_scale=None,
        lst_multiplier=None,
        lst_offset=None,
        kelvin_offset=None,
        raw_nodata=_FROM_CONFIG,
        max_workers=None,
        cfg=None,
    ):
        cfg = cfg or config
        self.band_map = dict(band_map or cfg.band_map)
        self.ndvi_scale = cfg.ndvi_scale if ndvi_scale is None else ndvi_scale
        self.lst_multiplier = cfg.lst_multiplier if lst_multiplier is None else lst_multiplier
        self.lst_offset = cfg.lst_offset if lst_offset is None else lst_offset
        self.kelvin_offset = cfg.kelvin_offset if kelvin_offset is None else kelvin_offset
        self.raw_nodata = cfg.raw_nodata if raw_nodata is _FROM_CONFIG else raw_nodata
        self.max_workers = max_workers or cfg.max_workers

    @property
    def source_bands(self):
        return (self.band_map["nir"], self.band_map["red"], self.band_map["thermal"])

    def derive_scene(self, scene):
        """Return a copy of ``scene`` carrying NDVI and LST bands."""
        ndvi = compute_ndvi(
            scene.band(self.band_map["nir"]),
            scene.band(self.band_map["red"]),
            scale=self.ndvi_scale,
            raw_nodata=self.raw_nodata,
        )
        lst = compute_lst(
            scene.band(self.band_map["thermal"]),
            multiplier=self.lst_multiplier,
            offset=self.lst_offset,
            kelvin_offset=self.kelvin_offset,
            raw_nodata=self.raw_nodata,
        )
        return scene.with_bands(**{NDVI_BAND: ndvi, LST_BAND: lst})

    def derive_collection(self, collection):
        """
        Derive NDVI and LST for every scene, in parallel.

        Band references are checked for the whole collection before any pixel is
        computed.

        Returns:
            New SceneCollection in the same order
        """
        collection.require_bands(*self.source_bands)
        if not collection:
            return collection

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            derived = list(executor.map(self.derive_scene, collection))

        logger.info("Derived %s and %s for %d scenes", NDVI_BAND, LST_BAND, len(derived))
        return type(collection)(derived)
