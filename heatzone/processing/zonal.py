"""Zonal mean time series over a scene collection."""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from heatzone.config import config
from heatzone.models.series import TimeSeries, TimeSeriesEntry, as_entry_value
from heatzone.processing.resample import resample_grid
from heatzone.utils.geometry import region_mask

logger = logging.getLogger(__name__)


def extract_zone_pixels(scene, region, bands, scale):
    """
    Pixel values of ``bands`` inside ``region`` at the analysis scale.

    Every returned array is indexed by the same in-region pixels, so values at
    one index belong to one location. No-data pixels are kept as NaN.

    Args:
        scene: RasterScene
        region: Region (reprojected to the scene CRS if needed)
        bands: Band names to extract
        scale: Analysis pixel size in CRS units

    Returns:
        dict of band name -> 1D np.ndarray (empty arrays outside coverage)
    """
    local = region.to_crs(scene.crs)
    if not scene.footprint.intersects(local.geometry):
        return {band: np.empty(0) for band in bands}

    pixels = {}
    mask = None
    for band in bands:
        grid, transform = resample_grid(scene.band(band), scene.transform, scene.crs, scale)
        if mask is None:
            mask = region_mask(local.geometry, grid.shape, transform)
        pixels[band] = grid[mask]
    return pixels


def zonal_mean(values):
    """Unweighted mean of the finite values, None when there are none."""
    valid = values[np.isfinite(values)]
    if valid.size == 0:
        return None
    return as_entry_value(valid.mean())


class ZonalAggregator:
    """Spatial mean per scene for a region, one entry per scene."""

    statistic = "mean"

    def __init__(self, scale=None, max_workers=None, cfg=None):
        cfg = cfg or config
        self.scale = cfg.mean_scale if scale is None else scale
        self.max_workers = max_workers or cfg.max_workers

    def _scene_means(self, scene, region, bands, scale):
        pixels = extract_zone_pixels(scene, region, bands, scale)
        return {band: zonal_mean(pixels[band]) for band in bands}

    def mean_series_many(self, collection, region, bands, scale=None):
        """
        Mean time series for several bands extracted jointly.

        Args:
            collection: Derived SceneCollection (read-only)
            region: Region to reduce over
            bands: Band names
            scale: Analysis pixel size (defaults to the configured mean scale)

        Returns:
            dict of band name -> TimeSeries, each with len(collection) entries
        """
        bands = tuple(bands)
        scale = self.scale if scale is None else scale
        collection.require_bands(*bands)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            per_scene = list(
                executor.map(lambda s: self._scene_means(s, region, bands, scale), collection)
            )

        series = {}
        for band in bands:
            entries = tuple(
                TimeSeriesEntry(scene.acquired, means[band], scene.scene_id)
                for scene, means in zip(collection, per_scene)
            )
            series[band] = TimeSeries(region.name, self.statistic, (band,), scale, entries)
            logger.debug(
                "%s mean of %s: %d entries, %d no-data",
                region.name,
                band,
                len(entries),
                series[band].nodata_count,
            )
        return series

    def mean_series(self, collection, region, band, scale=None):
        """Mean time series for a single band."""
        return self.mean_series_many(collection, region, (band,), scale)[band]
