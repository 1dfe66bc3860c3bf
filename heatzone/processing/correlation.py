"""Per-scene spatial Pearson correlation between two bands inside a region."""
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from heatzone.config import config
from heatzone.models.series import TimeSeries, TimeSeriesEntry, as_entry_value
from heatzone.processing.zonal import extract_zone_pixels

logger = logging.getLogger(__name__)

MIN_PAIRS = 2


def pearson(x, y):
    """
    Pearson correlation coefficient across paired samples.

    Pairs where either value is NaN are dropped. Returns None when fewer than
    two pairs remain or either variable has zero variance.

    Args:
        x: 1D array-like
        y: 1D array-like of the same length

    Returns:
        float in [-1, 1] or None
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.shape != y.shape:
        raise ValueError(f"Sample shapes differ: {x.shape} vs {y.shape}")

    valid = np.isfinite(x) & np.isfinite(y)
    x = x[valid]
    y = y[valid]
    if x.size < MIN_PAIRS:
        return None

    # constant samples have zero variance even when the mean rounds
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return None

    dx = x - x.mean()
    dy = y - y.mean()
    sxx = np.dot(dx, dx)
    syy = np.dot(dy, dy)
    if sxx == 0 or syy == 0:
        return None

    r = np.dot(dx, dy) / np.sqrt(sxx * syy)
    return as_entry_value(np.clip(r, -1.0, 1.0))


class ZonalCorrelation:
    """Spatial correlation per date: one coefficient per scene, across its pixels."""

    statistic = "pearson"

    def __init__(self, scale=None, max_workers=None, cfg=None):
        cfg = cfg or config
        self.scale = cfg.correlation_scale if scale is None else scale
        self.max_workers = max_workers or cfg.max_workers

    def scene_correlation(self, scene, region, band_x, band_y, scale=None):
        scale = self.scale if scale is None else scale
        pixels = extract_zone_pixels(scene, region, (band_x, band_y), scale)
        return pearson(pixels[band_x], pixels[band_y])

    def correlation_series(self, collection, region, band_x, band_y, scale=None):
        """
        Correlation time series between two bands over a region.

        Args:
            collection: Derived SceneCollection (read-only)
            region: Region whose pixels form the samples
            band_x: First band name
            band_y: Second band name
            scale: Analysis pixel size (defaults to the configured correlation scale)

        Returns:
            TimeSeries with len(collection) entries; undefined coefficients are None
        """
        scale = self.scale if scale is None else scale
        collection.require_bands(band_x, band_y)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            values = list(
                executor.map(
                    lambda s: self.scene_correlation(s, region, band_x, band_y, scale), collection
                )
            )

        entries = tuple(
            TimeSeriesEntry(scene.acquired, value, scene.scene_id)
            for scene, value in zip(collection, values)
        )
        series = TimeSeries(region.name, self.statistic, (band_x, band_y), scale, entries)
        logger.debug(
            "%s correlation %s/%s: %d entries, %d undefined",
            region.name,
            band_x,
            band_y,
            len(entries),
            series.nodata_count,
        )
        return series
