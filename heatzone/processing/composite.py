"""Per-pixel median composites clipped to a region."""
import logging
import warnings

import numpy as np
from rasterio.windows import transform as window_transform

from heatzone.models.series import CompositeRaster
from heatzone.processing.resample import warp_to_grid
from heatzone.utils.geometry import bounds_window, region_mask

logger = logging.getLogger(__name__)


def nan_median(stack):
    """
    Median along the first axis, ignoring NaN.

    Even counts take the mean of the two central values; pixels with no valid
    value are NaN.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanmedian(stack, axis=0)


def _aligned_stack(collection, band, local):
    """Band stack for scenes sharing one grid, cropped to the region window."""
    first = collection[0]
    window = bounds_window(local.geometry.bounds, first.transform, first.shape)
    if window is None:
        return None, first.transform

    row_off, col_off = int(window.row_off), int(window.col_off)
    rows = slice(row_off, row_off + int(window.height))
    cols = slice(col_off, col_off + int(window.width))
    stack = np.stack([scene.band(band)[rows, cols] for scene in collection])
    return stack, window_transform(window, first.transform)


def _mosaic_stack(collection, band, region, local):
    """Band stack for scenes on differing grids, warped onto the first scene's pixel lattice."""
    first = collection[0]
    if not any(s.footprint.intersects(region.to_crs(s.crs).geometry) for s in collection):
        return None, first.transform

    window = bounds_window(local.geometry.bounds, first.transform)
    out_transform = window_transform(window, first.transform)
    out_shape = (int(window.height), int(window.width))
    stack = np.stack(
        [
            warp_to_grid(
                scene.band(band), scene.transform, scene.crs, out_transform, out_shape, first.crs
            )
            for scene in collection
        ]
    )
    return stack, out_transform


def build_composite(collection, region, band):
    """
    Median composite of one band, cropped to the region.

    Scenes on differing grids (partial coverage, other path/row) are warped
    onto the pixel lattice of the first scene; pixels a scene does not cover
    do not contribute.

    Args:
        collection: Derived SceneCollection
        region: Region to clip to
        band: Band name

    Returns:
        CompositeRaster, or None for an empty collection
    """
    if not collection:
        return None
    collection.require_bands(band)

    first = collection[0]
    local = region.to_crs(first.crs)
    if all(scene.same_grid(first) for scene in collection):
        stack, out_transform = _aligned_stack(collection, band, local)
    else:
        logger.debug("Scenes for %s span several grids; mosaicking %s", region.name, band)
        stack, out_transform = _mosaic_stack(collection, band, region, local)

    if stack is None:
        logger.warning("Region %s does not overlap the scene grid", region.name)
        return CompositeRaster(
            band, np.full((0, 0), np.nan), first.transform, first.crs, region.name, len(collection)
        )

    median = nan_median(stack)
    inside = region_mask(local.geometry, median.shape, out_transform)
    median = np.where(inside, median, np.nan)

    return CompositeRaster(band, median, out_transform, first.crs, region.name, len(collection))


def build_composites(collection, region, bands):
    """
    Median composites for several bands.

    Returns:
        dict of band name -> CompositeRaster (empty for an empty collection)
    """
    if not collection:
        logger.warning("No scenes to composite for %s", region.name)
        return {}

    collection.require_bands(*bands)
    composites = {band: build_composite(collection, region, band) for band in bands}
    logger.info(
        "Built %d composites for %s from %d scenes", len(composites), region.name, len(collection)
    )
    return composites
