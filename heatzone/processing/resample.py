"""Resampling of band grids to an analysis scale."""
import math
import warnings

import numpy as np
from affine import Affine
from rasterio.warp import Resampling, reproject

from heatzone.errors import InvalidConfiguration

_INTEGER_TOLERANCE = 1e-6


def block_mean(grid, factor):
    """
    Area-weighted aggregation by non-overlapping ``factor x factor`` blocks.

    NaN pixels are ignored; a block with no valid pixel is NaN. Partial blocks
    at the right/bottom edges average the pixels they contain.
    """
    height, width = grid.shape
    out_h = math.ceil(height / factor)
    out_w = math.ceil(width / factor)
    padded = np.full((out_h * factor, out_w * factor), np.nan, dtype=np.float64)
    padded[:height, :width] = grid
    blocks = padded.reshape(out_h, factor, out_w, factor)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanmean(blocks, axis=(1, 3))


def resample_grid(grid, transform, crs, scale):
    """
    Bring a grid to a pixel size of ``scale`` CRS units.

    - ``scale`` at or below the native pixel size keeps the native grid.
    - An integer multiple of the native size uses ``block_mean``.
    - Any other coarser scale uses GDAL average resampling, weighting partially
      covered source pixels by their overlap.

    Coarse cells are aggregated before any region mask is applied, and a region
    later keeps the cells whose centre falls inside it. A cell can therefore mix
    in pixels from outside the region, and region edges that do not hold a cell
    centre are dropped. Zonal means at coarse scales follow the coarse grid, not
    the native in-region pixel mean.

    Args:
        grid: 2D float grid, NaN for no-data
        transform: Affine transform of ``grid``
        crs: CRS of ``grid``
        scale: Target pixel size

    Returns:
        tuple: (grid, transform)
    """
    if scale is None:
        return grid, transform
    if scale <= 0:
        raise InvalidConfiguration(f"Analysis scale must be positive, got {scale}")

    native = abs(transform.a)
    if scale <= native * (1 + _INTEGER_TOLERANCE):
        return grid, transform

    ratio = scale / native
    factor = round(ratio)
    if abs(ratio - factor) < _INTEGER_TOLERANCE:
        out_transform = transform * Affine.scale(factor, factor)
        return block_mean(grid, factor), out_transform

    height, width = grid.shape
    out_transform = transform * Affine.scale(ratio, ratio)
    out_shape = (max(1, math.ceil(height / ratio)), max(1, math.ceil(width / ratio)))
    destination = np.full(out_shape, np.nan, dtype=np.float64)
    reproject(
        source=np.ascontiguousarray(grid, dtype=np.float64),
        destination=destination,
        src_transform=transform,
        src_crs=crs,
        src_nodata=np.nan,
        dst_transform=out_transform,
        dst_crs=crs,
        dst_nodata=np.nan,
        resampling=Resampling.average,
    )
    return destination, out_transform


def warp_to_grid(grid, transform, crs, dst_transform, dst_shape, dst_crs):
    """
    Nearest-neighbour warp of a grid onto another grid.

    Destination pixels not covered by the source are NaN.

    Returns:
        np.ndarray of float64 with shape ``dst_shape``
    """
    destination = np.full(dst_shape, np.nan, dtype=np.float64)
    reproject(
        source=np.ascontiguousarray(grid, dtype=np.float64),
        destination=destination,
        src_transform=transform,
        src_crs=crs,
        src_nodata=np.nan,
        dst_transform=dst_transform,
        dst_crs=dst_crs,
        dst_nodata=np.nan,
        resampling=Resampling.nearest,
    )
    return destination
