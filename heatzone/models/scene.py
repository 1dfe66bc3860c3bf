"""Data models for scenes."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

import numpy as np
from affine import Affine

from heatzone.errors import InvalidBandReference, SceneGridMismatch
from heatzone.utils.dates import parse_date
from heatzone.utils.geometry import raster_footprint


def _freeze(array):
    """Return a float64, read-only view of a band grid."""
    if isinstance(array, np.ndarray) and array.dtype == np.float64 and not array.flags.writeable:
        return array
    frozen = np.array(array, dtype=np.float64, copy=True)
    if frozen.ndim != 2:
        raise ValueError(f"Band grids must be 2D, got shape {frozen.shape}")
    frozen.setflags(write=False)
    return frozen


@dataclass(frozen=True, eq=False)
class RasterScene:
    """One timestamped multi-band capture on a fixed pixel grid.

    All bands share ``transform`` and ``crs``. The CRS is required so any scene
    can be resampled or warped onto another grid. Band grids are stored as read-only
    float64 arrays; NaN marks no-data.
    """

    scene_id: str
    acquired: datetime
    cloud_cover: float
    bands: Dict[str, np.ndarray]
    transform: Affine
    crs: str
    properties: dict = field(default_factory=dict)

    def __post_init__(self):
        if not self.crs:
            raise ValueError(f"Scene {self.scene_id} has no CRS; every scene must be georeferenced")
        object.__setattr__(self, "acquired", parse_date(self.acquired))
        object.__setattr__(self, "cloud_cover", float(self.cloud_cover))
        frozen = {name: _freeze(grid) for name, grid in self.bands.items()}
        shapes = {grid.shape for grid in frozen.values()}
        if len(shapes) > 1:
            raise SceneGridMismatch(f"Scene {self.scene_id} has bands of differing shapes: {shapes}")
        object.__setattr__(self, "bands", frozen)

    @property
    def date_str(self):
        """Get date as YYYY-MM-DD string."""
        return self.acquired.strftime("%Y-%m-%d")

    @property
    def band_names(self):
        return tuple(self.bands)

    @property
    def shape(self):
        """(height, width) of the pixel grid."""
        for grid in self.bands.values():
            return grid.shape
        return (0, 0)

    @property
    def resolution(self):
        """Native pixel size in CRS units (x, y)."""
        return abs(self.transform.a), abs(self.transform.e)

    @property
    def footprint(self):
        """Polygon covering the scene grid, in the scene CRS."""
        return raster_footprint(self.transform, self.shape)

    def band(self, name):
        """Get a band grid by name."""
        try:
            return self.bands[name]
        except KeyError:
            raise InvalidBandReference(name, self.bands, self.scene_id)

    def has_bands(self, *names):
        return all(name in self.bands for name in names)

    def with_bands(self, **new_bands):
        """
        Return a copy of this scene with bands added or replaced.

        Args:
            **new_bands: band name -> 2D grid, aligned with the existing bands

        Returns:
            New RasterScene; this scene is left untouched
        """
        bands = dict(self.bands)
        for name, grid in new_bands.items():
            if bands and np.shape(grid) != self.shape:
                raise SceneGridMismatch(
                    f"Band {name} has shape {np.shape(grid)}, scene {self.scene_id} is {self.shape}"
                )
            bands[name] = grid
        return RasterScene(
            scene_id=self.scene_id,
            acquired=self.acquired,
            cloud_cover=self.cloud_cover,
            bands=bands,
            transform=self.transform,
            crs=self.crs,
            properties=dict(self.properties),
        )

    def same_grid(self, other):
        return self.shape == other.shape and self.transform.almost_equals(other.transform) and (
            self.crs == other.crs
        )

    def to_dict(self):
        """Scene metadata (no pixel data) for JSON serialization."""
        return {
            "scene_id": self.scene_id,
            "acquired": self.acquired.isoformat(),
            "cloud_cover": self.cloud_cover,
            "bands": list(self.band_names),
            "shape": list(self.shape),
            "crs": self.crs,
            "transform": list(self.transform)[:6],
        }
