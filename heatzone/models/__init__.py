"""Data models."""

from heatzone.models.scene import RasterScene
from heatzone.models.collection import SceneCollection
from heatzone.models.region import LAND_COVER_ZONES, Region, RegionRegistry
from heatzone.models.series import CompositeRaster, TimeSeries, TimeSeriesEntry

__all__ = [
    "RasterScene",
    "SceneCollection",
    "LAND_COVER_ZONES",
    "Region",
    "RegionRegistry",
    "CompositeRaster",
    "TimeSeries",
    "TimeSeriesEntry",
]
