"""Exception types raised by heatzone.

Empty collections, all-no-data series and undefined per-scene statistics are
valid results and are never signalled through exceptions.
"""


class HeatzoneError(Exception):
    """Base class for all heatzone errors."""


class ArchiveUnavailable(HeatzoneError):
    """The scene archive could not be reached after the retry budget was spent."""


class InvalidBandReference(HeatzoneError):
    """A requested band is absent from the scene band schema."""

    def __init__(self, band, available=None, scene_id=None):
        self.band = band
        self.available = sorted(available or [])
        self.scene_id = scene_id
        where = f" in scene {scene_id}" if scene_id else ""
        super().__init__(
            f"Band '{band}' not found{where}; available bands: {', '.join(self.available) or 'none'}"
        )


class RegionGeometryInvalid(HeatzoneError):
    """A region polygon is empty, degenerate or self-intersecting."""


class InvalidConfiguration(HeatzoneError):
    """A configuration value (dates, thresholds, scales) is unusable."""


class SceneGridMismatch(HeatzoneError):
    """Bands of one scene are not on the same pixel grid."""
