"""Data models for analysis results."""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

import numpy as np
from affine import Affine


@dataclass(frozen=True)
class TimeSeriesEntry:
    """One (timestamp, value) pair; ``value`` is None for no-data."""

    timestamp: datetime
    value: Optional[float] = None
    scene_id: Optional[str] = None

    @property
    def is_nodata(self):
        return self.value is None


def as_entry_value(value):
    """Map NaN/inf (and None) to the no-data marker, everything else to float."""
    if value is None:
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


@dataclass(frozen=True)
class TimeSeries:
    """Time-ordered zonal statistic for one region.

    There is exactly one entry per scene of the source collection.
    """

    region: str
    statistic: str
    bands: Tuple[str, ...]
    scale: float
    entries: Tuple[TimeSeriesEntry, ...] = field(default_factory=tuple)

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, index):
        return self.entries[index]

    @property
    def name(self):
        return f"{self.region}:{self.statistic}:{'/'.join(self.bands)}"

    @property
    def timestamps(self):
        return [entry.timestamp for entry in self.entries]

    @property
    def values(self):
        return [entry.value for entry in self.entries]

    def valid(self):
        """Entries that carry a value."""
        return [entry for entry in self.entries if not entry.is_nodata]

    @property
    def nodata_count(self):
        return sum(1 for entry in self.entries if entry.is_nodata)

    def to_records(self):
        return [
            {
                "region": self.region,
                "statistic": self.statistic,
                "bands": "/".join(self.bands),
                "scale": self.scale,
                "timestamp": entry.timestamp.isoformat(),
                "scene_id": entry.scene_id,
                "value": entry.value,
            }
            for entry in self.entries
        ]

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            "region": self.region,
            "statistic": self.statistic,
            "bands": list(self.bands),
            "scale": self.scale,
            "entries": [
                {"timestamp": e.timestamp.isoformat(), "scene_id": e.scene_id, "value": e.value}
                for e in self.entries
            ],
        }


@dataclass(frozen=True, eq=False)
class CompositeRaster:
    """Single-band per-pixel median composite; NaN marks no-data."""

    band: str
    data: np.ndarray
    transform: Affine
    crs: Optional[str] = None
    region: Optional[str] = None
    scene_count: int = 0

    @property
    def shape(self):
        return self.data.shape

    @property
    def valid_mask(self):
        return np.isfinite(self.data)

    def stats(self):
        """Summary statistics over valid pixels (None when there are none)."""
        valid = self.data[self.valid_mask]
        if valid.size == 0:
            return {"min": None, "max": None, "mean": None, "valid_pixels": 0}
        return {
            "min": float(valid.min()),
            "max": float(valid.max()),
            "mean": float(valid.mean()),
            "valid_pixels": int(valid.size),
        }
