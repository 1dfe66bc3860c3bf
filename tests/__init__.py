from datetime import datetime, timedelta, timezone

import numpy as np
from affine import Affine
from shapely.geometry import box

from heatzone.config import Config
from heatzone.models import RasterScene, Region, SceneCollection

CRS = "EPSG:32616"
ORIGIN_X = 500000.0
ORIGIN_Y = 3740000.0
PIXEL = 30.0
TRANSFORM = Affine(PIXEL, 0.0, ORIGIN_X, 0.0, -PIXEL, ORIGIN_Y)
T0 = datetime(2015, 6, 1, 16, 0, tzinfo=timezone.utc)


def build_config(**overrides):
    """Bundled config with fast, deterministic settings for tests."""
    sections = {
        "processing": {"max_workers": 2},
        "archive": {"retry_attempts": 3, "retry_min_wait": 0, "retry_max_wait": 0},
    }
    for section, values in overrides.items():
        sections.setdefault(section, {}).update(values)
    return Config.from_dict(sections)


def grid_box(col0, row0, col1, row1, transform=TRANSFORM):
    """Polygon covering pixel columns [col0, col1) and rows [row0, row1)."""
    x0, y0 = transform * (col0, row0)
    x1, y1 = transform * (col1, row1)
    return box(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))


def make_region(name="study", cols=(0, 4), rows=(0, 4), transform=TRANSFORM):
    return Region(name, grid_box(cols[0], rows[0], cols[1], rows[1], transform), CRS)


def make_scene(scene_id, days=0, cloud_cover=5.0, transform=TRANSFORM, **bands):
    """Scene on the test grid; bands default to a 4x4 Landsat-like raw schema."""
    if not bands:
        bands = {
            "SR_B5": np.full((4, 4), 20000.0),
            "SR_B4": np.full((4, 4), 10000.0),
            "ST_B10": np.full((4, 4), 30000.0),
        }
    return RasterScene(
        scene_id=scene_id,
        acquired=T0 + timedelta(days=days),
        cloud_cover=cloud_cover,
        bands=bands,
        transform=transform,
        crs=CRS,
    )


def make_collection(*scenes):
    return SceneCollection(scenes)

