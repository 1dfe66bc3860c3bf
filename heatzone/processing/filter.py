"""Scene selection by footprint, acquisition date and cloud cover."""
import logging

from heatzone.errors import InvalidConfiguration
from heatzone.utils.dates import validate_date_range

logger = logging.getLogger(__name__)


def scene_matches(scene, region, start, end, max_cloud_cover):
    """True if the scene intersects the region, falls in [start, end) and is clear enough."""
    if not start <= scene.acquired < end:
        return False
    if not scene.cloud_cover < max_cloud_cover:
        return False
    local = region.to_crs(scene.crs)
    return scene.footprint.intersects(local.geometry)


def filter_scenes(collection, region, start, end, max_cloud_cover):
    """
    Select the scenes usable for a study.

    Args:
        collection: SceneCollection to filter
        region: Region the scenes must intersect
        start: Start of the acquisition window (inclusive)
        end: End of the acquisition window (exclusive)
        max_cloud_cover: Cloud cover percentage; scenes must be strictly below it

    Returns:
        New SceneCollection in ascending acquisition order (possibly empty)
    """
    start_dt, end_dt = validate_date_range(start, end)
    if not 0 <= max_cloud_cover <= 100:
        raise InvalidConfiguration(f"max_cloud_cover must be within [0, 100], got {max_cloud_cover}")

    selected = collection.filter(
        lambda scene: scene_matches(scene, region, start_dt, end_dt, max_cloud_cover)
    )

    if not selected:
        logger.warning(
            "No scenes matched %s between %s and %s with cloud cover < %s%%",
            region.name,
            start_dt.date(),
            end_dt.date(),
            max_cloud_cover,
        )
    else:
        logger.info("Selected %d of %d scenes for %s", len(selected), len(collection), region.name)
    return selected
