"""Parallel scene loading using ThreadPoolExecutor."""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from heatzone.config import config
from heatzone.errors import ArchiveUnavailable
from heatzone.models.collection import SceneCollection

logger = logging.getLogger(__name__)


class ParallelSceneLoader:
    """Materialize archive items into a SceneCollection using threads."""

    def __init__(self, archive, max_workers=None):
        """
        Initialize parallel loader.

        Args:
            archive: ArchiveClient used to read each item
            max_workers: Max number of concurrent reads (default from config)
        """
        self.archive = archive
        self.max_workers = max_workers or config.max_workers

    def _load_single(self, index, item, region):
        """
        Load a single item (worker function).

        Returns:
            tuple: (index, scene)
        """
        return index, self.archive.load_scene(item, region=region)

    def iter_load(self, items, region=None):
        """
        Load items in parallel.

        Args:
            items: Archive items from ``ArchiveClient.search``
            region: Optional region limiting the pixels read

        Yields:
            Tuples of (index, scene, error) as loads complete
        """
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._load_single, index, item, region): index
                for index, item in enumerate(items)
            }

            for future in as_completed(futures):
                index = futures[future]
                try:
                    _, scene = future.result()
                    yield index, scene, None
                except ArchiveUnavailable as e:
                    yield index, None, e

    def load(self, items, region=None):
        """
        Load every item; any failed item fails the whole batch.

        Scenes are never dropped silently, so the collection always matches
        the archive query one-to-one.

        Returns:
            SceneCollection
        """
        items = list(items)
        scenes = [None] * len(items)
        failures = []

        for index, scene, error in self.iter_load(items, region):
            if error is not None:
                logger.error("Failed to load item %d: %s", index, error)
                failures.append((index, error))
            else:
                scenes[index] = scene

        if failures:
            raise ArchiveUnavailable(
                f"{len(failures)} of {len(items)} scenes could not be loaded; "
                f"first error: {failures[0][1]}"
            )

        logger.info("Loaded %d scenes", len(scenes))
        return SceneCollection(scenes)
