"""Ordered, immutable scene collections."""
from typing import Iterable, Tuple

from heatzone.errors import InvalidBandReference
from heatzone.models.scene import RasterScene


class SceneCollection:
    """Scenes ordered by capture timestamp (ties broken by scene id).

    Collections are never modified in place; ``filter`` and ``map`` build new ones.
    """

    def __init__(self, scenes: Iterable[RasterScene] = ()):
        self._scenes: Tuple[RasterScene, ...] = tuple(
            sorted(scenes, key=lambda s: (s.acquired, s.scene_id))
        )

    def __len__(self):
        return len(self._scenes)

    def __iter__(self):
        return iter(self._scenes)

    def __getitem__(self, index):
        return self._scenes[index]

    def __bool__(self):
        return bool(self._scenes)

    def __repr__(self):
        if not self._scenes:
            return "SceneCollection(size=0)"
        return (
            f"SceneCollection(size={len(self)}, "
            f"first={self._scenes[0].date_str}, last={self._scenes[-1].date_str})"
        )

    @property
    def scenes(self):
        return self._scenes

    @property
    def timestamps(self):
        return [scene.acquired for scene in self._scenes]

    @property
    def identity(self):
        """Ordered scene ids; equal identities mean equal collections of scenes."""
        return tuple(scene.scene_id for scene in self._scenes)

    @property
    def band_names(self):
        """Bands present in every scene of the collection."""
        if not self._scenes:
            return ()
        common = set(self._scenes[0].band_names)
        for scene in self._scenes[1:]:
            common &= set(scene.band_names)
        return tuple(name for name in self._scenes[0].band_names if name in common)

    def filter(self, predicate):
        return SceneCollection(scene for scene in self._scenes if predicate(scene))

    def map(self, func):
        return SceneCollection(func(scene) for scene in self._scenes)

    def require_bands(self, *names):
        """
        Raise InvalidBandReference unless every scene carries every named band.

        Empty collections pass; there is nothing to mis-reference.
        """
        for scene in self._scenes:
            for name in names:
                if name not in scene.bands:
                    raise InvalidBandReference(name, scene.bands, scene.scene_id)
