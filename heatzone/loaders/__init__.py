"""Scene loading from archive clients."""

from heatzone.loaders.parallel import ParallelSceneLoader

__all__ = ["ParallelSceneLoader"]
