"""Staged LST/NDVI study: filter, derive, composite and zonal statistics."""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict

from heatzone.config import config
from heatzone.loaders.parallel import ParallelSceneLoader
from heatzone.models.collection import SceneCollection
from heatzone.models.series import CompositeRaster, TimeSeries
from heatzone.processing.bands import LST_BAND, NDVI_BAND, BandDeriver
from heatzone.processing.composite import build_composites
from heatzone.processing.correlation import ZonalCorrelation
from heatzone.processing.filter import filter_scenes
from heatzone.processing.zonal import ZonalAggregator

logger = logging.getLogger(__name__)


@dataclass
class RegionAnalysis:
    """Mean and correlation series for one region."""

    region: str
    means: Dict[str, TimeSeries]
    correlation: TimeSeries

    def to_dict(self):
        return {
            "region": self.region,
            "means": {band: series.to_dict() for band, series in self.means.items()},
            "correlation": self.correlation.to_dict(),
        }


@dataclass
class AnalysisResult:
    """Everything a presentation layer needs for one study."""

    study_area: str
    collection: SceneCollection
    composites: Dict[str, CompositeRaster] = field(default_factory=dict)
    regions: Dict[str, RegionAnalysis] = field(default_factory=dict)

    @property
    def scene_count(self):
        return len(self.collection)

    def series(self):
        """All time series, study area first."""
        for analysis in self.regions.values():
            yield from analysis.means.values()
            yield analysis.correlation

    def to_dict(self):
        return {
            "study_area": self.study_area,
            "scene_count": self.scene_count,
            "scenes": [scene.to_dict() for scene in self.collection],
            "composites": {band: c.stats() for band, c in self.composites.items()},
            "regions": {name: a.to_dict() for name, a in self.regions.items()},
        }


class StudyPipeline:
    """Eager pipeline over a scene archive and a set of regions.

    Every stage consumes and returns fully materialized collections; the
    derived collection is shared read-only between concurrent region analyses.
    """

    def __init__(self, archive=None, cfg=None, deriver=None, aggregator=None, correlation=None):
        self.cfg = (cfg or config).validate()
        self.archive = archive
        self.deriver = deriver or BandDeriver(cfg=self.cfg)
        self.aggregator = aggregator or ZonalAggregator(cfg=self.cfg)
        self.correlation = correlation or ZonalCorrelation(cfg=self.cfg)
        self.max_workers = self.cfg.max_workers

    def fetch(self, study_area, start=None, end=None, max_cloud_cover=None):
        """
        Query the archive and load the matching scenes.

        Items at or above the cloud threshold are dropped on their metadata,
        before any band is read.
        """
        if self.archive is None:
            raise ValueError("No archive configured; pass a SceneCollection instead")
        start = start or self.cfg.start_date
        end = end or self.cfg.end_date
        if max_cloud_cover is None:
            max_cloud_cover = self.cfg.max_cloud_cover
        items = self.archive.search(
            study_area, start, end, self.cfg.archive_source, max_cloud_cover
        )
        loader = ParallelSceneLoader(self.archive, max_workers=self.max_workers)
        return loader.load(items, region=study_area)

    def prepare(self, collection, study_area, start=None, end=None, max_cloud_cover=None):
        """Filter and derive; the returned collection carries NDVI and LST."""
        filtered = filter_scenes(
            collection,
            study_area,
            start or self.cfg.start_date,
            end or self.cfg.end_date,
            self.cfg.max_cloud_cover if max_cloud_cover is None else max_cloud_cover,
        )
        logger.info("Size of scene collection: %d", len(filtered))
        return self.deriver.derive_collection(filtered)

    def analyze_region(self, collection, region, bands=(LST_BAND, NDVI_BAND)):
        """Mean series for ``bands`` and the LST/NDVI correlation series."""
        means = self.aggregator.mean_series_many(collection, region, bands, self.cfg.mean_scale)
        correlation = self.correlation.correlation_series(
            collection, region, LST_BAND, NDVI_BAND, self.cfg.correlation_scale
        )
        return RegionAnalysis(region.name, means, correlation)

    def run(self, study_area, regions, collection=None, composite_bands=None):
        """
        Run the full study.

        Args:
            study_area: Region bounding the study (used for filtering and composites)
            regions: RegionRegistry (or iterable of Region) of land-cover zones
            collection: Raw SceneCollection; fetched from the archive when omitted
            composite_bands: Bands to composite (default from config)

        Returns:
            AnalysisResult
        """
        if collection is None:
            collection = self.fetch(study_area)

        derived = self.prepare(collection, study_area)
        bands = composite_bands if composite_bands is not None else self.cfg.composite_bands
        composites = build_composites(derived, study_area, bands)

        targets = [study_area] + [r for r in regions if r.name != study_area.name]
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            analyses = list(executor.map(lambda r: self.analyze_region(derived, r), targets))

        result = AnalysisResult(
            study_area=study_area.name,
            collection=derived,
            composites=composites,
            regions={analysis.region: analysis for analysis in analyses},
        )
        logger.info(
            "Analyzed %d regions over %d scenes", len(result.regions), result.scene_count
        )
        return result
