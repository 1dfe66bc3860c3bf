"""Regions of interest and the caller-supplied region registry."""
import logging
from dataclasses import dataclass
from typing import Optional

from shapely.geometry.base import BaseGeometry

from heatzone.errors import InvalidConfiguration
from heatzone.utils.geometry import (
    ensure_polygonal,
    load_geojson,
    normalize_region_name,
    reproject_geometry,
)

logger = logging.getLogger(__name__)

LAND_COVER_ZONES = (
    "urban",
    "residential",
    "highway",
    "commercial",
    "vegetation",
    "waterbodies",
    "bare_soil",
)


@dataclass(frozen=True)
class Region:
    """A named, validated polygon zone."""

    name: str
    geometry: BaseGeometry
    crs: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "geometry", ensure_polygonal(self.geometry, self.name))

    @property
    def bounds(self):
        return self.geometry.bounds

    def to_crs(self, crs):
        """Return this region reprojected into ``crs``."""
        if crs is None or self.crs is None:
            return self
        geom = reproject_geometry(self.geometry, self.crs, crs)
        if geom is self.geometry:
            return self
        return Region(self.name, geom, crs)

    def to_dict(self):
        return {"name": self.name, "crs": self.crs, "geometry": self.geometry.__geo_interface__}


class RegionRegistry:
    """Mapping of zone name -> Region supplied by the caller."""

    def __init__(self, regions=()):
        self._regions = {}
        for region in regions:
            self.add(region)

    def add(self, region):
        if region.name in self._regions:
            raise InvalidConfiguration(f"Duplicate region name: {region.name}")
        self._regions[region.name] = region
        return region

    def __contains__(self, name):
        return name in self._regions

    def __iter__(self):
        return iter(self._regions.values())

    def __len__(self):
        return len(self._regions)

    def names(self):
        return list(self._regions)

    def get(self, name):
        try:
            return self._regions[name]
        except KeyError:
            raise InvalidConfiguration(
                f"Unknown region '{name}'; registered: {', '.join(self._regions) or 'none'}"
            )

    def select(self, names):
        """Registry restricted to ``names``, in the given order."""
        return RegionRegistry(self.get(name) for name in names)

    @classmethod
    def from_geometries(cls, geometries, crs=None):
        """
        Build a registry from a {name: geometry} mapping.

        Args:
            geometries: Mapping of zone name -> shapely geometry or GeoJSON mapping
            crs: CRS shared by all geometries
        """
        return cls(Region(name, geom, crs) for name, geom in geometries.items())

    @classmethod
    def from_geojson(cls, geojson_path, name_field="name", crs=None):
        """
        Load zones from a vector file; features sharing a name are unioned.

        Args:
            geojson_path: Path to a GeoJSON file with one or more features per zone
            name_field: Attribute holding the zone name
            crs: Target CRS (defaults to the file's CRS)

        Returns:
            RegionRegistry
        """
        gdf = load_geojson(geojson_path, crs=crs)
        if name_field not in gdf.columns:
            raise InvalidConfiguration(f"{geojson_path} has no '{name_field}' attribute")

        crs_str = gdf.crs.to_string() if gdf.crs is not None else None
        regions = []
        for raw_name, group in gdf.groupby(name_field, sort=False):
            name = normalize_region_name(raw_name)
            regions.append(Region(name, group.geometry.union_all(), crs_str))

        logger.info("Loaded %d regions from %s", len(regions), geojson_path)
        return cls(regions)
