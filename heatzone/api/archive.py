"""Scene archive clients with pagination and retry support."""
import logging
from abc import ABC, abstractmethod

import numpy as np
import rasterio
import requests
from rasterio.enums import Resampling
from rasterio.errors import RasterioIOError
from rasterio.vrt import WarpedVRT
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from heatzone.config import config
from heatzone.errors import ArchiveUnavailable, InvalidBandReference
from heatzone.models.scene import RasterScene
from heatzone.utils.dates import parse_date, subdivide_date_range, to_stac_interval
from heatzone.utils.geometry import projected_crs, reproject_geometry, snapped_grid

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


class ArchiveClient(ABC):
    """Abstract interface to an earth-observation scene archive."""

    @abstractmethod
    def search(self, region, start, end, source=None, max_cloud_cover=None):
        """
        Find scenes over a region and date range.

        Args:
            region: Region to search over
            start: Start of the range (inclusive)
            end: End of the range (exclusive)
            source: Archive collection identifier
            max_cloud_cover: When given, only items strictly below this cloud cover

        Returns:
            List of archive items (implementation specific)
        """
        pass

    @abstractmethod
    def load_scene(self, item, region=None):
        """
        Materialize one archive item as a RasterScene.

        Args:
            item: Item returned by ``search``
            region: Optional region; scenes loaded for the same region share one grid

        Returns:
            RasterScene
        """
        pass


class InMemoryArchive(ArchiveClient):
    """Archive backed by already materialized scenes."""

    def __init__(self, scenes=()):
        self.scenes = list(scenes)

    def search(self, region, start, end, source=None, max_cloud_cover=None):
        start_dt, end_dt = parse_date(start), parse_date(end)
        return [
            scene
            for scene in self.scenes
            if start_dt <= scene.acquired < end_dt
            and (max_cloud_cover is None or scene.cloud_cover < max_cloud_cover)
            and scene.footprint.intersects(region.to_crs(scene.crs).geometry)
        ]

    def load_scene(self, item, region=None):
        return item


class StacArchiveClient(ArchiveClient):
    """Client for a STAC API serving Landsat Collection 2 Level-2 scenes."""

    def __init__(
        self,
        base_url=None,
        bands=None,
        asset_keys=None,
        href_modifier=None,
        session=None,
        resolution=None,
        cfg=None,
    ):
        """
        Args:
            base_url: STAC API root (default from config)
            bands: Band names to load for each scene
            asset_keys: Band name -> STAC asset key (default from config)
            href_modifier: Callable applied to asset hrefs before reading (e.g. URL signing)
            session: requests.Session to use
            resolution: Pixel size of the shared grid scenes are read onto (default from config)
            cfg: Config instance
        """
        self.cfg = cfg or config
        self.base_url = (base_url or self.cfg.archive_base_url).rstrip("/")
        band_map = self.cfg.band_map
        self.bands = list(bands or [band_map["nir"], band_map["red"], band_map["thermal"]])
        self.asset_keys = asset_keys or self.cfg.archive_asset_keys
        self.href_modifier = href_modifier
        self.session = session or requests.Session()
        self.resolution = resolution or self.cfg.archive_resolution
        self._retrying = Retrying(
            stop=stop_after_attempt(self.cfg.archive_retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=self.cfg.archive_retry_min_wait,
                max=self.cfg.archive_retry_max_wait,
            ),
            retry=retry_if_exception_type((requests.RequestException, RasterioIOError)),
            reraise=True,
        )

    def _call(self, func, *args, **kwargs):
        """Run ``func`` under the retry policy, surfacing exhaustion as ArchiveUnavailable."""
        try:
            return self._retrying.copy()(func, *args, **kwargs)
        except (requests.RequestException, RasterioIOError, RetryError) as e:
            raise ArchiveUnavailable(f"Archive request failed after retries: {e}") from e

    def _request(self, method, url, **kwargs):
        """Make HTTP request with retry logic."""
        kwargs.setdefault("timeout", self.cfg.archive_timeout)

        def send():
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        return self._call(send)

    def search(self, region, start, end, source=None, max_cloud_cover=None):
        """
        Search for scenes with automatic pagination and date chunking.

        Long ranges are split into chunks of ``archive.chunk_months`` so each
        search stays small. With ``max_cloud_cover`` the cloud filter is sent to
        the API and re-checked on the returned metadata, so cloudy scenes are
        never downloaded.

        Returns:
            List of STAC item dicts sorted by acquisition time
        """
        source = source or self.cfg.archive_source
        geometry = reproject_geometry(region.geometry, region.crs, WGS84)
        search_url = f"{self.base_url}/search"

        query = {}
        if self.cfg.archive_platform:
            query["platform"] = {"eq": self.cfg.archive_platform}
        if max_cloud_cover is not None:
            query["eo:cloud_cover"] = {"lt": max_cloud_cover}

        items = {}
        for chunk_start, chunk_end in subdivide_date_range(
            start, end, self.cfg.archive_chunk_months
        ):
            payload = {
                "collections": [source],
                "intersects": geometry.__geo_interface__,
                "datetime": to_stac_interval(chunk_start, chunk_end),
                "limit": self.cfg.archive_page_limit,
            }
            if query:
                payload["query"] = query

            for feature in self._fetch_all_pages(search_url, payload):
                items[feature["id"]] = feature

        results = sorted(items.values(), key=lambda f: (f["properties"]["datetime"], f["id"]))
        if max_cloud_cover is not None:
            results = [f for f in results if _item_cloud_cover(f) < max_cloud_cover]
        logger.info("Archive returned %d items from %s", len(results), source)
        return results

    def _fetch_all_pages(self, search_url, payload):
        """
        Fetch all pages of search results.

        STAC paginates with a ``next`` link that carries its own method and body.
        """
        all_features = []
        response = self._request("POST", search_url, json=payload)

        while True:
            data = response.json()
            all_features.extend(data.get("features", []))

            next_link = next(
                (link for link in data.get("links", []) if link.get("rel") == "next"), None
            )
            if not next_link:
                break

            method = next_link.get("method", "GET").upper()
            if method == "POST":
                body = next_link.get("body", payload)
                if next_link.get("merge"):
                    body = {**payload, **body}
                response = self._request("POST", next_link["href"], json=body)
            else:
                response = self._request("GET", next_link["href"])

        return all_features

    def _asset_href(self, item, band):
        key = self.asset_keys.get(band, band)
        try:
            href = item["assets"][key]["href"]
        except KeyError:
            raise InvalidBandReference(band, item.get("assets", {}).keys(), item.get("id"))
        return self.href_modifier(href) if self.href_modifier else href

    def target_grid(self, region):
        """
        Grid shared by every scene read over ``region``.

        The region bounds are snapped outward to multiples of ``resolution`` in
        the region CRS (or its UTM zone when the region is geographic).

        Returns:
            tuple: (crs, transform, (height, width))
        """
        crs = projected_crs(region.geometry, region.crs)
        local = reproject_geometry(region.geometry, region.crs or WGS84, crs)
        transform, shape_hw = snapped_grid(local.bounds, self.resolution)
        return crs, transform, shape_hw

    def _read_band(self, href, grid=None):
        with rasterio.open(href) as src:
            if grid is None:
                data = src.read(1, masked=True).astype(np.float64)
                crs = src.crs.to_string() if src.crs else None
                return data.filled(np.nan), src.transform, crs

            crs, transform, (height, width) = grid
            options = {
                "crs": crs,
                "transform": transform,
                "width": width,
                "height": height,
                "resampling": Resampling.nearest,
            }
            nodata = src.nodata if src.nodata is not None else self.cfg.raw_nodata
            if nodata is not None:
                options["nodata"] = nodata
            with WarpedVRT(src, **options) as vrt:
                data = vrt.read(1, masked=True).astype(np.float64)
            return data.filled(np.nan), transform, crs

    def load_scene(self, item, region=None):
        """
        Read the configured bands of a STAC item.

        Args:
            item: STAC item dict
            region: When given, bands are warped onto ``target_grid(region)``;
                pixels outside the scene footprint are NaN. Otherwise the
                native grid is read in full.

        Returns:
            RasterScene
        """
        grid = self.target_grid(region) if region is not None else None
        bands = {}
        transform, crs = None, None
        for band in self.bands:
            href = self._asset_href(item, band)
            bands[band], transform, crs = self._call(self._read_band, href, grid)

        props = item.get("properties", {})
        logger.debug("Loaded scene %s (%s)", item["id"], props.get("datetime"))
        return RasterScene(
            scene_id=item["id"],
            acquired=props["datetime"],
            cloud_cover=_item_cloud_cover(item),
            bands=bands,
            transform=transform,
            crs=crs,
            properties={"platform": props.get("platform")},
        )


def _item_cloud_cover(item):
    """Cloud cover percentage from STAC item metadata; unknown counts as fully cloudy."""
    props = item.get("properties", {})
    cloud = props.get("eo:cloud_cover", props.get("landsat:cloud_cover_land"))
    return 100.0 if cloud is None else float(cloud)
