"""Configuration management for heatzone."""
import copy
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

from heatzone.errors import InvalidConfiguration
from heatzone.utils.dates import parse_date

load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class Config:
    """Application configuration loaded from config.yaml and environment variables."""

    def __init__(self, config_path=None, data=None):
        if data is None:
            if config_path is None:
                config_path = os.getenv("HEATZONE_CONFIG") or DEFAULT_CONFIG_PATH

            with open(config_path) as f:
                data = yaml.safe_load(f)

        self._config = data
        self._load_env_overrides()

    @classmethod
    def from_dict(cls, overrides=None):
        """
        Build a config from the bundled defaults with nested overrides applied.

        Args:
            overrides: Mapping of section -> {key: value} to replace

        Returns:
            Config instance
        """
        with open(DEFAULT_CONFIG_PATH) as f:
            data = yaml.safe_load(f)

        for section, values in (overrides or {}).items():
            if isinstance(values, dict):
                data.setdefault(section, {}).update(copy.deepcopy(values))
            else:
                data[section] = values

        return cls(data=data)

    def _load_env_overrides(self):
        """Load environment variable overrides."""
        archive_url = os.getenv("HEATZONE_ARCHIVE_URL")
        if archive_url:
            self._config["archive"]["base_url"] = archive_url

        log_level = os.getenv("HEATZONE_LOG_LEVEL")
        if log_level:
            self._config["logging"]["level"] = log_level

        max_workers = os.getenv("HEATZONE_MAX_WORKERS")
        if max_workers:
            self._config["processing"]["max_workers"] = int(max_workers)

    def _get(self, section, key):
        try:
            return self._config[section][key]
        except KeyError:
            raise InvalidConfiguration(f"Missing configuration key: {section}.{key}")

    def validate(self):
        """Fail fast on settings that would make every downstream stage wrong."""
        if self.start_date >= self.end_date:
            raise InvalidConfiguration(
                f"start_date {self.start_date} must be before end_date {self.end_date}"
            )
        if not 0 <= self.max_cloud_cover <= 100:
            raise InvalidConfiguration(
                f"max_cloud_cover must be within [0, 100], got {self.max_cloud_cover}"
            )
        for name, scale in (
            ("mean_scale", self.mean_scale),
            ("correlation_scale", self.correlation_scale),
            ("archive.resolution", self.archive_resolution),
        ):
            if scale <= 0:
                raise InvalidConfiguration(f"{name} must be positive, got {scale}")
        if self.max_workers < 1:
            raise InvalidConfiguration(f"max_workers must be >= 1, got {self.max_workers}")
        for key in ("nir", "red", "thermal"):
            if not self.band_map.get(key):
                raise InvalidConfiguration(f"Band mapping for '{key}' is not configured")
        return self

    # Study

    @property
    def start_date(self):
        return parse_date(self._get("study", "start_date"))

    @property
    def end_date(self):
        return parse_date(self._get("study", "end_date"))

    @property
    def max_cloud_cover(self):
        return float(self._get("study", "max_cloud_cover"))

    @property
    def region_names(self):
        return list(self._get("study", "regions"))

    # Bands

    @property
    def band_map(self):
        """Logical band role -> raw band name."""
        return {
            "nir": self._get("bands", "nir"),
            "red": self._get("bands", "red"),
            "thermal": self._get("bands", "thermal"),
        }

    @property
    def true_color_bands(self):
        return list(self._get("bands", "true_color"))

    # Radiometry

    @property
    def lst_multiplier(self):
        return float(self._get("radiometry", "lst_multiplier"))

    @property
    def lst_offset(self):
        return float(self._get("radiometry", "lst_offset"))

    @property
    def kelvin_offset(self):
        return float(self._get("radiometry", "kelvin_offset"))

    @property
    def ndvi_scale(self):
        return float(self._get("radiometry", "ndvi_scale"))

    @property
    def raw_nodata(self):
        return self._config["radiometry"].get("raw_nodata")

    # Analysis

    @property
    def mean_scale(self):
        return float(self._get("analysis", "mean_scale"))

    @property
    def correlation_scale(self):
        return float(self._get("analysis", "correlation_scale"))

    @property
    def composite_bands(self):
        return list(self._get("analysis", "composite_bands"))

    # Archive

    @property
    def archive_base_url(self):
        return self._get("archive", "base_url")

    @property
    def archive_source(self):
        return self._get("archive", "source")

    @property
    def archive_platform(self):
        return self._config["archive"].get("platform")

    @property
    def archive_page_limit(self):
        return int(self._get("archive", "page_limit"))

    @property
    def archive_chunk_months(self):
        return int(self._get("archive", "chunk_months"))

    @property
    def archive_resolution(self):
        return float(self._get("archive", "resolution"))

    @property
    def archive_timeout(self):
        return self._get("archive", "timeout")

    @property
    def archive_retry_attempts(self):
        return int(self._get("archive", "retry_attempts"))

    @property
    def archive_retry_min_wait(self):
        return float(self._get("archive", "retry_min_wait"))

    @property
    def archive_retry_max_wait(self):
        return float(self._get("archive", "retry_max_wait"))

    @property
    def archive_asset_keys(self):
        return dict(self._config["archive"].get("asset_keys") or {})

    # Processing

    @property
    def max_workers(self):
        return int(self._get("processing", "max_workers"))

    @property
    def export_nodata(self):
        return float(self._get("export", "nodata"))

    @property
    def log_level(self):
        return self._get("logging", "level")

    @property
    def log_format(self):
        return self._get("logging", "format")


# Global config instance
config = Config()
