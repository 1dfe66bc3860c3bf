import os
import shutil
import tempfile
import unittest
from datetime import datetime, timezone
from unittest import mock

import yaml

from heatzone.config import DEFAULT_CONFIG_PATH, Config
from heatzone.errors import InvalidConfiguration

from tests import build_config


class TestConfig(unittest.TestCase):
    def test_bundled_defaults(self):
        cfg = Config.from_dict()

        self.assertEqual(cfg.start_date, datetime(2014, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(cfg.max_cloud_cover, 15.0)
        self.assertEqual(cfg.band_map, {"nir": "SR_B5", "red": "SR_B4", "thermal": "ST_B10"})
        self.assertEqual(cfg.kelvin_offset, 273.0)
        self.assertEqual(cfg.mean_scale, 500.0)
        self.assertEqual(cfg.correlation_scale, 30.0)
        self.assertEqual(cfg.composite_bands, ["NDVI", "LST"])
        self.assertIn("urban", cfg.region_names)
        self.assertEqual(cfg.archive_asset_keys["ST_B10"], "lwir11")
        self.assertIs(cfg.validate(), cfg)

    def test_overrides_merge_into_sections(self):
        cfg = build_config(analysis={"mean_scale": 90})
        self.assertEqual(cfg.mean_scale, 90.0)
        self.assertEqual(cfg.correlation_scale, 30.0)
        self.assertEqual(cfg.max_workers, 2)

    def test_overrides_do_not_leak(self):
        build_config(study={"max_cloud_cover": 50})
        self.assertEqual(Config.from_dict().max_cloud_cover, 15.0)

    def test_inverted_dates(self):
        cfg = build_config(study={"start_date": "2020-01-01", "end_date": "2020-01-01"})
        with self.assertRaises(InvalidConfiguration):
            cfg.validate()

    def test_cloud_threshold_range(self):
        for value in (-1, 101):
            with self.subTest(value=value):
                with self.assertRaises(InvalidConfiguration):
                    build_config(study={"max_cloud_cover": value}).validate()

    def test_cloud_threshold_bounds_are_inclusive(self):
        for value in (0, 100):
            with self.subTest(value=value):
                cfg = build_config(study={"max_cloud_cover": value})
                self.assertIs(cfg.validate(), cfg)

    def test_non_positive_scale(self):
        with self.assertRaises(InvalidConfiguration):
            build_config(analysis={"correlation_scale": 0}).validate()

    def test_archive_resolution(self):
        self.assertEqual(Config.from_dict().archive_resolution, 30.0)
        with self.assertRaises(InvalidConfiguration):
            build_config(archive={"resolution": 0}).validate()

    def test_missing_band_mapping(self):
        with self.assertRaises(InvalidConfiguration):
            build_config(bands={"thermal": ""}).validate()

    def test_worker_count(self):
        with self.assertRaises(InvalidConfiguration):
            build_config(processing={"max_workers": 0}).validate()

    def test_missing_key(self):
        cfg = Config(data={"study": {}, "archive": {}, "logging": {}, "processing": {}})
        with self.assertRaises(InvalidConfiguration):
            cfg.mean_scale

    def test_unparseable_date(self):
        cfg = build_config(study={"start_date": "not a date"})
        with self.assertRaises(InvalidConfiguration):
            cfg.start_date

    @mock.patch.dict(
        os.environ,
        {
            "HEATZONE_ARCHIVE_URL": "https://stac.example.com",
            "HEATZONE_LOG_LEVEL": "DEBUG",
            "HEATZONE_MAX_WORKERS": "8",
        },
    )
    def test_environment_overrides(self):
        cfg = Config.from_dict()
        self.assertEqual(cfg.archive_base_url, "https://stac.example.com")
        self.assertEqual(cfg.log_level, "DEBUG")
        self.assertEqual(cfg.max_workers, 8)


class TestConfigFile(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_load_custom_file(self):
        with open(DEFAULT_CONFIG_PATH) as f:
            data = yaml.safe_load(f)
        data["study"]["max_cloud_cover"] = 30
        path = os.path.join(self.tmp_dir, "config.yaml")
        with open(path, "w") as f:
            yaml.safe_dump(data, f)

        self.assertEqual(Config(path).max_cloud_cover, 30.0)

    def test_config_path_from_environment(self):
        with open(DEFAULT_CONFIG_PATH) as f:
            data = yaml.safe_load(f)
        data["analysis"]["mean_scale"] = 250
        path = os.path.join(self.tmp_dir, "env.yaml")
        with open(path, "w") as f:
            yaml.safe_dump(data, f)

        with mock.patch.dict(os.environ, {"HEATZONE_CONFIG": path}):
            self.assertEqual(Config().mean_scale, 250.0)


if __name__ == "__main__":
    unittest.main()
