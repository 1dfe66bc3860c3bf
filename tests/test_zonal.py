import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from affine import Affine

from heatzone.errors import InvalidBandReference, InvalidConfiguration
from heatzone.processing.resample import block_mean, resample_grid
from heatzone.processing.zonal import ZonalAggregator, extract_zone_pixels

from tests import CRS, TRANSFORM, build_config, make_collection, make_region, make_scene


def derived_scene(scene_id, days, lst, ndvi=None):
    lst = np.asarray(lst, dtype=float)
    ndvi = np.zeros_like(lst) if ndvi is None else np.asarray(ndvi, dtype=float)
    return make_scene(scene_id, days=days, LST=lst, NDVI=ndvi)


class TestResample(unittest.TestCase):
    def test_native_scale_keeps_grid(self):
        grid = np.arange(16.0).reshape(4, 4)
        out, transform = resample_grid(grid, TRANSFORM, CRS, 30)
        self.assertIs(out, grid)
        self.assertEqual(transform, TRANSFORM)

    def test_finer_scale_keeps_grid(self):
        grid = np.arange(16.0).reshape(4, 4)
        out, _ = resample_grid(grid, TRANSFORM, CRS, 10)
        self.assertIs(out, grid)

    def test_integer_multiple_uses_block_mean(self):
        grid = np.arange(16.0).reshape(4, 4)
        out, transform = resample_grid(grid, TRANSFORM, CRS, 60)
        np.testing.assert_array_equal(out, [[2.5, 4.5], [10.5, 12.5]])
        self.assertEqual(transform.a, 60)
        self.assertEqual(transform.e, -60)

    def test_block_mean_ignores_nodata(self):
        grid = np.array([[1.0, np.nan], [3.0, 5.0]])
        self.assertEqual(block_mean(grid, 2)[0, 0], 3.0)
        empty = np.full((2, 2), np.nan)
        self.assertTrue(np.isnan(block_mean(empty, 2)[0, 0]))

    def test_block_mean_partial_edge_blocks(self):
        grid = np.ones((3, 3))
        out = block_mean(grid, 2)
        self.assertEqual(out.shape, (2, 2))
        np.testing.assert_array_equal(out, np.ones((2, 2)))

    def test_non_positive_scale(self):
        with self.assertRaises(InvalidConfiguration):
            resample_grid(np.ones((2, 2)), TRANSFORM, CRS, 0)


class TestExtractZonePixels(unittest.TestCase):
    def test_pixels_inside_region_only(self):
        grid = np.arange(16.0).reshape(4, 4)
        scene = derived_scene("a", 0, grid, grid * 2)
        region = make_region("west", cols=(0, 2), rows=(0, 4))

        pixels = extract_zone_pixels(scene, region, ("LST", "NDVI"), 30)
        np.testing.assert_array_equal(np.sort(pixels["LST"]), np.sort(grid[:, :2].ravel()))
        np.testing.assert_array_equal(pixels["NDVI"], pixels["LST"] * 2)

    def test_disjoint_region(self):
        scene = derived_scene("a", 0, np.ones((4, 4)))
        region = make_region("far", cols=(50, 60), rows=(0, 4))
        pixels = extract_zone_pixels(scene, region, ("LST",), 30)
        self.assertEqual(pixels["LST"].size, 0)


class TestZonalAggregator(unittest.TestCase):
    def setUp(self):
        self.cfg = build_config()
        self.aggregator = ZonalAggregator(cfg=self.cfg)
        self.region = make_region()

    def test_default_scale_from_config(self):
        self.assertEqual(self.aggregator.scale, 500)

    def test_mean_per_scene(self):
        grid = np.arange(16.0).reshape(4, 4)
        collection = make_collection(
            derived_scene("a", 0, grid), derived_scene("b", 1, grid + 10)
        )
        series = self.aggregator.mean_series(collection, self.region, "LST", scale=30)

        self.assertEqual(series.values, [7.5, 17.5])
        self.assertEqual(series.timestamps, collection.timestamps)
        self.assertEqual(series.statistic, "mean")
        self.assertEqual(series.bands, ("LST",))

    def test_nodata_pixels_are_excluded(self):
        grid = np.full((4, 4), np.nan)
        grid[0, 0] = 4.0
        grid[3, 3] = 8.0
        collection = make_collection(derived_scene("a", 0, grid))
        series = self.aggregator.mean_series(collection, self.region, "LST", scale=30)
        self.assertEqual(series.values, [6.0])

    def test_no_valid_pixels_gives_nodata_entry(self):
        far = Affine(30.0, 0.0, 900000.0, 0.0, -30.0, 3740000.0)
        collection = make_collection(
            derived_scene("a", 0, np.ones((4, 4))),
            derived_scene("b", 1, np.full((4, 4), np.nan)),
            make_scene("c", days=2, transform=far, LST=np.ones((4, 4)), NDVI=np.ones((4, 4))),
            derived_scene("d", 3, np.full((4, 4), 3.0)),
        )
        series = self.aggregator.mean_series(collection, self.region, "LST", scale=30)

        self.assertEqual(len(series), len(collection))
        self.assertEqual(series.values, [1.0, None, None, 3.0])
        self.assertEqual(series.nodata_count, 2)
        self.assertEqual([e.scene_id for e in series], ["a", "b", "c", "d"])

    def test_empty_collection_gives_empty_series(self):
        series = self.aggregator.mean_series(make_collection(), self.region, "LST")
        self.assertEqual(len(series), 0)

    def test_joint_extraction(self):
        collection = make_collection(
            derived_scene("a", 0, np.full((4, 4), 30.0), np.full((4, 4), 40.0)),
            derived_scene("b", 1, np.full((4, 4), 32.0), np.full((4, 4), 20.0)),
        )
        series = self.aggregator.mean_series_many(collection, self.region, ("LST", "NDVI"), 30)

        self.assertEqual(series["LST"].values, [30.0, 32.0])
        self.assertEqual(series["NDVI"].values, [40.0, 20.0])
        self.assertEqual(len(series["LST"]), len(series["NDVI"]))

    def test_coarse_scale(self):
        grid = np.arange(16.0).reshape(4, 4)
        collection = make_collection(derived_scene("a", 0, grid))
        series = self.aggregator.mean_series(collection, self.region, "LST", scale=60)
        self.assertEqual(series.values, [7.5])

    def test_non_integer_scale_constant(self):
        collection = make_collection(derived_scene("a", 0, np.full((40, 40), 25.0)))
        region = make_region("wide", cols=(0, 40), rows=(0, 40))
        series = self.aggregator.mean_series(collection, region, "LST", scale=500)

        self.assertEqual(len(series), 1)
        self.assertAlmostEqual(series.values[0], 25.0, places=6)

    def test_non_integer_scale_ramp_follows_coarse_cells(self):
        # 500 m cells span 16.67 native columns; partially covered columns are weighted
        ramp = np.tile(np.arange(40.0), (40, 1))
        collection = make_collection(derived_scene("a", 0, ramp))
        region = make_region("wide", cols=(0, 40), rows=(0, 40))
        series = self.aggregator.mean_series(collection, region, "LST", scale=500)

        self.assertAlmostEqual(series.values[0], 16.17, places=2)
        self.assertNotAlmostEqual(series.values[0], ramp.mean(), places=2)

    def test_non_integer_scale_small_region_takes_enclosing_cell(self):
        ramp = np.tile(np.arange(40.0), (40, 1))
        collection = make_collection(derived_scene("a", 0, ramp))
        region = make_region("corner", cols=(0, 10), rows=(0, 10))
        series = self.aggregator.mean_series(collection, region, "LST", scale=500)

        self.assertAlmostEqual(series.values[0], 7.84, places=2)
        self.assertNotAlmostEqual(series.values[0], ramp[:10, :10].mean(), places=2)

    def test_unknown_band(self):
        collection = make_collection(derived_scene("a", 0, np.ones((4, 4))))
        with self.assertRaises(InvalidBandReference):
            self.aggregator.mean_series(collection, self.region, "EVI", scale=30)

    def test_concurrent_requests_share_collection(self):
        rng = np.random.default_rng(7)
        collection = make_collection(
            *[derived_scene(f"s{i}", i, rng.normal(30, 5, (4, 4)), rng.normal(0, 50, (4, 4)))
              for i in range(6)]
        )
        regions = [
            self.region,
            make_region("west", cols=(0, 2), rows=(0, 4)),
            make_region("north", cols=(0, 4), rows=(0, 2)),
        ]
        jobs = [(region, band) for region in regions for band in ("LST", "NDVI")]

        expected = [
            self.aggregator.mean_series(collection, r, b, scale=30).values for r, b in jobs
        ]
        with ThreadPoolExecutor(max_workers=6) as executor:
            actual = list(
                executor.map(
                    lambda job: self.aggregator.mean_series(collection, job[0], job[1], 30).values,
                    jobs,
                )
            )
        self.assertEqual(actual, expected)


if __name__ == "__main__":
    unittest.main()
