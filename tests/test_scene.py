import unittest
from datetime import timezone

import numpy as np
from affine import Affine

from heatzone.errors import InvalidBandReference, SceneGridMismatch
from heatzone.models import RasterScene

from tests import CRS, ORIGIN_X, ORIGIN_Y, T0, TRANSFORM, make_scene


class TestRasterScene(unittest.TestCase):
    def test_crs_is_required(self):
        for crs in (None, ""):
            with self.subTest(crs=crs):
                with self.assertRaises(ValueError):
                    RasterScene("a", T0, 5.0, {"LST": np.ones((4, 4))}, TRANSFORM, crs)

    def test_bands_must_share_a_shape(self):
        with self.assertRaises(SceneGridMismatch):
            make_scene("a", LST=np.ones((4, 4)), NDVI=np.ones((3, 4)))

    def test_grids_are_read_only_float(self):
        scene = make_scene("a", LST=np.ones((4, 4), dtype=np.int16))
        self.assertEqual(scene.band("LST").dtype, np.float64)
        with self.assertRaises(ValueError):
            scene.band("LST")[0, 0] = 5.0

    def test_acquired_is_utc(self):
        scene = RasterScene("a", "2015-06-01", 5, {"LST": np.ones((2, 2))}, TRANSFORM, CRS)
        self.assertEqual(scene.acquired.tzinfo, timezone.utc)
        self.assertEqual(scene.date_str, "2015-06-01")

    def test_unknown_band(self):
        with self.assertRaises(InvalidBandReference) as ctx:
            make_scene("a").band("LST")
        self.assertIn("SR_B5", ctx.exception.available)

    def test_with_bands_leaves_original_untouched(self):
        scene = make_scene("a")
        derived = scene.with_bands(LST=np.full((4, 4), 30.0))

        self.assertTrue(derived.has_bands("LST", "SR_B5"))
        self.assertFalse(scene.has_bands("LST"))
        self.assertTrue(derived.same_grid(scene))

    def test_with_bands_rejects_wrong_shape(self):
        with self.assertRaises(SceneGridMismatch):
            make_scene("a").with_bands(LST=np.ones((2, 2)))

    def test_same_grid(self):
        shifted = Affine(30.0, 0.0, ORIGIN_X + 30, 0.0, -30.0, ORIGIN_Y)
        self.assertFalse(make_scene("a").same_grid(make_scene("b", transform=shifted)))

    def test_footprint_and_dict(self):
        scene = make_scene("a")
        self.assertEqual(scene.footprint.bounds, (ORIGIN_X, ORIGIN_Y - 120, ORIGIN_X + 120, ORIGIN_Y))
        payload = scene.to_dict()
        self.assertEqual(payload["crs"], CRS)
        self.assertEqual(payload["shape"], [4, 4])


if __name__ == "__main__":
    unittest.main()
