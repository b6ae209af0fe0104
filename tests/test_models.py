import tempfile
import unittest
from dataclasses import FrozenInstanceError, replace
from pathlib import Path

from tests._test_path import SRC  # noqa: F401
from tests._faces import make_face

from passportframe.core.models import CropGeometry
from passportframe.core.standard import US_PASSPORT, PhotoStandard, load_standard, standard_from_mapping


class TestPhotoStandard(unittest.TestCase):
    def test_defaults(self):
        s = PhotoStandard()
        self.assertEqual(s.output_size, 600)
        self.assertEqual(s.dpi, 300)
        self.assertAlmostEqual(s.head_to_box_ratio, 1.25)
        self.assertAlmostEqual(s.target_head_fraction, 0.595)
        self.assertAlmostEqual(s.target_eye_fraction, 0.625)
        self.assertEqual(s.min_head_pixels, 150.0)
        self.assertAlmostEqual(s.margin_fraction_required, 0.95)
        self.assertEqual(s.max_tilt_degrees, 5.0)
        self.assertEqual(s.max_center_offset_percent, 10.0)
        self.assertAlmostEqual(s.physical_size_inches, 2.0)
        self.assertEqual(s, US_PASSPORT)

    def test_frozen(self):
        with self.assertRaises(FrozenInstanceError):
            US_PASSPORT.output_size = 700  # type: ignore[misc]

    def test_replace(self):
        s2 = replace(US_PASSPORT, output_size=500, max_tilt_degrees=3.0)
        self.assertEqual(s2.output_size, 500)
        self.assertEqual(s2.max_tilt_degrees, 3.0)
        # original unchanged
        self.assertEqual(US_PASSPORT.output_size, 600)

    def test_rejects_out_of_range(self):
        for kwargs in (
            {"output_size": 0},
            {"dpi": -1},
            {"head_to_box_ratio": 0},
            {"target_head_fraction": 1.2},
            {"target_eye_fraction": 0.0},
            {"max_tilt_degrees": -1.0},
        ):
            with self.assertRaises(ValueError, msg=str(kwargs)):
                PhotoStandard(**kwargs)


class TestLoadStandard(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_no_path_returns_base(self):
        self.assertIs(load_standard(None), US_PASSPORT)

    def test_missing_file_returns_base(self):
        with self.assertLogs("passportframe.core.standard", level="WARNING"):
            self.assertIs(load_standard(self.tmp / "nope.yaml"), US_PASSPORT)

    def test_yaml_overrides(self):
        p = self.tmp / "std.yaml"
        p.write_text("name: Lenient\nmax_tilt_degrees: 8\noutput_size: 800\n", encoding="utf-8")
        s = load_standard(p)
        self.assertEqual(s.name, "Lenient")
        self.assertEqual(s.max_tilt_degrees, 8)
        self.assertEqual(s.output_size, 800)
        self.assertAlmostEqual(s.target_head_fraction, 0.595)

    def test_unknown_keys_rejected(self):
        with self.assertRaises(ValueError):
            standard_from_mapping({"max_tilt": 3})

    def test_non_mapping_rejected(self):
        p = self.tmp / "list.yaml"
        p.write_text("- 1\n- 2\n", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_standard(p)

    def test_invalid_value_rejected(self):
        p = self.tmp / "bad.yaml"
        p.write_text("target_eye_fraction: 1.5\n", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_standard(p)


class TestModels(unittest.TestCase):
    def test_eye_center_and_box_center(self):
        face = make_face(left_eye=(400, 440), right_eye=(600, 460))
        c = face.landmarks.eye_center
        self.assertEqual((c.x, c.y), (500.0, 450.0))
        self.assertEqual(face.bounding_box.center_x, 500.0)

    def test_crop_geometry_box(self):
        g = CropGeometry(x=10, y=20, width=100, height=50, output_size=600, scale=6.0, ideal_side=100)
        self.assertEqual(g.box, (10, 20, 110, 70))
        self.assertTrue(g.trimmed)
        self.assertFalse(replace(g, height=100).trimmed)
