import tempfile
import unittest
from pathlib import Path

from PIL import Image

from tests._test_path import SRC  # noqa: F401
from tests._faces import make_face

from passportframe.pipeline import check_photo_compliance, process_photo


class FakeDetector:
    def __init__(self, faces):
        self.faces = faces
        self.seen_sizes = []

    def detect(self, image):
        self.seen_sizes.append(image.size)
        return list(self.faces)


class TestProcessPhoto(unittest.TestCase):
    def test_compliant_photo_is_cropped(self):
        img = Image.new("RGB", (1000, 1000), (200, 180, 160))
        result = process_photo(img, FakeDetector([make_face()]))
        self.assertTrue(result.compliance.passed)
        self.assertIsNotNone(result.cropped)
        self.assertEqual(result.cropped.size, (600, 600))
        self.assertEqual(result.original.size, (1000, 1000))

    def test_non_compliant_photo_is_not_cropped(self):
        img = Image.new("RGB", (1000, 1000))
        result = process_photo(img, FakeDetector([make_face(origin_x=500.0)]))
        self.assertFalse(result.compliance.passed)
        self.assertIsNotNone(result.compliance.face_data)
        self.assertIsNone(result.cropped)

    def test_no_face(self):
        result = process_photo(Image.new("RGB", (640, 480)), FakeDetector([]))
        self.assertFalse(result.compliance.passed)
        self.assertIsNone(result.cropped)

    def test_accepts_path_and_converts_to_rgb(self):
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "in.png"
            Image.new("RGBA", (1000, 1000), (10, 10, 10, 255)).save(p)
            det = FakeDetector([make_face()])
            result = process_photo(str(p), det)
        self.assertEqual(result.original.mode, "RGB")
        self.assertEqual(det.seen_sizes, [(1000, 1000)])
        self.assertTrue(result.compliance.passed)


class TestCheckPhotoCompliance(unittest.TestCase):
    def test_uses_image_dimensions(self):
        result = check_photo_compliance(Image.new("RGB", (1000, 2000)), FakeDetector([make_face()]))
        self.assertAlmostEqual(result.metrics.head_height_percent, 18.75)
