import unittest

import numpy as np
from PIL import Image

from tests._test_path import SRC  # noqa: F401

from passportframe.core.errors import DetectorError, DetectorStateError
from passportframe.detection.detector import (
    DetectorConfig,
    DetectorState,
    FaceDetector,
    RawDetection,
    to_pixel_detection,
)

RAW = RawDetection(
    box=(0.25, 0.2, 0.5, 0.4),
    keypoints=[(0.6, 0.4), (0.4, 0.4), (0.5, 0.5), (0.5, 0.6), (0.7, 0.45), (0.3, 0.45)],
    score=0.93,
)


class FakeBackend:
    def __init__(self, detections=None, error=None):
        self.detections = detections if detections is not None else [RAW]
        self.error = error
        self.closed = False
        self.calls = 0
        self.seen_states = []
        self.owner = None

    def process(self, rgb):
        self.calls += 1
        if self.owner is not None:
            self.seen_states.append(self.owner.state)
        if self.error is not None:
            raise self.error
        return list(self.detections)

    def close(self):
        self.closed = True


class FailingCloseBackend(FakeBackend):
    def close(self):
        raise RuntimeError("release failed")


def _session(backend):
    configs = []

    def factory(cfg):
        configs.append(cfg)
        return backend

    det = FaceDetector(DetectorConfig(min_detection_confidence=0.7), backend_factory=factory)
    backend.owner = det
    return det, configs


class TestToPixelDetection(unittest.TestCase):
    def test_denormalizes_box_and_keypoints(self):
        face = to_pixel_detection(RAW, 1000, 500)
        box = face.bounding_box
        self.assertEqual((box.origin_x, box.origin_y, box.width, box.height), (250.0, 100.0, 500.0, 200.0))
        # BlazeFace: keypoint 0 is the right eye, 1 the left eye
        self.assertEqual((face.landmarks.right_eye.x, face.landmarks.right_eye.y), (600.0, 200.0))
        self.assertEqual((face.landmarks.left_eye.x, face.landmarks.left_eye.y), (400.0, 200.0))
        self.assertEqual(face.landmarks.nose.y, 250.0)
        self.assertEqual(face.landmarks.mouth.y, 300.0)
        self.assertAlmostEqual(face.confidence, 0.93)

    def test_missing_keypoints_default_to_origin(self):
        with self.assertLogs("passportframe.detection.detector", level="WARNING"):
            face = to_pixel_detection(RawDetection(box=(0.1, 0.1, 0.2, 0.2), keypoints=[(0.5, 0.5)]), 100, 100)
        self.assertEqual(face.landmarks.left_eye.x, 0.0)
        self.assertEqual(face.landmarks.mouth.y, 0.0)


class TestFaceDetectorSession(unittest.TestCase):
    def test_lifecycle(self):
        backend = FakeBackend()
        det, configs = _session(backend)
        self.assertEqual(det.state, DetectorState.IDLE)

        det.open()
        self.assertEqual(det.state, DetectorState.READY)
        self.assertEqual(configs[0].min_detection_confidence, 0.7)

        faces = det.detect(Image.new("RGB", (200, 100)))
        self.assertEqual(len(faces), 1)
        self.assertEqual(faces[0].bounding_box.width, 100.0)
        self.assertEqual(backend.seen_states, [DetectorState.BUSY])
        self.assertEqual(det.state, DetectorState.READY)

        det.close()
        self.assertEqual(det.state, DetectorState.CLOSED)
        self.assertTrue(backend.closed)
        det.close()  # idempotent

    def test_detect_opens_lazily_once(self):
        backend = FakeBackend(detections=[])
        det, configs = _session(backend)
        self.assertEqual(det.detect(np.zeros((50, 80, 3), dtype=np.uint8)), [])
        det.detect(Image.new("RGB", (80, 50)))
        self.assertEqual(len(configs), 1)
        self.assertEqual(backend.calls, 2)

    def test_closed_session_rejects_calls(self):
        det, _ = _session(FakeBackend())
        det.close()
        with self.assertRaises(DetectorStateError):
            det.detect(Image.new("RGB", (10, 10)))
        with self.assertRaises(DetectorStateError):
            det.open()

    def test_context_manager_closes(self):
        backend = FakeBackend()
        det, _ = _session(backend)
        with det as d:
            self.assertIs(d, det)
            self.assertEqual(d.state, DetectorState.READY)
        self.assertTrue(backend.closed)
        self.assertEqual(det.state, DetectorState.CLOSED)

    def test_load_failure_returns_to_idle(self):
        def broken(cfg):
            raise ValueError("model missing")

        det = FaceDetector(backend_factory=broken)
        with self.assertRaises(DetectorError) as ctx:
            det.open()
        self.assertIn("model missing", str(ctx.exception))
        self.assertEqual(det.state, DetectorState.IDLE)

    def test_backend_error_is_wrapped(self):
        det, _ = _session(FakeBackend(error=RuntimeError("graph failed")))
        with self.assertRaises(DetectorError):
            det.detect(Image.new("RGB", (10, 10)))
        self.assertEqual(det.state, DetectorState.READY)

    def test_close_failure_still_closes_session(self):
        backend = FailingCloseBackend()
        det, configs = _session(backend)
        det.open()
        with self.assertRaises(RuntimeError):
            det.close()
        self.assertEqual(det.state, DetectorState.CLOSED)
        with self.assertRaises(DetectorStateError):
            det.detect(Image.new("RGB", (10, 10)))
        self.assertEqual(len(configs), 1)
