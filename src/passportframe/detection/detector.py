from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

import numpy as np

from passportframe.core.errors import DetectorError, DetectorStateError
from passportframe.core.models import BoundingBox, FaceDetectionResult, FaceLandmarks, Point2D
from passportframe.imaging import ImageInput, as_pil_rgb

logger = logging.getLogger(__name__)

# BlazeFace keypoint order
RIGHT_EYE, LEFT_EYE, NOSE_TIP, MOUTH_CENTER = 0, 1, 2, 3


@dataclass(frozen=True)
class RawDetection:
    """
    One face as the detector reports it, in image-relative [0, 1] coordinates.

    box: (xmin, ymin, width, height)
    keypoints: [(x, y), ...] in BlazeFace order
    """
    box: Tuple[float, float, float, float]
    keypoints: Sequence[Tuple[float, float]] = field(default_factory=tuple)
    score: float = 0.0


class DetectionBackend(Protocol):
    def process(self, rgb: np.ndarray) -> List[RawDetection]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class DetectorConfig:
    """
    min_detection_confidence:
        Detections scoring below this are dropped by the backend.
    model_selection:
        0 = short-range BlazeFace (faces within ~2 m), 1 = full-range.
    """
    min_detection_confidence: float = 0.5
    model_selection: int = 0


class DetectorState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    BUSY = "busy"
    CLOSED = "closed"


def to_pixel_detection(raw: RawDetection, width: int, height: int) -> FaceDetectionResult:
    """Scale a relative detection to pixel coordinates of a width x height image."""
    xmin, ymin, bw, bh = raw.box
    box = BoundingBox(origin_x=xmin * width, origin_y=ymin * height, width=bw * width, height=bh * height)

    def px(i: int) -> Point2D:
        x, y = raw.keypoints[i]
        return Point2D(x=x * width, y=y * height)

    if len(raw.keypoints) >= 4:
        landmarks = FaceLandmarks(left_eye=px(LEFT_EYE), right_eye=px(RIGHT_EYE), nose=px(NOSE_TIP), mouth=px(MOUTH_CENTER))
    else:
        logger.warning("Detection has %d keypoint(s), expected at least 4; landmarks set to (0, 0)", len(raw.keypoints))
        origin = Point2D(0.0, 0.0)
        landmarks = FaceLandmarks(left_eye=origin, right_eye=origin, nose=origin, mouth=origin)
    return FaceDetectionResult(bounding_box=box, landmarks=landmarks, confidence=float(raw.score))


class MediaPipeBackend:
    """MediaPipe Face Detection (BlazeFace) for static images."""

    def __init__(self, cfg: DetectorConfig):
        try:
            import mediapipe as mp
        except ImportError as e:
            raise DetectorError("mediapipe must be installed to detect faces (pip install passportframe[detect])") from e
        self._detector = mp.solutions.face_detection.FaceDetection(
            model_selection=cfg.model_selection,
            min_detection_confidence=cfg.min_detection_confidence,
        )

    def process(self, rgb: np.ndarray) -> List[RawDetection]:
        results = self._detector.process(rgb)
        out: List[RawDetection] = []
        for det in results.detections or []:
            loc = det.location_data
            rb = loc.relative_bounding_box
            out.append(
                RawDetection(
                    box=(rb.xmin, rb.ymin, rb.width, rb.height),
                    keypoints=[(kp.x, kp.y) for kp in loc.relative_keypoints],
                    score=float(det.score[0]) if det.score else 0.0,
                )
            )
        return out

    def close(self) -> None:
        self._detector.close()


BackendFactory = Callable[[DetectorConfig], DetectionBackend]


class FaceDetector:
    """
    A face-detector session with an explicit lifecycle.

    IDLE -> LOADING -> READY <-> BUSY, and any state -> CLOSED.
    Calls are serialised, so one session can be shared between threads.

    Usage:
        with FaceDetector() as det:
            faces = det.detect(image)
    """

    def __init__(self, config: Optional[DetectorConfig] = None, backend_factory: Optional[BackendFactory] = None):
        self.config = config or DetectorConfig()
        self._backend_factory: BackendFactory = backend_factory or MediaPipeBackend
        self._backend: Optional[DetectionBackend] = None
        self._state = DetectorState.IDLE
        self._lock = threading.RLock()

    @property
    def state(self) -> DetectorState:
        return self._state

    def open(self) -> "FaceDetector":
        with self._lock:
            if self._state is DetectorState.CLOSED:
                raise DetectorStateError("Face detector session is closed")
            if self._backend is not None:
                return self
            self._state = DetectorState.LOADING
            try:
                self._backend = self._backend_factory(self.config)
            except DetectorError:
                self._state = DetectorState.IDLE
                raise
            except Exception as e:
                self._state = DetectorState.IDLE
                raise DetectorError(f"Failed to initialize face detector: {e}") from e
            self._state = DetectorState.READY
            logger.info("Face detector ready (model_selection=%d)", self.config.model_selection)
            return self

    def detect(self, image: ImageInput) -> List[FaceDetectionResult]:
        """Detect faces and return them in pixel coordinates of `image`."""
        with self._lock:
            if self._state is DetectorState.CLOSED:
                raise DetectorStateError("Face detector session is closed")
            self.open()
            backend = self._backend
            if backend is None:
                raise DetectorStateError("Face detector has no backend loaded")
            rgb = np.asarray(as_pil_rgb(image))
            h, w = rgb.shape[:2]
            self._state = DetectorState.BUSY
            try:
                raw = backend.process(rgb)
            except Exception as e:
                raise DetectorError(f"Face detection failed: {e}") from e
            finally:
                self._state = DetectorState.READY
        faces = [to_pixel_detection(r, w, h) for r in raw]
        logger.debug("Detected %d face(s) in %dx%d image", len(faces), w, h)
        return faces

    def close(self) -> None:
        with self._lock:
            backend, self._backend = self._backend, None
            self._state = DetectorState.CLOSED
            if backend is not None:
                backend.close()

    def __enter__(self) -> "FaceDetector":
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()
