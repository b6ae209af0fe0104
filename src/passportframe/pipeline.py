from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Union

from PIL import Image

from passportframe.compliance.evaluator import evaluate
from passportframe.compliance.report import ComplianceResult
from passportframe.core.models import FaceDetectionResult
from passportframe.core.standard import US_PASSPORT, PhotoStandard
from passportframe.crop.transformer import crop_to_target
from passportframe.imaging import ImageInput, as_pil_rgb, load_image_rgb

logger = logging.getLogger(__name__)

PhotoSource = Union[str, Path, ImageInput]


class Detector(Protocol):
    def detect(self, image: ImageInput) -> List[FaceDetectionResult]: ...


@dataclass(frozen=True)
class ProcessingResult:
    """
    Outcome of processing one photo.

    cropped is only set when every compliance check passed.
    """
    compliance: ComplianceResult
    original: Image.Image
    cropped: Optional[Image.Image] = None


def _as_image(source: PhotoSource) -> Image.Image:
    if isinstance(source, (str, Path)):
        return load_image_rgb(source)
    return as_pil_rgb(source)


def check_photo_compliance(
    source: PhotoSource,
    detector: Detector,
    standard: PhotoStandard = US_PASSPORT,
) -> ComplianceResult:
    """Detect faces and evaluate them, without cropping."""
    img = _as_image(source)
    faces = detector.detect(img)
    return evaluate(img.width, img.height, faces, standard)


def process_photo(
    source: PhotoSource,
    detector: Detector,
    standard: PhotoStandard = US_PASSPORT,
) -> ProcessingResult:
    """
    Detect, evaluate and, if compliant, crop a photo to the standard's layout.
    """
    img = _as_image(source)
    faces = detector.detect(img)
    compliance = evaluate(img.width, img.height, faces, standard)

    cropped = None
    if compliance.passed and compliance.face_data is not None:
        cropped = crop_to_target(img, compliance.face_data, standard)
        logger.info("Photo compliant; cropped to %dx%d", cropped.width, cropped.height)
    else:
        logger.info("Photo not compliant: %d check(s) failed", len(compliance.failed_checks))

    return ProcessingResult(compliance=compliance, original=img, cropped=cropped)
