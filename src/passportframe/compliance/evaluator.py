from __future__ import annotations

import logging
import math
from typing import List, Sequence

from passportframe.compliance.report import (
    FACE_COUNT_ID,
    ComplianceCheck,
    ComplianceMetrics,
    ComplianceResult,
)
from passportframe.core.models import FaceDetectionResult, Point2D
from passportframe.core.standard import US_PASSPORT, PhotoStandard

logger = logging.getLogger(__name__)


def _percent(part: float, whole: float) -> float:
    # Non-positive image sizes are a caller error; yield NaN instead of raising.
    if not whole > 0:
        return math.nan
    return part / whole * 100.0


def eye_line_angle(p1: Point2D, p2: Point2D) -> float:
    """Angle of the line p1 -> p2 in degrees, in (-180, 180]."""
    return math.degrees(math.atan2(p2.y - p1.y, p2.x - p1.x))


def head_tilt_degrees(left_eye: Point2D, right_eye: Point2D) -> float:
    """
    Deviation of the eye line from horizontal, in [0, 90].

    Same as folding eye_line_angle (|a| > 90 becomes 180 - |a|), but taken
    from absolute deltas so swapping the eyes gives the identical float.
    """
    return math.degrees(math.atan2(abs(right_eye.y - left_eye.y), abs(right_eye.x - left_eye.x)))


def _face_count_check(count: int) -> ComplianceCheck:
    if count == 0:
        msg = "No face detected. Please ensure your face is clearly visible."
    elif count > 1:
        msg = f"{count} faces detected. Only one person should be in the photo."
    else:
        msg = "One face detected ✓"
    return ComplianceCheck(id=FACE_COUNT_ID, label="Single Face Detected", passed=count == 1, message=msg)


def evaluate(
    image_width: float,
    image_height: float,
    faces: Sequence[FaceDetectionResult],
    standard: PhotoStandard = US_PASSPORT,
) -> ComplianceResult:
    """
    Check detected faces against the photo standard's geometric rules.

    Rules run in a fixed order: face count, head size, framing margin, head
    tilt, horizontal centering. When the face count is not exactly one, only
    that check is returned and the remaining metrics stay at zero.

    Non-compliance is reported through the returned checks; this function does
    not raise for a bad photo.
    """
    checks: List[ComplianceCheck] = []

    # Rule: Face count
    count_check = _face_count_check(len(faces))
    checks.append(count_check)
    if not count_check.passed:
        logger.debug("Face count %d, skipping geometric checks", len(faces))
        return ComplianceResult(
            passed=False,
            checks=tuple(checks),
            metrics=ComplianceMetrics(face_count=len(faces)),
            face_data=None,
        )

    face = faces[0]
    box = face.bounding_box
    lm = face.landmarks

    # Rule: Head size (resolution floor in source pixels)
    estimated_head = box.height * standard.head_to_box_ratio
    head_percent = _percent(estimated_head, image_height)
    head_ok = estimated_head >= standard.min_head_pixels
    if head_ok:
        head_msg = f"Head size sufficient ({estimated_head:.0f}px) ✓"
    else:
        head_msg = f"Face too small ({estimated_head:.0f}px). Move closer to the camera for better quality."
    checks.append(ComplianceCheck(id="head-size", label="Head Size", passed=head_ok, message=head_msg))

    # Rule: Framing margin. The crop needs this much source around the eyes to
    # place the head and eye line at their target positions without clipping.
    eye_center = lm.eye_center
    eye_percent = _percent(image_height - eye_center.y, image_height)

    crop_source_height = estimated_head / standard.target_head_fraction
    needed_above = crop_source_height * (1.0 - standard.target_eye_fraction)
    needed_below = crop_source_height * standard.target_eye_fraction
    available_above = eye_center.y
    available_below = image_height - eye_center.y

    required = standard.margin_fraction_required
    above_ok = available_above >= needed_above * required
    below_ok = available_below >= needed_below * required
    margin_ok = above_ok and below_ok
    if margin_ok:
        margin_msg = "Sufficient framing margin for crop ✓"
    elif not above_ok:
        margin_msg = "Not enough space above head. Move down or step back from the camera."
    else:
        margin_msg = "Not enough space below chin. Move up or step back from the camera."
    checks.append(ComplianceCheck(id="eye-height", label="Framing Margin", passed=margin_ok, message=margin_msg))

    # Rule: Head tilt
    tilt = head_tilt_degrees(lm.left_eye, lm.right_eye)
    tilt_ok = tilt <= standard.max_tilt_degrees
    if tilt_ok:
        tilt_msg = f"Head alignment correct (tilt: {tilt:.1f}°) ✓"
    else:
        tilt_msg = f"Head is tilted {tilt:.1f}°. Keep your head level."
    checks.append(ComplianceCheck(id="head-tilt", label="Head Alignment", passed=tilt_ok, message=tilt_msg))

    # Rule: Horizontal centering
    face_center_x = box.center_x
    image_center_x = image_width / 2.0
    offset_percent = _percent(abs(face_center_x - image_center_x), image_width)
    center_ok = offset_percent <= standard.max_center_offset_percent
    if center_ok:
        center_msg = "Face centered horizontally ✓"
    elif face_center_x < image_center_x:
        center_msg = "Face too far left. Center yourself in the frame."
    else:
        center_msg = "Face too far right. Center yourself in the frame."
    checks.append(
        ComplianceCheck(id="horizontal-centering", label="Horizontal Centering", passed=center_ok, message=center_msg)
    )

    metrics = ComplianceMetrics(
        face_count=1,
        head_height_percent=head_percent,
        eye_height_percent=eye_percent,
        head_tilt_degrees=tilt,
        horizontal_center_offset_percent=offset_percent,
    )
    passed = all(c.passed for c in checks)
    logger.debug(
        "Evaluated %gx%g: head=%.1f%% eyes=%.1f%% tilt=%.2f offset=%.1f%% passed=%s",
        image_width, image_height, head_percent, eye_percent, tilt, offset_percent, passed,
    )
    return ComplianceResult(passed=passed, checks=tuple(checks), metrics=metrics, face_data=face)
