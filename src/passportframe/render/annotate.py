from __future__ import annotations

import cv2
import numpy as np
from PIL import Image

from passportframe.compliance.report import ComplianceResult
from passportframe.imaging import ImageInput, as_pil_rgb, bgr_np_to_pil, pil_to_bgr_np

# BGR
PASS_COLOR = (0, 170, 0)
FAIL_COLOR = (0, 0, 220)
LANDMARK_COLOR = (255, 160, 0)


def annotate_photo(image: ImageInput, result: ComplianceResult) -> Image.Image:
    """
    Draw the detected face box, landmarks and eye line onto a copy of `image`.

    The box is green when the photo passed and red otherwise. Without face
    data (zero or several faces) the image is returned unannotated.
    """
    pil = as_pil_rgb(image)
    face = result.face_data
    if face is None:
        return pil.copy()

    bgr = pil_to_bgr_np(pil)
    h, w = bgr.shape[:2]
    thickness = max(1, int(round(min(h, w) / 300)))
    color = PASS_COLOR if result.passed else FAIL_COLOR

    box = face.bounding_box
    p1 = (int(round(box.origin_x)), int(round(box.origin_y)))
    p2 = (int(round(box.origin_x + box.width)), int(round(box.origin_y + box.height)))
    cv2.rectangle(bgr, p1, p2, color, thickness)

    lm = face.landmarks
    left = (int(round(lm.left_eye.x)), int(round(lm.left_eye.y)))
    right = (int(round(lm.right_eye.x)), int(round(lm.right_eye.y)))
    cv2.line(bgr, left, right, color, thickness)

    radius = max(2, thickness * 2)
    for p in (lm.left_eye, lm.right_eye, lm.nose, lm.mouth):
        cv2.circle(bgr, (int(round(p.x)), int(round(p.y))), radius, LANDMARK_COLOR, -1)

    return bgr_np_to_pil(np.ascontiguousarray(bgr))
