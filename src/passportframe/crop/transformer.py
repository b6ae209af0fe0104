from __future__ import annotations

import logging
import math

from PIL import Image

from passportframe.core.errors import CropError
from passportframe.core.models import CropGeometry, FaceDetectionResult
from passportframe.core.standard import US_PASSPORT, PhotoStandard
from passportframe.imaging import ImageInput, as_pil_rgb, image_size

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)


def _clamp(value: float, lo: float, hi: float) -> float:
    # hi < lo when the window is larger than the source; the origin then pins to 0.
    return max(lo, min(value, hi))


def compute_crop_geometry(
    source_width: float,
    source_height: float,
    face: FaceDetectionResult,
    standard: PhotoStandard = US_PASSPORT,
) -> CropGeometry:
    """
    Compute the source window that maps the face onto the standard's layout.

    The window is a square of side output_size / scale, centred horizontally on
    the eye midpoint and placed vertically so the eye line ends up at
    target_eye_fraction of the output height, measured from the bottom.

    The window is then translated (not resized) to stay inside the source. If
    it is larger than the source, its origin pins to 0 and the side is trimmed
    to what the source has. The result is therefore always inside
    [0, source_width] x [0, source_height], at the cost of imperfect eye/head
    placement for faces near the edge of a small image.
    """
    out = standard.output_size
    eye = face.landmarks.eye_center

    target_head = out * standard.target_head_fraction
    estimated_head = face.bounding_box.height * standard.head_to_box_ratio

    if estimated_head > 0 and math.isfinite(estimated_head):
        scale = target_head / estimated_head
        side = out / scale
        x = eye.x - side / 2.0
        # Eye line sits target_eye_fraction from the bottom, i.e. this far from the top.
        eye_from_top = out * (1.0 - standard.target_eye_fraction)
        y = eye.y - eye_from_top / scale
    else:
        logger.warning("Unusable face box height %r; cropping the whole frame", face.bounding_box.height)
        side = float(max(source_width, source_height))
        scale = out / side if side > 0 else math.nan
        x = y = 0.0

    if not (math.isfinite(x) and math.isfinite(y)):
        x = y = 0.0

    x = _clamp(x, 0.0, source_width - side)
    y = _clamp(y, 0.0, source_height - side)
    width = min(side, source_width - x)
    height = min(side, source_height - y)

    geometry = CropGeometry(
        x=x,
        y=y,
        width=width,
        height=height,
        output_size=out,
        scale=scale,
        ideal_side=side,
    )
    if geometry.trimmed:
        logger.warning(
            "Crop window %.0fpx does not fit %gx%g source; using %.0fx%.0f",
            side, source_width, source_height, width, height,
        )
    logger.debug("Crop geometry: %s", geometry)
    return geometry


def render_crop(source: Image.Image, geometry: CropGeometry) -> Image.Image:
    """
    Draw the geometry's source window scaled to fill a white output square.
    """
    out = geometry.output_size
    try:
        canvas = Image.new("RGB", (out, out), WHITE)
        if geometry.width > 0 and geometry.height > 0:
            left, top, right, bottom = geometry.box
            # x + width can overshoot the edge by float rounding; Pillow rejects that.
            box = (left, top, min(right, float(source.width)), min(bottom, float(source.height)))
            scaled = source.resize((out, out), Image.LANCZOS, box=box)
            canvas.paste(scaled, (0, 0))
    except (OSError, ValueError, MemoryError) as e:
        raise CropError(f"Failed to render {out}x{out} crop: {e}") from e
    return canvas


def crop_to_target(
    source_image: ImageInput,
    face: FaceDetectionResult,
    standard: PhotoStandard = US_PASSPORT,
) -> Image.Image:
    """
    Crop and scale a photo so the face matches the standard's layout.

    Args:
      source_image: PIL image or OpenCV BGR array the face was detected in
      face: the single accepted face (ComplianceResult.face_data)
      standard: layout constants; default is the US 2x2 in passport photo

    Returns an RGB image of exactly output_size x output_size pixels with the
    standard's dpi recorded in its info. Raises CropError if the output could
    not be produced.
    """
    try:
        src = as_pil_rgb(source_image)
    except (TypeError, ValueError) as e:
        raise CropError(f"Cannot read source image: {e}") from e
    w, h = image_size(src)

    geometry = compute_crop_geometry(w, h, face, standard)
    out = render_crop(src, geometry)
    out.info["dpi"] = (standard.dpi, standard.dpi)
    return out
