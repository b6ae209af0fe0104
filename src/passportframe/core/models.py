from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point2D:
    """A point in source-image pixel coordinates (not normalized)."""
    x: float
    y: float


@dataclass(frozen=True)
class BoundingBox:
    """
    Pixel rectangle of the detected face region.

    The detector's box covers forehead-to-chin and cheek-to-cheek. Hair is
    not included, which is why head height is estimated from it with a ratio.
    """
    origin_x: float
    origin_y: float
    width: float
    height: float

    @property
    def center_x(self) -> float:
        return self.origin_x + self.width / 2.0


@dataclass(frozen=True)
class FaceLandmarks:
    left_eye: Point2D
    right_eye: Point2D
    nose: Point2D
    mouth: Point2D

    @property
    def eye_center(self) -> Point2D:
        return Point2D(
            x=(self.left_eye.x + self.right_eye.x) / 2.0,
            y=(self.left_eye.y + self.right_eye.y) / 2.0,
        )


@dataclass(frozen=True)
class FaceDetectionResult:
    """One detected face: box, four landmarks and the detector's score."""
    bounding_box: BoundingBox
    landmarks: FaceLandmarks
    confidence: float = 0.0


@dataclass(frozen=True)
class CropGeometry:
    """
    Source rectangle chosen for the crop, after clamping to the image.

    x, y, width, height:
        Source window in pixels. Always inside the source image.
    output_size:
        Side of the square output, in pixels.
    scale:
        Ideal output/source scale derived from the head height.
    ideal_side:
        Unclamped window side (output_size / scale).
    """
    x: float
    y: float
    width: float
    height: float
    output_size: int
    scale: float
    ideal_side: float

    @property
    def box(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom), the form Pillow expects."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def trimmed(self) -> bool:
        """True when the window had to shrink to fit inside the source."""
        return self.width < self.ideal_side or self.height < self.ideal_side
