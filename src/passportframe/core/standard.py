from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoStandard:
    """
    Policy values for one identity-photo standard.

    The evaluator and the crop transformer read every threshold from here, so a
    different document standard is a different PhotoStandard, not a code change.

    output_size:
        Output width/height in pixels (square). Default 600.
    dpi:
        Print density of the output. 600 px at 300 dpi is a 2x2 inch photo.
    head_to_box_ratio:
        Full head height (with hair) / detector box height (forehead to chin).
    target_head_fraction:
        Head height as a fraction of the output height after cropping.
    target_eye_fraction:
        Eye line height measured from the bottom, as a fraction of the output.
    min_head_pixels:
        Smallest estimated head height, in source pixels, that still crops
        without heavy upscaling.
    margin_fraction_required:
        Fraction of the needed framing margin that must be available above and
        below the eyes.
    max_tilt_degrees:
        Largest eye-line deviation from horizontal.
    max_center_offset_percent:
        Largest horizontal offset of the face centre, in percent of image width.
    """
    name: str = "US passport (2x2 in)"
    output_size: int = 600
    dpi: int = 300
    head_to_box_ratio: float = 1.25
    target_head_fraction: float = 0.595
    target_eye_fraction: float = 0.625
    min_head_pixels: float = 150.0
    margin_fraction_required: float = 0.95
    max_tilt_degrees: float = 5.0
    max_center_offset_percent: float = 10.0

    def __post_init__(self) -> None:
        if self.output_size <= 0:
            raise ValueError(f"output_size must be > 0, got {self.output_size}")
        if self.dpi <= 0:
            raise ValueError(f"dpi must be > 0, got {self.dpi}")
        if self.head_to_box_ratio <= 0:
            raise ValueError(f"head_to_box_ratio must be > 0, got {self.head_to_box_ratio}")
        for name in ("target_head_fraction", "target_eye_fraction"):
            value = getattr(self, name)
            if not (0.0 < value < 1.0):
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        for name in ("min_head_pixels", "margin_fraction_required", "max_tilt_degrees", "max_center_offset_percent"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    @property
    def physical_size_inches(self) -> float:
        return self.output_size / float(self.dpi)


US_PASSPORT = PhotoStandard()


def _field_names() -> set[str]:
    return {f.name for f in fields(PhotoStandard)}


def standard_from_mapping(data: Mapping[str, Any], base: PhotoStandard = US_PASSPORT) -> PhotoStandard:
    """Apply a mapping of field overrides on top of `base`."""
    unknown = sorted(set(data) - _field_names())
    if unknown:
        raise ValueError(f"Unknown photo standard keys: {', '.join(unknown)}")
    return replace(base, **dict(data))


def load_standard(path: str | Path | None, base: PhotoStandard = US_PASSPORT) -> PhotoStandard:
    """
    Load a PhotoStandard from a YAML file of field overrides.

    A missing path or file yields `base` unchanged.
    """
    if not path:
        return base
    p = Path(path)
    if not p.exists():
        logger.warning("Photo standard file not found: %s (using %s)", p, base.name)
        return base
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Top-level of a photo standard YAML must be a mapping")
    standard = standard_from_mapping(data, base=base)
    logger.debug("Loaded photo standard %r from %s", standard.name, p)
    return standard
