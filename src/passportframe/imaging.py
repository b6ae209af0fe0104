from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image, ImageOps

ImageInput = Union[Image.Image, np.ndarray]


def load_image_rgb(path: Union[str, Path]) -> Image.Image:
    """Load an image, apply EXIF orientation, return RGB PIL Image."""
    img = Image.open(path)
    img = ImageOps.exif_transpose(img)
    if img.mode != "RGB":
        img = img.convert("RGB")
    return img


def pil_to_bgr_np(img: Image.Image) -> np.ndarray:
    """PIL RGB -> OpenCV BGR numpy array."""
    arr = np.array(img.convert("RGB"))
    return cv2.cvtColor(arr, cv2.COLOR_RGB2BGR)


def bgr_np_to_pil(img_bgr: np.ndarray) -> Image.Image:
    """OpenCV BGR numpy array -> PIL RGB."""
    if img_bgr.ndim == 2:
        return Image.fromarray(img_bgr).convert("RGB")
    if img_bgr.shape[-1] == 4:
        img_bgr = cv2.cvtColor(img_bgr, cv2.COLOR_BGRA2BGR)
    rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)
    return Image.fromarray(rgb)


def as_pil_rgb(image: ImageInput) -> Image.Image:
    """
    Accepts either a PIL image (any mode) or an OpenCV BGR array.
    """
    if isinstance(image, Image.Image):
        return image if image.mode == "RGB" else image.convert("RGB")
    if isinstance(image, np.ndarray):
        return bgr_np_to_pil(image)
    raise TypeError(f"Unsupported image type: {type(image).__name__}")


def image_size(image: ImageInput) -> tuple[int, int]:
    """(width, height) of a PIL image or numpy array."""
    if isinstance(image, Image.Image):
        return image.size
    h, w = image.shape[:2]
    return w, h


def resize_bgr(img_bgr: np.ndarray, scale: float) -> np.ndarray:
    """Resize OpenCV BGR image by scale."""
    if scale <= 0:
        raise ValueError("Scale must be > 0")
    h, w = img_bgr.shape[:2]
    new_w = max(1, int(round(w * scale)))
    new_h = max(1, int(round(h * scale)))
    interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LANCZOS4
    return cv2.resize(img_bgr, (new_w, new_h), interpolation=interpolation)
