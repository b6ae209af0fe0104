from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from passportframe.core.standard import US_PASSPORT, PhotoStandard
from passportframe.imaging import ImageInput, as_pil_rgb, bgr_np_to_pil, pil_to_bgr_np, resize_bgr

logger = logging.getLogger(__name__)

SHEET_SIZE_INCHES = (4.0, 6.0)
SHEET_GAP_INCHES = 0.1
CUT_LINE_COLOR = (200, 200, 200)
LABEL_COLOR = (100, 100, 100)
LABEL_Y_INCHES = 5.8
INSTRUCTION_Y_INCHES = 5.6
INSTRUCTION_TEXT = "Cut along the gray lines"


def create_preview(image: ImageInput, max_size: int = 300) -> Image.Image:
    """Downscale so the longer side is at most max_size; never upscales."""
    if max_size <= 0:
        raise ValueError("max_size must be > 0")
    pil = as_pil_rgb(image)
    longest = max(pil.width, pil.height)
    if longest <= max_size:
        return pil.copy()
    return bgr_np_to_pil(resize_bgr(pil_to_bgr_np(pil), max_size / float(longest)))


def _ensure_output_size(image: ImageInput, standard: PhotoStandard) -> Image.Image:
    pil = as_pil_rgb(image)
    size = standard.output_size
    if pil.size != (size, size):
        logger.warning("Resizing %dx%d image to %dx%d for export", pil.width, pil.height, size, size)
        pil = pil.resize((size, size), Image.LANCZOS)
    return pil


def export_image(image: ImageInput, path: Union[str, Path], standard: PhotoStandard = US_PASSPORT) -> Path:
    """
    Save the photo at exactly output_size x output_size with dpi metadata.

    JPEG for .jpg/.jpeg paths, otherwise whatever the extension selects (PNG
    is the expected choice).
    """
    out_path = Path(path)
    pil = _ensure_output_size(image, standard)
    dpi = (standard.dpi, standard.dpi)
    if out_path.suffix.lower() in (".jpg", ".jpeg"):
        pil.save(out_path, format="JPEG", quality=95, optimize=True, dpi=dpi)
    else:
        pil.save(out_path, dpi=dpi)
    logger.info("Saved %s", out_path)
    return out_path


def sheet_positions(standard: PhotoStandard = US_PASSPORT) -> List[Tuple[int, int]]:
    """
    Top-left pixel positions of the four photos on the print sheet.

    The gap shrinks (down to zero) on an axis where two photos plus the gap
    would not fit the sheet.
    """
    dpi = standard.dpi
    photo = standard.output_size
    sheet_w = int(round(SHEET_SIZE_INCHES[0] * dpi))
    sheet_h = int(round(SHEET_SIZE_INCHES[1] * dpi))
    gap = int(round(SHEET_GAP_INCHES * dpi))
    gap_x = max(0, min(gap, sheet_w - 2 * photo))
    gap_y = max(0, min(gap, sheet_h - 2 * photo))
    return [
        (0, 0),
        (photo + gap_x, 0),
        (0, photo + gap_y),
        (photo + gap_x, photo + gap_y),
    ]


def _draw_centered(draw: ImageDraw.ImageDraw, text: str, baseline_y: float, sheet_w: int, font) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    x = (sheet_w - (right - left)) / 2.0
    draw.text((x, baseline_y - (bottom - top)), text, fill=LABEL_COLOR, font=font)


def build_print_sheet(
    image: ImageInput,
    standard: PhotoStandard = US_PASSPORT,
    today: Optional[dt.date] = None,
) -> Image.Image:
    """
    Lay out four copies of the photo in a 2x2 grid on a 4x6 inch sheet.

    Each copy gets a thin grey cut line around it. A dated label and a cutting
    hint sit below the grid.
    """
    dpi = standard.dpi
    sheet_w = int(round(SHEET_SIZE_INCHES[0] * dpi))
    sheet_h = int(round(SHEET_SIZE_INCHES[1] * dpi))
    photo = _ensure_output_size(image, standard)
    size = standard.output_size

    sheet = Image.new("RGB", (sheet_w, sheet_h), (255, 255, 255))
    draw = ImageDraw.Draw(sheet)
    line_width = max(1, int(round(0.01 * dpi)))
    for x, y in sheet_positions(standard):
        sheet.paste(photo, (x, y))
        draw.rectangle([x, y, x + size - 1, y + size - 1], outline=CUT_LINE_COLOR, width=line_width)

    today = today or dt.date.today()
    font = ImageFont.load_default()
    label = f"{standard.name} - {today.strftime('%B')} {today.day}, {today.year}"
    _draw_centered(draw, label, LABEL_Y_INCHES * dpi, sheet_w, font)
    _draw_centered(draw, INSTRUCTION_TEXT, INSTRUCTION_Y_INCHES * dpi, sheet_w, font)

    sheet.info["dpi"] = (dpi, dpi)
    return sheet


def export_print_sheet(
    image: ImageInput,
    path: Union[str, Path],
    standard: PhotoStandard = US_PASSPORT,
    today: Optional[dt.date] = None,
) -> Path:
    """Write the 4x6 inch print sheet as a single-page PDF."""
    out_path = Path(path)
    sheet = build_print_sheet(image, standard, today=today)
    sheet.save(out_path, format="PDF", resolution=float(standard.dpi))
    logger.info("Saved print sheet %s", out_path)
    return out_path
