"""
Check a portrait photo against identity-photo geometry rules and, if it
complies, write a normalized square photo (600x600 px, 2x2 in at 300 dpi for
the default US passport standard).

Usage:
  passportframe --input in.jpg --output out.jpg
  passportframe -i in.jpg -o out.png --print-sheet sheet.pdf --annotate debug.jpg
  passportframe -i in.jpg --standard schengen.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from passportframe.compliance.report import format_report_text, most_critical_failure
from passportframe.core.standard import load_standard
from passportframe.detection.detector import DetectorConfig, FaceDetector
from passportframe.pipeline import process_photo
from passportframe.render.annotate import annotate_photo
from passportframe.render.export import export_image, export_print_sheet

logger = logging.getLogger("passportframe")

EXIT_OK = 0
EXIT_NOT_COMPLIANT = 1
EXIT_ERROR = 2


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="passportframe",
        description="Check a photo against passport photo geometry and crop it to the standard layout.",
    )
    p.add_argument("--input", "-i", required=True, help="Path to input image (jpg/png, etc.)")
    p.add_argument("--output", "-o", help="Path to output image (jpg/png); written only if the photo complies")
    p.add_argument("--standard", help="YAML file overriding the default US passport standard")
    p.add_argument("--annotate", help="Write the input with the detected face box and landmarks drawn on it")
    p.add_argument("--print-sheet", help="Also write a 4x6 in PDF print sheet with four copies")
    p.add_argument("--min-confidence", type=float, default=0.5, help="Minimum face detection confidence (default: 0.5)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        standard = load_standard(args.standard)
        with FaceDetector(DetectorConfig(min_detection_confidence=args.min_confidence)) as detector:
            result = process_photo(args.input, detector, standard)

        print(format_report_text(result.compliance))

        if args.annotate:
            annotate_photo(result.original, result.compliance).save(args.annotate)

        if result.cropped is None:
            print(f"\nNot saved: {most_critical_failure(result.compliance)}")
            return EXIT_NOT_COMPLIANT

        if args.output:
            export_image(result.cropped, args.output, standard)
            print(f"\nSaved: {args.output}")
        if args.print_sheet:
            export_print_sheet(result.cropped, args.print_sheet, standard)
            print(f"Saved: {args.print_sheet}")
    except Exception as e:
        logger.debug("Processing failed", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
