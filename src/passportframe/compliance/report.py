from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from passportframe.core.models import FaceDetectionResult

FACE_COUNT_ID = "face-count"


@dataclass(frozen=True)
class ComplianceCheck:
    """
    Result of a single compliance rule.
    """
    id: str
    label: str
    passed: bool
    message: str


@dataclass(frozen=True)
class ComplianceMetrics:
    """
    Numbers measured during one evaluation.

    Everything except face_count stays 0.0 when the face-count check fails.
    """
    face_count: int
    head_height_percent: float = 0.0
    eye_height_percent: float = 0.0
    head_tilt_degrees: float = 0.0
    horizontal_center_offset_percent: float = 0.0


@dataclass(frozen=True)
class ComplianceResult:
    """
    Ordered compliance checks for one photo.

    face_data is set whenever exactly one face was found, even if later
    checks failed, so callers can still annotate the photo.
    """
    passed: bool
    checks: Tuple[ComplianceCheck, ...]
    metrics: ComplianceMetrics
    face_data: Optional[FaceDetectionResult] = None

    def check(self, check_id: str) -> Optional[ComplianceCheck]:
        for c in self.checks:
            if c.id == check_id:
                return c
        return None

    @property
    def failed_checks(self) -> List[ComplianceCheck]:
        return [c for c in self.checks if not c.passed]


def most_critical_failure(result: ComplianceResult) -> Optional[str]:
    """
    Message of the failure a user should fix first, or None if nothing failed.

    A face-count failure wins; otherwise the first failing check in order.
    """
    if result.passed:
        return None
    failed = result.failed_checks
    if not failed:
        return None
    critical = next((c for c in failed if c.id == FACE_COUNT_ID), failed[0])
    return critical.message


def compliance_summary(result: ComplianceResult, standard_name: str = "US passport") -> str:
    if result.passed:
        return f"Photo meets all {standard_name} requirements"
    failed_count = len(result.failed_checks)
    return f"{failed_count} requirement{'s' if failed_count != 1 else ''} not met"


def format_report_text(result: ComplianceResult) -> str:
    m = result.metrics
    lines: List[str] = []
    lines.append("Passport Photo Compliance Report")
    lines.append("-" * 32)
    lines.append(f"Overall: {'PASS' if result.passed else 'FAIL'}")
    lines.append("")
    for c in result.checks:
        mark = "✅" if c.passed else "❌"
        lines.append(f"{mark} {c.label}: {c.message}")
    lines.append("")
    lines.append(f"Faces: {m.face_count}")
    if result.face_data is not None:
        lines.append(f"Head height: {m.head_height_percent:.1f}% of image")
        lines.append(f"Eye height: {m.eye_height_percent:.1f}% from bottom")
        lines.append(f"Head tilt: {m.head_tilt_degrees:.1f}°")
        lines.append(f"Centre offset: {m.horizontal_center_offset_percent:.1f}% of width")
    return "\n".join(lines)
