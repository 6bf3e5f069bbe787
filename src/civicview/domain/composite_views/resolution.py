"""Precedence rules for fields that exist in more than one source record."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from civicview.domain.model import Detection, Report, Reporter


def select_detection(detections: Iterable[Detection]) -> Detection | None:
    """Pick the first-match detection for singular composite fields.

    First match is the earliest-inserted record (lowest id), whatever the
    ``created_at`` values say.
    """

    return min(detections, key=lambda detection: detection.id, default=None)


def resolve_display_image(report: Report, detection: Detection | None) -> str | None:
    """Annotated image when one exists, otherwise the report's own image."""

    if detection is not None and detection.annotated_image_url:
        return detection.annotated_image_url
    return report.image_url


def resolve_submitter(reporter: Reporter | None) -> tuple[str | None, str | None]:
    """Return the live ``(display name, contact)`` of the submitting reporter."""

    if reporter is None:
        return None, None
    return reporter.name, reporter.email
