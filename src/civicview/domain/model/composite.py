"""Denormalized composite view of a report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from civicview.domain.model.enums import FlagKind
    from civicview.domain.model.records import Coordinates, DetectedObject, Flag


@dataclass(frozen=True, slots=True, kw_only=True)
class FlagSummary:
    reporter_id: int
    reporter_name: str
    reporter_email: str
    kind: FlagKind
    reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_flag(cls, flag: Flag) -> FlagSummary:
        return cls(
            reporter_id=flag.reporter_id,
            reporter_name=flag.reporter_name,
            reporter_email=flag.reporter_email,
            kind=flag.kind,
            reason=flag.reason,
            created_at=flag.created_at,
        )


@dataclass(frozen=True, slots=True, kw_only=True)
class CompositeReportView:
    """One report joined with its reporter, flags and selected detection.

    ``image_url`` is the display image; ``original_image_url`` always holds the
    report's own image. ``submitted_by``/``submitter_contact`` come from the live
    reporter record, not from the report's cached copy.
    """

    id: int
    reporter_id: int
    title: str | None
    description: str | None
    location: str | None
    coordinates: Coordinates | None
    status: str
    image_url: str | None
    original_image_url: str | None
    submitted_by: str | None
    submitter_contact: str | None
    red_flags: int
    green_flags: int
    created_at: datetime | None
    updated_at: datetime | None
    flags: tuple[FlagSummary, ...] = field(default_factory=tuple)
    annotated_image_url: str | None = None
    detections: tuple[DetectedObject, ...] = field(default_factory=tuple)
    detected_at: datetime | None = None
