"""Operational records read from the source store.

The records are owned by other subsystems (registration, submission, flagging,
image analysis); civicview only reads them. Identifiers are assigned by the
source store in insertion order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from datetime import datetime

    from civicview.domain.model.enums import FlagKind

DEFAULT_REPORT_STATUS: Final[str] = "pending"
DEFAULT_REPORTER_POINTS: Final[int] = 10000

# opaque descriptor from image analysis, any JSON value
type DetectedObject = object


@dataclass(frozen=True, slots=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True, slots=True, kw_only=True)
class Reporter:
    """Public identity of a reporting user (one-time codes never reach this type)."""

    id: int
    name: str
    email: str
    phone: str
    verified: bool = False
    face_image_url: str | None = None
    points: int = DEFAULT_REPORTER_POINTS


@dataclass(frozen=True, slots=True, kw_only=True)
class Report:
    """A submitted issue.

    ``red_flags``/``green_flags`` are incremented by the flagging flow and are
    copied as-is; they are not guaranteed to match the number of Flag records.
    """

    id: int
    reporter_id: int
    title: str | None = None
    description: str | None = None
    location: str | None = None
    coordinates: Coordinates | None = None
    status: str = DEFAULT_REPORT_STATUS
    image_url: str | None = None
    submitted_by: str | None = None
    red_flags: int = 0
    green_flags: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Flag:
    id: int
    report_id: int
    reporter_id: int
    reporter_name: str
    reporter_email: str
    kind: FlagKind
    reason: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class Detection:
    """Automated analysis result attached to a report."""

    id: int
    report_id: int
    annotated_image_url: str | None = None
    objects: tuple[DetectedObject, ...] = field(default_factory=tuple)
    created_at: datetime | None = None
