"""Pydantic models describing the JSON shapes civicview emits and stores.

Field names follow the camelCase of the consuming clients (``userId``,
``imageUrl``, ``redFlags`` ...). The same composite payload is used for the
materialized rows and for listing responses.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue
from pydantic.alias_generators import to_camel

from civicview.domain.model import (
    CompositeReportView,
    Coordinates,
    FlagKind,
    FlagSummary,
    Reporter,
)

if TYPE_CHECKING:
    from civicview.domain.ports import SnapshotStatus
    from civicview.domain.sync import SyncSummary


class CivicviewPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CoordinatesPayload(CivicviewPayload):
    latitude: float
    longitude: float


class FlagSummaryPayload(CivicviewPayload):
    reporter_id: int = Field(alias="userId")
    reporter_name: str = Field(alias="userName")
    reporter_email: str = Field(alias="userEmail")
    kind: FlagKind = Field(alias="type")
    reason: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, flag: FlagSummary) -> FlagSummaryPayload:
        return cls(
            reporter_id=flag.reporter_id,
            reporter_name=flag.reporter_name,
            reporter_email=flag.reporter_email,
            kind=flag.kind,
            reason=flag.reason,
            created_at=flag.created_at,
        )

    def to_domain(self) -> FlagSummary:
        return FlagSummary(
            reporter_id=self.reporter_id,
            reporter_name=self.reporter_name,
            reporter_email=self.reporter_email,
            kind=self.kind,
            reason=self.reason,
            created_at=self.created_at,
        )


class CompositeReportPayload(CivicviewPayload):
    id: int
    reporter_id: int = Field(alias="userId")
    title: str | None = None
    description: str | None = None
    location: str | None = None
    coordinates: CoordinatesPayload | None = None
    status: str
    image_url: str | None = None
    original_image_url: str | None = None
    submitted_by: str | None = None
    submitter_contact: str | None = None
    red_flags: int = 0
    green_flags: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    flags: list[FlagSummaryPayload] = Field(default_factory=list[FlagSummaryPayload])
    annotated_image_url: str | None = None
    detections: list[JsonValue] = Field(default_factory=list[JsonValue])
    detected_at: datetime | None = None

    @classmethod
    def from_domain(cls, view: CompositeReportView) -> CompositeReportPayload:
        coordinates = None
        if view.coordinates is not None:
            coordinates = CoordinatesPayload(
                latitude=view.coordinates.latitude,
                longitude=view.coordinates.longitude,
            )
        return cls(
            id=view.id,
            reporter_id=view.reporter_id,
            title=view.title,
            description=view.description,
            location=view.location,
            coordinates=coordinates,
            status=view.status,
            image_url=view.image_url,
            original_image_url=view.original_image_url,
            submitted_by=view.submitted_by,
            submitter_contact=view.submitter_contact,
            red_flags=view.red_flags,
            green_flags=view.green_flags,
            created_at=view.created_at,
            updated_at=view.updated_at,
            flags=[FlagSummaryPayload.from_domain(flag) for flag in view.flags],
            annotated_image_url=view.annotated_image_url,
            detections=list(view.detections),
            detected_at=view.detected_at,
        )

    def to_domain(self) -> CompositeReportView:
        coordinates = None
        if self.coordinates is not None:
            coordinates = Coordinates(
                latitude=self.coordinates.latitude,
                longitude=self.coordinates.longitude,
            )
        return CompositeReportView(
            id=self.id,
            reporter_id=self.reporter_id,
            title=self.title,
            description=self.description,
            location=self.location,
            coordinates=coordinates,
            status=self.status,
            image_url=self.image_url,
            original_image_url=self.original_image_url,
            submitted_by=self.submitted_by,
            submitter_contact=self.submitter_contact,
            red_flags=self.red_flags,
            green_flags=self.green_flags,
            created_at=self.created_at,
            updated_at=self.updated_at,
            flags=tuple(flag.to_domain() for flag in self.flags),
            annotated_image_url=self.annotated_image_url,
            detections=tuple(self.detections),
            detected_at=self.detected_at,
        )


class SyncSummaryPayload(CivicviewPayload):
    total_reporters: int
    total_reports: int
    total_flags: int
    total_detections: int
    written: int
    timestamp: datetime

    @classmethod
    def from_domain(cls, summary: SyncSummary) -> SyncSummaryPayload:
        return cls(
            total_reporters=summary.total_reporters,
            total_reports=summary.total_reports,
            total_flags=summary.total_flags,
            total_detections=summary.total_detections,
            written=summary.written,
            timestamp=summary.timestamp,
        )


class SnapshotStatusPayload(CivicviewPayload):
    collection: str
    syncing: bool
    sync_started_at: datetime | None = None
    active_snapshot_id: int | None = None
    record_count: int = 0
    last_success_at: datetime | None = None
    last_error: str | None = None

    @classmethod
    def from_domain(cls, status: SnapshotStatus) -> SnapshotStatusPayload:
        return cls(
            collection=status.collection,
            syncing=status.syncing,
            sync_started_at=status.sync_started_at,
            active_snapshot_id=status.active_snapshot_id,
            record_count=status.record_count,
            last_success_at=status.last_success_at,
            last_error=status.last_error,
        )


class ReporterProfilePayload(CivicviewPayload):
    id: int
    name: str
    email: str
    phone: str
    verified: bool
    face_image_url: str | None = None
    points: int

    @classmethod
    def from_domain(cls, reporter: Reporter) -> ReporterProfilePayload:
        return cls(
            id=reporter.id,
            name=reporter.name,
            email=reporter.email,
            phone=reporter.phone,
            verified=reporter.verified,
            face_image_url=reporter.face_image_url,
            points=reporter.points,
        )


class ErrorPayload(CivicviewPayload):
    error: str
    code: str
