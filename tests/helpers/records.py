"""Factories and in-memory fakes for source records and accessors."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import insert

from civicview.adapters.sqlalchemy.tables import (
    detection_table,
    flag_table,
    report_table,
    reporter_table,
)
from civicview.domain.composite_views import join_reports
from civicview.domain.model import Coordinates, Detection, Flag, FlagKind, Report, Reporter
from civicview.domain.ports import SourceAccessors

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from types import TracebackType

    from sqlalchemy.engine import Engine

    from civicview.domain.model import CompositeReportView

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)

_ids = count(1)


def next_id() -> int:
    return next(_ids)


def make_reporter(name: str = "A. Singh", **overrides: Any) -> Reporter:
    reporter_id = overrides.pop("id", None) or next_id()
    values: dict[str, Any] = {
        "email": f"reporter{reporter_id}@example.org",
        "phone": "+91-555-0100",
        "verified": True,
    }
    values.update(overrides)
    return Reporter(id=reporter_id, name=name, **values)


def make_report(reporter: Reporter | int, title: str = "Pothole", **overrides: Any) -> Report:
    reporter_id = reporter if isinstance(reporter, int) else reporter.id
    report_id = overrides.pop("id", None) or next_id()
    values: dict[str, Any] = {
        "description": f"{title} near the market",
        "location": "MG Road",
        "coordinates": Coordinates(latitude=12.97, longitude=77.59),
        "image_url": f"https://img.example.org/reports/{report_id}.jpg",
        "submitted_by": "cached name",
        "created_at": BASE_TIME + timedelta(minutes=report_id),
        "updated_at": BASE_TIME + timedelta(minutes=report_id),
    }
    values.update(overrides)
    return Report(id=report_id, reporter_id=reporter_id, title=title, **values)


def make_flag(
    report: Report,
    voter: Reporter,
    kind: FlagKind = FlagKind.POSITIVE,
    **overrides: Any,
) -> Flag:
    flag_id = overrides.pop("id", None) or next_id()
    values: dict[str, Any] = {
        "reason": "duplicate" if kind is FlagKind.NEGATIVE else None,
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    return Flag(
        id=flag_id,
        report_id=report.id,
        reporter_id=voter.id,
        reporter_name=voter.name,
        reporter_email=voter.email,
        kind=kind,
        **values,
    )


def make_detection(report: Report, *labels: str, **overrides: Any) -> Detection:
    detection_id = overrides.pop("id", None) or next_id()
    objects = tuple(
        {"class": label, "confidence": 0.9, "box": [100, 100, 200, 200]} for label in labels
    )
    values: dict[str, Any] = {
        "annotated_image_url": f"https://img.example.org/annotated/{report.id}.jpg",
        "objects": objects,
        "created_at": BASE_TIME,
    }
    values.update(overrides)
    return Detection(id=detection_id, report_id=report.id, **values)


@dataclass(slots=True)
class SourceData:
    reporters: list[Reporter] = field(default_factory=list[Reporter])
    reports: list[Report] = field(default_factory=list[Report])
    flags: list[Flag] = field(default_factory=list[Flag])
    detections: list[Detection] = field(default_factory=list[Detection])


class FakeReporterAccessor:
    def __init__(self, data: SourceData) -> None:
        self.data = data

    def count(self) -> int:
        return len(self.data.reporters)

    def list(self, *, ids: Collection[int] | None = None) -> Sequence[Reporter]:
        return [item for item in self.data.reporters if ids is None or item.id in ids]

    def get(self, reporter_id: int) -> Reporter | None:
        return next((item for item in self.data.reporters if item.id == reporter_id), None)


class FakeReportAccessor:
    def __init__(self, data: SourceData) -> None:
        self.data = data
        self.calls: list[int | None] = []

    def count(self) -> int:
        return len(self.data.reports)

    def list(self, *, reporter_id: int | None = None) -> Sequence[Report]:
        self.calls.append(reporter_id)
        return [
            item
            for item in self.data.reports
            if reporter_id is None or item.reporter_id == reporter_id
        ]


class FakeFlagAccessor:
    def __init__(self, data: SourceData) -> None:
        self.data = data

    def count(self) -> int:
        return len(self.data.flags)

    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Flag]:
        return [
            item for item in self.data.flags if report_ids is None or item.report_id in report_ids
        ]


class FakeDetectionAccessor:
    def __init__(self, data: SourceData) -> None:
        self.data = data

    def count(self) -> int:
        return len(self.data.detections)

    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Detection]:
        return [
            item
            for item in self.data.detections
            if report_ids is None or item.report_id in report_ids
        ]


def fake_accessors(data: SourceData) -> SourceAccessors:
    return SourceAccessors(
        reporters=FakeReporterAccessor(data),
        reports=FakeReportAccessor(data),
        flags=FakeFlagAccessor(data),
        detections=FakeDetectionAccessor(data),
    )


class FakeSourceUnitOfWork:
    """In-memory unit of work; ``fail_with`` makes entering it raise."""

    def __init__(self, data: SourceData, *, fail_with: Exception | None = None) -> None:
        self._repositories = fake_accessors(data)
        self.fail_with = fail_with
        self.entered = 0

    @property
    def repositories(self) -> SourceAccessors:
        return self._repositories

    def __enter__(self) -> FakeSourceUnitOfWork:
        self.entered += 1
        if self.fail_with is not None:
            raise self.fail_with
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        return False

    def commit(self) -> None:
        return None

    def rollback(self) -> None:
        return None


def seed_source(engine: Engine, data: SourceData, *, with_otp: bool = True) -> None:
    """Insert ``data`` into the SQL source tables, keeping the given ids."""

    with engine.begin() as connection:
        for reporter in data.reporters:
            connection.execute(
                insert(reporter_table).values(
                    id=reporter.id,
                    name=reporter.name,
                    email=reporter.email,
                    phone=reporter.phone,
                    verified=reporter.verified,
                    face_image_url=reporter.face_image_url,
                    points=reporter.points,
                    otp="124590" if with_otp else None,
                    otp_expiry=BASE_TIME if with_otp else None,
                )
            )
        for report in data.reports:
            connection.execute(
                insert(report_table).values(
                    id=report.id,
                    reporter_id=report.reporter_id,
                    title=report.title,
                    description=report.description,
                    location=report.location,
                    latitude=report.coordinates.latitude if report.coordinates else None,
                    longitude=report.coordinates.longitude if report.coordinates else None,
                    status=report.status,
                    image_url=report.image_url,
                    submitted_by=report.submitted_by,
                    red_flags=report.red_flags,
                    green_flags=report.green_flags,
                    created_at=report.created_at,
                    updated_at=report.updated_at,
                )
            )
        for flag in data.flags:
            connection.execute(
                insert(flag_table).values(
                    id=flag.id,
                    report_id=flag.report_id,
                    reporter_id=flag.reporter_id,
                    reporter_name=flag.reporter_name,
                    reporter_email=flag.reporter_email,
                    kind=flag.kind,
                    reason=flag.reason,
                    created_at=flag.created_at,
                )
            )
        for detection in data.detections:
            connection.execute(
                insert(detection_table).values(
                    id=detection.id,
                    report_id=detection.report_id,
                    annotated_image_url=detection.annotated_image_url,
                    objects=list(detection.objects),
                    created_at=detection.created_at,
                )
            )


def scenario_data() -> SourceData:
    """Report R by 'A. Singh' with two flags and one detection; R2 whose reporter is gone."""

    author = make_reporter("A. Singh")
    voter_one = make_reporter("B. Rao")
    voter_two = make_reporter("C. Iyer")
    report = make_report(author, "Pothole", red_flags=1, green_flags=1)
    orphan = make_report(
        next_id(),
        "Broken streetlight",
        image_url="https://img.example.org/r2.jpg",
    )
    return SourceData(
        reporters=[author, voter_one, voter_two],
        reports=[report, orphan],
        flags=[
            make_flag(report, voter_one, FlagKind.POSITIVE),
            make_flag(report, voter_two, FlagKind.NEGATIVE, reason="duplicate"),
        ],
        detections=[make_detection(report, "pothole", "garbage_pile")],
    )


def join_source(data: SourceData) -> list[CompositeReportView]:
    return join_reports(
        data.reports,
        reporters=data.reporters,
        flags=data.flags,
        detections=data.detections,
    )
