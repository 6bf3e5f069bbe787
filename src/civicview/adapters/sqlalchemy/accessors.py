"""Read-only accessors over the source store, backed by SQLAlchemy sessions.

Only public columns are selected, so one-time codes and their expiry never
leave this module. Store errors propagate unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from civicview.adapters.sqlalchemy.tables import (
    detection_table,
    flag_table,
    report_table,
    reporter_table,
)
from civicview.domain.model import (
    DEFAULT_REPORT_STATUS,
    DEFAULT_REPORTER_POINTS,
    Coordinates,
    Detection,
    Flag,
    FlagKind,
    Report,
    Reporter,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from sqlalchemy import Row, Select, Table
    from sqlalchemy.orm import Session

_REPORTER_COLUMNS = (
    reporter_table.c.id,
    reporter_table.c.name,
    reporter_table.c.email,
    reporter_table.c.phone,
    reporter_table.c.verified,
    reporter_table.c.face_image_url,
    reporter_table.c.points,
)


class _SqlAlchemyAccessor:
    table: Table

    def __init__(self, session: Session) -> None:
        self.session = session

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.table)
        return int(self.session.execute(stmt).scalar_one())

    def _rows(self, stmt: Select[Any]) -> Sequence[Row[Any]]:
        return self.session.execute(stmt.order_by(self.table.c.id)).all()


class SqlAlchemyReporterAccessor(_SqlAlchemyAccessor):
    table = reporter_table

    def list(self, *, ids: Collection[int] | None = None) -> Sequence[Reporter]:
        stmt = select(*_REPORTER_COLUMNS)
        if ids is not None:
            if not ids:
                return []
            stmt = stmt.where(reporter_table.c.id.in_(ids))
        return [_to_reporter(row) for row in self._rows(stmt)]

    def get(self, reporter_id: int) -> Reporter | None:
        stmt = select(*_REPORTER_COLUMNS).where(reporter_table.c.id == reporter_id)
        row = self.session.execute(stmt).one_or_none()
        return _to_reporter(row) if row is not None else None


class SqlAlchemyReportAccessor(_SqlAlchemyAccessor):
    table = report_table

    def list(self, *, reporter_id: int | None = None) -> Sequence[Report]:
        stmt = select(report_table)
        if reporter_id is not None:
            stmt = stmt.where(report_table.c.reporter_id == reporter_id)
        return [_to_report(row) for row in self._rows(stmt)]


class SqlAlchemyFlagAccessor(_SqlAlchemyAccessor):
    table = flag_table

    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Flag]:
        stmt = select(flag_table)
        if report_ids is not None:
            if not report_ids:
                return []
            stmt = stmt.where(flag_table.c.report_id.in_(report_ids))
        return [_to_flag(row) for row in self._rows(stmt)]


class SqlAlchemyDetectionAccessor(_SqlAlchemyAccessor):
    table = detection_table

    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Detection]:
        stmt = select(detection_table)
        if report_ids is not None:
            if not report_ids:
                return []
            stmt = stmt.where(detection_table.c.report_id.in_(report_ids))
        return [_to_detection(row) for row in self._rows(stmt)]


def _to_reporter(row: Row[Any]) -> Reporter:
    return Reporter(
        id=row.id,
        name=row.name,
        email=row.email,
        phone=row.phone,
        verified=bool(row.verified),
        face_image_url=row.face_image_url or None,
        points=row.points if row.points is not None else DEFAULT_REPORTER_POINTS,
    )


def _to_report(row: Row[Any]) -> Report:
    coordinates = None
    if row.latitude is not None and row.longitude is not None:
        coordinates = Coordinates(latitude=row.latitude, longitude=row.longitude)
    return Report(
        id=row.id,
        reporter_id=row.reporter_id,
        title=row.title,
        description=row.description,
        location=row.location,
        coordinates=coordinates,
        status=row.status or DEFAULT_REPORT_STATUS,
        image_url=row.image_url,
        submitted_by=row.submitted_by,
        red_flags=row.red_flags or 0,
        green_flags=row.green_flags or 0,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_flag(row: Row[Any]) -> Flag:
    kind = FlagKind(row.kind)
    return Flag(
        id=row.id,
        report_id=row.report_id,
        reporter_id=row.reporter_id,
        reporter_name=row.reporter_name,
        reporter_email=row.reporter_email,
        kind=kind,
        reason=row.reason if kind is FlagKind.NEGATIVE else None,
        created_at=row.created_at,
    )


def _to_detection(row: Row[Any]) -> Detection:
    return Detection(
        id=row.id,
        report_id=row.report_id,
        annotated_image_url=row.annotated_image_url,
        objects=tuple(row.objects or ()),
        created_at=row.created_at,
    )


if TYPE_CHECKING:
    from typing import cast

    from civicview.domain.ports import (
        DetectionAccessor,
        FlagAccessor,
        ReportAccessor,
        ReporterAccessor,
    )

    _session_stub = cast("Session", object())
    _reporter_check: ReporterAccessor = SqlAlchemyReporterAccessor(_session_stub)
    _report_check: ReportAccessor = SqlAlchemyReportAccessor(_session_stub)
    _flag_check: FlagAccessor = SqlAlchemyFlagAccessor(_session_stub)
    _detection_check: DetectionAccessor = SqlAlchemyDetectionAccessor(_session_stub)
