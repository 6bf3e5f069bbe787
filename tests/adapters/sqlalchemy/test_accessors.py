from __future__ import annotations

from sqlalchemy import insert
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session

from civicview.adapters.sqlalchemy import (
    SqlAlchemyDetectionAccessor,
    SqlAlchemyFlagAccessor,
    SqlAlchemyReportAccessor,
    SqlAlchemyReporterAccessor,
)
from civicview.adapters.sqlalchemy.tables import flag_table, report_table
from civicview.domain.model import Coordinates, FlagKind, Reporter
from tests.helpers.records import BASE_TIME, SourceData


def test_reporter_accessor_never_exposes_one_time_codes(
    source_engine: Engine,
    scenario: SourceData,
) -> None:
    author = scenario.reporters[0]
    with Session(source_engine) as session:
        reporter = SqlAlchemyReporterAccessor(session).get(author.id)

    assert reporter == author
    assert isinstance(reporter, Reporter)
    assert not hasattr(reporter, "otp")
    assert not hasattr(reporter, "otp_expiry")


def test_reporter_accessor_lists_by_ids(source_engine: Engine, scenario: SourceData) -> None:
    wanted = {scenario.reporters[0].id, scenario.reporters[2].id}
    with Session(source_engine) as session:
        accessor = SqlAlchemyReporterAccessor(session)
        reporters = accessor.list(ids=wanted)
        everyone = accessor.list()
        nobody = accessor.list(ids=set())
        missing = accessor.get(9_999_999)

    assert [reporter.id for reporter in reporters] == sorted(wanted)
    assert everyone == scenario.reporters
    assert nobody == []
    assert missing is None


def test_report_accessor_round_trips_records(source_engine: Engine, scenario: SourceData) -> None:
    with Session(source_engine) as session:
        accessor = SqlAlchemyReportAccessor(session)
        reports = accessor.list()
        scoped = accessor.list(reporter_id=scenario.reporters[0].id)
        total = accessor.count()

    assert reports == scenario.reports
    assert [report.title for report in scoped] == ["Pothole"]
    assert total == 2
    assert reports[0].coordinates == Coordinates(latitude=12.97, longitude=77.59)
    assert reports[0].created_at is not None
    assert reports[0].created_at.tzinfo is not None


def test_report_accessor_applies_defaults(source_engine: Engine, scenario: SourceData) -> None:
    author = scenario.reporters[0]
    with source_engine.begin() as connection:
        connection.execute(insert(report_table).values(reporter_id=author.id, title="Bare"))

    with Session(source_engine) as session:
        bare = next(
            report for report in SqlAlchemyReportAccessor(session).list() if report.title == "Bare"
        )

    assert bare.status == "pending"
    assert bare.red_flags == 0
    assert bare.green_flags == 0
    assert bare.coordinates is None
    assert bare.created_at is None


def test_flag_accessor_filters_by_report(source_engine: Engine, scenario: SourceData) -> None:
    report = scenario.reports[0]
    with Session(source_engine) as session:
        accessor = SqlAlchemyFlagAccessor(session)
        flags = accessor.list(report_ids=[report.id])
        unrelated = accessor.list(report_ids=[scenario.reports[1].id])

    assert flags == scenario.flags
    assert unrelated == []


def test_flag_accessor_drops_reason_of_positive_flags(
    source_engine: Engine,
    scenario: SourceData,
) -> None:
    report = scenario.reports[0]
    voter = scenario.reporters[1]
    with source_engine.begin() as connection:
        connection.execute(
            insert(flag_table).values(
                report_id=report.id,
                reporter_id=voter.id,
                reporter_name=voter.name,
                reporter_email=voter.email,
                kind=FlagKind.POSITIVE,
                reason="left over from an edit",
                created_at=BASE_TIME,
            )
        )

    with Session(source_engine) as session:
        flags = SqlAlchemyFlagAccessor(session).list(report_ids=[report.id])

    assert flags[-1].kind is FlagKind.POSITIVE
    assert flags[-1].reason is None


def test_detection_accessor_keeps_object_payloads(
    source_engine: Engine,
    scenario: SourceData,
) -> None:
    with Session(source_engine) as session:
        accessor = SqlAlchemyDetectionAccessor(session)
        detections = accessor.list()
        total = accessor.count()

    assert total == 1
    assert detections == scenario.detections
    assert [item["class"] for item in detections[0].objects] == ["pothole", "garbage_pile"]
