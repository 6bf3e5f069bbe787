"""Join engine: correlate reports with reporters, flags and detections."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from civicview.domain.composite_views.resolution import (
    resolve_display_image,
    resolve_submitter,
    select_detection,
)
from civicview.domain.model import CompositeReportView, FlagSummary

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from civicview.domain.model import Detection, Flag, Report, Reporter
    from civicview.domain.ports import SourceAccessors

log = logging.getLogger(__name__)

_UNSET_TIMESTAMP: Final[datetime] = datetime.min.replace(tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class JoinResult:
    """Composite views of one unscoped join pass plus source record counts."""

    views: tuple[CompositeReportView, ...]
    total_reporters: int
    total_reports: int
    total_flags: int
    total_detections: int


def newest_first(reports: Iterable[Report]) -> list[Report]:
    """Order reports by creation time descending; ties and gaps keep insertion order."""

    by_insertion = sorted(reports, key=lambda report: report.id)
    # reverse=True keeps equal keys in their original order
    return sorted(
        by_insertion,
        key=lambda report: (
            report.created_at is not None,
            report.created_at or _UNSET_TIMESTAMP,
        ),
        reverse=True,
    )


def join_reports(
    reports: Iterable[Report],
    *,
    reporters: Iterable[Reporter],
    flags: Iterable[Flag],
    detections: Iterable[Detection],
) -> list[CompositeReportView]:
    """Produce exactly one composite view per report, newest first.

    Pure and deterministic: the same inputs always yield the same output in the
    same order. Missing reporters, flags or detections resolve to null/empty;
    flags and detections referencing unknown reports are ignored.
    """

    ordered_reports = newest_first(reports)
    known_ids = {report.id for report in ordered_reports}
    reporters_by_id = {reporter.id: reporter for reporter in reporters}

    flags_by_report: defaultdict[int, list[Flag]] = defaultdict(list)
    dangling_flags = 0
    for flag in sorted(flags, key=lambda item: item.id):
        if flag.report_id not in known_ids:
            dangling_flags += 1
            continue
        flags_by_report[flag.report_id].append(flag)

    detections_by_report: defaultdict[int, list[Detection]] = defaultdict(list)
    dangling_detections = 0
    for detection in detections:
        if detection.report_id not in known_ids:
            dangling_detections += 1
            continue
        detections_by_report[detection.report_id].append(detection)

    if dangling_flags or dangling_detections:
        log.debug(
            "Ignoring records without a matching report: flags=%s, detections=%s",
            dangling_flags,
            dangling_detections,
        )

    return [
        _compose(
            report,
            reporter=reporters_by_id.get(report.reporter_id),
            flags=flags_by_report.get(report.id, ()),
            detections=detections_by_report.get(report.id, ()),
        )
        for report in ordered_reports
    ]


def _compose(
    report: Report,
    *,
    reporter: Reporter | None,
    flags: Sequence[Flag],
    detections: Sequence[Detection],
) -> CompositeReportView:
    selected = select_detection(detections)
    submitted_by, submitter_contact = resolve_submitter(reporter)
    return CompositeReportView(
        id=report.id,
        reporter_id=report.reporter_id,
        title=report.title,
        description=report.description,
        location=report.location,
        coordinates=report.coordinates,
        status=report.status,
        image_url=resolve_display_image(report, selected),
        original_image_url=report.image_url,
        submitted_by=submitted_by,
        submitter_contact=submitter_contact,
        red_flags=report.red_flags,
        green_flags=report.green_flags,
        created_at=report.created_at,
        updated_at=report.updated_at,
        flags=tuple(FlagSummary.from_flag(flag) for flag in flags),
        annotated_image_url=selected.annotated_image_url if selected else None,
        detections=tuple(selected.objects) if selected else (),
        detected_at=selected.created_at if selected else None,
    )


def build_composite_views(
    accessors: SourceAccessors,
    *,
    reporter_id: int | None = None,
) -> list[CompositeReportView]:
    """Read through ``accessors`` and join, optionally scoped to one reporter's reports."""

    reports = accessors.reports.list(reporter_id=reporter_id)
    if reporter_id is None:
        return join_reports(
            reports,
            reporters=accessors.reporters.list(),
            flags=accessors.flags.list(),
            detections=accessors.detections.list(),
        )

    if not reports:
        return []
    report_ids = [report.id for report in reports]
    return join_reports(
        reports,
        reporters=accessors.reporters.list(ids={report.reporter_id for report in reports}),
        flags=accessors.flags.list(report_ids=report_ids),
        detections=accessors.detections.list(report_ids=report_ids),
    )


def join_all(accessors: SourceAccessors) -> JoinResult:
    """Run an unscoped join pass and collect the store-wide record counts."""

    views = build_composite_views(accessors)
    return JoinResult(
        views=tuple(views),
        total_reporters=accessors.reporters.count(),
        total_reports=accessors.reports.count(),
        total_flags=accessors.flags.count(),
        total_detections=accessors.detections.count(),
    )
