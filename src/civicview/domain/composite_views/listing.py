"""Live listing path: composite views straight from the source store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from civicview.domain.composite_views.engine import build_composite_views
from civicview.domain.errors import JoinStageError, consolidate, never_unreachable
from civicview.domain.model import ListingScope

if TYPE_CHECKING:
    from collections.abc import Callable

    from civicview.domain.errors import ConnectivityCheck
    from civicview.domain.model import CompositeReportView
    from civicview.domain.ports import SourceUnitOfWork

log = logging.getLogger(__name__)


def list_views(
    *,
    unit_of_work_factory: Callable[[], SourceUnitOfWork],
    scope: ListingScope = ListingScope.OWN,
    reporter_id: int | None = None,
    is_unreachable: ConnectivityCheck = never_unreachable,
) -> list[CompositeReportView]:
    """Return composite views for one reporter (``own``) or for every report (``active``).

    Never touches the target store, so it stays usable while a sync run is writing.
    """

    if scope is ListingScope.OWN and reporter_id is None:
        raise ValueError("Listing own reports requires a reporter id")

    scoped_reporter = reporter_id if scope is ListingScope.OWN else None
    try:
        with unit_of_work_factory() as uow:
            views = build_composite_views(uow.repositories, reporter_id=scoped_reporter)
    except Exception as exc:
        error = consolidate(
            exc,
            stage="join",
            stage_error=JoinStageError,
            is_unreachable=is_unreachable,
        )
        log.exception("Listing failed (%s)", error.code)
        if error is exc:
            raise
        raise error from exc

    log.info("Listed %s composite views (scope=%s)", len(views), scope)
    return views
