"""Sync orchestrator: one fetch -> join -> resolve -> materialize cycle."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from civicview.domain.composite_views.engine import join_all
from civicview.domain.errors import (
    JoinStageError,
    MaterializationInProgressError,
    MaterializeStageError,
    SyncError,
    SyncInProgressError,
    consolidate,
    never_unreachable,
)
from civicview.domain.materialization import utcnow

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from civicview.domain.composite_views.engine import JoinResult
    from civicview.domain.errors import ConnectivityCheck
    from civicview.domain.materialization import Clock, Materializer
    from civicview.domain.ports import SourceUnitOfWork


class SyncState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SyncSummary:
    """Run metadata returned to the caller of a successful sync."""

    total_reporters: int
    total_reports: int
    total_flags: int
    total_detections: int
    written: int
    timestamp: datetime


log = logging.getLogger(__name__)


class SyncOrchestrator:
    """Drive the join engine and the materializer for the whole report set.

    State moves ``idle -> running -> (idle | failed)``; a failed orchestrator
    may be run again. Only one run may be in flight per orchestrator.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: Callable[[], SourceUnitOfWork],
        materializer: Materializer,
        is_unreachable: ConnectivityCheck = never_unreachable,
        clock: Clock = utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._materializer = materializer
        self._is_unreachable = is_unreachable
        self._clock = clock
        self._run_lock = threading.Lock()
        self._state = SyncState.IDLE
        self.last_error: BaseException | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    def run(self) -> SyncSummary:
        """Run one sync cycle, raising a single :class:`SyncError` on failure."""

        if not self._run_lock.acquire(blocking=False):
            raise SyncInProgressError("A sync run is already in progress", stage="sync")
        try:
            self._state = SyncState.RUNNING
            self.last_error = None
            summary = self._run()
        except BaseException as exc:
            self._state = SyncState.FAILED
            self.last_error = exc
            raise
        else:
            self._state = SyncState.IDLE
            return summary
        finally:
            self._run_lock.release()

    def _run(self) -> SyncSummary:
        started = self._clock()
        log.info("Starting sync into %s", self._materializer.collection)

        try:
            with self._unit_of_work_factory() as uow:
                joined: JoinResult = join_all(uow.repositories)
        except Exception as exc:
            error = self._fail(exc, stage="join", stage_error=JoinStageError)
            if error is exc:
                raise
            raise error from exc

        try:
            written = self._materializer.replace(joined.views)
        except Exception as exc:
            stage_error = (
                SyncInProgressError
                if isinstance(exc, MaterializationInProgressError)
                else MaterializeStageError
            )
            error = self._fail(exc, stage="materialize", stage_error=stage_error)
            if error is exc:
                raise
            raise error from exc

        summary = SyncSummary(
            total_reporters=joined.total_reporters,
            total_reports=joined.total_reports,
            total_flags=joined.total_flags,
            total_detections=joined.total_detections,
            written=written,
            timestamp=self._clock(),
        )
        log.info(
            "Finished sync: reporters=%s, reports=%s, flags=%s, written=%s in %.2fs",
            summary.total_reporters,
            summary.total_reports,
            summary.total_flags,
            summary.written,
            (summary.timestamp - started).total_seconds(),
        )
        return summary

    def _fail(
        self,
        exc: Exception,
        *,
        stage: str,
        stage_error: type[SyncError],
    ) -> SyncError:
        error = consolidate(
            exc,
            stage=stage,
            stage_error=stage_error,
            is_unreachable=self._is_unreachable,
        )
        log.error("Sync failed during %s stage (%s): %s", stage, error.code, exc)
        return error
