"""Full-replacement materialization of composite views into a target collection.

A naive "delete everything, then insert everything" leaves readers looking at
an empty or half-written collection while it runs. Instead every replacement is
written as a new snapshot next to the published one and becomes visible through
a single pointer swap:

1. ``claim``   mark the collection as syncing (one writer at a time);
2. ``stage``   insert all rows under a fresh snapshot id, invisible to readers;
3. ``publish`` swap the pointer, record the success and release the claim;
4. ``prune``   drop superseded and abandoned snapshots.

If anything fails before the swap the staged snapshot is discarded and the
previous one stays published. A run that dies after claiming leaves the syncing
marker set, which :meth:`Materializer.status` reports until the claim goes stale.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from civicview.config.materialization import MaterializationConfig
from civicview.domain.errors import MaterializationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from civicview.domain.model import CompositeReportView
    from civicview.domain.ports import SnapshotStatus, SnapshotStore

log = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class Materializer:
    """Replace a target collection's contents with one join pass's composite views."""

    def __init__(
        self,
        store: SnapshotStore,
        *,
        config: MaterializationConfig | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.config = config or MaterializationConfig()
        self._clock = clock
        self._write_lock = threading.Lock()

    @property
    def collection(self) -> str:
        return self.config.collection

    def replace(self, views: Sequence[CompositeReportView]) -> int:
        """Publish ``views`` as the collection's complete contents; return the count written.

        Blocks while another replacement through this materializer is in flight.
        Raises :class:`MaterializationInProgressError` when another process holds a
        live claim, and :class:`MaterializationError` when the snapshot could not be
        written or published.
        """

        with self._write_lock:
            return self._replace(views)

    def _replace(self, views: Sequence[CompositeReportView]) -> int:
        token = self.store.claim(
            self.collection,
            now=self._clock(),
            stale_after=self.config.stale_after,
        )
        log.info("Claimed collection %s for replacement", self.collection)

        snapshot_id: int | None = None
        try:
            snapshot_id = self.store.stage(self.collection, views, token=token, now=self._clock())
            self.store.publish(
                self.collection,
                snapshot_id,
                token=token,
                record_count=len(views),
                now=self._clock(),
            )
        except BaseException as exc:
            log.exception(
                "Replacing collection %s failed; keeping the previous snapshot",
                self.collection,
            )
            self._abandon(snapshot_id, token=token, error=str(exc) or type(exc).__name__)
            if isinstance(exc, MaterializationError) or not isinstance(exc, Exception):
                raise
            raise MaterializationError(
                f"Could not replace collection {self.collection}: {exc}"
            ) from exc

        log.info(
            "Published snapshot %s with %s records to %s",
            snapshot_id,
            len(views),
            self.collection,
        )
        self._prune()
        return len(views)

    def _abandon(self, snapshot_id: int | None, *, token: str, error: str) -> None:
        # callers get the original failure; an unreleased claim expires after stale_after
        try:
            self.store.abandon(self.collection, snapshot_id, token=token, error=error)
        except Exception:
            log.exception("Releasing the claim on %s failed", self.collection)

    def _prune(self) -> None:
        # the new snapshot is already published; leftovers are retried on the next run
        try:
            removed = self.store.prune(self.collection)
        except Exception:
            log.warning("Pruning old snapshots of %s failed", self.collection, exc_info=True)
            return
        if removed:
            log.info("Pruned %s old snapshots from %s", removed, self.collection)

    def read(self) -> list[CompositeReportView]:
        """Return the currently published composite views in join order."""

        return self.store.read_active(self.collection)

    def status(self) -> SnapshotStatus:
        return self.store.status(self.collection)
