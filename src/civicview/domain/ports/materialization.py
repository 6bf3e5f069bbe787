"""Port for the target store that holds materialized composite views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime, timedelta

    from civicview.domain.model import CompositeReportView


@dataclass(frozen=True, slots=True)
class SnapshotStatus:
    """Observable state of one target collection."""

    collection: str
    syncing: bool = False
    sync_started_at: datetime | None = None
    active_snapshot_id: int | None = None
    record_count: int = 0
    last_success_at: datetime | None = None
    last_error: str | None = None


@runtime_checkable
class SnapshotStore(Protocol):
    """Versioned snapshot storage for one or more target collections.

    Readers only ever see the snapshot the collection's pointer names. Each method
    runs in its own transaction. Writes after :meth:`claim` must pass the returned
    token; a token that no longer matches the stored claim is rejected.
    """

    def claim(self, collection: str, *, now: datetime, stale_after: timedelta) -> str: ...

    def stage(
        self,
        collection: str,
        views: Sequence[CompositeReportView],
        *,
        token: str,
        now: datetime,
    ) -> int: ...

    def publish(
        self,
        collection: str,
        snapshot_id: int,
        *,
        token: str,
        record_count: int,
        now: datetime,
    ) -> None: ...

    def abandon(
        self,
        collection: str,
        snapshot_id: int | None,
        *,
        token: str,
        error: str,
    ) -> None: ...

    def prune(self, collection: str) -> int: ...

    def read_active(self, collection: str) -> list[CompositeReportView]: ...

    def status(self, collection: str) -> SnapshotStatus: ...
