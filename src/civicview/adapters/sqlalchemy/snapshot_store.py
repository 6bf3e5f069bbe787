"""Versioned snapshot storage for composite views, backed by SQLAlchemy."""

from __future__ import annotations

import logging
import uuid
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from civicview.adapters.schema import CompositeReportPayload
from civicview.adapters.sqlalchemy.tables import (
    composite_snapshot_table,
    composite_view_table,
    snapshot_marker_table,
)
from civicview.domain.errors import MaterializationError, MaterializationInProgressError
from civicview.domain.ports import SnapshotStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime, timedelta

    from sqlalchemy import ColumnElement
    from sqlalchemy.orm import Session, sessionmaker

    from civicview.domain.model import CompositeReportView

log = logging.getLogger(__name__)


class SnapshotState(StrEnum):
    STAGING = "staging"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"
    FAILED = "failed"


class SqlAlchemySnapshotStore:
    """Keep every target collection as a pointer to one published snapshot.

    Rows of a staged snapshot are invisible to :meth:`read_active` until
    :meth:`publish` moves the pointer in a single transaction.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    def claim(self, collection: str, *, now: datetime, stale_after: timedelta) -> str:
        token = uuid.uuid4().hex
        try:
            with self.session_factory.begin() as session:
                marker = session.execute(
                    select(snapshot_marker_table).where(
                        snapshot_marker_table.c.collection == collection
                    )
                ).one_or_none()
                if marker is None:
                    session.execute(
                        insert(snapshot_marker_table).values(
                            collection=collection,
                            record_count=0,
                            claim_token=token,
                            claimed_at=now,
                        )
                    )
                    return token

                if marker.claim_token is not None:
                    if marker.claimed_at is not None and now - marker.claimed_at < stale_after:
                        raise MaterializationInProgressError(
                            f"Collection {collection} is being synced since {marker.claimed_at}"
                        )
                    log.warning(
                        "Taking over stale claim on %s held since %s",
                        collection,
                        marker.claimed_at,
                    )

                result = session.execute(
                    update(snapshot_marker_table)
                    .where(snapshot_marker_table.c.collection == collection)
                    .where(_token_matches(marker.claim_token))
                    .values(claim_token=token, claimed_at=now)
                )
                if result.rowcount != 1:
                    raise MaterializationInProgressError(
                        f"Collection {collection} was claimed by another writer"
                    )
        except IntegrityError as exc:
            raise MaterializationInProgressError(
                f"Collection {collection} was claimed by another writer"
            ) from exc
        return token

    def stage(
        self,
        collection: str,
        views: Sequence[CompositeReportView],
        *,
        token: str,
        now: datetime,
    ) -> int:
        with self.session_factory.begin() as session:
            self._require_claim(session, collection, token)
            inserted = session.execute(
                insert(composite_snapshot_table).values(
                    collection=collection,
                    status=SnapshotState.STAGING,
                    claim_token=token,
                    created_at=now,
                )
            )
            snapshot_id = int(inserted.inserted_primary_key[0])
            if views:
                session.execute(
                    insert(composite_view_table),
                    [
                        {
                            "snapshot_id": snapshot_id,
                            "position": position,
                            "report_id": view.id,
                            "reporter_id": view.reporter_id,
                            "created_at": view.created_at,
                            "payload": CompositeReportPayload.from_domain(view).to_json_dict(),
                        }
                        for position, view in enumerate(views)
                    ],
                )
        log.debug("Staged snapshot %s with %s rows for %s", snapshot_id, len(views), collection)
        return snapshot_id

    def publish(
        self,
        collection: str,
        snapshot_id: int,
        *,
        token: str,
        record_count: int,
        now: datetime,
    ) -> None:
        with self.session_factory.begin() as session:
            result = session.execute(
                update(snapshot_marker_table)
                .where(snapshot_marker_table.c.collection == collection)
                .where(snapshot_marker_table.c.claim_token == token)
                .values(
                    active_snapshot_id=snapshot_id,
                    record_count=record_count,
                    claim_token=None,
                    claimed_at=None,
                    last_success_at=now,
                    last_error=None,
                )
            )
            if result.rowcount != 1:
                raise MaterializationError(f"Lost the claim on {collection} before publishing")
            session.execute(
                update(composite_snapshot_table)
                .where(composite_snapshot_table.c.collection == collection)
                .where(composite_snapshot_table.c.status == SnapshotState.PUBLISHED)
                .values(status=SnapshotState.SUPERSEDED)
            )
            session.execute(
                update(composite_snapshot_table)
                .where(composite_snapshot_table.c.id == snapshot_id)
                .values(status=SnapshotState.PUBLISHED, published_at=now)
            )

    def abandon(
        self,
        collection: str,
        snapshot_id: int | None,
        *,
        token: str,
        error: str,
    ) -> None:
        with self.session_factory.begin() as session:
            if snapshot_id is not None:
                session.execute(
                    update(composite_snapshot_table)
                    .where(composite_snapshot_table.c.id == snapshot_id)
                    .where(composite_snapshot_table.c.status == SnapshotState.STAGING)
                    .values(status=SnapshotState.FAILED)
                )
            session.execute(
                update(snapshot_marker_table)
                .where(snapshot_marker_table.c.collection == collection)
                .where(snapshot_marker_table.c.claim_token == token)
                .values(claim_token=None, claimed_at=None, last_error=error)
            )

    def prune(self, collection: str) -> int:
        """Delete superseded, failed and orphaned staging snapshots of ``collection``."""

        with self.session_factory.begin() as session:
            current_token = session.execute(
                select(snapshot_marker_table.c.claim_token).where(
                    snapshot_marker_table.c.collection == collection
                )
            ).scalar_one_or_none()
            orphaned = composite_snapshot_table.c.status == SnapshotState.STAGING
            if current_token is not None:
                orphaned = orphaned & (composite_snapshot_table.c.claim_token != current_token)
            snapshot_ids = list(
                session.execute(
                    select(composite_snapshot_table.c.id)
                    .where(composite_snapshot_table.c.collection == collection)
                    .where(
                        or_(
                            composite_snapshot_table.c.status.in_(
                                (SnapshotState.SUPERSEDED, SnapshotState.FAILED)
                            ),
                            orphaned,
                        )
                    )
                ).scalars()
            )
            if not snapshot_ids:
                return 0
            session.execute(
                delete(composite_view_table).where(
                    composite_view_table.c.snapshot_id.in_(snapshot_ids)
                )
            )
            session.execute(
                delete(composite_snapshot_table).where(
                    composite_snapshot_table.c.id.in_(snapshot_ids)
                )
            )
        return len(snapshot_ids)

    def read_active(self, collection: str) -> list[CompositeReportView]:
        with self.session_factory() as session:
            active_id = (
                select(snapshot_marker_table.c.active_snapshot_id)
                .where(snapshot_marker_table.c.collection == collection)
                .scalar_subquery()
            )
            payloads = session.execute(
                select(composite_view_table.c.payload)
                .where(composite_view_table.c.snapshot_id == active_id)
                .order_by(composite_view_table.c.position)
            ).scalars()
            return [CompositeReportPayload.model_validate(item).to_domain() for item in payloads]

    def status(self, collection: str) -> SnapshotStatus:
        with self.session_factory() as session:
            marker = session.execute(
                select(snapshot_marker_table).where(
                    snapshot_marker_table.c.collection == collection
                )
            ).one_or_none()
        if marker is None:
            return SnapshotStatus(collection=collection)
        return SnapshotStatus(
            collection=collection,
            syncing=marker.claim_token is not None,
            sync_started_at=marker.claimed_at,
            active_snapshot_id=marker.active_snapshot_id,
            record_count=marker.record_count,
            last_success_at=marker.last_success_at,
            last_error=marker.last_error,
        )

    @staticmethod
    def _require_claim(session: Session, collection: str, token: str) -> None:
        holder = session.execute(
            select(snapshot_marker_table.c.claim_token).where(
                snapshot_marker_table.c.collection == collection
            )
        ).scalar_one_or_none()
        if holder != token:
            raise MaterializationError(f"Lost the claim on {collection} before staging")


def _token_matches(token: str | None) -> ColumnElement[bool]:
    column = snapshot_marker_table.c.claim_token
    return column.is_(None) if token is None else column == token


if TYPE_CHECKING:
    from typing import cast

    from civicview.domain.ports import SnapshotStore

    _store_check: SnapshotStore = SqlAlchemySnapshotStore(cast("sessionmaker[Session]", object()))
