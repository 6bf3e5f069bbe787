"""Application entry points used by the request layer (CLI or an HTTP front end)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from civicview.adapters.sqlalchemy import SqlAlchemyStores, is_connectivity_error, startup
from civicview.config import get_materialization_config, get_storage_config
from civicview.domain.composite_views import list_views
from civicview.domain.materialization import Materializer
from civicview.domain.model import ListingScope
from civicview.domain.sync import SyncOrchestrator

if TYPE_CHECKING:
    from civicview.config import MaterializationConfig, StorageConfig
    from civicview.domain.model import CompositeReportView, Reporter
    from civicview.domain.ports import SnapshotStatus
    from civicview.domain.sync import SyncSummary

log = logging.getLogger(__name__)


@dataclass(slots=True)
class Runtime:
    """Store handles and long-lived components, built once per process."""

    stores: SqlAlchemyStores
    materializer: Materializer
    orchestrator: SyncOrchestrator

    def close(self) -> None:
        self.stores.dispose()


def create_runtime(
    *,
    storage: StorageConfig | None = None,
    materialization: MaterializationConfig | None = None,
    stores: SqlAlchemyStores | None = None,
) -> Runtime:
    """Wire stores, materializer and orchestrator from configuration."""

    effective_stores = stores or startup(config=storage or get_storage_config())
    materializer = Materializer(
        effective_stores.snapshot_store(),
        config=materialization or get_materialization_config(),
    )
    orchestrator = SyncOrchestrator(
        unit_of_work_factory=effective_stores.source_unit_of_work,
        materializer=materializer,
        is_unreachable=is_connectivity_error,
    )
    return Runtime(stores=effective_stores, materializer=materializer, orchestrator=orchestrator)


def sync_composite_views(runtime: Runtime) -> SyncSummary:
    """Rebuild the materialized collection from the whole source store."""

    return runtime.orchestrator.run()


def list_composite_views(
    runtime: Runtime,
    *,
    scope: ListingScope | str | None = ListingScope.OWN,
    reporter_id: int | None = None,
) -> list[CompositeReportView]:
    """Join on demand, scoped to one reporter (``own``) or to every report (``active``)."""

    effective_scope = scope if isinstance(scope, ListingScope) else ListingScope.parse(scope)
    return list_views(
        unit_of_work_factory=runtime.stores.source_unit_of_work,
        scope=effective_scope,
        reporter_id=reporter_id,
        is_unreachable=is_connectivity_error,
    )


def read_materialized_views(runtime: Runtime) -> list[CompositeReportView]:
    return runtime.materializer.read()


def materialization_status(runtime: Runtime) -> SnapshotStatus:
    return runtime.materializer.status()


def get_reporter_profile(runtime: Runtime, reporter_id: int) -> Reporter | None:
    """Return a reporter's public profile (one-time codes are never loaded)."""

    with runtime.stores.source_unit_of_work() as uow:
        reporter = uow.repositories.reporters.get(reporter_id)
    if reporter is None:
        log.info("Reporter %s not found", reporter_id)
    return reporter
