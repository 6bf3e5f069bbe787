from __future__ import annotations

import threading

import pytest

from civicview.config import MaterializationConfig
from civicview.domain.errors import (
    JoinStageError,
    MaterializationError,
    MaterializeStageError,
    StoreUnavailableError,
    SyncInProgressError,
)
from civicview.domain.materialization import Materializer
from civicview.domain.sync import SyncOrchestrator, SyncState
from tests.helpers.clock import SteppingClock
from tests.helpers.records import FakeSourceUnitOfWork, SourceData, scenario_data
from tests.helpers.snapshots import InMemorySnapshotStore


class UnreachableError(Exception):
    pass


def _orchestrator(
    data: SourceData,
    store: InMemorySnapshotStore,
    *,
    fail_with: Exception | None = None,
) -> SyncOrchestrator:
    clock = SteppingClock()
    return SyncOrchestrator(
        unit_of_work_factory=lambda: FakeSourceUnitOfWork(data, fail_with=fail_with),
        materializer=Materializer(store, config=MaterializationConfig(), clock=clock),
        is_unreachable=lambda exc: isinstance(exc, UnreachableError),
        clock=clock,
    )


def test_run_materializes_every_report_and_returns_summary() -> None:
    data = scenario_data()
    store = InMemorySnapshotStore()
    orchestrator = _orchestrator(data, store)

    summary = orchestrator.run()

    assert orchestrator.state is SyncState.IDLE
    assert summary.total_reporters == 3
    assert summary.total_reports == 2
    assert summary.total_flags == 2
    assert summary.total_detections == 1
    assert summary.written == 2
    assert len(store.read_active("composite_reports")) == 2


def test_run_twice_is_idempotent() -> None:
    store = InMemorySnapshotStore()
    orchestrator = _orchestrator(scenario_data(), store)

    first = orchestrator.run()
    first_views = store.read_active("composite_reports")
    second = orchestrator.run()

    assert second.written == first.written
    assert store.read_active("composite_reports") == first_views


def test_join_failure_is_reported_once_and_keeps_target() -> None:
    store = InMemorySnapshotStore()
    _orchestrator(scenario_data(), store).run()
    previous = store.read_active("composite_reports")
    orchestrator = _orchestrator(scenario_data(), store, fail_with=KeyError("reports"))

    with pytest.raises(JoinStageError) as excinfo:
        orchestrator.run()

    assert excinfo.value.stage == "join"
    assert isinstance(excinfo.value.__cause__, KeyError)
    assert orchestrator.state is SyncState.FAILED
    assert orchestrator.last_error is excinfo.value
    assert store.read_active("composite_reports") == previous


def test_unreachable_source_maps_to_store_unavailable() -> None:
    orchestrator = _orchestrator(
        scenario_data(),
        InMemorySnapshotStore(),
        fail_with=UnreachableError("connection refused"),
    )

    with pytest.raises(StoreUnavailableError) as excinfo:
        orchestrator.run()

    assert excinfo.value.code == "store-unreachable"
    assert excinfo.value.exit_code == 3


def test_materialize_failure_maps_to_materialize_stage_error() -> None:
    store = InMemorySnapshotStore(fail_publish=RuntimeError("constraint violated"))
    orchestrator = _orchestrator(scenario_data(), store)

    with pytest.raises(MaterializeStageError) as excinfo:
        orchestrator.run()

    assert excinfo.value.exit_code == 5
    assert isinstance(excinfo.value.__cause__, MaterializationError)
    assert orchestrator.state is SyncState.FAILED
    assert store.read_active("composite_reports") == []


def test_failed_orchestrator_can_run_again() -> None:
    store = InMemorySnapshotStore(fail_stage=RuntimeError("disk full"))
    orchestrator = _orchestrator(scenario_data(), store)
    with pytest.raises(MaterializeStageError):
        orchestrator.run()

    store.fail_stage = None
    summary = orchestrator.run()

    assert summary.written == 2
    assert orchestrator.state is SyncState.IDLE
    assert orchestrator.last_error is None


def test_claim_held_elsewhere_maps_to_sync_in_progress() -> None:
    store = InMemorySnapshotStore()
    orchestrator = _orchestrator(scenario_data(), store)
    store.claim(
        "composite_reports",
        now=SteppingClock().current,
        stale_after=MaterializationConfig().stale_after,
    )

    with pytest.raises(SyncInProgressError) as excinfo:
        orchestrator.run()

    assert excinfo.value.exit_code == 6


def test_run_refuses_to_start_while_running() -> None:
    store = InMemorySnapshotStore()
    orchestrator = _orchestrator(scenario_data(), store)
    staging = threading.Event()
    release = threading.Event()
    outcome: list[BaseException | None] = []

    def block() -> None:
        staging.set()
        release.wait(timeout=5)

    def background() -> None:
        try:
            orchestrator.run()
        except BaseException as exc:  # noqa: BLE001
            outcome.append(exc)
        else:
            outcome.append(None)

    store.on_stage = block
    worker = threading.Thread(target=background)
    worker.start()
    try:
        assert staging.wait(timeout=5)
        assert orchestrator.state is SyncState.RUNNING
        with pytest.raises(SyncInProgressError):
            orchestrator.run()
    finally:
        release.set()
        worker.join(timeout=5)

    assert outcome == [None]
    assert orchestrator.state is SyncState.IDLE
