"""Error taxonomy for the join-and-materialize pipeline."""

from __future__ import annotations

from collections.abc import Callable
from typing import ClassVar


class CivicviewError(Exception):
    """Base class for civicview domain errors."""


class MaterializationError(CivicviewError):
    """Raised when a snapshot could not be fully written and published.

    The previously published snapshot is left in place.
    """


class MaterializationInProgressError(MaterializationError):
    """Raised when another writer holds a live claim on the target collection."""


class SyncError(CivicviewError):
    """Single consolidated error surfaced for a failed sync or listing request."""

    code: ClassVar[str] = "sync-failed"
    exit_code: ClassVar[int] = 1

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class StoreUnavailableError(SyncError):
    code = "store-unreachable"
    exit_code = 3


class JoinStageError(SyncError):
    code = "join-failed"
    exit_code = 4


class MaterializeStageError(SyncError):
    code = "materialize-failed"
    exit_code = 5


class SyncInProgressError(SyncError):
    code = "sync-in-progress"
    exit_code = 6


type ConnectivityCheck = Callable[[BaseException], bool]


def never_unreachable(_exc: BaseException) -> bool:
    return False


def consolidate(
    exc: Exception,
    *,
    stage: str,
    stage_error: type[SyncError],
    is_unreachable: ConnectivityCheck = never_unreachable,
) -> SyncError:
    """Map an arbitrary stage failure onto the single error surfaced to callers."""

    if isinstance(exc, SyncError):
        return exc
    if is_unreachable(exc):
        return StoreUnavailableError(f"Store unreachable during {stage}: {exc}", stage=stage)
    return stage_error(f"{stage.capitalize()} stage failed: {exc}", stage=stage)
