"""Domain port definitions for adapters."""

from __future__ import annotations

from .materialization import SnapshotStatus, SnapshotStore
from .persistence import (
    Accessor,
    DetectionAccessor,
    FlagAccessor,
    ReportAccessor,
    ReporterAccessor,
)
from .unit_of_work import (
    RepositoryCollection,
    SourceAccessors,
    SourceUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "Accessor",
    "DetectionAccessor",
    "FlagAccessor",
    "ReportAccessor",
    "ReporterAccessor",
    "RepositoryCollection",
    "SnapshotStatus",
    "SnapshotStore",
    "SourceAccessors",
    "SourceUnitOfWork",
    "UnitOfWork",
]
