"""Unit-of-work abstractions for coordinating accessors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from civicview.domain.ports.persistence import (
        DetectionAccessor,
        FlagAccessor,
        ReportAccessor,
        ReporterAccessor,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class SourceAccessors(RepositoryCollection):
    """Accessors over the four operational collections, sharing one read transaction."""

    reporters: ReporterAccessor
    reports: ReportAccessor
    flags: FlagAccessor
    detections: DetectionAccessor


type SourceUnitOfWork = UnitOfWork[SourceAccessors]
