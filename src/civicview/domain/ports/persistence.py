"""Read-only ports onto the operational (source) store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from civicview.domain.model import Detection, Flag, Report, Reporter


@runtime_checkable
class Accessor(Protocol):
    """Minimal read contract shared by every source collection.

    Implementations return records in the store's insertion order and let store
    errors propagate unchanged.
    """

    def count(self) -> int: ...


@runtime_checkable
class ReporterAccessor(Accessor, Protocol):
    def list(self, *, ids: Collection[int] | None = None) -> Sequence[Reporter]: ...

    def get(self, reporter_id: int) -> Reporter | None: ...


@runtime_checkable
class ReportAccessor(Accessor, Protocol):
    def list(self, *, reporter_id: int | None = None) -> Sequence[Report]: ...


@runtime_checkable
class FlagAccessor(Accessor, Protocol):
    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Flag]: ...


@runtime_checkable
class DetectionAccessor(Accessor, Protocol):
    def list(self, *, report_ids: Collection[int] | None = None) -> Sequence[Detection]: ...
