"""Error helpers for the SQLAlchemy adapter."""

from __future__ import annotations

from sqlalchemy.exc import InterfaceError, OperationalError


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy stores are used before or without initialisation."""


class SourceSchemaError(StartupError):
    """Raised when the source store lacks one of the collections the join reads."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = sorted(missing)
        super().__init__(f"Source store is missing collections: {', '.join(self.missing)}")


def is_connectivity_error(exc: BaseException) -> bool:
    """Return whether ``exc`` (or anything it was raised from) means the store is unreachable."""

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        if isinstance(current, OperationalError | InterfaceError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False
