"""SQLAlchemy adapter package for civicview."""

from __future__ import annotations

from .accessors import (
    SqlAlchemyDetectionAccessor,
    SqlAlchemyFlagAccessor,
    SqlAlchemyReportAccessor,
    SqlAlchemyReporterAccessor,
)
from .errors import SourceSchemaError, StartupError, is_connectivity_error
from .snapshot_store import SnapshotState, SqlAlchemySnapshotStore
from .tables import (
    SOURCE_COLLECTIONS,
    create_source_tables,
    source_metadata,
    target_metadata,
)
from .unit_of_work import (
    SqlAlchemySourceUnitOfWork,
    SqlAlchemyStores,
    startup,
    verify_source_schema,
)

__all__ = [
    "SOURCE_COLLECTIONS",
    "SnapshotState",
    "SourceSchemaError",
    "SqlAlchemyDetectionAccessor",
    "SqlAlchemyFlagAccessor",
    "SqlAlchemyReportAccessor",
    "SqlAlchemyReporterAccessor",
    "SqlAlchemySnapshotStore",
    "SqlAlchemySourceUnitOfWork",
    "SqlAlchemyStores",
    "StartupError",
    "create_source_tables",
    "is_connectivity_error",
    "source_metadata",
    "startup",
    "target_metadata",
    "verify_source_schema",
]
