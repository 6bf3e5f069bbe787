"""SQLAlchemy table metadata for the source and target stores.

The two stores may live in different databases, so each has its own
``MetaData``. Source tables are owned by the operational system; civicview only
reads them and declares them here to build queries (and, in tests, to create
them). Target tables are owned by civicview and created through migrations.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

from civicview.domain.model import DEFAULT_REPORT_STATUS, DEFAULT_REPORTER_POINTS, FlagKind

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

NAMING_CONVENTION: Final[dict[str, str]] = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


# Source (operational) store ---------------------------------------------------

source_metadata = MetaData(naming_convention=NAMING_CONVENTION)

REPORTERS: Final[str] = "reporters"
REPORTS: Final[str] = "reports"
FLAGS: Final[str] = "flags"
DETECTIONS: Final[str] = "detections"
SOURCE_COLLECTIONS: Final[tuple[str, ...]] = (REPORTERS, REPORTS, FLAGS, DETECTIONS)

reporter_table = Table(
    REPORTERS,
    source_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("email", String, nullable=False, unique=True),
    Column("phone", String, nullable=False),
    Column("otp", String, nullable=True),
    Column("otp_expiry", UTCDateTime(), nullable=True),
    Column("verified", Boolean, nullable=False, default=False),
    Column("face_image_url", String, nullable=True),
    Column("points", Integer, nullable=False, default=DEFAULT_REPORTER_POINTS),
    sqlite_autoincrement=True,
)

report_table = Table(
    REPORTS,
    source_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("reporter_id", Integer, ForeignKey(f"{REPORTERS}.id"), nullable=False),
    Column("title", String, nullable=True),
    Column("description", Text, nullable=True),
    Column("location", String, nullable=True),
    Column("latitude", Float, nullable=True),
    Column("longitude", Float, nullable=True),
    Column("status", String, nullable=False, default=DEFAULT_REPORT_STATUS),
    Column("image_url", String, nullable=True),
    Column("submitted_by", String, nullable=True),
    Column("red_flags", Integer, nullable=False, default=0),
    Column("green_flags", Integer, nullable=False, default=0),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_reports_reporter_id", "reporter_id"),
    sqlite_autoincrement=True,
)

flag_table = Table(
    FLAGS,
    source_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report_id", Integer, nullable=False),
    Column("reporter_id", Integer, nullable=False),
    Column("reporter_name", String, nullable=False),
    Column("reporter_email", String, nullable=False),
    Column(
        "kind",
        Enum(
            FlagKind,
            native_enum=False,
            values_callable=lambda kinds: [kind.value for kind in kinds],
        ),
        nullable=False,
    ),
    Column("reason", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Index("ix_flags_report_id", "report_id"),
    sqlite_autoincrement=True,
)

detection_table = Table(
    DETECTIONS,
    source_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("report_id", Integer, nullable=False),
    Column("annotated_image_url", String, nullable=True),
    Column("objects", JSON, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Index("ix_detections_report_id", "report_id"),
    sqlite_autoincrement=True,
)

# Target (materialized) store --------------------------------------------------

target_metadata = MetaData(naming_convention=NAMING_CONVENTION)

snapshot_marker_table = Table(
    "snapshot_marker",
    target_metadata,
    Column("collection", String, primary_key=True),
    Column("active_snapshot_id", Integer, nullable=True),
    Column("record_count", Integer, nullable=False, default=0),
    Column("claim_token", String, nullable=True),
    Column("claimed_at", UTCDateTime(), nullable=True),
    Column("last_success_at", UTCDateTime(), nullable=True),
    Column("last_error", Text, nullable=True),
)

composite_snapshot_table = Table(
    "composite_snapshot",
    target_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("collection", String, nullable=False),
    Column("status", String, nullable=False),
    Column("claim_token", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("published_at", UTCDateTime(), nullable=True),
    Index("ix_composite_snapshot_collection_status", "collection", "status"),
    sqlite_autoincrement=True,
)

composite_view_table = Table(
    "composite_view",
    target_metadata,
    Column(
        "snapshot_id",
        Integer,
        ForeignKey("composite_snapshot.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("position", Integer, primary_key=True),
    Column("report_id", Integer, nullable=False),
    Column("reporter_id", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("payload", JSON, nullable=False),
    Index("ix_composite_view_report_id", "report_id"),
)


def create_source_tables(engine: Engine) -> None:
    """Create the operational tables (tests and local bootstrapping only)."""

    log.info("Creating source tables")
    source_metadata.create_all(engine)
