"""Create snapshot marker, snapshot and composite view tables.

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from civicview.adapters.sqlalchemy.tables import UTCDateTime

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "snapshot_marker",
        sa.Column("collection", sa.String(), nullable=False),
        sa.Column("active_snapshot_id", sa.Integer(), nullable=True),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("claim_token", sa.String(), nullable=True),
        sa.Column("claimed_at", UTCDateTime(), nullable=True),
        sa.Column("last_success_at", UTCDateTime(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("collection", name=op.f("pk_snapshot_marker")),
    )
    op.create_table(
        "composite_snapshot",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("collection", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("claim_token", sa.String(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=False),
        sa.Column("published_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_composite_snapshot")),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_composite_snapshot_collection_status",
        "composite_snapshot",
        ["collection", "status"],
    )
    op.create_table(
        "composite_view",
        sa.Column("snapshot_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("report_id", sa.Integer(), nullable=False),
        sa.Column("reporter_id", sa.Integer(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.ForeignKeyConstraint(
            ["snapshot_id"],
            ["composite_snapshot.id"],
            name=op.f("fk_composite_view_snapshot_id_composite_snapshot"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("snapshot_id", "position", name=op.f("pk_composite_view")),
    )
    op.create_index("ix_composite_view_report_id", "composite_view", ["report_id"])


def downgrade() -> None:
    op.drop_index("ix_composite_view_report_id", table_name="composite_view")
    op.drop_table("composite_view")
    op.drop_index("ix_composite_snapshot_collection_status", table_name="composite_snapshot")
    op.drop_table("composite_snapshot")
    op.drop_table("snapshot_marker")
