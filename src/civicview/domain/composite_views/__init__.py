"""Join engine, field resolution and the live listing path."""

from __future__ import annotations

from .engine import JoinResult, build_composite_views, join_all, join_reports, newest_first
from .listing import list_views
from .resolution import resolve_display_image, resolve_submitter, select_detection

__all__ = [
    "JoinResult",
    "build_composite_views",
    "join_all",
    "join_reports",
    "list_views",
    "newest_first",
    "resolve_display_image",
    "resolve_submitter",
    "select_detection",
]
