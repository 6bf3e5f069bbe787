"""Domain model for civicview."""

from __future__ import annotations

from .composite import CompositeReportView, FlagSummary
from .enums import FlagKind, ListingScope
from .records import (
    DEFAULT_REPORT_STATUS,
    DEFAULT_REPORTER_POINTS,
    Coordinates,
    DetectedObject,
    Detection,
    Flag,
    Report,
    Reporter,
)

__all__ = [
    "DEFAULT_REPORTER_POINTS",
    "DEFAULT_REPORT_STATUS",
    "CompositeReportView",
    "Coordinates",
    "DetectedObject",
    "Detection",
    "Flag",
    "FlagKind",
    "FlagSummary",
    "ListingScope",
    "Report",
    "Reporter",
]
