"""Materialized-view configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Final

from .env import optional_env_var, positive_float_env_var

DEFAULT_COLLECTION: Final[str] = "composite_reports"
DEFAULT_STALE_CLAIM_SECONDS: Final[float] = 900.0


@dataclass(frozen=True, slots=True)
class MaterializationConfig:
    """Settings for the target collection that holds composite report views.

    ``stale_after`` bounds how long a sync claim is honoured; a claim left behind
    by a crashed or cancelled run may be taken over once it is older than this.
    """

    collection: str = DEFAULT_COLLECTION
    stale_after: timedelta = timedelta(seconds=DEFAULT_STALE_CLAIM_SECONDS)


def get_materialization_config() -> MaterializationConfig:
    seconds = positive_float_env_var(
        "CIVICVIEW_STALE_CLAIM_SECONDS",
        default=DEFAULT_STALE_CLAIM_SECONDS,
    )
    return MaterializationConfig(
        collection=optional_env_var("CIVICVIEW_COLLECTION") or DEFAULT_COLLECTION,
        stale_after=timedelta(seconds=seconds),
    )
