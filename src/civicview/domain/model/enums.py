"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FlagKind(StrEnum):
    """Peer judgment on a report; negative flags may carry a reason."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class ListingScope(StrEnum):
    OWN = "own"
    ACTIVE = "active"

    @classmethod
    def parse(cls, value: str | None) -> ListingScope:
        """Interpret a caller-supplied filter; anything but ``active`` means own reports."""

        if value is not None and value.strip().lower() == cls.ACTIVE:
            return cls.ACTIVE
        return cls.OWN
