"""Data models for normalized price data."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

ONE_HOUR = timedelta(hours=1)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_round_trip(value: datetime) -> str:
    """Format a timestamp in round-trip form, e.g. 2024-01-01T00:00:00.0000000+00:00.

    Seven fractional digits and an explicit offset, which is what both
    provider APIs accept for cursors and query parameters.
    """
    value = ensure_aware(value)
    offset = value.isoformat()[-6:]
    return value.strftime("%Y-%m-%dT%H:%M:%S.%f") + "0" + offset


@dataclass(frozen=True)
class PricePoint:
    """The price of energy for exactly one hour."""

    valid_from: datetime
    valid_to: datetime
    value: Decimal

    def __post_init__(self):
        if self.valid_to - self.valid_from != ONE_HOUR:
            raise ValueError(
                f"Price point must span one hour, got {self.valid_from} -> {self.valid_to}"
            )

    @classmethod
    def for_hour(cls, starts_at: datetime, value: Decimal) -> "PricePoint":
        return cls(valid_from=starts_at, valid_to=starts_at + ONE_HOUR, value=value)


@dataclass(frozen=True)
class PriceWindow:
    """A half-open [start, end) time window."""

    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", ensure_aware(self.start))
        object.__setattr__(self, "end", ensure_aware(self.end))

    @property
    def hours(self) -> int:
        """Number of hours covered, rounding partial hours up."""
        return math.ceil((self.end - self.start) / ONE_HOUR)
