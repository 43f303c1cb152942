"""
Period Resolver
Maps a dashboard filter token ("7d", "30d", "ytd", "all", ...) to a concrete
half-open date range against a reference "now".
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

MIN_INSTANT = datetime.min.replace(tzinfo=timezone.utc)
DEFAULT_TOKEN = "all"

ROLLING_DAYS = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "180d": 180,
    "365d": 365,
}

# Filter names used by the dashboard's period picker
ALIASES = {
    "last7days": "7d",
    "last30days": "30d",
    "last3months": "90d",
    "last6months": "180d",
    "lastyear": "365d",
}

_YEAR_TOKEN = re.compile(r"^\d{4}$")
MIN_YEAR = 1900
MAX_YEAR = 9998


@dataclass(frozen=True)
class DateRange:
    """Half-open interval ``[start, end)`` of timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"DateRange start {self.start} is after end {self.end}")

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp < self.end

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_unbounded(self) -> bool:
        return self.start == MIN_INSTANT

    def preceding(self) -> "DateRange":
        """The equal-length window ending where this one starts."""
        if self.is_unbounded:
            return DateRange(MIN_INSTANT, MIN_INSTANT)
        try:
            start = self.start - self.duration
        except OverflowError:
            start = MIN_INSTANT
        return DateRange(max(start, MIN_INSTANT), self.start)


def as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_date(value: datetime, tz: tzinfo) -> date:
    return as_aware(value).astimezone(tz).date()


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def normalize_token(token: Optional[str]) -> str:
    """Canonical form of a filter token; anything unrecognized becomes "all"."""
    if token is None:
        return DEFAULT_TOKEN
    cleaned = token.strip().lower()
    cleaned = ALIASES.get(cleaned, cleaned)
    if cleaned in ROLLING_DAYS or cleaned in ("ytd", DEFAULT_TOKEN):
        return cleaned
    if _YEAR_TOKEN.match(cleaned) and MIN_YEAR <= int(cleaned) <= MAX_YEAR:
        return cleaned
    return DEFAULT_TOKEN


def resolve(token: Optional[str], now: datetime, tz: tzinfo = timezone.utc) -> DateRange:
    """
    Resolve a filter token to ``[start, now)``.

    Rolling tokens subtract whole days from ``now``; "ytd" starts at local
    midnight on January 1st; a four-digit year covers that calendar year,
    clipped to ``now``. Unknown tokens never fail: they resolve like "all".
    """
    now = as_aware(now)
    canonical = normalize_token(token)

    if canonical in ROLLING_DAYS:
        return DateRange(now - timedelta(days=ROLLING_DAYS[canonical]), now)

    if canonical == "ytd":
        year_start = start_of_day(date(now.astimezone(tz).year, 1, 1), tz)
        return DateRange(min(year_start, now), now)

    if canonical != DEFAULT_TOKEN:
        year = int(canonical)
        year_start = start_of_day(date(year, 1, 1), tz)
        year_end = min(start_of_day(date(year + 1, 1, 1), tz), now)
        return DateRange(min(year_start, year_end), year_end)

    return DateRange(MIN_INSTANT, now)


def reference_now(tz: tzinfo, align_to_days: bool = False, clock: Optional[datetime] = None) -> datetime:
    """
    The instant requests are resolved against.

    With ``align_to_days`` the current instant is rounded up to the next local
    midnight, so "30d" covers the last 30 whole calendar days including today.
    """
    current = as_aware(clock) if clock is not None else datetime.now(timezone.utc)
    if not align_to_days:
        return current
    today = current.astimezone(tz).date()
    return start_of_day(today + timedelta(days=1), tz)
