from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from trakzi_analytics.utils.periods import (
    MIN_INSTANT,
    DateRange,
    normalize_token,
    reference_now,
    resolve,
)

NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)

TOKENS = ["7d", "30d", "90d", "180d", "365d", "ytd", "all", "2024", "2025", "1900", "9998", "bogus", "", None]


@pytest.mark.parametrize("token", TOKENS)
def test_every_token_resolves_to_a_valid_range(token):
    date_range = resolve(token, NOW)
    assert date_range.start <= date_range.end
    assert date_range.end <= NOW


def test_rolling_windows_subtract_whole_days():
    assert resolve("7d", NOW) == DateRange(NOW - timedelta(days=7), NOW)
    assert resolve("30d", NOW) == DateRange(NOW - timedelta(days=30), NOW)
    assert resolve("90d", NOW) == DateRange(NOW - timedelta(days=90), NOW)


def test_unknown_token_behaves_like_all():
    assert resolve("bogus", NOW) == resolve("all", NOW)
    assert resolve(None, NOW).start == MIN_INSTANT
    assert resolve("13d", NOW).is_unbounded


def test_ytd_starts_on_january_first():
    assert resolve("ytd", NOW) == DateRange(datetime(2025, 1, 1, tzinfo=timezone.utc), NOW)


def test_ytd_uses_reference_timezone_midnight():
    madrid = ZoneInfo("Europe/Madrid")
    date_range = resolve("ytd", NOW, madrid)
    assert date_range.start == datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc)


def test_year_token_covers_calendar_year():
    assert resolve("2024", NOW) == DateRange(
        datetime(2024, 1, 1, tzinfo=timezone.utc),
        datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


def test_current_year_is_clipped_to_now():
    assert resolve("2025", NOW).end == NOW


def test_future_year_is_empty():
    date_range = resolve("2030", NOW)
    assert date_range.start == date_range.end == NOW


def test_aliases_and_case_are_normalized():
    assert normalize_token("Last30Days") == "30d"
    assert normalize_token(" 7D ") == "7d"
    assert normalize_token("lastYear") == "365d"
    assert normalize_token("YTD") == "ytd"
    assert normalize_token("0999") == "all"


def test_preceding_window_has_equal_length():
    current = resolve("30d", NOW)
    prior = current.preceding()
    assert prior.end == current.start
    assert prior.duration == current.duration


def test_preceding_window_of_unbounded_range_is_empty():
    prior = resolve("all", NOW).preceding()
    assert prior.start == prior.end == MIN_INSTANT


def test_half_open_bounds():
    date_range = DateRange(NOW - timedelta(days=1), NOW)
    assert date_range.contains(NOW - timedelta(days=1))
    assert not date_range.contains(NOW)


def test_inverted_range_is_rejected():
    with pytest.raises(ValueError):
        DateRange(NOW, NOW - timedelta(seconds=1))


def test_reference_now_aligns_to_next_midnight():
    clock = datetime(2025, 6, 14, 15, 30, tzinfo=timezone.utc)
    assert reference_now(timezone.utc, align_to_days=True, clock=clock) == NOW
    assert reference_now(timezone.utc, align_to_days=False, clock=clock) == clock


def test_aligned_thirty_days_cover_today():
    clock = datetime(2025, 6, 14, 15, 30, tzinfo=timezone.utc)
    date_range = resolve("30d", reference_now(timezone.utc, True, clock))
    assert date_range.start.date() == date(2025, 5, 16)
    assert date_range.contains(clock)
