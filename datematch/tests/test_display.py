from __future__ import annotations

from datetime import datetime

from datematch.recommendations.display import describe_distance, infer_open_now, is_open_at

MONDAY = datetime(2026, 6, 15)
FRIDAY = datetime(2026, 6, 19)


def _at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def test_open_within_google_hours():
    hours = ["Monday: 5:00 PM – 11:00 PM", "Tuesday: Closed"]
    assert is_open_at(hours, _at(MONDAY, 19, 30)) is True
    assert is_open_at(hours, _at(MONDAY, 16, 59)) is False


def test_closed_day():
    assert is_open_at(["Monday: Closed"], _at(MONDAY, 12)) is False


def test_open_24_hours():
    assert is_open_at(["Monday: Open 24 hours"], _at(MONDAY, 3)) is True


def test_split_shift_shares_meridiem():
    hours = ["Monday: 11:30 AM – 2:30 PM, 5:30 – 10:00 PM"]
    assert is_open_at(hours, _at(MONDAY, 12)) is True
    assert is_open_at(hours, _at(MONDAY, 16)) is False
    assert is_open_at(hours, _at(MONDAY, 18)) is True


def test_overnight_hours():
    hours = ["Friday: 6:00 PM – 2:00 AM"]
    assert is_open_at(hours, _at(FRIDAY, 23)) is True
    assert is_open_at(hours, _at(FRIDAY, 1)) is True
    assert is_open_at(hours, _at(FRIDAY, 15)) is False


def test_twenty_four_hour_clock():
    assert is_open_at(["Mon: 11:00-22:00"], _at(MONDAY, 21)) is True


def test_unknown_day_or_format_is_none():
    assert is_open_at(["Tuesday: 9:00 AM – 5:00 PM"], _at(MONDAY, 12)) is None
    assert is_open_at(["Monday: by appointment"], _at(MONDAY, 12)) is None


def test_infer_open_now_falls_back_to_provider_flag(make_venue):
    venue = make_venue("v", opening_hours=["Mon-Sun 17:00-23:00"], is_open=True)
    assert infer_open_now(venue, _at(MONDAY, 9)) is True
    assert infer_open_now(make_venue("w"), _at(MONDAY, 9)) is None


def test_distance_unavailable_without_coordinates(make_venue):
    venue = make_venue("v", latitude=None, longitude=None)
    assert describe_distance(53.5511, 9.9937, venue) == "Distance unavailable"
