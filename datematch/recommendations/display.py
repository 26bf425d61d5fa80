from __future__ import annotations

import re
from datetime import datetime

from ..venues.geo import distance_km, format_distance
from ..venues.models import VenueRecord

DISTANCE_UNAVAILABLE = "Distance unavailable"

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_TIME = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([ap]\.?m\.?)?", re.IGNORECASE)


def describe_distance(ref_lat: float, ref_lon: float, venue: VenueRecord) -> str:
    if not venue.has_location:
        return DISTANCE_UNAVAILABLE
    return format_distance(distance_km(ref_lat, ref_lon, venue.latitude, venue.longitude))


def _normalize_hours(text: str) -> str:
    for dash in ("–", "—"):
        text = text.replace(dash, "-")
    for space in (" ", " ", "\xa0"):
        text = text.replace(space, " ")
    return text.strip().lower()


def _to_minutes(match: re.Match, meridiem: str | None) -> int | None:
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    meridiem = (match.group(3) or meridiem or "").replace(".", "").lower()
    if meridiem == "pm" and hour != 12:
        hour += 12
    elif meridiem == "am" and hour == 12:
        hour = 0
    if hour > 24 or minute > 59:
        return None
    return hour * 60 + minute


def _parse_range(text: str) -> tuple[int, int] | None:
    parts = text.split("-")
    if len(parts) != 2:
        return None
    start, end = _TIME.search(parts[0]), _TIME.search(parts[1])
    if start is None or end is None:
        return None
    # "5:30 - 10:00 PM" shares the closing meridiem.
    opens = _to_minutes(start, end.group(3))
    closes = _to_minutes(end, None)
    if opens is None or closes is None:
        return None
    return opens, closes


def _hours_for_day(opening_hours: list[str], weekday: int) -> str | None:
    day = WEEKDAYS[weekday]
    for line in opening_hours:
        normalized = _normalize_hours(line)
        if normalized.startswith(day) or normalized.startswith(day[:3] + ":"):
            return normalized.split(":", 1)[1].strip()
    return None


def is_open_at(opening_hours: list[str], now: datetime) -> bool | None:
    """Whether per-day opening hours ("Monday: 11:00 AM - 10:00 PM") cover ``now``.

    Returns None when today's hours are missing or cannot be parsed.
    """
    today = _hours_for_day(opening_hours, now.weekday())
    if today is None:
        return None
    if "closed" in today:
        return False
    if "24 hours" in today:
        return True

    minutes = now.hour * 60 + now.minute
    parsed_any = False
    for span in today.split(","):
        parsed = _parse_range(span)
        if parsed is None:
            continue
        parsed_any = True
        opens, closes = parsed
        if closes <= opens:
            if minutes >= opens or minutes < closes:
                return True
        elif opens <= minutes < closes:
            return True
    return False if parsed_any else None


def infer_open_now(venue: VenueRecord, now: datetime) -> bool | None:
    if venue.opening_hours:
        inferred = is_open_at(venue.opening_hours, now)
        if inferred is not None:
            return inferred
    return venue.is_open
