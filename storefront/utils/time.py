from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def restaurant_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"unknown time zone {name!r}") from exc


def restaurant_today(tz_name: str) -> date:
    """Current calendar date at the restaurant."""
    return datetime.now(restaurant_zone(tz_name)).date()


def utc_naive_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_slot(value: time) -> str:
    return value.strftime("%H:%M")
