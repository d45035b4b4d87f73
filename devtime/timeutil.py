"""Millisecond epoch and calendar-day helpers in the configured zone."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from .config import TZ_NAME

TZ = ZoneInfo(TZ_NAME)


def now_iso() -> str:
    return datetime.now(TZ).isoformat()


def now_ms() -> int:
    return int(datetime.now(TZ).timestamp() * 1000)


def day_of(ms: int) -> str:
    """Calendar day (YYYY-MM-DD) containing a millisecond epoch instant."""
    return datetime.fromtimestamp(ms / 1000, TZ).strftime("%Y-%m-%d")


def day_start_ms(day: str) -> int:
    d = date.fromisoformat(day)
    return int(datetime.combine(d, time.min, tzinfo=TZ).timestamp() * 1000)


def shift_day(day: str, days: int) -> str:
    return (date.fromisoformat(day) + timedelta(days=days)).isoformat()


def normalize_day(value: int | str) -> str:
    """Truncate an instant to its calendar day.

    Accepts a millisecond epoch, a ``YYYY-MM-DD`` date, or an ISO-8601
    datetime (naive datetimes are taken to be in the configured zone).
    """
    if isinstance(value, int):
        return day_of(value)
    text = value.strip()
    if text.lstrip("-").isdigit():
        return day_of(int(text))
    if len(text) == 10:
        return date.fromisoformat(text).isoformat()
    ts = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=TZ)
    return ts.astimezone(TZ).strftime("%Y-%m-%d")
