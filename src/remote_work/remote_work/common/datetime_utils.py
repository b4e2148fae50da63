from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str, field_name: str = "Date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM-DD")


def parse_optional_date(value: Optional[str], field_name: str = "Date") -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(str(value), field_name)


def parse_hhmm(value: Optional[str], field_name: str = "Time") -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    # time inputs send HH:MM:SS when a seconds step is set
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time().replace(second=0)
        except ValueError:
            continue
    raise ValidationError(f"{field_name} must be HH:MM")


def parse_month(value: str, field_name: str = "Month") -> date:
    """Parse YYYY-MM into the first day of that month."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m").date()
    except ValueError:
        raise ValidationError(f"{field_name} must be YYYY-MM")


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def month_bounds(first_day: date) -> tuple[date, date]:
    """[first day of month, first day of next month)."""
    start = first_day.replace(day=1)
    return start, add_months(start, 1)


def add_months(d: date, months: int) -> date:
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def iter_months_back(today: date, count: int) -> Iterator[date]:
    """First days of the last `count` months, oldest first, ending with today's month."""
    current = today.replace(day=1)
    for offset in range(count - 1, -1, -1):
        yield add_months(current, -offset)


def week_bounds(d: date) -> tuple[date, date]:
    """ISO week (Monday..Sunday) containing d."""
    monday = d - timedelta(days=d.weekday())
    return monday, monday + timedelta(days=6)


def minutes_between(start: time, end: time) -> int:
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def fmt_hhmm(t: Optional[time]) -> Optional[str]:
    return t.strftime("%H:%M") if t is not None else None


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
