"""
Recurrence expansion for weekly repeating events.

Dates are plain calendar dates. A series is described by an inclusive
date range and a set of weekday codes, e.g. practices every Monday and
Wednesday between two dates.
"""
import calendar
import enum
import uuid
from datetime import date, timedelta
from typing import Iterable, List, Set


class Weekday(str, enum.Enum):
    """Weekday codes as the calendar UI sends them (Sunday first)."""
    SUNDAY = "Su"
    MONDAY = "M"
    TUESDAY = "Tu"
    WEDNESDAY = "W"
    THURSDAY = "Th"
    FRIDAY = "F"
    SATURDAY = "Sa"

    @property
    def python_weekday(self) -> int:
        """Index as returned by date.weekday() (Monday == 0)."""
        return _PYTHON_WEEKDAY[self]

    @classmethod
    def from_date(cls, day: date) -> "Weekday":
        return _BY_PYTHON_WEEKDAY[day.weekday()]


_PYTHON_WEEKDAY = {
    Weekday.MONDAY: 0,
    Weekday.TUESDAY: 1,
    Weekday.WEDNESDAY: 2,
    Weekday.THURSDAY: 3,
    Weekday.FRIDAY: 4,
    Weekday.SATURDAY: 5,
    Weekday.SUNDAY: 6,
}
_BY_PYTHON_WEEKDAY = {index: day for day, index in _PYTHON_WEEKDAY.items()}

# Display order, Sunday first
WEEKDAY_ORDER = list(Weekday)


def parse_weekdays(codes: Iterable[str]) -> Set[Weekday]:
    """
    Turn weekday codes into a set of Weekday members.

    Accepts an iterable of codes or a comma separated pattern string
    such as "M,W". Unknown codes raise ValueError.
    """
    if isinstance(codes, str):
        codes = [c for c in codes.split(",") if c.strip()]

    weekdays = set()
    for code in codes:
        if isinstance(code, Weekday):
            weekdays.add(code)
            continue
        try:
            weekdays.add(Weekday(code.strip()))
        except ValueError:
            raise ValueError(f"Unknown weekday code: {code!r}") from None
    return weekdays


def format_pattern(weekdays: Iterable[Weekday]) -> str:
    """Stored recurrence pattern, e.g. {W, M} -> "M,W"."""
    selected = set(weekdays)
    return ",".join(day.value for day in WEEKDAY_ORDER if day in selected)


def expand(start_date: date, end_date: date, weekdays: Iterable[Weekday]) -> List[date]:
    """
    List every date in [start_date, end_date] whose weekday is selected.

    Walks the range one day at a time, so callers are expected to keep
    the span short (see add_months). Returns an empty list when nothing
    matches or when end_date is before start_date.
    """
    wanted = {Weekday(day).python_weekday for day in weekdays}
    if not wanted:
        return []

    dates = []
    current = start_date
    while current <= end_date:
        if current.weekday() in wanted:
            dates.append(current)
        current += timedelta(days=1)
    return dates


def add_months(day: date, months: int) -> date:
    """Same day of month `months` later, clamped to the month's last day."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def new_recurrence_group_id() -> uuid.UUID:
    """Identifier shared by every event of one recurring series."""
    return uuid.uuid4()
