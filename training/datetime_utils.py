# training/datetime_utils.py
"""
Date handling for training sessions: list date buckets and the
month calendar grid.

All "now" lookups go through ``now()`` so tests and views agree.
"""
import calendar
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.utils import timezone


def now() -> datetime:
    """
    Get current datetime (timezone-aware when USE_TZ=True).
    """
    return timezone.now()


def today() -> date:
    return now().date()


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last day of the month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def clamp_year_month(year, month, fallback: Optional[date] = None) -> Tuple[int, int]:
    """
    Parse and clamp calendar navigation input. Year is limited to the
    configured range, month to 1–12; unparsable values use ``fallback``.
    """
    fallback = fallback or today()
    program = settings.PROGRAM_SETTINGS
    try:
        year = int(year)
    except (TypeError, ValueError):
        year = fallback.year
    try:
        month = int(month)
    except (TypeError, ValueError):
        month = fallback.month

    year = min(max(year, program["CALENDAR_MIN_YEAR"]), program["CALENDAR_MAX_YEAR"])
    month = min(max(month, 1), 12)
    return year, month


def month_grid_bounds(year: int, month: int) -> Tuple[date, date]:
    """
    The displayed range: Monday on/before the 1st through Sunday on/after
    the last day of the month.
    """
    first, last = month_bounds(year, month)
    grid_start = first - timedelta(days=first.weekday())
    grid_end = last + timedelta(days=6 - last.weekday())
    return grid_start, grid_end


def month_grid(year: int, month: int, current: Optional[date] = None) -> List[List[Dict]]:
    """
    Weeks (Mon–Sun) covering the month, each day flagged with
    ``in_month`` / ``is_today``.
    """
    current = current or today()
    grid_start, grid_end = month_grid_bounds(year, month)

    weeks = []
    day = grid_start
    while day <= grid_end:
        week = []
        for _ in range(7):
            week.append({
                "date": day,
                "day": day.day,
                "in_month": day.month == month,
                "is_today": day == current,
            })
            day += timedelta(days=1)
        weeks.append(week)
    return weeks


def adjacent_months(year: int, month: int) -> Dict[str, Dict[str, int]]:
    prev_year, prev_month = (year - 1, 12) if month == 1 else (year, month - 1)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return {
        "prev": {"year": prev_year, "month": prev_month},
        "next": {"year": next_year, "month": next_month},
    }


def date_filter_range(name: str, current: Optional[datetime] = None) -> Optional[Tuple[datetime, datetime]]:
    """
    Half-open [start, end) datetime range for the calendar-style list
    filters. ``upcoming`` / ``past`` are open-ended and return None here.
    """
    current = current or now()
    day = current.date()

    if name == "today":
        start = day
        end = day + timedelta(days=1)
    elif name == "this_week":
        start = day - timedelta(days=day.weekday())
        end = start + timedelta(days=7)
    elif name == "this_month":
        start, last = month_bounds(day.year, day.month)
        end = last + timedelta(days=1)
    else:
        return None
    return start_of_day(start), start_of_day(end)


def format_for_display(dt: Optional[datetime], format_str: str = "%b %d, %Y %I:%M %p") -> Optional[str]:
    """
    Format datetime for human-readable display.

    Default format: "Jan 01, 2026 02:30 PM"
    """
    if dt is None:
        return None
    return dt.strftime(format_str)
