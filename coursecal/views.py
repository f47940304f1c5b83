"""
Date windows for the calendar views.

- month: first to last day of the month
- week:  Sunday to Saturday
- list:  today and the next three months
- upcoming: today and the next seven days (dashboard)
"""

from __future__ import annotations

import calendar
from collections import OrderedDict
from datetime import date, timedelta, tzinfo
from typing import Any, Iterable, Optional

from coursecal.aggregate import CourseSource, get_events
from coursecal.model import Event

VIEW_MODES = ("month", "week", "list")


def month_range(day: date) -> tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def week_range(day: date) -> tuple[date, date]:
    # date.weekday(): Monday == 0, so Sunday is 6
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def add_months(day: date, months: int) -> date:
    """
    Same day `months` later; clamps to the end of shorter months (Jan 31 -> Feb 28).
    """
    total = day.year * 12 + (day.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def list_range(day: date, months: int = 3) -> tuple[date, date]:
    return day, add_months(day, months)


def month_grid_range(day: date) -> tuple[date, date]:
    """
    Week-aligned window covering the whole month, as drawn by a month grid.
    """
    first, last = month_range(day)
    return week_range(first)[0], week_range(last)[1]


def view_range(mode: str, day: date) -> tuple[date, date]:
    if mode == "month":
        return month_range(day)
    if mode == "week":
        return week_range(day)
    if mode == "list":
        return list_range(day)
    raise ValueError(f"Unknown view mode {mode!r} (expected one of {', '.join(VIEW_MODES)})")


def upcoming_events(
    catalog: CourseSource,
    enrolled_course_ids: Optional[Iterable[Any]],
    today: date,
    days: int = 7,
    tz: Optional[tzinfo] = None,
) -> list[Event]:
    if days < 0:
        return []
    return get_events(today, today + timedelta(days=days), enrolled_course_ids, catalog, tz)


def group_by_day(events: Iterable[Event]) -> "OrderedDict[str, list[Event]]":
    """
    Group events by start_date, keeping their order.
    """
    out: OrderedDict[str, list[Event]] = OrderedDict()
    for ev in events:
        out.setdefault(ev.start_date, []).append(ev)
    return out
