"""
Plain-text rendering of events for the terminal.

Three layouts, matching the calendar views:
- list:  one line per event
- week:  one block per day (Sunday .. Saturday), empty days included
- month: a 7-column grid with the number of events per day, then the list
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Iterable, Optional

from coursecal.model import Event
from coursecal.views import group_by_day, month_grid_range, week_range

TYPE_TAGS = {"assignment": "ASG", "quiz": "QUIZ", "discussion": "DISC"}
WEEKDAY_HEADER = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def format_event(ev: Event, course_names: Optional[dict[str, str]] = None, with_date: bool = True) -> str:
    course = (course_names or {}).get(ev.course_id, ev.course_id)
    when = ev.start_time or "--:--"
    if ev.start_time and ev.end_time:
        when = f"{ev.start_time}-{ev.end_time}"

    parts = []
    if with_date:
        parts.append(ev.start_date)
    parts.append(f"{when:<11}")
    parts.append(f"[{TYPE_TAGS[ev.type]}]")
    parts.append(f"{course} | {ev.title}")
    line = " ".join(parts)

    if ev.points_possible is not None:
        line += f" ({ev.points_possible:g} pts)"
    if ev.priority:
        line += f" !{ev.priority}"
    if ev.location:
        line += f" @ {ev.location}"
    return line


def render_list(events: Iterable[Event], course_names: Optional[dict[str, str]] = None) -> str:
    lines = [format_event(ev, course_names) for ev in events]
    if not lines:
        return "No events."
    return "\n".join(lines)


def render_week(
    events: Iterable[Event],
    day: date,
    course_names: Optional[dict[str, str]] = None,
) -> str:
    start, _ = week_range(day)
    by_day = group_by_day(events)

    lines: list[str] = []
    for i in range(7):
        d = start + timedelta(days=i)
        lines.append(d.strftime("%a, %b %d"))
        day_events = by_day.get(d.isoformat(), [])
        if not day_events:
            lines.append("  -")
        for ev in day_events:
            lines.append("  " + format_event(ev, course_names, with_date=False))
    return "\n".join(lines)


def render_month(
    events: Iterable[Event],
    day: date,
    course_names: Optional[dict[str, str]] = None,
) -> str:
    events = list(events)
    by_day = group_by_day(events)
    grid_start, grid_end = month_grid_range(day)

    lines = [f"{calendar.month_name[day.month]} {day.year}", " ".join(f"{h:>6}" for h in WEEKDAY_HEADER)]

    row: list[str] = []
    d = grid_start
    while d <= grid_end:
        if d.month != day.month:
            cell = ""
        else:
            n = len(by_day.get(d.isoformat(), []))
            cell = f"{d.day}*{n}" if n else str(d.day)
        row.append(f"{cell:>6}")
        if len(row) == 7:
            lines.append(" ".join(row))
            row = []
        d += timedelta(days=1)

    lines.append("")
    lines.append(render_list(events, course_names))
    return "\n".join(lines)
