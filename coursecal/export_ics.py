"""
iCalendar (.ics) export.

We convert calendar events into a calendar file that can be imported into:
- Google Calendar
- Outlook
- Apple Calendar

Events with a start time become timed entries (1 hour long unless an end
time is known); events without one become all-day entries on their due date.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

from coursecal.model import Event

# RFC 5545: 1 = highest, 9 = lowest
ICS_PRIORITY = {"high": 1, "medium": 5, "low": 9}

# RFC 5545 3.1: content lines longer than this are folded
MAX_LINE_OCTETS = 75


def _ics_escape(text: str) -> str:
    """
    Escape text for ICS fields (very small subset, sufficient for our use).
    """
    return (
        text.replace("\\", "\\\\").replace("\r\n", "\\n").replace("\n", "\\n").replace(";", "\\;").replace(",", "\\,")
    )


def _fold(line: str) -> str:
    """
    Fold a content line into CRLF + space continued chunks of at most
    75 octets, never splitting a UTF-8 character.
    """
    chunks: list[str] = []
    current = ""
    size = 0
    for ch in line:
        n = len(ch.encode("utf-8"))
        if size + n > MAX_LINE_OCTETS:
            chunks.append(current)
            # continuation lines start with one space, which counts too
            current = " "
            size = 1
        current += ch
        size += n
    chunks.append(current)
    return "\r\n".join(chunks)


def _dt_local(date_yyyy_mm_dd: str, time_hh_mm: str) -> datetime:
    return datetime.strptime(f"{date_yyyy_mm_dd} {time_hh_mm}", "%Y-%m-%d %H:%M")


def _event_times(ev: Event) -> list[str]:
    """
    Return the DTSTART / DTEND lines for one event.
    """
    if ev.start_time is None:
        day = datetime.strptime(ev.start_date, "%Y-%m-%d")
        return [
            f"DTSTART;VALUE=DATE:{day:%Y%m%d}",
            f"DTEND;VALUE=DATE:{day + timedelta(days=1):%Y%m%d}",
        ]

    start = _dt_local(ev.start_date, ev.start_time)
    end = _dt_local(ev.start_date, ev.end_time) if ev.end_time else start + timedelta(hours=1)
    if end <= start:
        end = start + timedelta(hours=1)
    return [f"DTSTART:{start:%Y%m%dT%H%M00}", f"DTEND:{end:%Y%m%dT%H%M00}"]


def export_events_to_ics(
    events: Iterable[Event],
    out_path: str | Path,
    course_names: dict[str, str] | None = None,
) -> int:
    """
    Export events to an .ics file. Returns number of exported events.
    """
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    names = course_names or {}

    lines: list[str] = []
    lines.append("BEGIN:VCALENDAR")
    lines.append("VERSION:2.0")
    lines.append("PRODID:-//coursecal//EN")
    lines.append("CALSCALE:GREGORIAN")

    dtstamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    count = 0
    for ev in events:
        course = names.get(ev.course_id, ev.course_id)
        summary = f"{course}: {ev.title}"
        uid = f"{ev.course_id}-{ev.type}-{ev.id}@coursecal"

        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{_ics_escape(uid)}")
        lines.append(f"DTSTAMP:{dtstamp}")
        lines.extend(_event_times(ev))
        lines.append(f"SUMMARY:{_ics_escape(summary)}")
        lines.append(f"CATEGORIES:{ev.type.upper()}")
        if ev.location:
            lines.append(f"LOCATION:{_ics_escape(ev.location)}")
        if ev.points_possible is not None:
            lines.append(f"DESCRIPTION:Points possible: {ev.points_possible:g}")
        if ev.priority:
            lines.append(f"PRIORITY:{ICS_PRIORITY[ev.priority]}")
        lines.append("END:VEVENT")
        count += 1

    lines.append("END:VCALENDAR")

    # ICS standard uses CRLF
    out.write_text("\r\n".join(_fold(line) for line in lines) + "\r\n", encoding="utf-8")
    return count
