"""
Calendar aggregation.

Given a date window, the viewer's enrolled course IDs and the catalog,
produce every assignment / quiz / discussion that falls into the window
as a sorted list of Event objects.

Rules:
- the window [range_start, range_end] is inclusive on both ends
- an empty or missing enrollment set means "show all courses"
- one broken catalog record never breaks the whole calendar: it is skipped
- the result is recomputed on every call (no caching, no mutation)
"""

from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Iterable, Optional, Protocol

from coursecal.model import ITEM_COLLECTIONS, PRIORITIES, Event

log = logging.getLogger(__name__)

# Checked in order; the first non-empty key is the event date
DATE_KEYS = ("dueAt", "due_at", "dueDate", "due_date", "postedAt", "posted_at", "date")


class CourseSource(Protocol):
    def iter_courses(self) -> Iterable[dict[str, Any]]: ...


def _parse_iso(text: str) -> date | datetime:
    """
    Parse a whole ISO date or datetime string ('Z' means UTC).
    Raises ValueError on trailing garbage or anything else unparseable.
    """
    text = text.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _coerce_day(value: Any) -> Optional[date]:
    """
    Accept date, datetime or an ISO date/datetime string. Returns None if unusable.
    """
    if isinstance(value, str):
        try:
            value = _parse_iso(value)
        except ValueError:
            return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _parse_hhmm(value: Any) -> Optional[str]:
    """
    Normalize 'H:MM' / 'HH:MM' to 'HH:MM'. Anything else -> None.
    """
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), "%H:%M").strftime("%H:%M")
    except ValueError:
        return None


def _parse_when(value: Any, tz: Optional[tzinfo] = None) -> tuple[str, Optional[str]]:
    """
    Split a due/posting date into (ISO date, HH:MM or None).

    Accepts 'YYYY-MM-DD' and ISO datetimes like '2025-07-12T23:59:59Z'.
    Datetimes with an offset are converted to `tz` (None: the local zone)
    first, so one deadline lands on the same day however it is written.
    Naive datetimes are used as written.
    Raises ValueError for anything else.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Missing date: {value!r}")
    parsed = _parse_iso(value)
    if not isinstance(parsed, datetime):
        return parsed.isoformat(), None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date().isoformat(), parsed.strftime("%H:%M")


def _points(value: Any) -> Optional[int | float]:
    # bool is an int subclass, but True is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value < 0:
        return None
    return value


def _priority(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    norm = value.strip().lower()
    return norm if norm in PRIORITIES else None


def project_item(item: Any, course_id: str, event_type: str, tz: Optional[tzinfo] = None) -> Optional[Event]:
    """
    Turn one catalog item into an Event, or return None if the item is unusable.
    """
    if not isinstance(item, dict):
        return None

    raw_id = item.get("id")
    if raw_id is None or isinstance(raw_id, (dict, list)) or not str(raw_id).strip():
        return None

    title = item.get("title") or item.get("name")
    if not isinstance(title, str) or not title.strip():
        return None

    raw_when = next((item.get(k) for k in DATE_KEYS if item.get(k)), None)
    try:
        start_date, implied_time = _parse_when(raw_when, tz)
    except (ValueError, OverflowError):
        return None

    start_time = _parse_hhmm(item.get("startTime")) or implied_time
    location = item.get("location")

    return Event(
        id=str(raw_id).strip(),
        course_id=course_id,
        type=event_type,
        title=title.strip(),
        start_date=start_date,
        start_time=start_time,
        end_time=_parse_hhmm(item.get("endTime")),
        location=location.strip() if isinstance(location, str) and location.strip() else None,
        points_possible=_points(item.get("pointsPossible", item.get("points_possible"))),
        priority=_priority(item.get("priority")),
    )


def project_course(course: dict[str, Any], tz: Optional[tzinfo] = None) -> list[Event]:
    """
    Project all assignments, quizzes and discussions of one course into events.
    Malformed records are skipped.
    """
    course_id = _norm_id(course.get("id"))
    if not course_id:
        return []

    events: list[Event] = []
    for collection, event_type in ITEM_COLLECTIONS.items():
        items = course.get(collection) or []
        if not isinstance(items, list):
            log.debug("Course %s: %r is not a list, ignoring", course_id, collection)
            continue
        for item in items:
            ev = project_item(item, course_id, event_type, tz)
            if ev is None:
                log.debug("Course %s: skipping malformed %s record %r", course_id, event_type, item)
                continue
            events.append(ev)
    return events


def event_sort_key(ev: Event) -> tuple[str, int, str, str, str, str]:
    """
    Date first, untimed before timed, then time and id.
    course_id and type only break the remaining ties so the order is total.
    """
    return (
        ev.start_date,
        1 if ev.is_timed else 0,
        ev.start_time or "",
        ev.id,
        ev.course_id,
        ev.type,
    )


def _norm_id(value: Any) -> str:
    # None must not become the id "None"
    return str(value if value is not None else "").strip()


def _normalize_enrollment(ids: Optional[Iterable[Any]]) -> set[str]:
    if not ids:
        return set()
    return {_norm_id(x) for x in ids if _norm_id(x)}


def get_events(
    range_start: date | datetime | str,
    range_end: date | datetime | str,
    enrolled_course_ids: Optional[Iterable[Any]],
    catalog: CourseSource,
    tz: Optional[tzinfo] = None,
) -> list[Event]:
    """
    Return all events of the (enrolled) courses between range_start and
    range_end, both inclusive, sorted by date, time and id.

    Due datetimes with a UTC offset are placed in `tz` (default: local zone).

    Never raises for bad input: an invalid or reversed window gives [].
    """
    start = _coerce_day(range_start)
    end = _coerce_day(range_end)
    if start is None or end is None or start > end:
        return []

    start_iso = start.isoformat()
    end_iso = end.isoformat()
    allowed = _normalize_enrollment(enrolled_course_ids)

    seen: set[tuple[str, str, str]] = set()
    out: list[Event] = []
    for course in catalog.iter_courses():
        if not isinstance(course, dict):
            continue
        course_id = _norm_id(course.get("id"))
        if allowed and course_id not in allowed:
            continue

        for ev in project_course(course, tz):
            # ISO dates compare correctly as strings
            if not (start_iso <= ev.start_date <= end_iso):
                continue
            key = (ev.course_id, ev.type, ev.id)
            if key in seen:
                continue
            seen.add(key)
            out.append(ev)

    out.sort(key=event_sort_key)
    return out
