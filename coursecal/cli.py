"""
CLI (Command Line Interface).

Terminal commands around the course calendar, e.g.:

    coursecal courses [text]
    coursecal enroll <course_id>
    coursecal unenroll <course_id>
    coursecal enrolled
    coursecal events --start 2025-06-01 --end 2025-06-30 [--json]
    coursecal calendar month|week|list [--date 2025-06-03]
    coursecal upcoming [--days 7]
    coursecal export <file.ics> --start ... --end ...
    coursecal sync [--canvas-url URL] [--token TOKEN]

Calendar commands only show enrolled courses; with no enrollments (or --all)
every course in the catalog is shown.
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from coursecal.aggregate import get_events
from coursecal.canvas import CanvasApiError, CanvasClient, build_catalog
from coursecal.catalog import Catalog, CatalogError, load_catalog, save_catalog
from coursecal.config import Settings, configure_logging, load_settings
from coursecal.export_ics import export_events_to_ics
from coursecal.render import render_list, render_month, render_week
from coursecal.storage import load_enrolled_course_ids, save_enrolled_course_ids
from coursecal.views import VIEW_MODES, upcoming_events, view_range

log = logging.getLogger(__name__)


def _parse_day(text: Optional[str], default: Optional[date] = None) -> date:
    """
    Parse YYYY-MM-DD. Raises ValueError with a readable message.
    """
    if not text:
        if default is None:
            raise ValueError("Missing date")
        return default
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise ValueError(f"Invalid date {text!r}, expected YYYY-MM-DD") from None


def _catalog_path(args: argparse.Namespace, settings: Settings) -> Path:
    return Path(args.catalog) if args.catalog else settings.catalog_path


def _enrollment(args: argparse.Namespace, settings: Settings) -> set[str]:
    if getattr(args, "all", False):
        return set()
    return load_enrolled_course_ids(settings.enrollment_path)


def _cmd_courses(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    """
    List courses, or search them by substring in id, name, code or instructor.
    """
    matches = catalog.search_courses(args.text or "")
    if not matches:
        print("No courses." if not args.text else "No results.")
        return 0

    enrolled = load_enrolled_course_ids(settings.enrollment_path)
    for c in matches:
        mark = "*" if c.id in enrolled else " "
        code = f" ({c.course_code})" if c.course_code else ""
        who = f" - {c.instructor}" if c.instructor else ""
        print(f"{mark} {c.id} | {c.name}{code}{who}")
    return 0


def _cmd_enroll(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    cid = (args.course_id or "").strip()
    if not cid:
        print("Please provide a course_id.")
        return 1

    # allow unknown ids (catalog may be synced later), but warn
    if cid not in catalog.course_names():
        print(f"Warning: course_id '{cid}' not found in the catalog (enrolling anyway).")

    enrolled = load_enrolled_course_ids(settings.enrollment_path)
    if cid in enrolled:
        print(f"Already enrolled: {cid}")
        return 0

    enrolled.add(cid)
    save_enrolled_course_ids(enrolled, settings.enrollment_path)
    print(f"Enrolled: {cid} (courses: {len(enrolled)})")
    return 0


def _cmd_unenroll(args: argparse.Namespace, settings: Settings) -> int:
    cid = (args.course_id or "").strip()
    if not cid:
        print("Please provide a course_id.")
        return 1

    enrolled = load_enrolled_course_ids(settings.enrollment_path)
    if cid not in enrolled:
        print(f"Not enrolled: {cid}")
        return 0

    enrolled.remove(cid)
    save_enrolled_course_ids(enrolled, settings.enrollment_path)
    print(f"Unenrolled: {cid} (courses: {len(enrolled)})")
    return 0


def _cmd_enrolled(catalog: Catalog, settings: Settings) -> int:
    enrolled = load_enrolled_course_ids(settings.enrollment_path)
    if not enrolled:
        print("Not enrolled in any course (calendar shows all courses).")
        return 0
    names = catalog.course_names()
    for cid in sorted(enrolled):
        print(f"{cid} | {names.get(cid, '(not in catalog)')}")
    return 0


def _cmd_events(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    start = _parse_day(args.start)
    end = _parse_day(args.end)
    events = get_events(start, end, _enrollment(args, settings), catalog, settings.zone)

    if args.json:
        print(json.dumps([ev.to_dict() for ev in events], indent=2, ensure_ascii=False))
    else:
        print(render_list(events, catalog.course_names()))
    return 0


def _cmd_calendar(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    day = _parse_day(args.date, default=date.today())
    start, end = view_range(args.mode, day)
    events = get_events(start, end, _enrollment(args, settings), catalog, settings.zone)
    names = catalog.course_names()

    if args.mode == "month":
        print(render_month(events, day, names))
    elif args.mode == "week":
        print(render_week(events, day, names))
    else:
        print(render_list(events, names))
    return 0


def _cmd_upcoming(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    today = _parse_day(args.date, default=date.today())
    events = upcoming_events(catalog, _enrollment(args, settings), today, days=args.days, tz=settings.zone)
    print(f"Upcoming ({len(events)}):")
    print(render_list(events, catalog.course_names()))
    return 0


def _cmd_export(args: argparse.Namespace, catalog: Catalog, settings: Settings) -> int:
    """
    Export the events of a date window into an iCalendar (.ics) file.
    """
    out_path = (args.out or "").strip()
    if not out_path:
        print("Please provide output .ics path.")
        return 1

    events = get_events(
        _parse_day(args.start), _parse_day(args.end), _enrollment(args, settings), catalog, settings.zone
    )
    if not events:
        print("No events to export.")
        return 0

    n = export_events_to_ics(events, out_path, catalog.course_names())
    print(f"Exported {n} events to: {out_path}")
    return 0


def _cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    """
    Replace the local catalog with the courses of a Canvas account.
    """
    base_url = args.canvas_url or settings.canvas_url
    token = args.token or settings.canvas_token
    if not base_url or not token:
        print("Canvas URL and token are required (--canvas-url/--token or CANVAS_URL/CANVAS_TOKEN).")
        return 1

    catalog = build_catalog(CanvasClient(base_url, token))
    path = _catalog_path(args, settings)
    save_catalog(catalog, path)
    print(f"Synced {len(catalog)} courses to: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="coursecal", description="Course calendar CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--catalog", type=str, default=None, help="Path to catalog.json")
    sub = parser.add_subparsers(dest="command", required=True)

    p_courses = sub.add_parser("courses", help="List or search courses")
    p_courses.add_argument("text", type=str, nargs="?", default="", help="Search text")

    p_enroll = sub.add_parser("enroll", help="Enroll in a course by course_id")
    p_enroll.add_argument("course_id", type=str, help="Course ID")

    p_unenroll = sub.add_parser("unenroll", help="Leave a course by course_id")
    p_unenroll.add_argument("course_id", type=str, help="Course ID")

    sub.add_parser("enrolled", help="Show enrolled courses")

    p_events = sub.add_parser("events", help="List events in a date range")
    p_events.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    p_events.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")
    p_events.add_argument("--json", action="store_true", help="Print JSON instead of text")

    p_cal = sub.add_parser("calendar", help="Month, week or list view")
    p_cal.add_argument("mode", choices=VIEW_MODES)
    p_cal.add_argument("--date", default=None, help="Reference day (default: today)")

    p_up = sub.add_parser("upcoming", help="Events due in the next days")
    p_up.add_argument("--days", type=int, default=7)
    p_up.add_argument("--date", default=None, help="Reference day (default: today)")

    p_export = sub.add_parser("export", help="Export events to .ics")
    p_export.add_argument("out", type=str, help="Output file path (e.g. out.ics)")
    p_export.add_argument("--start", required=True, help="First day (YYYY-MM-DD)")
    p_export.add_argument("--end", required=True, help="Last day (YYYY-MM-DD)")

    for p in (p_events, p_cal, p_up, p_export):
        p.add_argument("--all", action="store_true", help="Ignore enrollments, show every course")

    p_sync = sub.add_parser("sync", help="Import courses from Canvas")
    p_sync.add_argument("--canvas-url", default=None)
    p_sync.add_argument("--token", default=None)

    return parser


def _dispatch(args: argparse.Namespace, settings: Settings) -> int:
    if args.command == "sync":
        return _cmd_sync(args, settings)
    if args.command == "unenroll":
        return _cmd_unenroll(args, settings)

    catalog = load_catalog(_catalog_path(args, settings))

    if args.command == "courses":
        return _cmd_courses(args, catalog, settings)
    if args.command == "enroll":
        return _cmd_enroll(args, catalog, settings)
    if args.command == "enrolled":
        return _cmd_enrolled(catalog, settings)
    if args.command == "events":
        return _cmd_events(args, catalog, settings)
    if args.command == "calendar":
        return _cmd_calendar(args, catalog, settings)
    if args.command == "upcoming":
        return _cmd_upcoming(args, catalog, settings)
    if args.command == "export":
        return _cmd_export(args, catalog, settings)
    return 2


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        code = _dispatch(args, settings)
    except (ValueError, CatalogError, CanvasApiError) as exc:
        log.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}")
        code = 1
    raise SystemExit(code)
