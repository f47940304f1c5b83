"""
Persistent storage for the viewer's enrollment set.

This module manages the file:

    <data dir>/enrolled_courses.json

Design rationale:
- catalog.json holds the complete course data (from Canvas or hand-edited)
- enrolled_courses.json stores only which courses the viewer follows

The calendar code never reads this file itself: the CLI loads the set here
and passes it into coursecal.aggregate.get_events().
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable

from coursecal.config import load_settings

log = logging.getLogger(__name__)


def _default_enrollment_path() -> Path:
    """
    Return the configured path of enrolled_courses.json.

    Using a function instead of a constant makes testing easier,
    because tests can override the path or the environment.
    """
    return load_settings().enrollment_path


def load_enrolled_course_ids(path: str | Path | None = None) -> set[str]:
    """
    Load enrolled course IDs from enrolled_courses.json.

    Returns an empty set if the file does not exist or is invalid.
    """
    enrolled_path = Path(path) if path is not None else _default_enrollment_path()

    # First run: file does not exist yet -> not enrolled anywhere
    if not enrolled_path.exists():
        return set()

    try:
        data = json.loads(enrolled_path.read_text(encoding="utf-8"))
        ids = data.get("enrolled_course_ids", [])
        if not isinstance(ids, list):
            return set()
        out: set[str] = set()
        for x in ids:
            # Canvas ids are numbers in some exports
            if isinstance(x, (str, int)) and not isinstance(x, bool):
                cid = str(x).strip()
                if cid:
                    out.add(cid)
        return out
    except (OSError, json.JSONDecodeError, UnicodeDecodeError, AttributeError) as exc:
        log.warning("Ignoring unreadable enrollment file %s: %s", enrolled_path, exc)
        return set()


def save_enrolled_course_ids(ids: Iterable[str], path: str | Path | None = None) -> None:
    """
    Save enrolled course IDs to enrolled_courses.json.

    Creates parent directories if needed. IDs are stripped, de-duplicated
    and sorted to keep the file format stable.
    """
    enrolled_path = Path(path) if path is not None else _default_enrollment_path()
    enrolled_path.parent.mkdir(parents=True, exist_ok=True)

    norm = sorted({str(x).strip() for x in ids if str(x).strip()})
    payload = {"enrolled_course_ids": norm}

    enrolled_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
