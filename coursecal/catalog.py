"""
Course catalog store.

The catalog holds every course together with its nested item collections:

    {
      "courses": [
        {
          "id": "C1", "name": "...", "courseCode": "...", "instructor": "...",
          "termDates": {"start": "2025-05-28", "end": "2025-07-15"},
          "assignments": [...], "quizzes": [...], "discussions": [...]
        }
      ]
    }

The store is an in-memory list backed by catalog.json. Reads hand out copies,
so the calendar aggregation can never change the stored data.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Iterator

from coursecal.model import ITEM_COLLECTIONS, Course

log = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for catalog lookup / update failures."""


class UnknownCourseError(CatalogError):
    def __init__(self, course_id: str) -> None:
        super().__init__(f"Course not found: {course_id}")
        self.course_id = course_id


class UnknownItemError(CatalogError):
    def __init__(self, course_id: str, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} item {item_id} not found in course {course_id}")
        self.course_id = course_id
        self.kind = kind
        self.item_id = item_id


class DuplicateCourseError(CatalogError):
    def __init__(self, course_id: str) -> None:
        super().__init__(f"Course already exists: {course_id}")
        self.course_id = course_id


def _norm_id(value: Any) -> str:
    return str(value if value is not None else "").strip()


def _check_kind(kind: str) -> None:
    if kind not in ITEM_COLLECTIONS:
        raise ValueError(f"Unknown item collection {kind!r} (expected one of {sorted(ITEM_COLLECTIONS)})")


class Catalog:
    """
    In-memory course catalog with simple CRUD operations.
    """

    def __init__(self, courses: list[dict[str, Any]] | None = None) -> None:
        self._courses: list[dict[str, Any]] = []
        for c in courses or []:
            self.add_course(c)

    def __len__(self) -> int:
        return len(self._courses)

    # -- reads ---------------------------------------------------------------

    def iter_courses(self) -> Iterator[dict[str, Any]]:
        """
        Yield a deep copy of every course (including its items).
        """
        for c in self._courses:
            yield copy.deepcopy(c)

    def list_courses(self) -> list[Course]:
        return [Course.from_dict(c) for c in self._courses]

    def course_names(self) -> dict[str, str]:
        return {c.id: c.name or c.id for c in self.list_courses()}

    def get_course(self, course_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._find_course(course_id))

    def list_items(self, course_id: str, kind: str) -> list[dict[str, Any]]:
        _check_kind(kind)
        course = self._find_course(course_id)
        return copy.deepcopy(course.get(kind) or [])

    def search_courses(self, text: str) -> list[Course]:
        """
        Case-insensitive substring match on id, name, course code and instructor.
        """
        query = (text or "").strip().lower()
        out: list[Course] = []
        for c in self.list_courses():
            hay = " ".join(x for x in (c.id, c.name, c.course_code, c.instructor) if x).lower()
            if query in hay:
                out.append(c)
        return out

    # -- course writes -------------------------------------------------------

    def add_course(self, course: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(course, dict):
            raise ValueError("Course must be a mapping")
        course_id = _norm_id(course.get("id"))
        if not course_id:
            raise ValueError("Course needs a non-empty 'id'")
        if self._index_of(course_id) is not None:
            raise DuplicateCourseError(course_id)

        stored = copy.deepcopy(course)
        stored["id"] = course_id
        for kind in ITEM_COLLECTIONS:
            stored.setdefault(kind, [])
        self._courses.append(stored)
        log.debug("Added course %s", course_id)
        return copy.deepcopy(stored)

    def update_course(self, course_id: str, **changes: Any) -> dict[str, Any]:
        if "id" in changes and _norm_id(changes["id"]) != _norm_id(course_id):
            raise ValueError("Course id cannot be changed")
        course = self._find_course(course_id)
        course.update(copy.deepcopy(changes))
        return copy.deepcopy(course)

    def delete_course(self, course_id: str) -> None:
        idx = self._index_of(_norm_id(course_id))
        if idx is None:
            raise UnknownCourseError(_norm_id(course_id))
        del self._courses[idx]
        log.debug("Deleted course %s", course_id)

    # -- item writes ---------------------------------------------------------

    def add_item(self, course_id: str, kind: str, item: dict[str, Any]) -> dict[str, Any]:
        _check_kind(kind)
        if not isinstance(item, dict) or not _norm_id(item.get("id")):
            raise ValueError("Item needs a non-empty 'id'")
        course = self._find_course(course_id)
        items = course.setdefault(kind, [])
        stored = copy.deepcopy(item)
        items.append(stored)
        return copy.deepcopy(stored)

    def update_item(self, course_id: str, kind: str, item_id: str, **changes: Any) -> dict[str, Any]:
        item = self._find_item(course_id, kind, item_id)
        item.update(copy.deepcopy(changes))
        return copy.deepcopy(item)

    def delete_item(self, course_id: str, kind: str, item_id: str) -> None:
        _check_kind(kind)
        course = self._find_course(course_id)
        items = course.get(kind) or []
        for i, it in enumerate(items):
            if isinstance(it, dict) and _norm_id(it.get("id")) == _norm_id(item_id):
                del items[i]
                return
        raise UnknownItemError(_norm_id(course_id), kind, _norm_id(item_id))

    # -- internals -----------------------------------------------------------

    def _index_of(self, course_id: str) -> int | None:
        for i, c in enumerate(self._courses):
            if c["id"] == course_id:
                return i
        return None

    def _find_course(self, course_id: str) -> dict[str, Any]:
        idx = self._index_of(_norm_id(course_id))
        if idx is None:
            raise UnknownCourseError(_norm_id(course_id))
        return self._courses[idx]

    def _find_item(self, course_id: str, kind: str, item_id: str) -> dict[str, Any]:
        _check_kind(kind)
        course = self._find_course(course_id)
        for it in course.get(kind) or []:
            if isinstance(it, dict) and _norm_id(it.get("id")) == _norm_id(item_id):
                return it
        raise UnknownItemError(_norm_id(course_id), kind, _norm_id(item_id))

    def to_dict(self) -> dict[str, Any]:
        return {"courses": copy.deepcopy(self._courses)}


def load_catalog(path: str | Path) -> Catalog:
    """
    Load catalog.json. Missing or broken files give an empty catalog,
    broken course entries are dropped.
    """
    p = Path(path)
    if not p.exists():
        return Catalog()

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        log.warning("Could not read catalog %s: %s", p, exc)
        return Catalog()

    raw_courses = data.get("courses", []) if isinstance(data, dict) else data
    if not isinstance(raw_courses, list):
        log.warning("Catalog %s has no course list, ignoring it", p)
        return Catalog()

    catalog = Catalog()
    for c in raw_courses:
        try:
            catalog.add_course(c)
        except (ValueError, CatalogError) as exc:
            log.warning("Skipping course entry in %s: %s", p, exc)
    return catalog


def save_catalog(catalog: Catalog, path: str | Path) -> None:
    """
    Write the catalog as JSON. Creates parent directories if needed.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(catalog.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
