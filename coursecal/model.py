"""
Central data model definitions used across the project.

This module defines the canonical structure of Course and Event objects so that:
- all modules share the same field names
- the calendar, the renderers and the exporters agree on one event shape
- the JSON shape written by the CLI stays stable

Catalog items (assignments, quizzes, discussions) are kept as plain dicts,
because they come from JSON files or the Canvas API and may be incomplete.
Events are the validated projection of those items.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

# Catalog collection name -> event type
ITEM_COLLECTIONS = {
    "assignments": "assignment",
    "quizzes": "quiz",
    "discussions": "discussion",
}

EVENT_TYPES = ("assignment", "quiz", "discussion")
PRIORITIES = ("low", "medium", "high")


@dataclass
class Course:
    """
    Represents one course as stored in catalog.json.
    """

    id: str
    name: str
    course_code: Optional[str] = None
    instructor: Optional[str] = None
    term_start: Optional[str] = None
    term_end: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        term = data.get("termDates") or {}
        if not isinstance(term, dict):
            term = {}
        return cls(
            id=str(data.get("id", "")).strip(),
            name=str(data.get("name", "") or "").strip(),
            course_code=data.get("courseCode") or None,
            instructor=data.get("instructor") or None,
            term_start=term.get("start") or None,
            term_end=term.get("end") or None,
        )


@dataclass(frozen=True)
class Event:
    """
    One calendar entry derived from an assignment, quiz or discussion.

    `type` is the discriminant; it always matches the catalog collection
    the item was projected from.
    """

    id: str
    course_id: str
    type: str
    title: str
    start_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    points_possible: Optional[Union[int, float]] = None
    priority: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type!r}")
        if self.priority is not None and self.priority not in PRIORITIES:
            raise ValueError(f"Unknown priority: {self.priority!r}")

    @property
    def is_timed(self) -> bool:
        return self.start_time is not None

    def to_dict(self) -> dict[str, Any]:
        """
        Return the external (camelCase) shape. Absent optional fields are omitted.
        """
        out: dict[str, Any] = {
            "id": self.id,
            "courseId": self.course_id,
            "type": self.type,
            "title": self.title,
            "startDate": self.start_date,
        }
        optional = {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "pointsPossible": self.points_possible,
            "priority": self.priority,
        }
        for key, value in optional.items():
            if value is not None:
                out[key] = value
        return out
