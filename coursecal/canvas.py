"""
Canvas LMS import (REST API -> catalog).

Fetches the viewer's active courses together with their assignments,
quizzes and discussion topics and maps them into the catalog format:

    Canvas course       -> catalog course
    Canvas assignment   -> "assignments" item
    Canvas quiz         -> "quizzes" item
    Canvas discussion   -> "discussions" item

Canvas also lists graded quizzes and graded discussions as assignments.
Those duplicates are dropped from "assignments"; they live in their own
collection.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from bs4 import BeautifulSoup

from coursecal.catalog import Catalog

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
PER_PAGE = 100


class CanvasApiError(RuntimeError):
    """Raised when Canvas API requests fail or return malformed payloads."""


class CanvasAccessDeniedError(CanvasApiError):
    """Raised when Canvas returns 403 (token not allowed to read the resource)."""


def normalize_canvas_base_url(base_url: str) -> str:
    """
    Strip trailing slashes and a trailing /api/v1 from a user-provided URL.
    """
    normalized = (base_url or "").strip().rstrip("/")
    if normalized.lower().endswith("/api/v1"):
        normalized = normalized[: -len("/api/v1")]
    return normalized


def html_to_text(html: Optional[str]) -> str:
    """
    Canvas stores descriptions as HTML; keep only the readable text.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    return soup.get_text(" ", strip=True)


def _date_part(value: Any) -> Optional[str]:
    if isinstance(value, str) and len(value) >= 10:
        return value[:10]
    return None


class CanvasClient:
    """
    Minimal read-only client for the Canvas REST API (v1).
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        root = normalize_canvas_base_url(base_url)
        if not root:
            raise CanvasApiError("Canvas base URL is empty")
        if not token:
            raise CanvasApiError("Canvas access token is empty")

        self.api_root = f"{root}/api/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}", "Accept": "application/json"})

    def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> requests.Response:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise CanvasApiError(f"Canvas request failed for {url}: {exc}") from exc

        if resp.status_code == 403:
            raise CanvasAccessDeniedError(f"Canvas access denied (403) for {url}")
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise CanvasApiError(f"Canvas request failed ({resp.status_code}) for {url}") from exc
        return resp

    def get_paginated(self, path: str, params: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """
        GET a list endpoint and follow Link: rel="next" until the last page.
        """
        rows: list[dict[str, Any]] = []
        url: Optional[str] = f"{self.api_root}/{path.lstrip('/')}"
        query: Optional[dict[str, Any]] = {"per_page": PER_PAGE, **(params or {})}

        while url:
            resp = self._get(url, params=query)
            try:
                payload = resp.json()
            except ValueError as exc:
                raise CanvasApiError(f"Canvas response was not valid JSON for {url}") from exc
            if not isinstance(payload, list):
                raise CanvasApiError(f"Canvas response expected a list for {url}")

            rows.extend(row for row in payload if isinstance(row, dict))

            # the next link already carries the query string
            url = resp.links.get("next", {}).get("url")
            query = None
        return rows

    def fetch_courses(self) -> list[dict[str, Any]]:
        rows = self.get_paginated(
            "courses",
            {"enrollment_state": "active", "include[]": ["teachers", "term"]},
        )
        courses: list[dict[str, Any]] = []
        for row in rows:
            course_id = row.get("id")
            name = row.get("name")
            if course_id is None or not isinstance(name, str) or not name.strip():
                continue

            teachers = row.get("teachers") or []
            instructor = None
            if teachers and isinstance(teachers[0], dict):
                instructor = teachers[0].get("display_name")

            term = row.get("term") if isinstance(row.get("term"), dict) else {}
            courses.append(
                {
                    "id": str(course_id),
                    "name": name.strip(),
                    "courseCode": row.get("course_code"),
                    "instructor": instructor,
                    "termDates": {
                        "start": _date_part(row.get("start_at") or term.get("start_at")),
                        "end": _date_part(row.get("end_at") or term.get("end_at")),
                    },
                }
            )
        return courses

    def fetch_assignments(self, course_id: str) -> list[dict[str, Any]]:
        rows = self.get_paginated(f"courses/{course_id}/assignments", {"order_by": "due_at"})
        items: list[dict[str, Any]] = []
        for row in rows:
            if row.get("published") is False:
                continue
            if row.get("quiz_id") is not None or row.get("discussion_topic"):
                continue
            items.append(
                {
                    "id": str(row.get("id")),
                    "title": row.get("name"),
                    "dueAt": row.get("due_at"),
                    "pointsPossible": row.get("points_possible"),
                    "description": html_to_text(row.get("description")),
                }
            )
        return items

    def fetch_quizzes(self, course_id: str) -> list[dict[str, Any]]:
        rows = self.get_paginated(f"courses/{course_id}/quizzes")
        items: list[dict[str, Any]] = []
        for row in rows:
            if row.get("published") is False:
                continue
            items.append(
                {
                    "id": str(row.get("id")),
                    "title": row.get("title"),
                    "dueAt": row.get("due_at"),
                    "pointsPossible": row.get("points_possible"),
                    "description": html_to_text(row.get("description")),
                }
            )
        return items

    def fetch_discussions(self, course_id: str) -> list[dict[str, Any]]:
        rows = self.get_paginated(f"courses/{course_id}/discussion_topics")
        items: list[dict[str, Any]] = []
        for row in rows:
            if row.get("published") is False:
                continue
            # graded discussions carry their due date on the linked assignment
            assignment = row.get("assignment") if isinstance(row.get("assignment"), dict) else {}
            items.append(
                {
                    "id": str(row.get("id")),
                    "title": row.get("title"),
                    "dueAt": assignment.get("due_at"),
                    "postedAt": row.get("posted_at"),
                    "pointsPossible": assignment.get("points_possible"),
                    "description": html_to_text(row.get("message")),
                }
            )
        return items


def build_catalog(client: CanvasClient) -> Catalog:
    """
    Fetch everything and return a fresh Catalog.

    A collection the token may not read (403) is left empty for that
    course; every other error aborts the import.
    """
    catalog = Catalog()
    fetchers = {
        "assignments": client.fetch_assignments,
        "quizzes": client.fetch_quizzes,
        "discussions": client.fetch_discussions,
    }

    for course in client.fetch_courses():
        course_id = course["id"]
        for kind, fetch in fetchers.items():
            try:
                course[kind] = fetch(course_id)
            except CanvasAccessDeniedError as exc:
                log.warning("Skipping %s of course %s: %s", kind, course_id, exc)
                course[kind] = []
        catalog.add_course(course)
        log.info("Imported course %s (%s)", course_id, course["name"])

    return catalog
