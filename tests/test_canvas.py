"""
Unit tests for the Canvas importer. HTTP is faked with a stub session that
returns real requests.Response objects.
"""

import json
import unittest
from datetime import timezone
from typing import Any

import requests

from coursecal.aggregate import get_events
from coursecal.canvas import (
    CanvasAccessDeniedError,
    CanvasApiError,
    CanvasClient,
    build_catalog,
    html_to_text,
    normalize_canvas_base_url,
)

ROOT = "https://canvas.example.edu/api/v1"


def _response(payload: Any, status: int = 200, link: str = "", url: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    resp.headers["Content-Type"] = "application/json"
    if link:
        resp.headers["Link"] = link
    resp.url = url
    return resp


class StubSession(requests.Session):
    """
    Maps URL -> Response and records every call.
    """

    def __init__(self, routes: dict[str, requests.Response]) -> None:
        super().__init__()
        self.routes = routes
        self.calls: list[tuple[str, Any]] = []

    def get(self, url, params=None, timeout=None, **kwargs):  # type: ignore[override]
        self.calls.append((url, params))
        if url not in self.routes:
            return _response({"errors": [{"message": "not found"}]}, status=404, url=url)
        return self.routes[url]


class TestHelpers(unittest.TestCase):
    def test_normalize_base_url(self) -> None:
        self.assertEqual(normalize_canvas_base_url("https://canvas.example.edu/"), "https://canvas.example.edu")
        self.assertEqual(normalize_canvas_base_url("https://canvas.example.edu/api/v1"), "https://canvas.example.edu")

    def test_html_to_text(self) -> None:
        self.assertEqual(html_to_text("<p>Write a <b>loop</b></p><p>Submit</p>"), "Write a loop Submit")
        self.assertEqual(html_to_text(None), "")

    def test_client_requires_url_and_token(self) -> None:
        with self.assertRaises(CanvasApiError):
            CanvasClient("", "token")
        with self.assertRaises(CanvasApiError):
            CanvasClient("https://canvas.example.edu", "")


class TestCanvasClient(unittest.TestCase):
    def test_pagination_follows_next_link(self) -> None:
        page2 = f"{ROOT}/courses?page=2&per_page=100"
        session = StubSession(
            {
                f"{ROOT}/courses": _response(
                    [{"id": 1, "name": "Biology"}], link=f'<{page2}>; rel="next", <{page2}>; rel="last"'
                ),
                page2: _response([{"id": 2, "name": "Chemistry"}, "junk"]),
            }
        )
        client = CanvasClient("https://canvas.example.edu/", "secret", session=session)

        rows = client.get_paginated("courses")

        self.assertEqual([r["id"] for r in rows], [1, 2])
        self.assertEqual(session.calls[0][1]["per_page"], 100)
        self.assertIsNone(session.calls[1][1])
        self.assertEqual(session.headers["Authorization"], "Bearer secret")

    def test_403_raises_access_denied(self) -> None:
        session = StubSession({f"{ROOT}/courses": _response({}, status=403)})
        client = CanvasClient("https://canvas.example.edu", "t", session=session)
        with self.assertRaises(CanvasAccessDeniedError):
            client.get_paginated("courses")

    def test_server_error_and_bad_payload(self) -> None:
        session = StubSession(
            {
                f"{ROOT}/a": _response({}, status=500),
                f"{ROOT}/b": _response({"not": "a list"}),
                f"{ROOT}/c": _response(b"<html>"),
            }
        )
        client = CanvasClient("https://canvas.example.edu", "t", session=session)
        for path in ("a", "b", "c"):
            with self.assertRaises(CanvasApiError):
                client.get_paginated(path)

    def test_connection_error_is_wrapped(self) -> None:
        class Broken(requests.Session):
            def get(self, *args, **kwargs):  # type: ignore[override]
                raise requests.ConnectionError("down")

        client = CanvasClient("https://canvas.example.edu", "t", session=Broken())
        with self.assertRaises(CanvasApiError):
            client.get_paginated("courses")


class TestBuildCatalog(unittest.TestCase):
    def setUp(self) -> None:
        self.session = StubSession(
            {
                f"{ROOT}/courses": _response(
                    [
                        {
                            "id": 10,
                            "name": "Biology",
                            "course_code": "BIO 101",
                            "teachers": [{"display_name": "Dr. Smith"}],
                            "start_at": "2025-05-28T00:00:00Z",
                            "term": {"end_at": "2025-07-15T00:00:00Z"},
                        },
                        {"id": 11, "name": "Locked"},
                        {"id": 12, "name": "  "},
                    ]
                ),
                f"{ROOT}/courses/10/assignments": _response(
                    [
                        {"id": 1, "name": "Lab report", "due_at": "2025-06-10T23:59:00Z", "points_possible": 50,
                         "description": "<p>Write it up</p>", "published": True},
                        {"id": 2, "name": "Draft", "due_at": "2025-06-11T00:00:00Z", "published": False},
                        {"id": 3, "name": "Quiz 1", "due_at": "2025-06-12T10:00:00Z", "quiz_id": 7},
                        {"id": 4, "name": "Graded talk", "due_at": "2025-06-13T00:00:00Z", "discussion_topic": {"id": 8}},
                    ]
                ),
                f"{ROOT}/courses/10/quizzes": _response(
                    [{"id": 7, "title": "Quiz 1", "due_at": "2025-06-12T10:00:00Z", "points_possible": 10}]
                ),
                f"{ROOT}/courses/10/discussion_topics": _response(
                    [
                        {"id": 8, "title": "Graded talk", "message": "<p>Discuss</p>",
                         "posted_at": "2025-06-01T08:00:00Z", "assignment": {"due_at": "2025-06-13T12:00:00Z"}},
                        {"id": 9, "title": "Welcome", "posted_at": "2025-06-02T09:15:00Z"},
                    ]
                ),
                f"{ROOT}/courses/11/assignments": _response([]),
                f"{ROOT}/courses/11/quizzes": _response({}, status=403),
                f"{ROOT}/courses/11/discussion_topics": _response([]),
            }
        )
        self.client = CanvasClient("https://canvas.example.edu", "t", session=self.session)

    def test_courses_are_mapped(self) -> None:
        with self.assertLogs("coursecal.canvas", level="WARNING"):
            catalog = build_catalog(self.client)

        self.assertEqual([c.id for c in catalog.list_courses()], ["10", "11"])
        bio = catalog.get_course("10")
        self.assertEqual(bio["courseCode"], "BIO 101")
        self.assertEqual(bio["instructor"], "Dr. Smith")
        self.assertEqual(bio["termDates"], {"start": "2025-05-28", "end": "2025-07-15"})
        self.assertEqual([a["id"] for a in bio["assignments"]], ["1"])
        self.assertEqual(bio["assignments"][0]["description"], "Write it up")
        self.assertEqual(catalog.get_course("11")["quizzes"], [])

    def test_imported_catalog_feeds_calendar(self) -> None:
        with self.assertLogs("coursecal.canvas", level="WARNING"):
            catalog = build_catalog(self.client)

        events = get_events("2025-06-01", "2025-06-30", {"10"}, catalog, timezone.utc)
        self.assertEqual(
            [(e.type, e.id, e.start_date, e.start_time) for e in events],
            [
                ("discussion", "9", "2025-06-02", "09:15"),
                ("assignment", "1", "2025-06-10", "23:59"),
                ("quiz", "7", "2025-06-12", "10:00"),
                ("discussion", "8", "2025-06-13", "12:00"),
            ],
        )

    def test_other_errors_abort_import(self) -> None:
        self.session.routes[f"{ROOT}/courses/10/quizzes"] = _response({}, status=500)
        with self.assertRaises(CanvasApiError):
            build_catalog(self.client)


if __name__ == "__main__":
    unittest.main()
