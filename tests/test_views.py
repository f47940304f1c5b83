"""
Unit tests for calendar view windows and text rendering.
"""

import unittest
from datetime import date

from coursecal.catalog import Catalog
from coursecal.model import Event
from coursecal.render import format_event, render_list, render_month, render_week
from coursecal.views import (
    add_months,
    group_by_day,
    list_range,
    month_grid_range,
    month_range,
    upcoming_events,
    view_range,
    week_range,
)


class TestRanges(unittest.TestCase):
    def test_month_range(self) -> None:
        self.assertEqual(month_range(date(2025, 6, 3)), (date(2025, 6, 1), date(2025, 6, 30)))
        self.assertEqual(month_range(date(2024, 2, 10)), (date(2024, 2, 1), date(2024, 2, 29)))

    def test_week_starts_on_sunday(self) -> None:
        # 2025-06-03 is a Tuesday
        self.assertEqual(week_range(date(2025, 6, 3)), (date(2025, 6, 1), date(2025, 6, 7)))
        self.assertEqual(week_range(date(2025, 6, 1)), (date(2025, 6, 1), date(2025, 6, 7)))
        self.assertEqual(week_range(date(2025, 6, 7)), (date(2025, 6, 1), date(2025, 6, 7)))

    def test_list_range_three_months(self) -> None:
        self.assertEqual(list_range(date(2025, 6, 3)), (date(2025, 6, 3), date(2025, 9, 3)))
        self.assertEqual(add_months(date(2025, 11, 30), 3), date(2026, 2, 28))

    def test_month_grid_is_week_aligned(self) -> None:
        start, end = month_grid_range(date(2025, 6, 15))
        self.assertEqual(start, date(2025, 6, 1))
        self.assertEqual(end, date(2025, 7, 5))
        self.assertEqual(start.weekday(), 6)
        self.assertEqual(end.weekday(), 5)

    def test_view_range_dispatch(self) -> None:
        d = date(2025, 6, 3)
        self.assertEqual(view_range("month", d), month_range(d))
        self.assertEqual(view_range("week", d), week_range(d))
        self.assertEqual(view_range("list", d), list_range(d))
        with self.assertRaises(ValueError):
            view_range("year", d)


class TestUpcoming(unittest.TestCase):
    def test_upcoming_window(self) -> None:
        catalog = Catalog(
            [
                {
                    "id": "C1",
                    "name": "One",
                    "assignments": [
                        {"id": "past", "title": "Past", "dueDate": "2025-06-02"},
                        {"id": "soon", "title": "Soon", "dueDate": "2025-06-05"},
                        {"id": "edge", "title": "Edge", "dueDate": "2025-06-10"},
                        {"id": "late", "title": "Late", "dueDate": "2025-06-11"},
                    ],
                }
            ]
        )
        events = upcoming_events(catalog, None, date(2025, 6, 3))
        self.assertEqual([e.id for e in events], ["soon", "edge"])
        self.assertEqual(upcoming_events(catalog, None, date(2025, 6, 3), days=-1), [])


class TestRender(unittest.TestCase):
    def setUp(self) -> None:
        self.events = [
            Event(id="a1", course_id="C1", type="assignment", title="HW 1", start_date="2025-06-03", points_possible=100),
            Event(id="q1", course_id="C1", type="quiz", title="Quiz", start_date="2025-06-03", start_time="09:00", end_time="09:30"),
            Event(id="d1", course_id="C2", type="discussion", title="Intro", start_date="2025-06-05", priority="low"),
        ]
        self.names = {"C1": "Intro to CS"}

    def test_group_by_day_keeps_order(self) -> None:
        groups = group_by_day(self.events)
        self.assertEqual(list(groups), ["2025-06-03", "2025-06-05"])
        self.assertEqual([e.id for e in groups["2025-06-03"]], ["a1", "q1"])

    def test_format_event(self) -> None:
        line = format_event(self.events[1], self.names)
        self.assertIn("2025-06-03", line)
        self.assertIn("09:00-09:30", line)
        self.assertIn("[QUIZ] Intro to CS | Quiz", line)
        self.assertIn("(100 pts)", format_event(self.events[0]))
        self.assertIn("C2 | Intro", format_event(self.events[2], self.names))

    def test_render_list_empty(self) -> None:
        self.assertEqual(render_list([]), "No events.")

    def test_render_week_has_seven_days(self) -> None:
        text = render_week(self.events, date(2025, 6, 3), self.names)
        self.assertTrue(text.startswith("Sun, Jun 01"))
        self.assertIn("Sat, Jun 07", text)
        self.assertIn("HW 1", text)

    def test_render_month_marks_busy_days(self) -> None:
        text = render_month(self.events, date(2025, 6, 3), self.names)
        self.assertTrue(text.startswith("June 2025"))
        self.assertIn("3*2", text)
        self.assertIn("5*1", text)
        self.assertIn("Quiz", text)


if __name__ == "__main__":
    unittest.main()
