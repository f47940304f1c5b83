"""Course calendar: aggregate assignments, quizzes and discussions into a calendar."""

from coursecal.aggregate import get_events
from coursecal.catalog import Catalog, load_catalog
from coursecal.model import Event

__all__ = ["Catalog", "Event", "get_events", "load_catalog"]
