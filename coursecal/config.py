"""
Runtime configuration.

Settings come from environment variables; a .env file in the working
directory is loaded first (python-dotenv), real environment variables win.

    COURSECAL_DATA_DIR   folder with catalog.json / enrolled_courses.json
    COURSECAL_LOG_LEVEL  logging level name (default WARNING)
    CANVAS_URL           Canvas instance, e.g. https://canvas.example.edu
    CANVAS_TOKEN         Canvas API access token
    COURSECAL_TIMEZONE   IANA zone for due dates, e.g. America/Phoenix
                         (default: the local zone of the machine)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import find_dotenv, load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent

CATALOG_FILENAME = "catalog.json"
ENROLLMENT_FILENAME = "enrolled_courses.json"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    log_level: str = "WARNING"
    canvas_url: Optional[str] = None
    canvas_token: Optional[str] = None
    timezone: Optional[str] = None

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / CATALOG_FILENAME

    @property
    def enrollment_path(self) -> Path:
        return self.data_dir / ENROLLMENT_FILENAME

    @property
    def zone(self) -> Optional[tzinfo]:
        """
        The configured zone, or None for the local zone.
        Raises ValueError for unknown zone names.
        """
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone {self.timezone!r}") from exc


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the given mapping (default: os.environ after .env).
    """
    if environ is None:
        # search from the working directory, not from this package
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path, override=False)
        environ = os.environ

    data_dir = _clean(environ.get("COURSECAL_DATA_DIR"))
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else PACKAGE_DIR / "data",
        log_level=(_clean(environ.get("COURSECAL_LOG_LEVEL")) or "WARNING").upper(),
        canvas_url=_clean(environ.get("CANVAS_URL")),
        canvas_token=_clean(environ.get("CANVAS_TOKEN")),
        timezone=_clean(environ.get("COURSECAL_TIMEZONE")),
    )


def configure_logging(level: str | int = "WARNING") -> None:
    """
    Route log records to stderr. Unknown level names fall back to WARNING.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
