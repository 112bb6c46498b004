"""
Date helpers for the schedule scrapers.

Every date is a ``datetime.date`` in Japan time.  The venue sites print
dates without a year ("2/17", "次回出店 2月17日") or as weekly recurrences
("毎週月曜日"); these helpers map them onto the target window and return
None (or nothing) for anything that falls outside it.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from config import WINDOW_DAYS

JST = ZoneInfo("Asia/Tokyo")

# Index matches date.weekday(): Monday == 0
JP_DAYS = "月火水木金土日"

_ANNOTATION_RE = re.compile(r"[（(].+?[）)]")
_FULL_DATE_RE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_SHORT_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})$")


def today() -> date:
    return datetime.now(JST).date()


def target_window(start: date | None = None, days: int = WINDOW_DAYS) -> list[date]:
    """``days`` consecutive dates starting today (JST) or at ``start``."""
    start = start or today()
    return [start + timedelta(days=i) for i in range(days)]


def weekdays_only(dates: list[date]) -> list[date]:
    """Mon-Fri subset, used for coverage checks."""
    return [d for d in dates if d.weekday() < 5]


def find_weekday(text: str, days: str = JP_DAYS) -> int | None:
    """Weekday index of the first "X曜" marker in ``text``.

    Requires the 曜 so that "毎週月曜日" is not misread as Sunday (日).
    """
    for i, ch in enumerate(JP_DAYS):
        if ch in days and f"{ch}曜" in text:
            return i
    return None


def parse_recurring(text: str) -> int | None:
    """Weekday index for "毎週X曜日" style text, else None."""
    if "毎週" not in text:
        return None
    return find_weekday(text)


def expand_recurring(weekday: int, target_dates: list[date]) -> list[date]:
    return [d for d in target_dates if d.weekday() == weekday]


def _candidate_years(target_dates: list[date]) -> list[int]:
    years = sorted({d.year for d in target_dates})
    return years or [today().year]


def month_day(month: int, day: int, target_dates: list[date]) -> date | None:
    """Place a year-less month/day in the window.

    The year is the current one, or the following one when the window
    crosses New Year and the date only lands inside it that way.
    """
    window = set(target_dates)
    for year in _candidate_years(target_dates):
        try:
            candidate = date(year, month, day)
        except ValueError:
            continue
        if candidate in window:
            return candidate
    return None


def parse_japanese_date(text: str, target_dates: list[date]) -> date | None:
    """Parse "2026/02/17", "02/17" or "02/17（月）" into a window date.

    The weekday annotation is ignored; only the numbers count.
    """
    cleaned = _ANNOTATION_RE.sub("", text, count=1).strip()

    m = _FULL_DATE_RE.match(cleaned)
    if m:
        try:
            parsed = date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return None
        return parsed if parsed in set(target_dates) else None

    m = _SHORT_DATE_RE.match(cleaned)
    if m:
        return month_day(int(m.group(1)), int(m.group(2)), target_dates)
    return None
