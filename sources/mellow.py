"""
mellow.jp SHOP STOP market pages (Otemachi Place, Otemachi Park,
Marunouchi Trust City, TOKYO TORCH).

Each market page lists schedule cards, one <a href="/ss_web/shops/{ID}">
per truck appearance.  A card holds some mix of:

  - a weekly recurrence ("毎週月曜日")
  - an explicit date ("2026/02/17" or "2/17")
  - a next-appearance note ("次回出店 2月17日")
  - the shop name in <div class="card-title">, menu blurb and time range

Shop pages (/ss_web/shops/{ID}) carry description, genre labels and menu
names, which are fetched for cuisine detection.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from config import DETAIL_BATCH_PAUSE, VenueConfig
from dates import expand_recurring, month_day, parse_japanese_date, parse_recurring
from sources.base import (
    RawObservation,
    Rule,
    SourceAdapter,
    dedupe,
    fetch_details,
    first_match,
    report,
)

log = logging.getLogger(__name__)

MIN_CARD_TEXT = 5
MIN_NAME_LENGTH = 2

_RECURRING_RE = re.compile(r"毎週[日月火水木金土]曜")
_FULL_DATE_RE = re.compile(r"\d{4}/\d{1,2}/\d{1,2}")
_LEADING_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})")
_NEXT_DATE_RE = re.compile(r"次回出店\s*(\d{1,2})月(\d{1,2})日")

# Card-text fragments that are not part of the shop name
_NOISE_RES = (
    re.compile(r"^毎週[日月火水木金土]曜日"),
    re.compile(r"^\d{4}/\d{1,2}/\d{1,2}"),
    re.compile(r"^\d{1,2}/\d{1,2}"),
    re.compile(r"\d{1,2}:\d{2}\s*[〜～~]\s*\d{1,2}:\d{2}"),
    re.compile(r"次回出店\s*\d{1,2}月\d{1,2}日"),
    re.compile(r"次回出店\s*\d{4}/\d{1,2}/\d{1,2}"),
)


def _card_title(card: Tag) -> str | None:
    title = card.select_one(".card-title")
    if title is None:
        return None
    text = title.get_text().strip()
    return text if len(text) >= MIN_NAME_LENGTH else None


def _stripped_card_text(card: Tag) -> str | None:
    s = card.get_text().strip()
    for pattern in _NOISE_RES:
        s = pattern.sub("", s, count=1)
    return s.strip() or None


# The structured title is authoritative; the stripped text is a fallback for
# cards rendered without it.
NAME_RULES: tuple[Rule, ...] = (
    ("card-title", _card_title),
    ("stripped card text", _stripped_card_text),
)


def card_dates(text: str, target_dates: list[date]) -> list[date]:
    """Window dates a card refers to.

    First pattern present wins: weekly recurrence, full date, leading M/D,
    then "次回出店 M月D日".
    """
    m = _RECURRING_RE.search(text)
    if m:
        weekday = parse_recurring(m.group(0))
        if weekday is not None:
            return expand_recurring(weekday, target_dates)

    m = _FULL_DATE_RE.search(text)
    if m:
        d = parse_japanese_date(m.group(0), target_dates)
        return [d] if d else []

    m = _LEADING_DATE_RE.match(text)
    if m:
        d = month_day(int(m.group(1)), int(m.group(2)), target_dates)
        return [d] if d else []

    m = _NEXT_DATE_RE.search(text)
    if m:
        d = month_day(int(m.group(1)), int(m.group(2)), target_dates)
        return [d] if d else []

    return []


def parse_market(
    html: str, venue_id: str, target_dates: list[date],
) -> list[tuple[RawObservation, str]]:
    """Observations from a market page, each paired with its shop path."""
    soup = BeautifulSoup(html, "html.parser")
    found: list[tuple[RawObservation, str]] = []

    for card in soup.select('a[href*="/ss_web/shops/"]'):
        href = card.get("href") or ""
        if "/menus/" in href:
            continue
        text = card.get_text().strip()
        if len(text) < MIN_CARD_TEXT:
            continue
        name = first_match(card, NAME_RULES)
        if name is None or len(name) < MIN_NAME_LENGTH:
            log.debug("Mellow: no usable name in card %s", href)
            continue
        for d in card_dates(text, target_dates):
            found.append((RawObservation(d, venue_id, name), href))
    return found


def parse_shop(html: str) -> str:
    """Text from a shop page that hints at the cuisine."""
    soup = BeautifulSoup(html, "html.parser")
    parts: list[str] = [
        " ".join(h.get_text() for h in soup.find_all("h1")),
        " ".join(h.get_text() for h in soup.find_all("h2")),
    ]
    for p in soup.find_all("p"):
        t = p.get_text().strip()
        if 10 < len(t) < 500:
            parts.append(t)
    for h in soup.find_all(["h3", "h4"]):
        parts.append(h.get_text().strip())
    # Genre labels, badges and menu names are short
    for el in soup.find_all(["li", "span", "div"]):
        t = el.get_text().strip()
        if 2 < len(t) < 60:
            parts.append(t)
    return " ".join(p for p in parts if p)


class MellowAdapter(SourceAdapter):
    parser = "mellow"

    async def _shop_text(self, url: str) -> str:
        return parse_shop(await self.fetch_html(url))

    async def scrape(self, venue: VenueConfig, target_dates: list[date]) -> list[RawObservation]:
        html = await self.fetch_html(venue.url)
        found = parse_market(html, venue.id, target_dates)

        paths = [href for _, href in found]
        if paths:
            log.info("Mellow (%s): fetching %d shop pages", venue.id, len(set(paths)))
        details = await fetch_details(
            paths,
            lambda href: self._shop_text(urljoin(venue.url, href)),
            pause=DETAIL_BATCH_PAUSE,
        )

        # A shop listed both weekly and by date shows up once per day
        observations = dedupe(
            replace(obs, detail_text=details.get(href, "")) for obs, href in found
        )
        report(f"Mellow ({venue.id})", observations)
        return observations
