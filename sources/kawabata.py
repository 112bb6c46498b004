"""
Otemachi Kawabata Food Garden (otemachi-foodgarden.com).

Weekly-recurring schedule, grouped by day of week on one list page:

  <h2>月曜日monday</h2>
  <ul>
    <li><a href="/list/123"><img alt="..."/><h2>Truck Name</h2></a></li>
    ...
  </ul>

Each truck links to a detail page (/list/{id}) with an <h1> name, a short
description and a "menu" <h2> followed by a <ul> of menu items.  That text
feeds cuisine detection.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import date
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from config import VenueConfig
from dates import expand_recurring, find_weekday
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

WEEKDAY_HEADERS = "月火水木金"
MAX_NAME_LENGTH = 100

_DETAIL_HREF_RE = re.compile(r"/list/\d+")
_PRICE_RE = re.compile(r"\d[\d,]*円[（(]税込[）)]")


def _nested_heading(link: Tag) -> str | None:
    h2 = link.find("h2")
    return h2.get_text() if h2 else None


def _image_alt(link: Tag) -> str | None:
    img = link.find("img")
    return img.get("alt") if img else None


def _first_text_line(link: Tag) -> str | None:
    return link.get_text().strip().split("\n")[0]


# Priority order: the card heading, then the photo's alt text, then whatever
# the link's first line of text is.
NAME_RULES: tuple[Rule, ...] = (
    ("card heading", _nested_heading),
    ("image alt", _image_alt),
    ("first text line", _first_text_line),
)


def parse_list(
    html: str, venue_id: str, target_dates: list[date],
) -> list[tuple[RawObservation, str]]:
    """Observations from the list page, each paired with its detail path."""
    soup = BeautifulSoup(html, "html.parser")
    found: list[tuple[RawObservation, str]] = []

    for header in soup.find_all("h2"):
        # Truck names are <h2> too, but inside the card link
        if header.find_parent("a") is not None:
            continue
        weekday = find_weekday(header.get_text(), days=WEEKDAY_HEADERS)
        if weekday is None:
            continue
        dates = expand_recurring(weekday, target_dates)
        if not dates:
            continue
        listing = header.find_next_sibling("ul")
        if listing is None:
            log.debug("Kawabata: no <ul> after %r", header.get_text(strip=True))
            continue

        for link in listing.select("li a"):
            href = link.get("href") or ""
            if not _DETAIL_HREF_RE.search(href):
                continue
            name = first_match(link, NAME_RULES)
            if name is None:
                log.debug("Kawabata: no name in card %s", href)
                continue
            if len(name) >= MAX_NAME_LENGTH:
                log.debug("Kawabata: rejecting over-long name from %s", href)
                continue
            for d in dates:
                found.append((RawObservation(d, venue_id, name), href))
    return found


def parse_detail(html: str) -> str:
    """Description + menu item text from a truck detail page."""
    soup = BeautifulSoup(html, "html.parser")
    parts: list[str] = []

    og = soup.find("meta", attrs={"property": "og:description"})
    if og is not None and (og.get("content") or "").strip():
        parts.append(og["content"].strip())

    h1 = soup.find("h1")
    if h1 is not None:
        for sib in h1.find_next_siblings():
            if sib.name == "h2" and "menu" in sib.get_text().lower():
                break
            text = sib.get_text().strip()
            if text:
                parts.append(text)

    for h2 in soup.find_all("h2"):
        if "menu" not in h2.get_text().lower():
            continue
        menu = h2.find_next_sibling()
        if menu is None or menu.name != "ul":
            continue
        for li in menu.find_all("li"):
            text = _PRICE_RE.sub("", li.get_text().strip()).strip()
            if text and "メニューイメージ" not in text:
                parts.append(text)

    return " ".join(parts)


class KawabataAdapter(SourceAdapter):
    parser = "kawabata"

    async def _detail_text(self, url: str) -> str:
        return parse_detail(await self.fetch_html(url))

    async def scrape(self, venue: VenueConfig, target_dates: list[date]) -> list[RawObservation]:
        html = await self.fetch_html(venue.url)
        found = parse_list(html, venue.id, target_dates)

        paths = [href for _, href in found]
        log.info("Kawabata: fetching %d detail pages", len(set(paths)))
        details = await fetch_details(
            paths, lambda href: self._detail_text(urljoin(venue.url, href)),
        )

        observations = dedupe(
            replace(obs, detail_text=details.get(href, "")) for obs, href in found
        )
        report(f"Kawabata ({venue.id})", observations)
        return observations
