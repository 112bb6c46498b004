"""
Neo Yatai Mura at the Tokyo Sankei Building (w-tokyodo.com).

Date-specific, tabbed layout:

  <ul class="cnt_tabs_menu">
    <li class="active">02/16（月）</li>     tab 0
    <li>02/17（火）</li>                    tab 1
  </ul>
  <ul class="cnt_tabs_inner">
    <li class="active">                    panel 0 (same index as tab 0)
      <h4>【カフェ】</h4>                    section header, skipped
      <h4>Shop Name</h4>
      <h4>Shop Name</h4>                    printed twice, deduplicated
    </li>
    ...
  </ul>

No detail pages.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from bs4 import BeautifulSoup

from config import VenueConfig
from dates import parse_japanese_date
from sources.base import RawObservation, SourceAdapter, dedupe, report

log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100

_TAB_DATE_RE = re.compile(r"(\d{1,2})/(\d{1,2})")
_SECTION_HEADER_RE = re.compile(r"^【.*】")
_BRACKETS_RE = re.compile(r"[｢｣「」]")


def parse_schedule(html: str, venue_id: str, target_dates: list[date]) -> list[RawObservation]:
    soup = BeautifulSoup(html, "html.parser")

    tab_dates: list[date | None] = []
    for tab in soup.select(".cnt_tabs_menu li"):
        m = _TAB_DATE_RE.search(tab.get_text())
        tab_dates.append(parse_japanese_date(m.group(0), target_dates) if m else None)

    panels = soup.select(".cnt_tabs_inner > li")
    if len(panels) != len(tab_dates):
        log.warning("Neo Yatai: %d tabs but %d panels, pairing by index",
                    len(tab_dates), len(panels))

    observations: list[RawObservation] = []
    for d, panel in zip(tab_dates, panels):
        if d is None:
            continue
        for h4 in panel.find_all("h4"):
            name = h4.get_text().strip()
            if not name or len(name) > MAX_NAME_LENGTH:
                continue
            if _SECTION_HEADER_RE.match(name):
                continue
            name = _BRACKETS_RE.sub("", name).strip()
            if name:
                observations.append(RawObservation(d, venue_id, name))

    return dedupe(observations)


class NeoYataiAdapter(SourceAdapter):
    parser = "neo-yatai"

    async def scrape(self, venue: VenueConfig, target_dates: list[date]) -> list[RawObservation]:
        html = await self.fetch_html(venue.url)
        observations = parse_schedule(html, venue.id, target_dates)
        report(f"Neo Yatai ({venue.id})", observations)
        return observations
