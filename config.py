"""
Scraper configuration: venue list with URLs and parser assignments, paths,
and the tunables for fetching and retries.

Every tunable can be overridden through the environment, e.g.
``SCRAPE_MAX_ATTEMPTS=5 otemachi-scrape``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

ROOT = Path(__file__).parent
DATA_DIR = Path(os.environ.get("OTEMACHI_DATA_DIR", str(ROOT / "data")))
TRUCKS_FILE = "trucks.json"
SCHEDULE_FILE = "schedule.json"

# Retry policy per source: total attempts, linear backoff base in seconds
MAX_ATTEMPTS = int(os.environ.get("SCRAPE_MAX_ATTEMPTS", "3"))
RETRY_DELAY = float(os.environ.get("SCRAPE_RETRY_DELAY", "1.0"))

# Per-request timeout (seconds) for every outbound fetch
FETCH_TIMEOUT = float(os.environ.get("SCRAPE_TIMEOUT", "30"))

# Target window: today + the next N-1 days
WINDOW_DAYS = int(os.environ.get("SCRAPE_WINDOW_DAYS", "7"))

# Detail pages in flight per batch, and the pause between batches
DETAIL_BATCH_SIZE = int(os.environ.get("DETAIL_BATCH_SIZE", "5"))
DETAIL_BATCH_PAUSE = 0.3

FETCH_HEADERS = {
    "User-Agent": "OtemachiEats-Scraper/1.0",
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "ja,en;q=0.5",
}


@dataclass(frozen=True)
class VenueConfig:
    """Where a venue's schedule lives and which adapter reads it."""

    id: str
    url: str
    parser: str


VENUES: MappingProxyType[str, VenueConfig] = MappingProxyType({
    v.id: v
    for v in (
        VenueConfig(
            "kawabata",
            "https://otemachi-foodgarden.com/list/",
            "kawabata",
        ),
        VenueConfig(
            "otemachi-place",
            "https://www.mellow.jp/ss_web/markets/G7TyQW",
            "mellow",
        ),
        VenueConfig(
            "otemachi-park",
            "https://www.mellow.jp/ss_web/markets/xVTjJY",
            "mellow",
        ),
        VenueConfig(
            "marunouchi-trust",
            "https://www.mellow.jp/ss_web/markets/8bTX0",
            "mellow",
        ),
        VenueConfig(
            "tokyo-torch-tower",
            "https://www.mellow.jp/ss_web/markets/KqT2DZ",
            "mellow",
        ),
        VenueConfig(
            "tokyo-torch-park",
            "https://www.mellow.jp/ss_web/markets/VWTQ8",
            "mellow",
        ),
        VenueConfig(
            "sankei",
            "https://www.w-tokyodo.com/neostall/space/lunch/"
            "?lunch=%E6%9D%B1%E4%BA%AC%E3%82%B5%E3%83%B3%E3%82%B1%E3%82%A4"
            "%E3%83%93%E3%83%AB%20%E3%83%8D%E3%82%AA%E5%B1%8B%E5%8F%B0%E6%9D%91",
            "neo-yatai",
        ),
    )
})
