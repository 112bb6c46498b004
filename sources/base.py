"""
Base class for venue schedule sources.

To add a new venue layout:
  1. Create a new .py file in sources/
  2. Subclass SourceAdapter and set ``parser``
  3. Implement scrape() to return a list of RawObservation
  4. Register the class in sources/dispatch.py

Each observation says "a truck with this raw name is at this venue on this
date".  Adapters don't resolve names or touch the JSON artifacts; they only
read HTML.  A failed list-page fetch raises SourceFetchError so the caller
can retry; detail pages are best-effort and fall back to "".
"""

from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Awaitable, Callable, Iterable, Sequence

import httpx
from bs4 import Tag

from config import DETAIL_BATCH_SIZE, VenueConfig

log = logging.getLogger(__name__)


class SourceFetchError(Exception):
    """A venue page could not be fetched.  Retryable."""


@dataclass(frozen=True)
class RawObservation:
    """One scraped (date, venue, truck name) sighting."""

    date: date
    venue_id: str
    truck_name_raw: str
    detail_text: str = ""


class SourceAdapter(abc.ABC):
    """Abstract base class for a venue site layout."""

    parser: str = ""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    @abc.abstractmethod
    async def scrape(self, venue: VenueConfig, target_dates: list[date]) -> list[RawObservation]:
        """Return every observation for ``venue`` within ``target_dates``.

        Dates outside the window are dropped here.  Same truck + same date
        is emitted once.  Raises SourceFetchError if the main page fails.
        """
        ...

    async def fetch_html(self, url: str) -> str:
        return await fetch_html(self.client, url)


async def fetch_html(client: httpx.AsyncClient, url: str) -> str:
    """GET ``url`` and return its body, or raise SourceFetchError."""
    try:
        resp = await client.get(url)
    except httpx.HTTPError as e:
        raise SourceFetchError(f"GET {url} failed: {e!r}") from e
    if not resp.is_success:
        raise SourceFetchError(f"GET {url} returned {resp.status_code} {resp.reason_phrase}")
    return resp.text


async def fetch_details(
    paths: Iterable[str],
    fetch_one: Callable[[str], Awaitable[str]],
    *,
    batch_size: int = DETAIL_BATCH_SIZE,
    pause: float = 0.0,
) -> dict[str, str]:
    """Fetch detail pages in sequential batches of ``batch_size``.

    A page that fails maps to "" and does not stop the others.
    """
    unique = list(dict.fromkeys(paths))
    details: dict[str, str] = {}
    for i in range(0, len(unique), batch_size):
        batch = unique[i:i + batch_size]
        results = await asyncio.gather(*(fetch_one(p) for p in batch), return_exceptions=True)
        for path, result in zip(batch, results):
            if isinstance(result, BaseException):
                log.warning("Detail page %s failed: %s", path, result)
                details[path] = ""
            else:
                details[path] = result
        if pause and i + batch_size < len(unique):
            await asyncio.sleep(pause)
    return details


# An extraction rule: (name for logs, function returning a value or None)
Rule = tuple[str, Callable[[Tag], "str | None"]]


def first_match(node: Tag, rules: Sequence[Rule]) -> str | None:
    """Apply ``rules`` in priority order and return the first non-empty value.

    Returns None when every rule fails, never "".
    """
    for rule_name, rule in rules:
        value = rule(node)
        if value:
            value = value.strip()
        if value:
            log.debug("Extracted %r via %s", value, rule_name)
            return value
    return None


def dedupe(observations: Iterable[RawObservation]) -> list[RawObservation]:
    """Drop repeats of the same (date, raw name), keeping the first."""
    seen: set[tuple[date, str]] = set()
    out: list[RawObservation] = []
    for obs in observations:
        key = (obs.date, obs.truck_name_raw)
        if key in seen:
            continue
        seen.add(key)
        out.append(obs)
    return out


def report(label: str, observations: list[RawObservation]) -> None:
    """Log the scrape result; zero entries is a warning, not an error."""
    if not observations:
        log.warning("%s: 0 entries found. Site structure may have changed.", label)
        return
    days = {o.date for o in observations}
    with_detail = sum(1 for o in observations if o.detail_text)
    log.info("%s: %d entries across %d days (%d with detail text)",
             label, len(observations), len(days), with_detail)
