#!/usr/bin/env python3
"""
scrape.py: Otemachi Eats schedule scraper.

Scrapes every configured venue, resolves truck names against trucks.json,
merges with the previous schedule.json and rewrites both files.

Usage:
    python scrape.py                          # all venues
    python scrape.py --venues kawabata,sankei # only these
    python scrape.py --days 14                # two-week window
    python scrape.py --dry-run -v             # scrape and merge, write nothing
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

import httpx

from artifacts import (
    ArtifactError,
    ScheduleEntry,
    SourceRun,
    load_registry,
    load_schedule,
    save_registry,
    save_schedule,
)
from config import (
    DATA_DIR,
    FETCH_HEADERS,
    FETCH_TIMEOUT,
    MAX_ATTEMPTS,
    RETRY_DELAY,
    SCHEDULE_FILE,
    TRUCKS_FILE,
    VENUES,
    WINDOW_DAYS,
    VenueConfig,
)
from dates import target_window, today, weekdays_only
from merge import build_data_quality, merge_schedule, resolve_observations
from sources.base import RawObservation, SourceAdapter
from sources.dispatch import get_adapter

log = logging.getLogger("scrape")

AdapterFactory = Callable[[str, httpx.AsyncClient], SourceAdapter]


class AllSourcesFailedError(RuntimeError):
    """Every source failed; publishing would wipe good data."""


@dataclass
class SourceResult:
    run: SourceRun
    observations: list[RawObservation] = field(default_factory=list)


@dataclass
class RunSummary:
    source_runs: list[SourceRun]
    schedule: list[ScheduleEntry]
    carried: int
    fresh: int
    new_trucks: int
    cuisine_updates: int
    data_quality: dict


async def run_source(
    adapter: SourceAdapter,
    venue: VenueConfig,
    target_dates: list[date],
    *,
    attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY,
) -> SourceResult:
    """Scrape one venue, retrying with linear backoff.  Never raises."""
    attempts = max(1, attempts)
    last_error: Exception | None = None
    for attempt in range(attempts):
        if attempt:
            log.info("Retry %d/%d for %s", attempt, attempts - 1, venue.id)
            await asyncio.sleep(delay * attempt)
        try:
            observations = await adapter.scrape(venue, target_dates)
        except Exception as e:
            last_error = e
            log.warning("%s attempt %d failed: %s", venue.id, attempt + 1, e)
            continue
        return SourceResult(SourceRun(venue.id, "ok", len(observations)), observations)

    message = str(last_error) or type(last_error).__name__
    log.error("%s failed after %d attempts: %s", venue.id, attempts, message)
    return SourceResult(SourceRun(venue.id, "error", 0, message))


async def scrape_all(
    venues: Iterable[VenueConfig],
    target_dates: list[date],
    client: httpx.AsyncClient,
    *,
    adapter_factory: AdapterFactory = get_adapter,
    attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY,
) -> list[SourceResult]:
    """Run every venue concurrently; one failing never cancels the others."""
    venues = list(venues)

    async def scrape_venue(venue: VenueConfig) -> SourceResult:
        adapter = adapter_factory(venue.parser, client)
        return await run_source(adapter, venue, target_dates, attempts=attempts, delay=delay)

    results = await asyncio.gather(*(scrape_venue(v) for v in venues), return_exceptions=True)

    out: list[SourceResult] = []
    for venue, result in zip(venues, results):
        if isinstance(result, BaseException):
            log.error("%s crashed: %r", venue.id, result)
            out.append(SourceResult(SourceRun(venue.id, "error", 0, repr(result))))
        else:
            out.append(result)
    return out


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _log_summary(summary: RunSummary, target_dates: list[date]) -> None:
    net = len(summary.schedule) - summary.carried
    log.info("%d total schedule entries (%+d net change)", len(summary.schedule), net)
    log.info("  %d carried over from previous run", summary.carried)
    log.info("  %d freshly scraped", summary.fresh)
    log.info("  %d new truck(s), %d cuisine update(s)", summary.new_trucks, summary.cuisine_updates)
    for d in weekdays_only(target_dates):
        count = sum(1 for e in summary.schedule if e.date == d)
        if count:
            log.info("  %s: %d entries", d.isoformat(), count)
        else:
            log.warning("  %s: no entries", d.isoformat())
    for run in summary.source_runs:
        if run.ok:
            log.info("  ok    %s: %d entries", run.venue_id, run.entries_count)
        else:
            log.warning("  error %s: %s", run.venue_id, run.error)


async def run_pipeline(
    venues: Iterable[VenueConfig],
    *,
    data_dir: Path = DATA_DIR,
    target_dates: list[date] | None = None,
    client: httpx.AsyncClient | None = None,
    adapter_factory: AdapterFactory = get_adapter,
    attempts: int = MAX_ATTEMPTS,
    delay: float = RETRY_DELAY,
    dry_run: bool = False,
) -> RunSummary:
    """One full scrape → resolve → merge → persist pass.

    Raises AllSourcesFailedError, before writing anything, if no source
    succeeded.
    """
    venues = list(venues)
    target_dates = target_dates or target_window()
    trucks_path = data_dir / TRUCKS_FILE
    schedule_path = data_dir / SCHEDULE_FILE
    log.info("Target window: %s → %s", target_dates[0], target_dates[-1])

    registry = load_registry(trucks_path)
    carried = load_schedule(schedule_path, target_dates)

    if client is None:
        async with httpx.AsyncClient(
            headers=FETCH_HEADERS, timeout=FETCH_TIMEOUT, follow_redirects=True,
        ) as own_client:
            results = await scrape_all(venues, target_dates, own_client,
                                       adapter_factory=adapter_factory,
                                       attempts=attempts, delay=delay)
    else:
        results = await scrape_all(venues, target_dates, client,
                                   adapter_factory=adapter_factory,
                                   attempts=attempts, delay=delay)

    source_runs = [r.run for r in results]
    if not any(run.ok for run in source_runs):
        raise AllSourcesFailedError(
            f"All {len(source_runs)} sources failed; not overwriting {schedule_path}"
        )

    observations = [o for r in results for o in r.observations]
    resolution = resolve_observations(observations, registry.trucks)
    schedule = merge_schedule(carried, resolution.entries)
    data_quality = build_data_quality(
        schedule, target_dates, [v.id for v in venues], registry.venue_ids,
    )

    summary = RunSummary(
        source_runs=source_runs,
        schedule=schedule,
        carried=len(carried),
        fresh=len(resolution.entries),
        new_trucks=len(resolution.new_trucks),
        cuisine_updates=resolution.cuisine_updates,
        data_quality=data_quality,
    )

    if dry_run:
        log.info("Dry run: not writing %s or %s", trucks_path, schedule_path)
    else:
        if resolution.registry_changed:
            registry.last_updated = today().isoformat()
            save_registry(trucks_path, registry)
        save_schedule(
            schedule_path,
            last_updated=_timestamp(),
            target_dates=target_dates,
            source_runs=source_runs,
            data_quality=data_quality,
            schedule=schedule,
        )

    _log_summary(summary, target_dates)
    return summary


def select_venues(selected: set[str] | None) -> list[VenueConfig]:
    if not selected:
        return list(VENUES.values())
    missing = selected - set(VENUES)
    if missing:
        log.warning("Unknown venues: %s", ", ".join(sorted(missing)))
    return [v for v in VENUES.values() if v.id in selected]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Otemachi Eats: scrape food truck schedules")
    parser.add_argument(
        "--venues",
        type=str,
        default=None,
        help="Comma-separated list of venue ids to scrape (default: all)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=WINDOW_DAYS,
        help=f"Number of days to cover starting today (default: {WINDOW_DAYS})",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DATA_DIR,
        help=f"Directory holding {TRUCKS_FILE} and {SCHEDULE_FILE}",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape and merge but don't write any files",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    selected = set(args.venues.split(",")) if args.venues else None
    venues = select_venues(selected)
    if not venues:
        log.error("No venues to scrape!")
        return 1
    if args.days < 1:
        log.error("--days must be at least 1")
        return 1

    log.info("Active venues: %s", ", ".join(v.id for v in venues))
    try:
        asyncio.run(run_pipeline(
            venues,
            data_dir=args.data_dir,
            target_dates=target_window(days=args.days),
            dry_run=args.dry_run,
        ))
    except (AllSourcesFailedError, ArtifactError) as e:
        log.error("Fatal: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
