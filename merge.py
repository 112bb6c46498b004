"""
Turn raw observations into schedule entries and merge them with the
previous run.

resolve_observations() is deliberately synchronous: it mutates the truck
registry (new placeholders, cuisine upgrades) and later observations in the
same run must see trucks added by earlier ones.  It runs once, after every
adapter has finished.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable

from artifacts import ScheduleEntry, Truck, TruckRegistry
from cuisine import UNKNOWN_CUISINE, classify
from dates import weekdays_only
from names import derive_id, resolve
from sources.base import RawObservation

log = logging.getLogger(__name__)


def create_placeholder(raw_name: str, extra_text: str = "") -> Truck:
    """Registry entry for a truck seen for the first time."""
    cuisine, label = classify(raw_name, extra_text)
    return Truck(
        id=derive_id(raw_name),
        name=raw_name.strip(),
        cuisine=cuisine,
        cuisine_label=label,
    )


def upgrade_cuisine(truck: Truck, detail_text: str) -> bool:
    """Fill in an unknown cuisine from detail text.  True if it changed."""
    if truck.cuisine != UNKNOWN_CUISINE or not detail_text:
        return False
    cuisine, label = classify(truck.name, detail_text)
    if cuisine == UNKNOWN_CUISINE:
        return False
    truck.cuisine, truck.cuisine_label = cuisine, label
    log.info("Updated cuisine for %s: %s (%s)", truck.id, cuisine, label)
    return True


@dataclass
class Resolution:
    entries: list[ScheduleEntry] = field(default_factory=list)
    new_trucks: list[Truck] = field(default_factory=list)
    cuisine_updates: int = 0

    @property
    def registry_changed(self) -> bool:
        return bool(self.new_trucks) or self.cuisine_updates > 0


def resolve_observations(
    observations: Iterable[RawObservation], registry: TruckRegistry,
) -> Resolution:
    """Map each observation to a truck id, growing ``registry`` as needed."""
    result = Resolution()
    updated: set[str] = set()

    for obs in observations:
        truck = resolve(obs.truck_name_raw, registry)
        if truck is None:
            placeholder = create_placeholder(obs.truck_name_raw, obs.detail_text)
            # Slug collides with a truck the name tiers missed: use that truck
            truck = registry.get(placeholder.id)
            if truck is None:
                registry.add(placeholder)
                result.new_trucks.append(placeholder)
                log.warning("New truck: %s (%s), cuisine %s (%s)", placeholder.id,
                            obs.truck_name_raw, placeholder.cuisine, placeholder.cuisine_label)
                truck = placeholder

        if upgrade_cuisine(truck, obs.detail_text):
            updated.add(truck.id)

        result.entries.append(ScheduleEntry(obs.date, obs.venue_id, truck.id))

    result.cuisine_updates = len(updated)
    return result


def merge_schedule(
    carried: Iterable[ScheduleEntry], fresh: Iterable[ScheduleEntry],
) -> list[ScheduleEntry]:
    """Carried-over entries plus fresh ones, one per (date, venue, truck).

    The first occurrence wins; output is sorted by that key so that two runs
    over the same data produce identical files.
    """
    merged: dict[tuple[date, str, str], ScheduleEntry] = {}
    for entry in [*carried, *fresh]:
        merged.setdefault(entry.key, entry)
    return [merged[k] for k in sorted(merged)]


def build_data_quality(
    schedule: list[ScheduleEntry],
    target_dates: list[date],
    venue_ids: Iterable[str] = (),
    known_venue_ids: set[str] | None = None,
) -> dict[str, Any]:
    """Per-venue weekday coverage for the window.

    ``venue_ids`` are the configured venues, reported even with no entries.
    Venues in the schedule that ``known_venue_ids`` doesn't list are orphans.
    """
    weekdays = weekdays_only(target_dates)
    by_venue: dict[str, list[ScheduleEntry]] = defaultdict(list)
    for e in schedule:
        by_venue[e.venue_id].append(e)

    per_venue: dict[str, dict[str, Any]] = {}
    for venue_id in sorted(set(venue_ids) | set(by_venue)):
        entries = by_venue.get(venue_id, [])
        dates_with_data = {e.date for e in entries}
        per_venue[venue_id] = {
            "total_entries": len(entries),
            "days_with_data": sum(1 for d in weekdays if d in dates_with_data),
            "weekdays_in_window": len(weekdays),
            "missing_weekdays": [d.isoformat() for d in weekdays if d not in dates_with_data],
        }

    orphans: list[str] = []
    if known_venue_ids is not None:
        orphans = sorted(v for v in by_venue if v not in known_venue_ids)
        if orphans:
            log.warning("Schedule references venues missing from the registry: %s",
                        ", ".join(orphans))

    return {
        "total_entries": len(schedule),
        "venues_scraped": len(by_venue),
        "weekdays_in_window": len(weekdays),
        "per_venue": per_venue,
        "orphan_venues": orphans,
    }
