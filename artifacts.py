"""
Registry and schedule artifacts: the JSON files the front end reads.

trucks.json   {last_updated, venues: [...], trucks: [...]}
schedule.json {last_updated, week_start, week_end, source_runs,
               data_quality, schedule: [{date, venue_id, truck_id}]}

Only the merge step in scrape.py writes these.  Writes go through a temp
file plus ``os.replace`` so a reader never sees a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterator

log = logging.getLogger(__name__)

# Rough Tokyo bounding box for venue coordinate sanity checks
_TOKYO_BBOX = (35.5, 36.0, 139.5, 140.0)


class ArtifactError(Exception):
    """A persisted artifact exists but cannot be used."""


@dataclass
class Venue:
    """A physical venue.  Curated by hand; the pipeline never changes it."""

    id: str
    name: str
    lat: float
    lng: float
    name_en: str = ""
    address: str = ""
    hours: str = ""
    source_url: str = ""
    note: str = ""

    def in_bbox(self) -> bool:
        lat_lo, lat_hi, lng_lo, lng_hi = _TOKYO_BBOX
        return lat_lo <= self.lat <= lat_hi and lng_lo <= self.lng <= lng_hi

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Venue:
        return cls(
            id=d["id"],
            name=d.get("name", ""),
            lat=float(d["lat"]),
            lng=float(d["lng"]),
            name_en=d.get("name_en", ""),
            address=d.get("address", ""),
            hours=d.get("hours", ""),
            source_url=d.get("source_url", ""),
            note=d.get("note", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "name_en": self.name_en,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
            "hours": self.hours,
            "source_url": self.source_url,
            "note": self.note,
        }


_TRUCK_FIELDS = (
    "id", "name", "cuisine", "cuisine_label",
    "contact_instagram", "accepts_preorder", "url",
)


@dataclass
class Truck:
    """A food truck in the registry."""

    id: str
    name: str
    cuisine: str = "unknown"
    cuisine_label: str = "?"
    contact_instagram: str = ""
    accepts_preorder: bool = False
    url: str = ""
    extra: dict[str, Any] = field(default_factory=dict)  # hand-added keys we don't model

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Truck:
        return cls(
            id=d["id"],
            name=d["name"],
            cuisine=d.get("cuisine") or "unknown",
            cuisine_label=d.get("cuisine_label") or "?",
            contact_instagram=d.get("contact_instagram", ""),
            accepts_preorder=bool(d.get("accepts_preorder", False)),
            url=d.get("url", ""),
            extra={k: v for k, v in d.items() if k not in _TRUCK_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "cuisine": self.cuisine,
            "cuisine_label": self.cuisine_label,
            "contact_instagram": self.contact_instagram,
            "accepts_preorder": self.accepts_preorder,
            "url": self.url,
        }
        d.update(self.extra)
        return d


class TruckRegistry:
    """Trucks indexed by id, in file order.

    Owned by a single resolution pass at a time; see merge.resolve_observations.
    """

    def __init__(self, trucks: list[Truck] | None = None) -> None:
        self._by_id: dict[str, Truck] = {}
        for truck in trucks or []:
            if truck.id in self._by_id:
                log.warning("Duplicate truck id %r in registry, keeping the first", truck.id)
                continue
            self._by_id[truck.id] = truck

    def __iter__(self) -> Iterator[Truck]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, truck_id: object) -> bool:
        return truck_id in self._by_id

    def get(self, truck_id: str) -> Truck | None:
        return self._by_id.get(truck_id)

    def add(self, truck: Truck) -> None:
        if truck.id in self._by_id:
            raise ValueError(f"Truck id already registered: {truck.id}")
        self._by_id[truck.id] = truck


@dataclass
class Registry:
    """Contents of trucks.json."""

    venues: list[Venue]
    trucks: TruckRegistry
    last_updated: str = ""

    @property
    def venue_ids(self) -> set[str]:
        return {v.id for v in self.venues}

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": self.last_updated,
            "venues": [v.to_dict() for v in self.venues],
            "trucks": [t.to_dict() for t in self.trucks],
        }


@dataclass(frozen=True)
class ScheduleEntry:
    """This truck is at this venue on this date."""

    date: date
    venue_id: str
    truck_id: str

    @property
    def key(self) -> tuple[date, str, str]:
        return (self.date, self.venue_id, self.truck_id)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ScheduleEntry:
        venue_id, truck_id = d["venue_id"], d["truck_id"]
        if not isinstance(venue_id, str) or not isinstance(truck_id, str):
            raise TypeError(f"venue_id and truck_id must be strings: {d!r}")
        return cls(
            date=date.fromisoformat(d["date"]),
            venue_id=venue_id,
            truck_id=truck_id,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "venue_id": self.venue_id,
            "truck_id": self.truck_id,
        }


@dataclass
class SourceRun:
    """Outcome of scraping one venue."""

    venue_id: str
    status: str  # "ok" | "error"
    entries_count: int = 0
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "venue_id": self.venue_id,
            "status": self.status,
            "entries_count": self.entries_count,
        }
        if self.error:
            d["error"] = self.error
        return d


# ---------------------------------------------------------------------------
# IO
# ---------------------------------------------------------------------------

def write_json(path: Path, payload: dict[str, Any]) -> None:
    """Atomically replace ``path`` with pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(payload, ensure_ascii=False, indent=2) + "\n"
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


def load_registry(path: Path) -> Registry:
    """Read trucks.json.

    A missing file gives an empty registry.  A file that exists but can't be
    parsed raises ArtifactError: it is hand-curated and must not be replaced
    by an empty one.
    """
    if not path.exists():
        log.warning("No registry at %s, starting with an empty one", path)
        return Registry(venues=[], trucks=TruckRegistry())
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        venues = [Venue.from_dict(v) for v in data.get("venues", [])]
        trucks = TruckRegistry([Truck.from_dict(t) for t in data.get("trucks", [])])
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ArtifactError(f"Unreadable registry {path}: {e}") from e

    for v in venues:
        if not v.in_bbox():
            log.warning("Venue %s has coords outside the Tokyo bbox: %.5f,%.5f",
                        v.id, v.lat, v.lng)
    log.info("Registry: %d venues, %d trucks", len(venues), len(trucks))
    return Registry(venues=venues, trucks=trucks, last_updated=data.get("last_updated", ""))


def save_registry(path: Path, registry: Registry) -> None:
    write_json(path, registry.to_dict())
    log.info("Wrote %s (%d trucks)", path, len(registry.trucks))


def load_schedule(path: Path, target_dates: list[date]) -> list[ScheduleEntry]:
    """Prior schedule entries that are still inside the target window.

    Entries dated before the window's first day are dropped, so a run never
    resurrects the past.  A missing or malformed file counts as no prior data.
    """
    if not target_dates or not path.exists():
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        entries = [ScheduleEntry.from_dict(e) for e in data["schedule"]]
    except (ValueError, KeyError, TypeError, AttributeError):
        log.warning("Prior schedule %s is unreadable, ignoring it", path, exc_info=True)
        return []

    window = set(target_dates)
    first = target_dates[0]
    kept = [e for e in entries if e.date in window and e.date >= first]
    log.info("Prior schedule: kept %d of %d entries inside %s → %s",
             len(kept), len(entries), first, target_dates[-1])
    return kept


def save_schedule(
    path: Path,
    *,
    last_updated: str,
    target_dates: list[date],
    source_runs: list[SourceRun],
    data_quality: dict[str, Any],
    schedule: list[ScheduleEntry],
) -> None:
    write_json(path, {
        "last_updated": last_updated,
        "week_start": target_dates[0].isoformat(),
        "week_end": target_dates[-1].isoformat(),
        "source_runs": [r.to_dict() for r in source_runs],
        "data_quality": data_quality,
        "schedule": [e.to_dict() for e in schedule],
    })
    log.info("Wrote %s (%d entries)", path, len(schedule))
