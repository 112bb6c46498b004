"""Tests for observation resolution, schedule merging and coverage stats."""

from __future__ import annotations

from datetime import date

import merge
from artifacts import ScheduleEntry, Truck, TruckRegistry
from merge import (
    build_data_quality,
    create_placeholder,
    merge_schedule,
    resolve_observations,
    upgrade_cuisine,
)
from sources.base import RawObservation

MON, TUE, WED = date(2026, 2, 16), date(2026, 2, 17), date(2026, 2, 18)


def _registry() -> TruckRegistry:
    return TruckRegistry([
        Truck("mr-chicken", "Mr.Chicken 鶏飯店", cuisine="chicken", cuisine_label="チキン"),
        Truck("wakas-kitchen", "Waka's Kitchen"),
    ])


class TestPlaceholder:
    """Tests for create_placeholder() and upgrade_cuisine()."""

    def test_placeholder(self):
        truck = create_placeholder("  Totally New Truck ")
        assert truck.id == "totally-new-truck"
        assert truck.name == "Totally New Truck"
        assert (truck.cuisine, truck.cuisine_label) == ("unknown", "?")

    def test_placeholder_uses_detail_text(self):
        assert create_placeholder("Kitchen X", "本格スパイスカレー").cuisine == "curry"

    def test_upgrade_unknown(self):
        truck = Truck("x", "Kitchen X")
        assert upgrade_cuisine(truck, "ガパオライス")
        assert (truck.cuisine, truck.cuisine_label) == ("asian", "アジアン")

    def test_known_cuisine_is_not_overwritten(self):
        truck = Truck("x", "X", cuisine="chicken", cuisine_label="チキン")
        assert not upgrade_cuisine(truck, "ガパオライス")
        assert truck.cuisine == "chicken"

    def test_no_signal(self):
        truck = Truck("x", "Kitchen X")
        assert not upgrade_cuisine(truck, "")
        assert not upgrade_cuisine(truck, "お楽しみに")
        assert truck.cuisine == "unknown"


class TestResolveObservations:
    """Tests for resolve_observations()."""

    def test_known_truck_via_alias(self):
        registry = _registry()
        result = resolve_observations(
            [RawObservation(MON, "sankei", "Mr.Chicken★Torihanten")], registry,
        )
        assert result.entries == [ScheduleEntry(MON, "sankei", "mr-chicken")]
        assert result.new_trucks == []
        assert not result.registry_changed
        assert len(registry) == 2

    def test_new_truck_added_once(self):
        registry = _registry()
        result = resolve_observations([
            RawObservation(MON, "v1", "Totally New Truck"),
            RawObservation(TUE, "v1", "Totally New Truck"),
        ], registry)

        assert [e.truck_id for e in result.entries] == ["totally-new-truck"] * 2
        assert [t.id for t in result.new_trucks] == ["totally-new-truck"]
        assert "totally-new-truck" in registry
        assert result.registry_changed

    def test_all_japanese_name_gets_placeholder_id(self):
        registry = _registry()
        result = resolve_observations([RawObservation(MON, "v1", "謎のキッチンカー")], registry)
        assert result.new_trucks[0].id.startswith("truck-")
        assert result.entries[0].truck_id == result.new_trucks[0].id

    def test_slug_collision_reuses_existing_truck(self, monkeypatch):
        registry = _registry()
        monkeypatch.setattr(merge, "resolve", lambda name, reg: None)
        result = resolve_observations([RawObservation(MON, "v1", "Waka's Kitchen!")], registry)
        assert result.entries[0].truck_id == "wakas-kitchen"
        assert result.new_trucks == []
        assert len(registry) == 2

    def test_slug_collision_upgrades_unknown_cuisine(self, monkeypatch):
        registry = _registry()
        monkeypatch.setattr(merge, "resolve", lambda name, reg: None)
        result = resolve_observations(
            [RawObservation(MON, "kawabata", "Waka's Kitchen!", "チキン南蛮")], registry,
        )
        truck = registry.get("wakas-kitchen")
        assert result.entries[0].truck_id == "wakas-kitchen"
        assert (truck.cuisine, truck.cuisine_label) == ("chicken", "チキン")
        assert result.cuisine_updates == 1
        assert result.new_trucks == []
        assert len(registry) == 2

    def test_cuisine_upgrade_counted_per_truck(self):
        registry = _registry()
        result = resolve_observations([
            RawObservation(MON, "kawabata", "Waka's Kitchen", "チキン南蛮弁当"),
            RawObservation(TUE, "kawabata", "Waka's Kitchen", "チキン南蛮弁当"),
        ], registry)
        assert registry.get("wakas-kitchen").cuisine == "chicken"
        assert result.cuisine_updates == 1
        assert result.registry_changed

    def test_no_observations(self):
        result = resolve_observations([], _registry())
        assert result.entries == []
        assert not result.registry_changed


class TestMergeSchedule:
    """Tests for merge_schedule()."""

    def test_dedup_and_sorted(self):
        carried = [
            ScheduleEntry(TUE, "v2", "b"),
            ScheduleEntry(MON, "v1", "a"),
        ]
        fresh = [
            ScheduleEntry(MON, "v1", "a"),
            ScheduleEntry(MON, "v1", "a"),
            ScheduleEntry(MON, "v0", "c"),
        ]
        assert merge_schedule(carried, fresh) == [
            ScheduleEntry(MON, "v0", "c"),
            ScheduleEntry(MON, "v1", "a"),
            ScheduleEntry(TUE, "v2", "b"),
        ]

    def test_idempotent(self):
        carried = [ScheduleEntry(TUE, "v2", "b")]
        fresh = [ScheduleEntry(MON, "v1", "a"), ScheduleEntry(WED, "v1", "a")]
        once = merge_schedule(carried, fresh)
        assert merge_schedule(once, fresh) == once

    def test_empty(self):
        assert merge_schedule([], []) == []


class TestDataQuality:
    """Tests for build_data_quality()."""

    def test_per_venue_weekday_coverage(self, week):
        schedule = [
            ScheduleEntry(MON, "v1", "a"),
            ScheduleEntry(MON, "v1", "b"),
            ScheduleEntry(WED, "v1", "a"),
            ScheduleEntry(date(2026, 2, 21), "v1", "a"),  # Saturday
        ]
        dq = build_data_quality(schedule, week, ["v1", "v2"], {"v1", "v2"})

        assert dq["total_entries"] == 4
        assert dq["venues_scraped"] == 1
        assert dq["weekdays_in_window"] == 5
        assert dq["per_venue"]["v1"] == {
            "total_entries": 4,
            "days_with_data": 2,
            "weekdays_in_window": 5,
            "missing_weekdays": ["2026-02-17", "2026-02-19", "2026-02-20"],
        }
        assert dq["per_venue"]["v2"]["total_entries"] == 0
        assert dq["per_venue"]["v2"]["days_with_data"] == 0
        assert len(dq["per_venue"]["v2"]["missing_weekdays"]) == 5
        assert dq["orphan_venues"] == []

    def test_orphan_venues(self, week):
        schedule = [ScheduleEntry(MON, "gone", "a")]
        dq = build_data_quality(schedule, week, ["v1"], {"v1"})
        assert dq["orphan_venues"] == ["gone"]
        assert set(dq["per_venue"]) == {"gone", "v1"}

    def test_days_with_data_never_exceeds_weekdays(self, week):
        schedule = [ScheduleEntry(d, "v1", "a") for d in week]
        dq = build_data_quality(schedule, week, ["v1"])
        per = dq["per_venue"]["v1"]
        assert per["days_with_data"] == per["weekdays_in_window"] == 5
        assert per["missing_weekdays"] == []
