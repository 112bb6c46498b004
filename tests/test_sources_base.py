"""Tests for the shared adapter helpers and parser dispatch."""

from __future__ import annotations

import asyncio
from datetime import date

import httpx
import pytest
from bs4 import BeautifulSoup

from config import VENUES
from sources.base import (
    RawObservation,
    SourceFetchError,
    dedupe,
    fetch_details,
    fetch_html,
    first_match,
)
from sources.dispatch import ADAPTERS, UnknownParserError, get_adapter
from sources.kawabata import KawabataAdapter
from sources.mellow import MellowAdapter
from sources.neo_yatai import NeoYataiAdapter


class TestFetchHtml:
    """Tests for fetch_html()."""

    async def test_success(self, make_client):
        client = make_client({"https://venue.test/": "<html>ok</html>"})
        assert await fetch_html(client, "https://venue.test/") == "<html>ok</html>"

    async def test_http_status_raises(self, make_client):
        client = make_client({"https://venue.test/": 503})
        with pytest.raises(SourceFetchError, match="503"):
            await fetch_html(client, "https://venue.test/")

    async def test_transport_error_raises(self, make_client):
        client = make_client({"https://venue.test/": httpx.ConnectError("refused")})
        with pytest.raises(SourceFetchError, match="venue.test"):
            await fetch_html(client, "https://venue.test/")


class TestFetchDetails:
    """Tests for fetch_details()."""

    async def test_failures_map_to_empty(self):
        async def fetch_one(path: str) -> str:
            if path == "bad":
                raise SourceFetchError("boom")
            return path.upper()

        details = await fetch_details(["a", "bad", "b"], fetch_one)
        assert details == {"a": "A", "bad": "", "b": "B"}

    async def test_batches_bound_concurrency(self):
        in_flight = 0
        peak = 0

        async def fetch_one(path: str) -> str:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return path

        paths = [f"/shop/{i}" for i in range(7)]
        details = await fetch_details(paths, fetch_one, batch_size=3)
        assert peak == 3
        assert list(details) == paths

    async def test_duplicate_paths_fetched_once(self):
        calls: list[str] = []

        async def fetch_one(path: str) -> str:
            calls.append(path)
            return "text"

        await fetch_details(["x", "y", "x"], fetch_one)
        assert calls == ["x", "y"]


class TestFirstMatch:
    """Tests for first_match()."""

    node = BeautifulSoup("<a><h2>Heading</h2></a>", "html.parser").a

    def test_priority_order(self):
        rules = [("first", lambda n: None), ("second", lambda n: " B "), ("third", lambda n: "C")]
        assert first_match(self.node, rules) == "B"

    def test_blank_values_are_failures(self):
        rules = [("blank", lambda n: "   "), ("empty", lambda n: "")]
        assert first_match(self.node, rules) is None

    def test_no_rules(self):
        assert first_match(self.node, []) is None


class TestDedupe:
    """Tests for dedupe()."""

    def test_keeps_first_per_date_and_name(self):
        d1, d2 = date(2026, 2, 16), date(2026, 2, 17)
        observations = [
            RawObservation(d1, "v", "Truck", "first"),
            RawObservation(d1, "v", "Truck", "second"),
            RawObservation(d2, "v", "Truck"),
            RawObservation(d1, "v", "Other"),
        ]
        result = dedupe(observations)
        assert [(o.date, o.truck_name_raw) for o in result] == [
            (d1, "Truck"), (d2, "Truck"), (d1, "Other"),
        ]
        assert result[0].detail_text == "first"


class TestDispatch:
    """Tests for parser name dispatch."""

    def test_known_parsers(self):
        client = httpx.AsyncClient()
        assert isinstance(get_adapter("kawabata", client), KawabataAdapter)
        assert isinstance(get_adapter("mellow", client), MellowAdapter)
        assert isinstance(get_adapter("neo-yatai", client), NeoYataiAdapter)

    def test_unknown_parser(self):
        with pytest.raises(UnknownParserError):
            get_adapter("nope", httpx.AsyncClient())

    def test_every_configured_venue_has_an_adapter(self):
        assert {v.parser for v in VENUES.values()} <= set(ADAPTERS)
