"""Tests for the Neo Yatai Mura adapter."""

from __future__ import annotations

import logging
from datetime import date

from config import VenueConfig
from sources.neo_yatai import NeoYataiAdapter, parse_schedule

SCHEDULE_URL = "https://neo.test/schedule/"
VENUE = VenueConfig("sankei", SCHEDULE_URL, "neo-yatai")

SCHEDULE_HTML = """
<div class="cnt_tabs">
<ul class="cnt_tabs_menu cnt_tabs_col05">
  <li class="active">02/16（月）</li>
  <li>02/17（火）</li>
  <li>03/30（月）</li>
</ul>
<ul class="cnt_tabs_inner">
  <li class="active">
    <h4>【カフェ】</h4>
    <h4>Mr.Chicken★Torihanten</h4>
    <h4>Mr.Chicken★Torihanten</h4>
    <h4>【ランチタイム】</h4>
    <h4>「東京Ricordo」</h4>
  </li>
  <li><h4>MIKAバインミー</h4></li>
  <li><h4>Out of window</h4></li>
</ul>
</div>
"""


class TestParseSchedule:
    """Tests for parse_schedule()."""

    def test_tabs_and_panels(self, week):
        observations = parse_schedule(SCHEDULE_HTML, "sankei", week)
        assert [(o.date, o.truck_name_raw) for o in observations] == [
            (date(2026, 2, 16), "Mr.Chicken★Torihanten"),
            (date(2026, 2, 16), "東京Ricordo"),
            (date(2026, 2, 17), "MIKAバインミー"),
        ]
        assert all(o.venue_id == "sankei" and o.detail_text == "" for o in observations)

    def test_long_names_skipped(self, week):
        html = f"""
        <ul class="cnt_tabs_menu"><li>02/18（水）</li></ul>
        <ul class="cnt_tabs_inner"><li><h4>{"x" * 101}</h4><h4>{"y" * 100}</h4></li></ul>
        """
        assert [o.truck_name_raw for o in parse_schedule(html, "sankei", week)] == ["y" * 100]

    def test_tab_panel_mismatch_warns(self, week, caplog):
        html = """
        <ul class="cnt_tabs_menu"><li>02/18（水）</li><li>02/19（木）</li></ul>
        <ul class="cnt_tabs_inner"><li><h4>Only Panel</h4></li></ul>
        """
        with caplog.at_level(logging.WARNING):
            observations = parse_schedule(html, "sankei", week)
        assert [o.truck_name_raw for o in observations] == ["Only Panel"]
        assert "2 tabs but 1 panels" in caplog.text

    def test_empty_page(self, week):
        assert parse_schedule("<html></html>", "sankei", week) == []


class TestNeoYataiAdapter:
    """Tests for NeoYataiAdapter.scrape()."""

    async def test_scrape_fetches_one_page(self, make_client, week):
        client = make_client({SCHEDULE_URL: SCHEDULE_HTML})
        observations = await NeoYataiAdapter(client).scrape(VENUE, week)
        assert len(observations) == 3
        assert client.requested == [SCHEDULE_URL]
