"""Shared fixtures: a fixed target week and a mock HTTP client."""

from __future__ import annotations

from datetime import date, timedelta

import httpx
import pytest

# Monday 2026-02-16 through Sunday 2026-02-22
WEEK = [date(2026, 2, 16) + timedelta(days=i) for i in range(7)]

Page = str | int | Exception


@pytest.fixture
def week() -> list[date]:
    return list(WEEK)


@pytest.fixture
async def make_client():
    """Build an AsyncClient whose responses come from a {url: page} dict.

    A str page is served as 200 HTML, an int is a bare status code, an
    exception is raised from the transport.  Unknown URLs get 404.
    Requested URLs are recorded on ``client.requested``.
    """
    clients: list[httpx.AsyncClient] = []

    def factory(pages: dict[str, Page]) -> httpx.AsyncClient:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            page = pages.get(url, 404)
            if isinstance(page, Exception):
                raise page
            if isinstance(page, int):
                return httpx.Response(page)
            return httpx.Response(200, text=page, headers={"content-type": "text/html"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.requested = requested  # type: ignore[attr-defined]
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()
