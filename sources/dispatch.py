"""
Parser name → adapter class.

The ``parser`` field of each VenueConfig picks one of these.  The table is
closed: adding a layout means adding a class here.
"""

from __future__ import annotations

from types import MappingProxyType

import httpx

from sources.base import SourceAdapter
from sources.kawabata import KawabataAdapter
from sources.mellow import MellowAdapter
from sources.neo_yatai import NeoYataiAdapter


class UnknownParserError(KeyError):
    """A venue names a parser with no adapter."""


ADAPTERS: MappingProxyType[str, type[SourceAdapter]] = MappingProxyType({
    cls.parser: cls
    for cls in (KawabataAdapter, MellowAdapter, NeoYataiAdapter)
})


def get_adapter(parser: str, client: httpx.AsyncClient) -> SourceAdapter:
    try:
        cls = ADAPTERS[parser]
    except KeyError:
        raise UnknownParserError(parser) from None
    return cls(client)
