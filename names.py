"""
Truck name normalization and matching.

Venue sites spell the same truck in different scripts, decorate names with
stars and notes, and sometimes glue menu items onto the name.  ``resolve``
tries progressively looser strategies against the truck registry:

  1. manual alias table (normalized scraped name → truck id)
  2. exact normalized name
  3. substring either way (shorter side ≥ MIN_SUBSTRING_LENGTH chars)
  4. derived slug equals an existing id
"""

from __future__ import annotations

import re
import time
import unicodedata
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from artifacts import Truck, TruckRegistry

# Shorter side of a substring match must be at least this many characters.
MIN_SUBSTRING_LENGTH = 4

_DECORATIONS_RE = re.compile("[★☆♪♫❤♥♡🌟✨\ufe0f]")
_WS_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^a-z0-9 \-]")
_HYPHENS_RE = re.compile(r"-+")


def normalize(raw: str) -> str:
    """NFKC, drop decorative glyphs, collapse whitespace, lowercase."""
    s = unicodedata.normalize("NFKC", raw or "")
    s = _DECORATIONS_RE.sub(" ", s)
    return _WS_RE.sub(" ", s).strip().lower()


_last_fallback = 0


def _fallback_id() -> str:
    # Millisecond stamp, bumped so ids handed out in one process never repeat.
    global _last_fallback
    stamp = max(time.time_ns() // 1_000_000, _last_fallback + 1)
    _last_fallback = stamp
    return f"truck-{stamp}"


def derive_id(name: str) -> str:
    """URL-safe slug for a truck name, e.g. "Mr. Chicken" → "mr-chicken".

    Non-Latin characters are dropped; a name with nothing Latin left gets a
    ``truck-<millis>`` placeholder id instead.
    """
    s = normalize(name).replace("_", "-")
    s = _NON_SLUG_RE.sub("", s)
    s = _WS_RE.sub("-", s)
    s = _HYPHENS_RE.sub("-", s).strip("-")
    return s or _fallback_id()


# Scraped names that differ too much from trucks.json for automatic matching
# (Japanese vs English names, menu items in the name).  Keys are normalized
# at import, so they may be written the way the sites print them.
_ALIAS_SOURCE: dict[str, str] = {
    # Kawabata: site uses Japanese names, registry has English
    "キッチンあがいてぃーら": "kitchen-agaityla",
    "グリルキッチンbesideu": "beside-u",
    "レオ ストリート キッチン": "leo-street",
    "レオストリートキッチン": "leo-street",
    "lino marama cafe": "lino-marama",
    "長崎屋": "nagasakiya",
    "ジュリーズスパイス": "julies-spice",
    "ごっさむ": "gossam",
    "アジアンフード": "asian-food",
    "ミラーン": "millan",
    "ビストロカルロス": "bistro-carlos",
    "パパガヤデリ": "papagaya-deli",
    "鳳唐揚げ弁当": "otori",
    # Neo Yatai
    "mikaバインミー": "mika-banhmi",
    "東京ricordo": "ricordo",
    "+spice": "plus-spice",
    "蓮 ren": "ren",
    "和tokyo": "wa-tokyo",
    "台湾佐記麺線": "taiwan-saki",
    "mr.chicken★torihanten": "mr-chicken",
    "mr.chicken torihanten": "mr-chicken",
    "mr.chicken": "mr-chicken",
    "ボナペティ": "bonappetit",
    "bt massaru": "bt-massaru",
    # Mellow: names carry menu items, these fail the substring tier
    "kusina personal by an": "kusina",
    "anne&may": "anne-may",
    "サンドリヨン": "sandoriyon",
    "アイランド": "island",
    "鳳": "otori",
    "まま事屋": "mamagoto",
    "senor coppe": "senor-coppe",
    "señor coppe": "senor-coppe",
    "cucina daino": "daino",
    "smile tokyo": "smile-tokyo",
    "ラハイナテーブル": "lahaina",
    "西京屋 周": "saikyoya",
    "祥福堂": "shofukudo",
    "churrascaria que bom!": "quebom",
    "parlor zono": "parlor-zono",
    "island kitchen": "island-kitchen",
    "食堂新": "shokudo-shin",
    "caffe latte": "caffe-latte",
    "box lunch casa": "box-lunch-casa",
    "キッチンカーたこみーと": "tacomeat",
    "たこみーと": "tacomeat",
    "grace lei": "grace-lei",
    "keiki beach 83": "keiki-beach",
    "18's kitchen & market": "18s-kitchen-market",
    "dandy lion kitchen": "dandy-lion-kitchen",
    "dublin 7 food truck": "dublin-7-food-truck",
    "おきらぼ": "okilab",
    "2nd base": "2nd-base",
    "chopi rich": "chopi-rich",
    "waka's kitchen": "wakas-kitchen",
    "mogu mogu stand": "mogu-mogu-stand",
    "burn.": "burn",
    "mos burger kitchen car": "mos50",
    "モスのキッチンカー「mos50一号車」": "mos50",
}

ALIASES: MappingProxyType[str, str] = MappingProxyType(
    {normalize(k): v for k, v in _ALIAS_SOURCE.items()}
)


def resolve(raw_name: str, registry: TruckRegistry) -> Truck | None:
    """Find the registry truck a scraped name refers to, or None if it's new."""
    normalized = normalize(raw_name)
    if not normalized:
        return None

    alias_id = ALIASES.get(normalized)
    if alias_id:
        aliased = registry.get(alias_id)
        if aliased is not None:
            return aliased

    for truck in registry:
        if normalize(truck.name) == normalized:
            return truck

    for truck in registry:
        existing = normalize(truck.name)
        shorter = min(len(normalized), len(existing))
        if shorter >= MIN_SUBSTRING_LENGTH and (
            normalized in existing or existing in normalized
        ):
            return truck

    return registry.get(derive_id(raw_name))
