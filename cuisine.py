"""
Cuisine detection from a truck's name plus optional detail-page text.

Categories are checked in order and the first keyword hit wins, so specific
cuisines sit above the broad ones (Korean before Asian, chicken before meat).
Generic words like "kitchen", "lunch" or "cafe" are deliberately absent.
"""

from __future__ import annotations

from dataclasses import dataclass

from names import normalize

UNKNOWN_CUISINE = "unknown"
UNKNOWN_LABEL = "?"


@dataclass(frozen=True)
class CuisineCategory:
    key: str
    label: str
    keywords: tuple[str, ...]


def _category(key: str, label: str, *keywords: str) -> CuisineCategory:
    return CuisineCategory(key, label, tuple(normalize(k) for k in keywords))


CUISINE_CATEGORIES: tuple[CuisineCategory, ...] = (
    # Specific ethnic cuisines
    _category("hawaiian", "ハワイアン",
              "hawaii", "poke", "loco", "ポキ", "ロコモコ", "aloha"),
    _category("kebab", "ケバブ",
              "kebab", "ケバブ", "ハラル", "halal", "ファラフェル", "falafel"),
    _category("korean", "韓国料理",
              "korea", "bibimbap", "pocha", "韓国", "ビビンバ", "ポチャ", "チヂミ",
              "k-food", "韓美味"),
    _category("vietnamese", "ベトナム",
              "vietnam", "banh mi", "pho", "ベトナム", "バインミー", "フォー"),
    _category("okinawan", "沖縄料理",
              "okinawa", "taco", "spam", "沖縄", "タコライス"),
    _category("chinese", "中華",
              "chinese", "gyoza", "dimsum", "中華", "餃子", "麻婆", "炒飯", "魯肉飯"),
    _category("italian", "イタリアン",
              "pizza", "pasta", "lasagna", "italian", "ピザ", "パスタ", "ラザニア",
              "イタリアン", "sicil"),
    # Protein-focused
    _category("chicken", "チキン",
              "chicken", "チキン", "唐揚", "からあげ", "ロティサリー", "rotisserie",
              "鷄", "照り焼きチキン", "テリヤキチキン"),
    _category("curry", "カレー",
              "curry", "カレー", "インド", "ビリヤニ", "biryani", "スパイスカレー", "カリー"),
    _category("meat", "肉料理",
              "beef", "meat", "steak", "hamburg", "shalasco", "que bom", "lamb",
              "pork", "肉", "ステーキ", "ハンバーグ", "シュラスコ", "牛", "焼肉",
              "boucherie", "ローストポーク", "豚", "ホルモン"),
    # Broad Asian, after Korean/Vietnamese/Chinese
    _category("asian", "アジアン",
              "asian", "thai", "gapao", "nasi", "adobo", "taiwan", "アジアン", "タイ",
              "ガパオ", "ナシゴレン", "アドボ", "台湾", "ルーロー", "ナンロール", "ナン",
              "スパイス"),
    # Food types
    _category("bread", "パン",
              "bread", "sandwich", "hotdog", "burger", "パン", "サンド", "バーガー",
              "ドッグ", "coppe", "ホットドッグ", "ホットドック", "スラッピージョー"),
    _category("japanese", "和食",
              "japanese", "sushi", "tempura", "和食", "寿司", "丼", "天ぷら", "うどん",
              "そば", "鰻", "西京", "魚", "かつ丼", "カツ", "やきそば", "焼きそば",
              "おばんざい", "にぎり"),
    _category("sweets", "スイーツ",
              "crepe", "sweets", "coffee", "クレープ", "スイーツ", "カフェ", "crakey"),
    # Most generic: only if nothing else matched
    _category("western", "洋食",
              "western", "omurice", "bistro", "洋食", "オムライス"),
)


def classify(name: str, extra_text: str = "") -> tuple[str, str]:
    """Return ``(cuisine_key, cuisine_label)`` for a truck.

    ``extra_text`` is the description/menu text from a detail page when one
    was fetched; re-running with richer text is how an "unknown" truck gets
    upgraded later.
    """
    combined = normalize(f"{name} {extra_text}")
    for category in CUISINE_CATEGORIES:
        if any(keyword in combined for keyword in category.keywords):
            return category.key, category.label
    return UNKNOWN_CUISINE, UNKNOWN_LABEL
