"""
Category ordering table for receipts.

Maps a category identifier or name to a numeric sort key (lower prints
first) and an optional display heading. Lookups are case-insensitive and try
the category id before the category name. Categories without an entry sort
last with DEFAULT_SORT_KEY.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

DEFAULT_SORT_KEY = 999.0

# Danish and English menu categories: starters, mains, sides, desserts, drinks.
BUILTIN_CATEGORY_ORDER: Dict[str, float] = {
    "forretter": 1,
    "forret": 1,
    "appetizers": 1,
    "starter": 1,
    "starters": 1,
    "hovedretter": 2,
    "hovedret": 2,
    "main": 2,
    "mains": 2,
    "main course": 2,
    "main courses": 2,
    "entrees": 2,
    "kød": 2.1,
    "meat": 2.1,
    "fisk": 2.2,
    "fish": 2.2,
    "seafood": 2.2,
    "vegetar": 2.3,
    "vegetarian": 2.3,
    "vegan": 2.3,
    "tilbehør": 2.5,
    "sides": 2.5,
    "side dishes": 2.5,
    "desserter": 3,
    "dessert": 3,
    "desserts": 3,
    "sweets": 3,
    "kage": 3,
    "cake": 3,
    "drikkevarer": 4,
    "drinks": 4,
    "beverage": 4,
    "beverages": 4,
    "kaffe": 4.1,
    "coffee": 4.1,
    "te": 4.2,
    "tea": 4.2,
    "øl": 4.3,
    "beer": 4.3,
    "vin": 4.4,
    "wine": 4.4,
    "cocktails": 4.5,
    "spirits": 4.6,
}


@dataclass(frozen=True)
class CategoryOrder:
    sort_key: float = DEFAULT_SORT_KEY
    heading: Optional[str] = None


EntryValue = Union[int, float, CategoryOrder, Mapping[str, Any]]


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower()


def _to_order(value: EntryValue) -> CategoryOrder:
    if isinstance(value, CategoryOrder):
        return value
    if isinstance(value, Mapping):
        heading = value.get("heading")
        return CategoryOrder(
            sort_key=float(value.get("sort_key", DEFAULT_SORT_KEY)),
            heading=str(heading) if heading else None,
        )
    return CategoryOrder(sort_key=float(value))


class CategoryOrderingTable:
    """Read-only mapping of category id/name to its print position."""

    def __init__(self, entries: Optional[Mapping[Any, EntryValue]] = None) -> None:
        self._entries: Dict[str, CategoryOrder] = {}
        for key, value in (entries or {}).items():
            norm = _normalize_key(key)
            if norm:
                self._entries[norm] = _to_order(value)

    @classmethod
    def builtin(cls) -> "CategoryOrderingTable":
        return cls(BUILTIN_CATEGORY_ORDER)

    @classmethod
    def from_config(cls, entries: Optional[Mapping[Any, EntryValue]]) -> "CategoryOrderingTable":
        """Built-in table with configured entries layered on top."""
        merged: Dict[Any, EntryValue] = dict(BUILTIN_CATEGORY_ORDER)
        merged.update(entries or {})
        return cls(merged)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return _normalize_key(key) in self._entries

    def resolve(self, category_id: Any = None, category_name: Optional[str] = None) -> CategoryOrder:
        for key in (category_id, category_name):
            if key is None:
                continue
            found = self._entries.get(_normalize_key(key))
            if found is not None:
                return found
        return CategoryOrder()

    def sort_key(self, category_id: Any = None, category_name: Optional[str] = None) -> float:
        return self.resolve(category_id, category_name).sort_key


__all__ = [
    "BUILTIN_CATEGORY_ORDER",
    "DEFAULT_SORT_KEY",
    "CategoryOrder",
    "CategoryOrderingTable",
]
