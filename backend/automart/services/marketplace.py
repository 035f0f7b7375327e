from __future__ import annotations

import re
from collections import Counter
from typing import Any, Iterable

SORT_KEYS = ("newest", "rating", "profit", "popular", "price-low", "price-high")

_WS = re.compile(r"\s+")


def slugify(value: str) -> str:
    return _WS.sub("-", (value or "").strip().lower())


def _get(item: Any, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def _as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _number(item: Any, name: str) -> float:
    try:
        return float(_get(item, name, 0.0) or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _is_available(item: Any) -> bool:
    flag = _get(item, "is_active")
    if flag is not None:
        return bool(flag)
    return str(_get(item, "status", "") or "").strip().lower() == "active"


def matches_category(item: Any, category: str) -> bool:
    wanted = slugify(category or "all")
    if wanted in ("", "all"):
        return True
    return any(slugify(str(c)) == wanted for c in _as_list(_get(item, "category")))


def matches_search(item: Any, search: str) -> bool:
    needle = (search or "").strip().lower()
    if not needle:
        return True
    haystack = [
        str(_get(item, "title", "") or ""),
        str(_get(item, "description", "") or ""),
    ]
    haystack.extend(str(p) for p in _as_list(_get(item, "platforms")))
    haystack.extend(str(f) for f in _as_list(_get(item, "features")))
    return any(needle in h.lower() for h in haystack)


def filter_automations(items: Iterable[Any], category: str = "all", search: str = "", available_only: bool = False) -> list:
    return [
        item
        for item in items
        if matches_category(item, category)
        and matches_search(item, search)
        and (not available_only or _is_available(item))
    ]


def sort_automations(items: Iterable[Any], sort_by: str = "newest") -> list:
    items = list(items)
    if sort_by == "rating":
        return sorted(items, key=lambda a: _number(a, "rating"), reverse=True)
    if sort_by == "profit":
        return sorted(items, key=lambda a: _number(a, "profit"), reverse=True)
    if sort_by == "popular":
        return sorted(items, key=lambda a: _number(a, "reviews_count"), reverse=True)
    if sort_by == "price-low":
        return sorted(items, key=lambda a: _number(a, "suggested_price"))
    if sort_by == "price-high":
        return sorted(items, key=lambda a: _number(a, "suggested_price"), reverse=True)
    # newest / unknown: keep insertion order
    return items


def browse(items: Iterable[Any], category: str = "all", search: str = "", available_only: bool = False, sort_by: str = "newest") -> list:
    return sort_automations(filter_automations(items, category, search, available_only), sort_by)


def category_counts(items: Iterable[Any]) -> dict[str, int]:
    counts: Counter = Counter()
    total = 0
    for item in items:
        total += 1
        for c in {slugify(str(c)) for c in _as_list(_get(item, "category"))}:
            counts[c] += 1
    out = {"all": total}
    out.update(sorted(counts.items()))
    return out
