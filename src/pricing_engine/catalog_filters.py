# This module filters and sorts catalog items for listing views.
# It exists so the API and any in-memory consumer apply the same search semantics.

from __future__ import annotations

from collections.abc import Iterable, Sequence

from src.pricing_engine.models import PricingItem

SORT_FIELDS = {"name", "price", "category", "created_at"}


def filter_pricing_items(
    items: Iterable[PricingItem],
    *,
    category_id: str | None = None,
    tags: Sequence[str] | None = None,
    search_term: str | None = None,
    show_archived: bool = False,
) -> list[PricingItem]:
    wanted_tags = {tag for tag in tags or [] if tag}
    needle = (search_term or "").strip().lower()

    filtered: list[PricingItem] = []
    for item in items:
        if category_id and item.category != category_id:
            continue
        if wanted_tags and not wanted_tags.intersection(item.tags):
            continue
        if needle:
            haystack = f"{item.name}\n{item.description or ''}".lower()
            if needle not in haystack:
                continue
        if item.is_archived and not show_archived:
            continue
        filtered.append(item)
    return filtered


def sort_pricing_items(
    items: Iterable[PricingItem],
    *,
    field: str = "name",
    direction: str = "asc",
) -> list[PricingItem]:
    if field not in SORT_FIELDS:
        raise ValueError(f"Unsupported sort field '{field}'. Supported fields: {', '.join(sorted(SORT_FIELDS))}")
    if direction not in {"asc", "desc"}:
        raise ValueError("sort direction must be 'asc' or 'desc'")

    def key(item: PricingItem) -> tuple[object, str]:
        if field == "price":
            return (item.default_price, item.id)
        if field == "category":
            return (item.category.lower(), item.id)
        if field == "created_at":
            return (item.created_at or "", item.id)
        return (item.name.lower(), item.id)

    return sorted(items, key=key, reverse=direction == "desc")
