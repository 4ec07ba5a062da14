# This test file validates in-memory catalog filtering and sorting.

from __future__ import annotations

import pytest

from src.pricing_engine.catalog_filters import filter_pricing_items, sort_pricing_items
from src.pricing_engine.models import PricingItem


def _item(item_id: str, **extra: object) -> PricingItem:
    values: dict[str, object] = {
        "id": item_id,
        "name": item_id.title(),
        "category": "platform",
        "unit": "per_month",
        "default_price": 10,
    }
    values.update(extra)
    return PricingItem.from_dict(values)


ITEMS = [
    _item("hosting", default_price=300, tags=["core"], description="Managed cloud hosting"),
    _item("setup", category="setup", unit="per_project", default_price=1500, created_at="2024-01-02"),
    _item("sms", default_price=0.05, tags=["messaging", "addon"], created_at="2024-03-01"),
    _item("legacy", is_archived=True, tags=["core"]),
]


def test_archived_items_hidden_by_default() -> None:
    ids = [item.id for item in filter_pricing_items(ITEMS)]
    assert "legacy" not in ids
    assert "legacy" in [item.id for item in filter_pricing_items(ITEMS, show_archived=True)]


def test_filters_combine_category_tags_and_search() -> None:
    assert [item.id for item in filter_pricing_items(ITEMS, category_id="setup")] == ["setup"]
    assert [item.id for item in filter_pricing_items(ITEMS, tags=["addon", "core"])] == ["hosting", "sms"]
    assert [item.id for item in filter_pricing_items(ITEMS, search_term="CLOUD")] == ["hosting"]
    assert filter_pricing_items(ITEMS, category_id="platform", search_term="setup") == []


def test_sorting_by_supported_fields() -> None:
    visible = filter_pricing_items(ITEMS)

    assert [item.id for item in sort_pricing_items(visible)] == ["hosting", "setup", "sms"]
    assert [item.id for item in sort_pricing_items(visible, field="price", direction="desc")] == [
        "setup",
        "hosting",
        "sms",
    ]
    assert [item.id for item in sort_pricing_items(visible, field="created_at")] == ["hosting", "setup", "sms"]


def test_invalid_sort_input_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported sort field"):
        sort_pricing_items(ITEMS, field="popularity")
    with pytest.raises(ValueError, match="direction"):
        sort_pricing_items(ITEMS, direction="up")
