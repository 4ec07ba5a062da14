# This file assembles everything an exported quote needs into one immutable document.
# It exists so the CSV export, the HTML report, and the API render from the same computed summary.
# Payload loading accepts saved-scenario rows and browser-style JSON alike.
# Summaries are always recomputed from the selected items rather than trusted from input.

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from src.pricing_engine.calculator import calculate_scenario_summary
from src.pricing_engine.engine_config import EngineConfig, get_engine_config
from src.pricing_engine.models import (
    Category,
    ClientConfig,
    ConfigurationField,
    GlobalDiscount,
    ScenarioSummary,
    SelectedItem,
)

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class QuoteDocument:
    client: ClientConfig
    selected_items: tuple[SelectedItem, ...]
    global_discount: GlobalDiscount
    summary: ScenarioSummary
    categories: tuple[Category, ...]
    configuration_fields: tuple[ConfigurationField, ...]
    generated_at: datetime
    engine_config: EngineConfig

    def field_labels(self) -> dict[str, str]:
        return {config_field.id: config_field.label for config_field in self.configuration_fields}

    def category_name(self, category_id: str) -> str:
        for category in self.categories:
            if category.id == category_id:
                return category.name
        return category_id


def build_quote(
    *,
    client: ClientConfig,
    selected_items: Iterable[SelectedItem],
    global_discount: GlobalDiscount | None = None,
    categories: Iterable[Category] | None = None,
    configuration_fields: Iterable[ConfigurationField] | None = None,
    config: EngineConfig | None = None,
    generated_at: datetime | None = None,
) -> QuoteDocument:
    resolved = config or get_engine_config()
    items = tuple(selected_items)
    discount = global_discount or GlobalDiscount()
    category_list = tuple(categories or ())
    summary = calculate_scenario_summary(items, discount, category_list, resolved)
    return QuoteDocument(
        client=client,
        selected_items=items,
        global_discount=discount,
        summary=summary,
        categories=category_list,
        configuration_fields=tuple(configuration_fields or ()),
        generated_at=generated_at or datetime.now(tz=UTC),
        engine_config=resolved,
    )


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def quote_from_payload(
    payload: Mapping[str, Any], *, config: EngineConfig | None = None
) -> QuoteDocument:
    """Build a quote from a saved scenario or an exported simulator JSON payload."""

    client = ClientConfig.from_dict(_first(payload, "client_config", "clientConfig", "config") or {})
    raw_items = _first(payload, "selected_items", "selectedItems", "selected_services") or []
    raw_discount = _first(payload, "global_discount_settings", "globalDiscountSettings", "global_discount")
    if not isinstance(raw_discount, Mapping):
        raw_discount = payload

    return build_quote(
        client=client,
        selected_items=[SelectedItem.from_dict(item) for item in raw_items],
        global_discount=GlobalDiscount.from_dict(raw_discount),
        categories=[Category.from_dict(item) for item in payload.get("categories") or []],
        configuration_fields=[
            ConfigurationField.from_dict(item)
            for item in _first(payload, "configuration_fields", "configurationFields") or []
        ],
        config=config,
    )


def export_file_name(quote: QuoteDocument, *, extension: str, on_date: date | None = None) -> str:
    """`pricing-simulator-<client or export>-<YYYY-MM-DD>.<extension>`"""

    client_part = _UNSAFE_FILENAME_RE.sub("-", quote.client.client_name.strip()).strip("-") or "export"
    day = (on_date or quote.generated_at.date()).isoformat()
    return f"pricing-simulator-{client_part}-{day}.{extension}"
