# This file classifies pricing units by billing frequency.
# It exists so one-time charges and recurring charges are bucketed by the same rule everywhere.
# Unit names are normalized before lookup so "Per Setup", "per-setup" and "per_setup" match.
# The one-time vocabulary and setup categories come from the engine config.

from __future__ import annotations

from src.pricing_engine.engine_config import EngineConfig, get_engine_config, normalize_unit_token
from src.pricing_engine.models import SelectedItem

MONTHLY_RECURRING_UNITS = frozenset({"per_user", "per_month", "monthly"})
TRANSACTION_BASED_UNITS = frozenset({"per_transaction", "per_token", "per_sms", "per_api_call"})
EVENT_ACTIVITY_BASED_UNITS = frozenset({"per_card", "per_item", "per_delivery", "per_file", "per_case"})

UNIT_CATEGORY_DESCRIPTIONS: dict[str, str] = {
    "one-time": "Calculated once (setup fees, configurations, changes)",
    "monthly-recurring": "Calculated per month (service fees, hosting, user access)",
    "transaction-based": "Calculated per transaction or token (processing, API calls, SMS)",
    "event-activity-based": "Calculated per event (card creation, deliveries, files, cases)",
    "unknown": "Unknown billing frequency",
}


def normalize_unit(unit: str | None) -> str:
    return normalize_unit_token(unit)


def is_one_time_unit(unit: str | None, config: EngineConfig | None = None) -> bool:
    resolved = config or get_engine_config()
    return normalize_unit(unit) in resolved.one_time_units


def unit_category(unit: str | None, config: EngineConfig | None = None) -> str:
    normalized = normalize_unit(unit)
    if is_one_time_unit(normalized, config):
        return "one-time"
    if normalized in MONTHLY_RECURRING_UNITS:
        return "monthly-recurring"
    if normalized in TRANSACTION_BASED_UNITS:
        return "transaction-based"
    if normalized in EVENT_ACTIVITY_BASED_UNITS:
        return "event-activity-based"
    return "unknown"


def unit_category_description(unit: str | None, config: EngineConfig | None = None) -> str:
    return UNIT_CATEGORY_DESCRIPTIONS[unit_category(unit, config)]


def is_one_time(selected: SelectedItem, config: EngineConfig | None = None) -> bool:
    """True when a row is billed once: setup category or a one-time unit."""

    resolved = config or get_engine_config()
    category = selected.item.category.strip().lower()
    return category in resolved.setup_category_ids or is_one_time_unit(selected.item.unit, resolved)
