# This module prices quantities against volume tiers and derives quantities from client config.
# It exists so the simulator, the API, and quote exports all agree on tier splits and fallback rates.
# Tiers are walked in ascending min_quantity order; leftover quantity is billed at the default price.
# Display helpers (tier ranges, quantity sources, config context) live here beside the math they explain.

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src.pricing_engine.models import PricingItem, PricingTier, TierCalculationResult, TierLine

FALLBACK_TIER_ID = "fallback"
FALLBACK_TIER_NAME = "Fallback Rate"
UNNAMED_TIER_NAME = "Unnamed Tier"

QUANTITY_SOURCE_LABELS: dict[str, str] = {
    "clientName": "Client Name",
    "projectName": "Project Name",
    "preparedBy": "Prepared By",
    "hasDebitCards": "Debit/Prepaid/Virtual Cards Enabled",
    "hasCreditCards": "Credit Cards Enabled",
    "debitCards": "Number of Debit/Prepaid/Virtual Cards",
    "creditCards": "Number of Credit Cards",
    "monthlyAuthorizations": "Monthly Authorizations",
    "monthlySettlements": "Monthly Settlements",
    "monthly3DS": "Monthly 3DS Transactions",
    "monthlySMS": "Monthly SMS Messages",
    "monthlyNotifications": "Monthly Notifications",
    "monthlyDeliveries": "Monthly Deliveries",
}

CONFIG_CONTEXT_LABELS: dict[str, str] = {
    "hasDebitCards": "Debit/Prepaid/Virtual Cards",
    "hasCreditCards": "Credit Cards",
    "debitCards": "Debit/Prepaid/Virtual Cards",
    "creditCards": "Credit Cards",
    "monthlyAuthorizations": "Authorizations/month",
    "monthlySettlements": "Settlements/month",
    "monthly3DS": "3DS Transactions/month",
    "monthlySMS": "SMS Messages/month",
    "monthlyNotifications": "Notifications/month",
    "monthlyDeliveries": "Deliveries/month",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _grouped(value: float) -> str:
    """Thousands-grouped number without trailing zeros (1000 -> '1,000', 2.5 -> '2.5')."""

    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _field_label(field_id: str, labels: Mapping[str, str]) -> str:
    return labels.get(field_id) or f"Dynamic Field ({field_id})"


def _sorted_tiers(item: PricingItem) -> list[PricingTier]:
    return sorted(item.tiers, key=lambda tier: tier.min_quantity)


def _check_quantity(quantity: float) -> None:
    if quantity < 0:
        raise ValueError(f"quantity must be >= 0, got {quantity}")


def calculate_tiered_price(item: PricingItem, quantity: float) -> TierCalculationResult:
    """Split `quantity` across the item's tiers and price each slice."""

    _check_quantity(quantity)
    if not item.has_tiers:
        return TierCalculationResult(total_price=item.default_price * quantity)

    remaining = float(quantity)
    total_price = 0.0
    lines: list[TierLine] = []

    for tier in _sorted_tiers(item):
        if remaining <= 0:
            break
        if quantity < tier.min_quantity:
            continue

        if tier.max_quantity is None:
            tier_quantity = remaining
        else:
            capacity = tier.max_quantity - tier.min_quantity + 1
            tier_quantity = min(remaining, capacity)

        if tier_quantity > 0:
            tier_total = tier_quantity * tier.unit_price
            total_price += tier_total
            remaining -= tier_quantity
            lines.append(
                TierLine(
                    tier_id=tier.id,
                    tier_name=tier.name or UNNAMED_TIER_NAME,
                    tier_quantity=tier_quantity,
                    tier_unit_price=tier.unit_price,
                    tier_total=tier_total,
                )
            )

    if remaining > 0:
        fallback_total = remaining * item.default_price
        total_price += fallback_total
        lines.append(
            TierLine(
                tier_id=FALLBACK_TIER_ID,
                tier_name=FALLBACK_TIER_NAME,
                tier_quantity=remaining,
                tier_unit_price=item.default_price,
                tier_total=fallback_total,
            )
        )

    return TierCalculationResult(total_price=total_price, tier_breakdown=tuple(lines))


def get_effective_unit_price(item: PricingItem, quantity: float) -> float:
    """Unit price of the highest tier whose range contains `quantity`, else the default price."""

    if not item.has_tiers:
        return item.default_price

    applicable: PricingTier | None = None
    for tier in _sorted_tiers(item):
        if tier.contains(quantity):
            applicable = tier
    return applicable.unit_price if applicable is not None else item.default_price


def get_average_unit_price(item: PricingItem, quantity: float) -> float:
    if not item.has_tiers or quantity <= 0:
        return item.default_price
    return calculate_tiered_price(item, quantity).total_price / quantity


def format_tier_range(tier: PricingTier) -> str:
    if tier.max_quantity is None:
        return f"{_grouped(tier.min_quantity)}+"
    return f"{_grouped(tier.min_quantity)} - {_grouped(tier.max_quantity)}"


def get_best_tier_for_quantity(item: PricingItem, quantity: float) -> PricingTier | None:
    if not item.has_tiers:
        return None
    applicable = [tier for tier in item.tiers if tier.contains(quantity)]
    if not applicable:
        return None
    return min(applicable, key=lambda tier: tier.unit_price)


def get_config_based_quantity(item: PricingItem, config_values: Mapping[str, Any]) -> float:
    """Sum the item's source fields (booleans count as 1/0) times its multiplier."""

    if not item.quantity_source_fields:
        return 1.0

    total = 0.0
    for field_id in item.quantity_source_fields:
        value = config_values.get(field_id)
        if isinstance(value, bool):
            total += 1 if value else 0
        elif _is_number(value):
            total += float(value)

    multiplier = item.quantity_multiplier or 1
    return max(0.0, total * multiplier)


def get_quantity_source_description(
    item: PricingItem, labels: Mapping[str, str] | None = None
) -> str | None:
    if not item.quantity_source_fields:
        return None

    resolved_labels = {**QUANTITY_SOURCE_LABELS, **dict(labels or {})}
    combined = " + ".join(_field_label(field_id, resolved_labels) for field_id in item.quantity_source_fields)
    multiplier = item.quantity_multiplier or 1
    if multiplier == 1:
        return f"Automatically calculated from: {combined}"
    return f"Automatically calculated from: ({combined}) × {_grouped(multiplier)}"


def get_tier_config_context(
    tier: PricingTier,
    config_values: Mapping[str, Any],
    labels: Mapping[str, str] | None = None,
) -> str | None:
    if not tier.config_reference:
        return None

    resolved_labels = {**CONFIG_CONTEXT_LABELS, **dict(labels or {})}
    label = _field_label(tier.config_reference, resolved_labels)
    value = config_values.get(tier.config_reference)
    if isinstance(value, bool):
        return f"Based on {label}: {'Enabled' if value else 'Disabled'}"
    if _is_number(value):
        return f"Based on {label}: {_grouped(float(value))}"
    return f"Based on {label}"
