# This module computes row totals and scenario summaries for a set of selected items.
# It exists so every surface (API, saved scenarios, exports) reports identical one-time, monthly and yearly figures.
# Row discounts are applied first, then rows are bucketed and the global discount is applied per bucket.
# Savings compare the undiscounted subtotals against the final one-time plus monthly totals.

from __future__ import annotations

from collections.abc import Iterable, Sequence

from src.pricing_engine.engine_config import EngineConfig, get_engine_config
from src.pricing_engine.models import (
    Category,
    CategoryTotal,
    GlobalDiscount,
    LineBreakdown,
    SavingsBreakdown,
    ScenarioSummary,
    SelectedItem,
    TierLine,
)
from src.pricing_engine.tiered_pricing import calculate_tiered_price
from src.pricing_engine.units import is_one_time


def _discounted_unit_price(unit_price: float, *, discount: float, discount_type: str) -> float:
    if discount_type == "percentage":
        return max(0.0, unit_price * (1 - discount / 100))
    return max(0.0, unit_price - discount)


def row_tier_lines(selected: SelectedItem) -> tuple[TierLine, ...]:
    if not selected.item.has_tiers:
        return ()
    return calculate_tiered_price(selected.item, selected.quantity).tier_breakdown


def row_subtotal(selected: SelectedItem) -> float:
    """Undiscounted price of a row; free rows still carry their subtotal."""

    if selected.item.has_tiers:
        return calculate_tiered_price(selected.item, selected.quantity).total_price
    return selected.quantity * selected.unit_price


def row_total(selected: SelectedItem) -> float:
    """Price of a row after its own discount; free rows cost nothing."""

    if selected.is_free:
        return 0.0

    if selected.discount_application == "unit":
        if selected.item.has_tiers:
            return sum(
                _discounted_unit_price(
                    line.tier_unit_price,
                    discount=selected.discount,
                    discount_type=selected.discount_type,
                )
                * line.tier_quantity
                for line in row_tier_lines(selected)
            )
        effective_unit = _discounted_unit_price(
            selected.unit_price,
            discount=selected.discount,
            discount_type=selected.discount_type,
        )
        return effective_unit * selected.quantity

    subtotal = row_subtotal(selected)
    if selected.discount_type == "percentage":
        discount_amount = subtotal * (selected.discount / 100)
    else:
        discount_amount = selected.discount * selected.quantity
    return max(0.0, subtotal - discount_amount)


def apply_global_discount(amount: float, discount: GlobalDiscount, *, is_one_time: bool) -> float:
    if not discount.applies_to(is_one_time=is_one_time):
        return amount
    if discount.discount_type == "percentage":
        return max(0.0, amount * (1 - discount.value / 100))
    return max(0.0, amount - discount.value)


def build_line_breakdown(selected: SelectedItem, config: EngineConfig | None = None) -> LineBreakdown:
    resolved = config or get_engine_config()
    subtotal = row_subtotal(selected)
    total = row_total(selected)
    return LineBreakdown(
        selected_id=selected.id,
        item_id=selected.item.id,
        item_name=selected.item.name,
        category=selected.item.category,
        unit=selected.item.unit,
        quantity=selected.quantity,
        unit_price=selected.unit_price,
        subtotal=subtotal,
        discount_amount=0.0 if selected.is_free else subtotal - total,
        total=total,
        is_free=selected.is_free,
        is_one_time=is_one_time(selected, resolved),
        tier_lines=row_tier_lines(selected),
    )


def _category_totals(
    lines: Sequence[LineBreakdown], categories: Iterable[Category] | None
) -> tuple[CategoryTotal, ...]:
    known = {category.id: category for category in categories or []}
    grouped: dict[str, list[LineBreakdown]] = {}
    for line in lines:
        grouped.setdefault(line.category, []).append(line)

    def sort_key(category_id: str) -> tuple[int, int, str]:
        category = known.get(category_id)
        if category is None:
            return (1, 0, category_id)
        return (0, category.order, category_id)

    totals: list[CategoryTotal] = []
    for category_id in sorted(grouped, key=sort_key):
        category_lines = grouped[category_id]
        category = known.get(category_id)
        totals.append(
            CategoryTotal(
                category_id=category_id,
                category_name=category.name if category is not None else category_id,
                total=sum(line.total for line in category_lines),
                item_count=len(category_lines),
                free_count=sum(1 for line in category_lines if line.is_free),
            )
        )
    return tuple(totals)


def calculate_scenario_summary(
    selected_items: Sequence[SelectedItem],
    global_discount: GlobalDiscount | None = None,
    categories: Iterable[Category] | None = None,
    config: EngineConfig | None = None,
) -> ScenarioSummary:
    resolved = config or get_engine_config()
    discount = global_discount or GlobalDiscount()
    lines = tuple(build_line_breakdown(selected, resolved) for selected in selected_items)

    one_time_subtotal = sum(line.total for line in lines if line.is_one_time)
    monthly_subtotal = sum(line.total for line in lines if not line.is_one_time)

    one_time_total = apply_global_discount(one_time_subtotal, discount, is_one_time=True)
    monthly_total = apply_global_discount(monthly_subtotal, discount, is_one_time=False)
    yearly_total = monthly_total * resolved.months_per_year

    original_price = sum(line.subtotal for line in lines)
    total_savings = original_price - (one_time_total + monthly_total)
    free_savings = sum(line.subtotal for line in lines if line.is_free)
    savings = SavingsBreakdown(
        original_price=original_price,
        total_savings=total_savings,
        free_savings=free_savings,
        discount_savings=total_savings - free_savings,
        savings_rate=(total_savings / original_price * 100) if original_price > 0 else 0.0,
        row_discount_total=sum(line.discount_amount for line in lines if not line.is_free),
        global_discount_amount=(one_time_subtotal - one_time_total) + (monthly_subtotal - monthly_total),
    )

    return ScenarioSummary(
        one_time_subtotal=one_time_subtotal,
        monthly_subtotal=monthly_subtotal,
        one_time_total=one_time_total,
        monthly_total=monthly_total,
        yearly_total=yearly_total,
        total_project_cost=one_time_total + yearly_total,
        item_count=len(lines),
        savings=savings,
        global_discount=discount,
        category_totals=_category_totals(lines, categories),
        lines=lines,
    )


def calculate_pricing(
    selected_items: Sequence[SelectedItem], config: EngineConfig | None = None
) -> ScenarioSummary:
    """Scenario summary without any global discount."""

    return calculate_scenario_summary(selected_items, config=config)
