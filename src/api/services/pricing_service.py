# This file implements the stateless pricing calculation service behind the /pricing routes.
# It exists so routers stay transport-focused while request-to-engine conversion lives in one layer.
# Engine validation errors are translated into structured API errors with a 400 status.
# Calculation counts are exported as Prometheus metrics per operation.

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from prometheus_client import Counter

from src.api.error_handlers import APIError
from src.api.sanitize import sanitize_object
from src.api.schemas.common import CategoryIn, ClientConfigIn, GlobalDiscountIn, PricingItemIn, SelectedItemIn
from src.api.schemas.pricing_schemas import AutoAddRequestV1, CalculateRequestV1, TieredPriceRequestV1
from src.pricing_engine.auto_add import apply_auto_add_logic, remove_auto_added_services
from src.pricing_engine.calculator import calculate_scenario_summary
from src.pricing_engine.engine_config import EngineConfig
from src.pricing_engine.models import (
    AutoAddConfig,
    Category,
    ClientConfig,
    GlobalDiscount,
    PricingItem,
    ScenarioSummary,
    SelectedItem,
    ServiceMapping,
)
from src.pricing_engine.tiered_pricing import (
    calculate_tiered_price,
    format_tier_range,
    get_average_unit_price,
    get_best_tier_for_quantity,
    get_effective_unit_price,
)

LOGGER = logging.getLogger("pricing")

PRICING_CALCULATIONS_TOTAL = Counter(
    "pricing_calculations_total",
    "Total number of pricing calculations served by the API.",
    ["operation"],
)


def _invalid_input(exc: ValueError) -> APIError:
    return APIError(
        status_code=400,
        error_code="INVALID_PRICING_INPUT",
        message=str(exc),
    )


def to_selected_items(items: Iterable[SelectedItemIn]) -> list[SelectedItem]:
    return [SelectedItem.from_dict(item.model_dump()) for item in items]


def to_pricing_item(item: PricingItemIn) -> PricingItem:
    return PricingItem.from_dict(item.model_dump())


def to_global_discount(discount: GlobalDiscountIn | None) -> GlobalDiscount:
    return GlobalDiscount.from_dict(discount.model_dump() if discount is not None else None)


def to_categories(categories: Iterable[CategoryIn]) -> list[Category]:
    return [Category.from_dict(category.model_dump()) for category in categories]


def to_stored_categories(categories: Iterable[CategoryIn]) -> list[Category]:
    return [Category.from_dict(sanitize_object(category.model_dump())) for category in categories]


def to_client_config(client_config: ClientConfigIn) -> ClientConfig:
    return ClientConfig.from_dict(client_config.model_dump())


class PricingService:
    """Stateless wrapper around the pricing engine for API routes."""

    def __init__(self, *, engine_config: EngineConfig) -> None:
        self.engine_config = engine_config

    def summarize(
        self,
        *,
        selected_items: Iterable[SelectedItemIn],
        global_discount: GlobalDiscountIn | None,
        categories: Iterable[CategoryIn],
    ) -> ScenarioSummary:
        try:
            return calculate_scenario_summary(
                to_selected_items(selected_items),
                to_global_discount(global_discount),
                to_categories(categories),
                self.engine_config,
            )
        except ValueError as exc:
            raise _invalid_input(exc) from exc

    def calculate(self, request: CalculateRequestV1) -> dict[str, Any]:
        summary = self.summarize(
            selected_items=request.selected_items,
            global_discount=request.global_discount,
            categories=request.categories,
        )
        PRICING_CALCULATIONS_TOTAL.labels(operation="calculate").inc()
        return summary.to_dict()

    def tiered_price(self, request: TieredPriceRequestV1) -> dict[str, Any]:
        try:
            item = to_pricing_item(request.item)
            result = calculate_tiered_price(item, request.quantity)
        except ValueError as exc:
            raise _invalid_input(exc) from exc

        best_tier = get_best_tier_for_quantity(item, request.quantity)
        PRICING_CALCULATIONS_TOTAL.labels(operation="tiered_price").inc()
        return {
            "item_id": item.id,
            "quantity": request.quantity,
            "total_price": result.total_price,
            "tier_breakdown": [line.to_dict() for line in result.tier_breakdown],
            "effective_unit_price": get_effective_unit_price(item, request.quantity),
            "average_unit_price": get_average_unit_price(item, request.quantity),
            "best_tier": best_tier.to_dict() if best_tier is not None else None,
            "tier_ranges": {tier.id: format_tier_range(tier) for tier in item.tiers},
        }

    def auto_add(self, request: AutoAddRequestV1) -> dict[str, Any]:
        try:
            selected = to_selected_items(request.selected_items)
            client_config = to_client_config(request.client_config)
            services = [to_pricing_item(service) for service in request.services]
            rules = AutoAddConfig.from_dict(request.auto_add_config.model_dump())
            mappings = {
                key: ServiceMapping.from_dict(mapping.model_dump())
                for key, mapping in request.service_mappings.items()
            }
        except ValueError as exc:
            raise _invalid_input(exc) from exc

        before_ids = {row.id for row in selected}
        if request.remove_untriggered:
            selected = remove_auto_added_services(selected, client_config, rules, mappings)
        kept_ids = {row.id for row in selected}
        updated = apply_auto_add_logic(selected, client_config, services, rules, mappings)

        added = [row.id for row in updated if row.id not in before_ids]
        removed = sorted(before_ids - kept_ids)
        if added or removed:
            LOGGER.info("Auto-add evaluation added=%s removed=%s", len(added), len(removed))
        PRICING_CALCULATIONS_TOTAL.labels(operation="auto_add").inc()
        return {
            "selected_items": [row.to_dict() for row in updated],
            "added_item_ids": added,
            "removed_item_ids": removed,
        }
