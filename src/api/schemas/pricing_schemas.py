# This file defines request and response schemas for the pricing calculation endpoints.
# It exists so scenario summaries and tier breakdowns have explicit, backward-compatible contracts.
# Response rows mirror the engine result types field for field.
# Keeping these models explicit helps catch accidental payload drift during development.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.api.schemas.common import (
    CategoryIn,
    ClientConfigIn,
    EnvelopeFields,
    GlobalDiscountIn,
    PricingItemIn,
    RequestModel,
    SelectedItemIn,
)


class CalculateRequestV1(RequestModel):
    selected_items: list[SelectedItemIn] = Field(default_factory=list)
    global_discount: GlobalDiscountIn = Field(default_factory=GlobalDiscountIn)
    categories: list[CategoryIn] = Field(default_factory=list)


class TieredPriceRequestV1(RequestModel):
    item: PricingItemIn
    quantity: float = Field(ge=0)


class ServiceMappingIn(RequestModel):
    service_id: str
    config_field: str
    auto_add: bool = False
    sync_quantity: bool = False
    trigger_condition: str = "boolean"
    quantity_multiplier: float | None = None


class QuantityRuleIn(RequestModel):
    field: str
    multiplier: float | None = None


class AutoAddConfigIn(RequestModel):
    auto_add_rules: dict[str, list[str]] = Field(default_factory=dict)
    quantity_rules: dict[str, QuantityRuleIn] = Field(default_factory=dict)


class AutoAddRequestV1(RequestModel):
    selected_items: list[SelectedItemIn] = Field(default_factory=list)
    client_config: ClientConfigIn = Field(default_factory=ClientConfigIn)
    services: list[PricingItemIn] = Field(default_factory=list)
    auto_add_config: AutoAddConfigIn = Field(default_factory=AutoAddConfigIn)
    service_mappings: dict[str, ServiceMappingIn] = Field(default_factory=dict)
    remove_untriggered: bool = False


class TierLineV1(BaseModel):
    tier_id: str
    tier_name: str
    tier_quantity: float
    tier_unit_price: float
    tier_total: float


class LineBreakdownV1(BaseModel):
    selected_id: str
    item_id: str
    item_name: str
    category: str
    unit: str
    quantity: float
    unit_price: float
    subtotal: float
    discount_amount: float
    total: float
    is_free: bool
    is_one_time: bool
    tier_lines: list[TierLineV1]


class SavingsV1(BaseModel):
    original_price: float
    total_savings: float
    free_savings: float
    discount_savings: float
    savings_rate: float
    row_discount_total: float
    global_discount_amount: float


class GlobalDiscountV1(BaseModel):
    value: float
    discount_type: str
    application: str


class CategoryTotalV1(BaseModel):
    category_id: str
    category_name: str
    total: float
    item_count: int
    free_count: int


class ScenarioSummaryV1(BaseModel):
    one_time_subtotal: float
    monthly_subtotal: float
    one_time_total: float
    monthly_total: float
    yearly_total: float
    total_project_cost: float
    item_count: int
    savings: SavingsV1
    global_discount: GlobalDiscountV1
    category_totals: list[CategoryTotalV1]
    lines: list[LineBreakdownV1]


class ScenarioSummaryResponseV1(EnvelopeFields):
    data: ScenarioSummaryV1


class TierV1(BaseModel):
    id: str
    min_quantity: float
    max_quantity: float | None = None
    unit_price: float
    name: str | None = None
    description: str | None = None
    config_reference: str | None = None


class TieredPriceV1(BaseModel):
    item_id: str
    quantity: float
    total_price: float
    tier_breakdown: list[TierLineV1]
    effective_unit_price: float
    average_unit_price: float
    best_tier: TierV1 | None = None
    tier_ranges: dict[str, str]


class TieredPriceResponseV1(EnvelopeFields):
    data: TieredPriceV1


class AutoAddResultV1(BaseModel):
    selected_items: list[dict[str, Any]]
    added_item_ids: list[str]
    removed_item_ids: list[str]


class AutoAddResponseV1(EnvelopeFields):
    data: AutoAddResultV1
