# This file defines shared schema pieces reused by multiple API endpoints.
# It exists so envelope metadata, pagination, and error payloads stay consistent.
# Request models here accept camelCase keys from browser clients as well as snake_case.
# These classes are also used by tests to validate response shape stability.

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PaginationMetadata(BaseModel):
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_count: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    sort: str


class EnvelopeFields(BaseModel):
    api_version: str
    schema_version: str
    request_id: str
    generated_at: datetime
    warnings: list[str] | None = None


class ErrorResponse(BaseModel):
    error_code: str
    message: str
    details: Any | None = None
    request_id: str
    timestamp: datetime


class RequestModel(BaseModel):
    """Base for request bodies: camelCase or snake_case keys, unknown keys ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PricingTierIn(RequestModel):
    id: str
    min_quantity: float = Field(ge=0)
    max_quantity: float | None = Field(default=None, ge=0)
    unit_price: float = Field(ge=0)
    name: str | None = None
    description: str | None = None
    config_reference: str | None = None


class PricingItemIn(RequestModel):
    id: str
    name: str
    description: str | None = None
    category: str
    unit: str
    default_price: float = Field(ge=0)
    pricing_type: Literal["fixed", "tiered"] = "fixed"
    tiers: list[PricingTierIn] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_archived: bool = False
    auto_add_services: list[str] = Field(default_factory=list)
    quantity_source_fields: list[str] = Field(default_factory=list)
    quantity_multiplier: float | None = Field(default=None, gt=0)


class SelectedItemIn(RequestModel):
    id: str | None = None
    item: PricingItemIn
    quantity: float = Field(ge=0)
    unit_price: float | None = Field(default=None, ge=0)
    discount: float = Field(default=0, ge=0)
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_application: Literal["total", "unit"] = "total"
    is_free: bool = False


class GlobalDiscountIn(RequestModel):
    value: float = Field(default=0, ge=0)
    discount_type: Literal["percentage", "fixed"] = "percentage"
    application: Literal["none", "both", "monthly", "onetime"] = "none"


class CategoryIn(RequestModel):
    id: str
    name: str
    description: str | None = None
    order: int = 0
    color: str | None = None
    is_active: bool = True


class ClientConfigIn(RequestModel):
    client_name: str = ""
    project_name: str = ""
    prepared_by: str = ""
    config_values: dict[str, Any] = Field(default_factory=dict)


class ConfigurationFieldIn(RequestModel):
    id: str
    name: str
    label: str
    type: str = "number"
    default_value: Any | None = None
