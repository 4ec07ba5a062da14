# This file defines request and response schemas for saved pricing scenarios.
# It exists so stored configurations, selections, and recomputed summaries have explicit contracts.
# List rows carry only headline totals; the detail payload adds the full summary and inputs.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.api.schemas.common import (
    CategoryIn,
    ClientConfigIn,
    ConfigurationFieldIn,
    EnvelopeFields,
    GlobalDiscountIn,
    PaginationMetadata,
    RequestModel,
    SelectedItemIn,
)
from src.api.schemas.pricing_schemas import GlobalDiscountV1, ScenarioSummaryV1


class ScenarioCreateV1(RequestModel):
    client_config: ClientConfigIn = Field(default_factory=ClientConfigIn)
    selected_items: list[SelectedItemIn] = Field(default_factory=list)
    global_discount: GlobalDiscountIn = Field(default_factory=GlobalDiscountIn)
    categories: list[CategoryIn] = Field(default_factory=list)
    configuration_fields: list[ConfigurationFieldIn] = Field(default_factory=list)
    status: str = Field(default="submitted", max_length=50)


class ScenarioRowV1(BaseModel):
    id: str
    client_name: str
    project_name: str
    prepared_by: str
    status: str
    one_time_total: float
    monthly_total: float
    yearly_total: float
    total_project_cost: float
    created_at: str | None = None
    updated_at: str | None = None


class ScenarioDetailV1(ScenarioRowV1):
    client_config: dict[str, Any]
    selected_items: list[dict[str, Any]]
    global_discount: GlobalDiscountV1
    categories: list[dict[str, Any]] = Field(default_factory=list)
    configuration_fields: list[dict[str, Any]] = Field(default_factory=list)
    summary: ScenarioSummaryV1


class ScenarioListResponseV1(EnvelopeFields):
    data: list[ScenarioRowV1]
    pagination: PaginationMetadata


class ScenarioResponseV1(EnvelopeFields):
    data: ScenarioDetailV1
