# This file defines schemas for unauthenticated guest scenario submissions.
# It exists so the public submission payload and the internal review listing stay typed.
# Contact fields are optional at the schema level; the service reports every missing or invalid field at once.

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.api.schemas.common import (
    CategoryIn,
    ClientConfigIn,
    EnvelopeFields,
    GlobalDiscountIn,
    PaginationMetadata,
    RequestModel,
    SelectedItemIn,
)


class GuestScenarioCreateV1(RequestModel):
    email: str | None = None
    phone_number: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    scenario_name: str | None = None
    client_config: ClientConfigIn = Field(default_factory=ClientConfigIn)
    selected_items: list[SelectedItemIn] = Field(default_factory=list)
    global_discount: GlobalDiscountIn = Field(default_factory=GlobalDiscountIn)
    categories: list[CategoryIn] = Field(default_factory=list)


class GuestSubmissionResultV1(BaseModel):
    id: str
    submission_code: str
    scenario_name: str
    total_price: float
    status: str
    created_at: str | None = None


class GuestSubmissionResponseV1(EnvelopeFields):
    data: GuestSubmissionResultV1


class GuestSubmissionRowV1(GuestSubmissionResultV1):
    email: str
    phone_number: str
    first_name: str
    last_name: str
    company_name: str


class GuestSubmissionDetailV1(GuestSubmissionRowV1):
    scenario_data: dict[str, Any]
    client_ip: str | None = None


class GuestSubmissionListResponseV1(EnvelopeFields):
    data: list[GuestSubmissionRowV1]
    pagination: PaginationMetadata


class GuestSubmissionDetailResponseV1(EnvelopeFields):
    data: GuestSubmissionDetailV1
