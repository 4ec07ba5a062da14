# This file defines schemas for catalog endpoints: services, categories, and tags.
# It exists so catalog rows and write payloads are strongly typed for clients and tests.
# Update payloads make every field optional so clients can send partial changes.

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from src.api.schemas.common import EnvelopeFields, PaginationMetadata, PricingTierIn, RequestModel
from src.api.schemas.pricing_schemas import TierV1


class ServiceRowV1(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str
    unit: str
    default_price: float
    pricing_type: str
    tiers: list[TierV1]
    tags: list[str]
    is_active: bool
    is_archived: bool
    auto_add_services: list[str]
    quantity_source_fields: list[str]
    quantity_multiplier: float | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ServiceListResponseV1(EnvelopeFields):
    data: list[ServiceRowV1]
    pagination: PaginationMetadata


class ServiceResponseV1(EnvelopeFields):
    data: ServiceRowV1


class ServiceCreateV1(RequestModel):
    id: str | None = Field(default=None, pattern=r"^[A-Za-z0-9_.:-]{1,100}$")
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    default_price: float = Field(ge=0)
    pricing_type: Literal["fixed", "tiered"] = "fixed"
    tiers: list[PricingTierIn] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True
    is_archived: bool = False
    auto_add_services: list[str] = Field(default_factory=list)
    quantity_source_fields: list[str] = Field(default_factory=list)
    quantity_multiplier: float | None = Field(default=None, gt=0)


class ServiceUpdateV1(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    unit: str | None = None
    default_price: float | None = Field(default=None, ge=0)
    pricing_type: Literal["fixed", "tiered"] | None = None
    tiers: list[PricingTierIn] | None = None
    tags: list[str] | None = None
    is_active: bool | None = None
    is_archived: bool | None = None
    auto_add_services: list[str] | None = None
    quantity_source_fields: list[str] | None = None
    quantity_multiplier: float | None = Field(default=None, gt=0)


class CategoryRowV1(BaseModel):
    id: str
    name: str
    description: str | None = None
    order: int
    color: str | None = None
    is_active: bool


class CategoryListResponseV1(EnvelopeFields):
    data: list[CategoryRowV1]


class CategoryResponseV1(EnvelopeFields):
    data: CategoryRowV1


class CategoryCreateV1(RequestModel):
    id: str = Field(pattern=r"^[A-Za-z0-9_.:-]{1,100}$")
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    order: int = 0
    color: str | None = None
    is_active: bool = True


class CategoryUpdateV1(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    order: int | None = None
    color: str | None = None
    is_active: bool | None = None


class TagRowV1(BaseModel):
    id: str
    name: str
    color: str | None = None
    description: str | None = None


class TagListResponseV1(EnvelopeFields):
    data: list[TagRowV1]


class TagResponseV1(EnvelopeFields):
    data: TagRowV1


class TagCreateV1(RequestModel):
    id: str | None = Field(default=None, pattern=r"^[A-Za-z0-9_.:-]{1,100}$")
    name: str = Field(min_length=1, max_length=100)
    color: str | None = None
    description: str | None = None


class TagUpdateV1(RequestModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = None
    description: str | None = None


class DeleteResultV1(BaseModel):
    id: str
    deleted: bool


class DeleteResponseV1(EnvelopeFields):
    data: DeleteResultV1
