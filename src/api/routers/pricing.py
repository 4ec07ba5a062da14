# This file defines stateless pricing calculation endpoints under the versioned API path.
# It exists so browser and backend clients share one server-side implementation of the pricing rules.
# Each endpoint takes the full calculation input in the body; nothing is read from the database.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.api.api_config import ApiConfig
from src.api.dependencies import get_config, get_pricing_service
from src.api.response_envelope import object_response
from src.api.schemas.pricing_schemas import (
    AutoAddRequestV1,
    AutoAddResponseV1,
    CalculateRequestV1,
    ScenarioSummaryResponseV1,
    TieredPriceRequestV1,
    TieredPriceResponseV1,
)
from src.api.services.pricing_service import PricingService

router = APIRouter(prefix="/pricing", tags=["pricing"])
PricingServiceDep = Annotated[PricingService, Depends(get_pricing_service)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]


@router.post("/calculate", response_model=ScenarioSummaryResponseV1)
def pricing_calculate(
    body: CalculateRequestV1,
    request: Request,
    service: PricingServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.calculate(body))


@router.post("/tiered-price", response_model=TieredPriceResponseV1)
def pricing_tiered_price(
    body: TieredPriceRequestV1,
    request: Request,
    service: PricingServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.tiered_price(body))


@router.post("/auto-add", response_model=AutoAddResponseV1)
def pricing_auto_add(
    body: AutoAddRequestV1,
    request: Request,
    service: PricingServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    """Add services triggered by the client configuration and optionally drop untriggered ones."""

    return object_response(request, config, service.auto_add(body))
