# This file defines saved-scenario endpoints and their CSV and HTML exports.
# It exists so prepared quotes can be stored, reviewed, and downloaded from one API surface.
# Saving always recomputes totals server side; exports render from the stored selections.
# Invalid or unknown scenario ids both return 404.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from src.api.api_config import ApiConfig
from src.api.dependencies import get_config, get_scenario_service
from src.api.error_handlers import invalid_query_param, not_found
from src.api.pagination import normalize_pagination, parse_sort
from src.api.response_envelope import list_response, object_response
from src.api.schemas.catalog_schemas import DeleteResponseV1
from src.api.schemas.scenario_schemas import ScenarioCreateV1, ScenarioListResponseV1, ScenarioResponseV1
from src.api.services.scenario_service import SCENARIO_SORT_FIELD_MAP, ScenarioService
from src.quote_export.csv_export import csv_file_name, generate_csv_data
from src.quote_export.html_report import generate_html_report, html_file_name
from src.quote_export.quote import QuoteDocument

router = APIRouter(prefix="/scenarios", tags=["scenarios"])
ScenarioServiceDep = Annotated[ScenarioService, Depends(get_scenario_service)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]


def _require_quote(service: ScenarioService, scenario_id: str) -> QuoteDocument:
    quote = service.build_quote(scenario_id)
    if quote is None:
        raise not_found("scenario", scenario_id)
    return quote


@router.get("", response_model=ScenarioListResponseV1)
def list_scenarios(
    request: Request,
    service: ScenarioServiceDep,
    config: ConfigDep,
    search: str | None = Query(default=None, max_length=200),
    status: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    sort: str | None = Query(default=None),
) -> dict[str, object]:
    try:
        pagination = normalize_pagination(
            page=page,
            page_size=page_size,
            limit=limit,
            default_page_size=config.default_page_size,
            max_page_size=config.max_page_size,
        )
        sort_spec = parse_sort(
            requested_sort=sort,
            default_sort=config.scenario_sort_order,
            allowed_fields=set(SCENARIO_SORT_FIELD_MAP),
        )
    except ValueError as exc:
        raise invalid_query_param(exc) from exc

    result = service.list_scenarios(
        search=search,
        status=status,
        page=pagination.page,
        page_size=pagination.page_size,
        sort=sort_spec,
    )
    return list_response(
        request,
        config,
        result=result,
        pagination=pagination.metadata(total_count=int(result["total_count"]), sort=sort_spec.as_text),
    )


@router.post("", response_model=ScenarioResponseV1, status_code=201)
def save_scenario(
    body: ScenarioCreateV1,
    request: Request,
    service: ScenarioServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.save_scenario(body))


@router.get("/{scenario_id}", response_model=ScenarioResponseV1)
def get_scenario(
    scenario_id: str,
    request: Request,
    service: ScenarioServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    scenario = service.get_scenario(scenario_id)
    if scenario is None:
        raise not_found("scenario", scenario_id)
    return object_response(request, config, scenario)


@router.delete("/{scenario_id}", response_model=DeleteResponseV1)
def delete_scenario(
    scenario_id: str,
    request: Request,
    service: ScenarioServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    if not service.delete_scenario(scenario_id):
        raise not_found("scenario", scenario_id)
    return object_response(request, config, {"id": scenario_id, "deleted": True})


@router.get("/{scenario_id}/export.csv")
def export_scenario_csv(scenario_id: str, service: ScenarioServiceDep) -> Response:
    quote = _require_quote(service, scenario_id)
    return Response(
        content=generate_csv_data(quote),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_file_name(quote)}"'},
    )


@router.get("/{scenario_id}/export.html")
def export_scenario_html(
    scenario_id: str,
    service: ScenarioServiceDep,
    config: ConfigDep,
) -> Response:
    quote = _require_quote(service, scenario_id)
    return Response(
        content=generate_html_report(quote, system_version=config.app_version),
        media_type="text/html; charset=utf-8",
        headers={"Content-Disposition": f'inline; filename="{html_file_name(quote)}"'},
    )
