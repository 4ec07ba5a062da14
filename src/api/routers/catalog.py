# This file defines catalog endpoints for pricing services, categories, and tags.
# It exists so the simulator and admin screens read and maintain one shared catalog.
# Service listing supports category, tag, text, and archived filters with allowlisted sorting.
# Unknown ids return 404 with a resource-specific error code.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.api_config import ApiConfig
from src.api.dependencies import get_catalog_service, get_config
from src.api.error_handlers import invalid_query_param, not_found
from src.api.pagination import normalize_pagination, parse_sort
from src.api.response_envelope import list_response, object_response
from src.api.schemas.catalog_schemas import (
    CategoryCreateV1,
    CategoryListResponseV1,
    CategoryResponseV1,
    CategoryUpdateV1,
    DeleteResponseV1,
    ServiceCreateV1,
    ServiceListResponseV1,
    ServiceResponseV1,
    ServiceUpdateV1,
    TagCreateV1,
    TagListResponseV1,
    TagResponseV1,
    TagUpdateV1,
)
from src.api.services.catalog_service import SERVICE_SORT_FIELD_MAP, CatalogService

router = APIRouter(tags=["catalog"])
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]


@router.get("/services", response_model=ServiceListResponseV1)
def list_services(
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
    category_id: str | None = Query(default=None),
    tag: list[str] | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    show_archived: bool = Query(default=False),
    limit: int | None = Query(default=None, ge=1),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
    sort: str | None = Query(default=None),
) -> dict[str, object]:
    """List services; repeated `tag` parameters match services carrying any of them."""

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
            default_sort=config.default_sort_order,
            allowed_fields=set(SERVICE_SORT_FIELD_MAP),
        )
    except ValueError as exc:
        raise invalid_query_param(exc) from exc

    result = service.list_services(
        category_id=category_id,
        tags=tag,
        search=search,
        show_archived=show_archived,
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


@router.post("/services", response_model=ServiceResponseV1, status_code=201)
def create_service(
    body: ServiceCreateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.create_service(body))


@router.get("/services/{service_id}", response_model=ServiceResponseV1)
def get_service(
    service_id: str,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    row = service.get_service(service_id)
    if row is None:
        raise not_found("service", service_id)
    return object_response(request, config, row)


@router.put("/services/{service_id}", response_model=ServiceResponseV1)
def update_service(
    service_id: str,
    body: ServiceUpdateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.update_service(service_id, body))


@router.delete("/services/{service_id}", response_model=DeleteResponseV1)
def delete_service(
    service_id: str,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    if not service.delete_service(service_id):
        raise not_found("service", service_id)
    return object_response(request, config, {"id": service_id, "deleted": True})


@router.get("/categories", response_model=CategoryListResponseV1)
def list_categories(
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
    include_inactive: bool = Query(default=False),
) -> dict[str, object]:
    return object_response(request, config, service.list_categories(include_inactive=include_inactive))


@router.post("/categories", response_model=CategoryResponseV1, status_code=201)
def create_category(
    body: CategoryCreateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.create_category(body))


@router.put("/categories/{category_id}", response_model=CategoryResponseV1)
def update_category(
    category_id: str,
    body: CategoryUpdateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.update_category(category_id, body))


@router.delete("/categories/{category_id}", response_model=DeleteResponseV1)
def delete_category(
    category_id: str,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    """Delete a category; refused with 409 while any service still references it."""

    if not service.delete_category(category_id):
        raise not_found("category", category_id)
    return object_response(request, config, {"id": category_id, "deleted": True})


@router.get("/tags", response_model=TagListResponseV1)
def list_tags(
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.list_tags())


@router.post("/tags", response_model=TagResponseV1, status_code=201)
def create_tag(
    body: TagCreateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.create_tag(body))


@router.put("/tags/{tag_id}", response_model=TagResponseV1)
def update_tag(
    tag_id: str,
    body: TagUpdateV1,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    return object_response(request, config, service.update_tag(tag_id, body))


@router.delete("/tags/{tag_id}", response_model=DeleteResponseV1)
def delete_tag(
    tag_id: str,
    request: Request,
    service: CatalogServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    if not service.delete_tag(tag_id):
        raise not_found("tag", tag_id)
    return object_response(request, config, {"id": tag_id, "deleted": True})
