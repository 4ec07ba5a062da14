# This file defines the public guest submission endpoint and the internal review listing.
# It exists so prospects can submit a priced scenario without an account.
# The client address used for rate limiting prefers the first x-forwarded-for hop.

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.api_config import ApiConfig
from src.api.dependencies import get_config, get_guest_service
from src.api.error_handlers import invalid_query_param, not_found
from src.api.pagination import normalize_pagination
from src.api.response_envelope import list_response, object_response
from src.api.schemas.guest_schemas import (
    GuestScenarioCreateV1,
    GuestSubmissionDetailResponseV1,
    GuestSubmissionListResponseV1,
    GuestSubmissionResponseV1,
)
from src.api.services.guest_service import GuestSubmissionService

router = APIRouter(tags=["guest"])
GuestServiceDep = Annotated[GuestSubmissionService, Depends(get_guest_service)]
ConfigDep = Annotated[ApiConfig, Depends(get_config)]

SUBMISSION_SORT = "created_at:desc"


def client_ip_from_request(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else None


@router.post("/guest-scenarios", response_model=GuestSubmissionResponseV1, status_code=201)
def submit_guest_scenario(
    body: GuestScenarioCreateV1,
    request: Request,
    service: GuestServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    result = service.submit(body, client_ip=client_ip_from_request(request))
    return object_response(request, config, result)


@router.get("/guest-submissions", response_model=GuestSubmissionListResponseV1)
def list_guest_submissions(
    request: Request,
    service: GuestServiceDep,
    config: ConfigDep,
    status: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1),
) -> dict[str, object]:
    """Newest submissions first; ordering is fixed for the review queue."""

    try:
        pagination = normalize_pagination(
            page=page,
            page_size=page_size,
            limit=limit,
            default_page_size=config.default_page_size,
            max_page_size=config.max_page_size,
        )
    except ValueError as exc:
        raise invalid_query_param(exc) from exc

    result = service.list_submissions(
        status=status,
        page=pagination.page,
        page_size=pagination.page_size,
    )
    return list_response(
        request,
        config,
        result=result,
        pagination=pagination.metadata(total_count=int(result["total_count"]), sort=SUBMISSION_SORT),
    )


@router.get("/guest-submissions/{submission_id}", response_model=GuestSubmissionDetailResponseV1)
def get_guest_submission(
    submission_id: str,
    request: Request,
    service: GuestServiceDep,
    config: ConfigDep,
) -> dict[str, object]:
    submission = service.get_submission(submission_id)
    if submission is None:
        raise not_found("submission", submission_id)
    return object_response(request, config, submission)
