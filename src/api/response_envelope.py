# This file assembles the JSON envelope every versioned endpoint returns.
# It exists so clients always get the API version label, schema version, request id, and generation time.
# Routers call object_response or list_response; the lower-level builders stay usable without a Request.

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import Request

from src.api.api_config import ApiConfig
from src.api.schemas.common import PaginationMetadata


def api_version_label(api_version_path: str) -> str:
    """`/api/v1` -> `v1`."""

    parts = [part for part in api_version_path.strip("/").split("/") if part]
    if not parts:
        raise ValueError(f"Invalid api_version_path: {api_version_path!r}")
    return parts[-1]


def build_version_fields(*, api_version_path: str, schema_version: str) -> dict[str, str]:
    return {
        "api_version": api_version_label(api_version_path),
        "schema_version": schema_version,
    }


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


def build_object_envelope(
    *,
    api_version_path: str,
    schema_version: str,
    request_id: str,
    data: dict[str, Any] | list[dict[str, Any]] | None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        **build_version_fields(api_version_path=api_version_path, schema_version=schema_version),
        "request_id": request_id,
        "generated_at": utc_now(),
        "data": data,
        "warnings": warnings,
    }


def build_list_envelope(
    *,
    api_version_path: str,
    schema_version: str,
    request_id: str,
    data: list[dict[str, Any]],
    pagination: dict[str, Any],
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    envelope = build_object_envelope(
        api_version_path=api_version_path,
        schema_version=schema_version,
        request_id=request_id,
        data=data,
        warnings=warnings,
    )
    envelope["pagination"] = pagination
    return envelope


def object_response(
    request: Request,
    config: ApiConfig,
    data: dict[str, Any] | list[dict[str, Any]] | None,
) -> dict[str, Any]:
    return build_object_envelope(
        api_version_path=config.api_version_path,
        schema_version=config.schema_version,
        request_id=request.state.request_id,
        data=data,
    )


def list_response(
    request: Request,
    config: ApiConfig,
    *,
    result: dict[str, Any],
    pagination: PaginationMetadata,
) -> dict[str, Any]:
    """Wrap a service listing result (`rows`, `total_count`, `warnings`) with its page metadata."""

    return build_list_envelope(
        api_version_path=config.api_version_path,
        schema_version=config.schema_version,
        request_id=request.state.request_id,
        data=list(result["rows"]),
        pagination=pagination.model_dump(),
        warnings=result.get("warnings"),
    )
