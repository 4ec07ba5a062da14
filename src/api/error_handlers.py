# This file defines the API error type and the handlers that render every failure in one JSON shape.
# It exists so clients can branch on a stable error_code whichever layer raised the problem.
# Rate-limit rejections also carry a Retry-After header; unexpected failures are logged but never echoed.

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

LOGGER = logging.getLogger("api.errors")


class APIError(Exception):
    """Raised by services and routers; rendered as `{error_code, message, details}`."""

    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        details: Any | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)


def not_found(resource: str, resource_id: str) -> APIError:
    return APIError(
        status_code=404,
        error_code=f"{resource.upper()}_NOT_FOUND",
        message=f"Unknown {resource} id: {resource_id}",
    )


def invalid_query_param(exc: ValueError) -> APIError:
    return APIError(status_code=400, error_code="INVALID_QUERY_PARAM", message=str(exc))


def _error_body(
    *, request: Request, error_code: str, message: str, details: Any | None = None
) -> dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "details": details,
        "request_id": str(getattr(request.state, "request_id", "unknown")),
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }


def _retry_after_headers(exc: APIError) -> dict[str, str] | None:
    if exc.status_code != 429 or not isinstance(exc.details, dict):
        return None
    retry_after = exc.details.get("retry_after_seconds")
    return {"Retry-After": str(retry_after)} if retry_after else None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request=request,
                error_code=exc.error_code,
                message=exc.message,
                details=exc.details,
            ),
            headers=_retry_after_headers(exc),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=_error_body(
                request=request,
                error_code="VALIDATION_ERROR",
                message="Invalid request parameters.",
                details=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request=request,
                error_code="HTTP_ERROR",
                message=str(exc.detail),
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request=request,
                error_code="INTERNAL_SERVER_ERROR",
                message="The server encountered an unexpected error.",
            ),
        )
