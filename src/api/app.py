# This file builds the FastAPI application for the pricing simulator.
# Every response carries x-request-id and x-response-time-ms; Prometheus series are labelled by route template.
# Versioned routers mount under the configured prefix while health, readiness, version, and metrics stay at the root.

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import RequestResponseEndpoint
from starlette.routing import Match

from src.api.api_config import ApiConfig, get_api_config
from src.api.dependencies import get_database_client
from src.api.error_handlers import register_error_handlers
from src.api.routers.catalog import router as catalog_router
from src.api.routers.guest import router as guest_router
from src.api.routers.health import router as health_router
from src.api.routers.pricing import router as pricing_router
from src.api.routers.scenarios import router as scenarios_router
from src.common.logging import configure_logging

LOGGER = logging.getLogger("api")

HTTP_REQUESTS = Counter(
    "simulator_http_requests_total",
    "HTTP requests handled, by route template and status.",
    ["method", "route", "status_code"],
)
HTTP_LATENCY = Histogram(
    "simulator_http_request_duration_seconds",
    "HTTP request latency in seconds.",
    ["method", "route"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5),
)
HTTP_INFLIGHT = Gauge(
    "simulator_http_inflight_requests",
    "Requests currently being handled.",
    ["method"],
)

VERSIONED_ROUTERS = (pricing_router, catalog_router, scenarios_router, guest_router)
OPENAPI_TAGS = [
    {"name": "health", "description": "Liveness, readiness, and version metadata."},
    {"name": "pricing", "description": "Stateless scenario, tier, and auto-add calculations."},
    {"name": "catalog", "description": "Pricing services, categories, and tags."},
    {"name": "scenarios", "description": "Saved pricing scenarios and their exports."},
    {"name": "guest", "description": "Unauthenticated guest scenario submissions."},
]


def route_label(request: Request) -> str:
    """Route template such as `/api/v1/scenarios/{scenario_id}`; unmatched paths share one label."""

    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match is Match.FULL:
            return str(getattr(route, "path", request.url.path))
    return "unmatched"


def _write_request_log(config: ApiConfig, *, request: Request, status_code: int, duration_ms: float) -> None:
    try:
        get_database_client().log_request(
            table_name=config.request_log_table_name,
            request_id=request.state.request_id,
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            duration_ms=duration_ms,
        )
    except Exception:
        LOGGER.warning("Request log write failed for %s", request.state.request_id, exc_info=True)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        app.state.db_connected_at_startup = get_database_client().can_connect()
    except Exception:
        LOGGER.warning("Database check failed at startup", exc_info=True)
        app.state.db_connected_at_startup = False
    if not app.state.db_connected_at_startup:
        LOGGER.warning("Starting without a database; catalog and scenario routes will fail until it is reachable")
    yield


def create_app() -> FastAPI:
    configure_logging()
    config = get_api_config()

    app = FastAPI(
        title=config.api_name,
        description=(
            "Pricing simulator API: catalog maintenance, tiered and discounted scenario pricing, "
            "saved quotes with CSV and HTML exports, and guest submissions."
        ),
        version=config.app_version,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def request_context(request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        route = route_label(request)
        started = time.perf_counter()
        status_code = 500

        HTTP_INFLIGHT.labels(method=request.method).inc()
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed = time.perf_counter() - started
            HTTP_INFLIGHT.labels(method=request.method).dec()
            HTTP_REQUESTS.labels(method=request.method, route=route, status_code=str(status_code)).inc()
            HTTP_LATENCY.labels(method=request.method, route=route).observe(elapsed)

        duration_ms = elapsed * 1000.0
        response.headers["x-request-id"] = request.state.request_id
        response.headers["x-response-time-ms"] = f"{duration_ms:.2f}"
        if config.enable_request_logging:
            _write_request_log(config, request=request, status_code=status_code, duration_ms=duration_ms)
        return response

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    register_error_handlers(app)
    app.include_router(health_router)
    for router in VERSIONED_ROUTERS:
        app.include_router(router, prefix=config.api_version_path)
    return app


app = create_app()
