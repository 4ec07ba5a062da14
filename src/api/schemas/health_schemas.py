# This file defines response schemas for the unversioned operational endpoints.
# Readiness lists every simulator table it checked so a partial schema is easy to spot.

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class OperationalResponse(BaseModel):
    api_version: str
    schema_version: str
    request_id: str
    timestamp: datetime


class HealthResponse(OperationalResponse):
    status: str
    environment: str
    service_name: str


class ReadinessResponse(OperationalResponse):
    ready: bool
    db_connected: bool
    database: str
    catalog_source_ready: bool
    scenario_source_ready: bool
    guest_source_ready: bool
    tables: dict[str, bool] = Field(default_factory=dict)


class VersionResponse(OperationalResponse):
    api_version_path: str
    app_version: str
    git_commit: str | None = None
    project: str
    version: str
