# This file defines the liveness, readiness, and version endpoints outside the versioned prefix.
# Readiness needs a reachable database plus the catalog, scenario, and guest tables.
# The request log table is optional and never blocks readiness.

from __future__ import annotations

import subprocess
from functools import lru_cache
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient
from src.api.dependencies import get_config, get_database_client
from src.api.response_envelope import build_version_fields, utc_now
from src.api.schemas.health_schemas import HealthResponse, ReadinessResponse, VersionResponse

router = APIRouter(tags=["health"])
ConfigDep = Annotated[ApiConfig, Depends(get_config)]
DBDep = Annotated[DatabaseClient, Depends(get_database_client)]


@lru_cache(maxsize=1)
def git_commit() -> str | None:
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            check=True,
            capture_output=True,
            text=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return completed.stdout.strip() or None


def _operational_fields(request: Request, config: ApiConfig) -> dict[str, Any]:
    return {
        **build_version_fields(
            api_version_path=config.api_version_path,
            schema_version=config.schema_version,
        ),
        "request_id": request.state.request_id,
        "timestamp": utc_now(),
    }


def required_tables(config: ApiConfig) -> dict[str, str]:
    """Readiness source name -> table that must exist."""

    return {
        "catalog_source_ready": config.services_table_name,
        "scenario_source_ready": config.scenarios_table_name,
        "guest_source_ready": config.guest_submissions_table_name,
    }


@router.get("/health", response_model=HealthResponse)
def health(request: Request, config: ConfigDep) -> dict[str, object]:
    return {
        **_operational_fields(request, config),
        "status": "ok",
        "environment": config.environment,
        "service_name": config.api_name,
    }


@router.get("/ready", response_model=ReadinessResponse)
def ready(request: Request, config: ConfigDep, db: DBDep) -> dict[str, object]:
    db_connected = db.can_connect()
    sources = required_tables(config)
    tables = {
        table_name: db_connected and db.table_exists(table_name)
        for table_name in {*sources.values(), config.categories_table_name, config.tags_table_name}
    }
    source_flags = {flag: tables[table_name] for flag, table_name in sources.items()}

    return {
        **_operational_fields(request, config),
        **source_flags,
        "ready": db_connected and all(source_flags.values()),
        "db_connected": db_connected,
        "database": "reachable" if db_connected else "unreachable",
        "tables": dict(sorted(tables.items())),
    }


@router.get("/version", response_model=VersionResponse)
def version(request: Request, config: ConfigDep) -> dict[str, object]:
    return {
        **_operational_fields(request, config),
        "api_version_path": config.api_version_path,
        "app_version": config.app_version,
        "git_commit": git_commit(),
        "project": config.api_name,
        "version": config.app_version,
    }
