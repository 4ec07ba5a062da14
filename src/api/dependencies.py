# This file holds the FastAPI dependency factories; each one builds its object once per process.
# Tests swap any of them through `app.dependency_overrides`.
# The guest limiter must stay a singleton or the hourly and daily windows would reset per request.

from __future__ import annotations

from functools import lru_cache

from src.api.api_config import ApiConfig, get_api_config
from src.api.db_access import DatabaseClient
from src.api.services.catalog_service import CatalogService
from src.api.services.guest_service import GuestSubmissionService
from src.api.services.pricing_service import PricingService
from src.api.services.scenario_service import ScenarioService
from src.api.submission_limiter import SubmissionRateLimiter
from src.pricing_engine.engine_config import EngineConfig, load_engine_config


def get_config() -> ApiConfig:
    return get_api_config()


@lru_cache(maxsize=1)
def get_database_client() -> DatabaseClient:
    return DatabaseClient(database_url=get_api_config().database_url)


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    return load_engine_config(config_path=get_api_config().engine_config_path)


@lru_cache(maxsize=1)
def get_submission_limiter() -> SubmissionRateLimiter:
    config = get_api_config()
    return SubmissionRateLimiter(hourly_limit=config.guest_hourly_limit, daily_limit=config.guest_daily_limit)


@lru_cache(maxsize=1)
def get_pricing_service() -> PricingService:
    return PricingService(engine_config=get_engine_config())


@lru_cache(maxsize=1)
def get_catalog_service() -> CatalogService:
    return CatalogService(config=get_api_config(), db=get_database_client())


@lru_cache(maxsize=1)
def get_scenario_service() -> ScenarioService:
    return ScenarioService(config=get_api_config(), db=get_database_client(), engine_config=get_engine_config())


@lru_cache(maxsize=1)
def get_guest_service() -> GuestSubmissionService:
    return GuestSubmissionService(
        config=get_api_config(),
        db=get_database_client(),
        engine_config=get_engine_config(),
        limiter=get_submission_limiter(),
    )
