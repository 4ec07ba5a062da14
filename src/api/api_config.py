# This file defines the API layer's runtime configuration and its environment loader.
# Table names are interpolated into SQL, so each one must be a plain identifier and appear in the allowlist.
# Every knob has a local-development default except DATABASE_URL.

from __future__ import annotations

import os
import re
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_CODE_PREFIX_RE = re.compile(r"^[A-Z0-9]{2,8}$")

TABLE_NAME_FIELDS = (
    "services_table_name",
    "categories_table_name",
    "tags_table_name",
    "scenarios_table_name",
    "guest_submissions_table_name",
    "request_log_table_name",
)
DEFAULT_TABLE_NAMES = frozenset(
    {
        "simulator_services",
        "simulator_categories",
        "simulator_tags",
        "simulator_submissions",
        "guest_scenarios",
        "api_request_log",
    }
)


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    api_name: str = "Pricing Simulator API"
    api_version_path: str = "/api/v1"
    schema_version: str = "1.0.0"
    app_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "local"
    database_url: str
    default_page_size: int = 50
    max_page_size: int = 200
    default_sort_order: str = "name:asc"
    scenario_sort_order: str = "created_at:desc"
    request_timeout_seconds: int = 30
    enable_request_logging: bool = False
    allowed_origins: list[str] = Field(default_factory=list)
    services_table_name: str = "simulator_services"
    categories_table_name: str = "simulator_categories"
    tags_table_name: str = "simulator_tags"
    scenarios_table_name: str = "simulator_submissions"
    guest_submissions_table_name: str = "guest_scenarios"
    request_log_table_name: str = "api_request_log"
    guest_hourly_limit: int = 5
    guest_daily_limit: int = 20
    submission_code_prefix: str = "ISS"
    engine_config_path: str = "configs/pricing_engine.yaml"
    allowed_table_names: set[str] = Field(default_factory=set)

    @field_validator("api_version_path")
    @classmethod
    def validate_api_version_path(cls, value: str) -> str:
        parts = [part for part in value.split("/") if part]
        if not value.startswith("/") or len(parts) < 2 or not parts[-1].startswith("v"):
            raise ValueError("api_version_path must look like '/api/v1'.")
        return value.rstrip("/")

    @field_validator(*TABLE_NAME_FIELDS)
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        if not _IDENTIFIER_RE.match(value):
            raise ValueError(f"Unsafe SQL identifier: {value!r}")
        return value

    @field_validator(
        "default_page_size",
        "max_page_size",
        "request_timeout_seconds",
        "guest_hourly_limit",
        "guest_daily_limit",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @field_validator("submission_code_prefix")
    @classmethod
    def validate_code_prefix(cls, value: str) -> str:
        if not _CODE_PREFIX_RE.match(value):
            raise ValueError("submission_code_prefix must be 2-8 uppercase letters or digits.")
        return value

    def validate_table_name(self, table_name: str) -> str:
        """Return `table_name` unchanged if it is safe to interpolate, else raise ValueError."""

        if not _IDENTIFIER_RE.match(table_name):
            raise ValueError(f"Unsafe SQL identifier: {table_name!r}")
        if table_name not in self.allowed_table_names:
            raise ValueError(f"Table name is not in allowlist: {table_name!r}")
        return table_name


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "y", "on"}:
        return True
    if value in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"expected a boolean-like value, got {raw!r}")


def _parse_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


# config field -> (environment variable, parser); unset or blank variables keep the model default.
ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "api_name": ("API_NAME", str),
    "api_version_path": ("API_VERSION_PATH", str),
    "schema_version": ("API_SCHEMA_VERSION", str),
    "app_version": ("APP_VERSION", str),
    "host": ("API_HOST", str),
    "port": ("API_PORT", int),
    "environment": ("ENV", str),
    "database_url": ("DATABASE_URL", str),
    "default_page_size": ("API_DEFAULT_PAGE_SIZE", int),
    "max_page_size": ("API_MAX_PAGE_SIZE", int),
    "default_sort_order": ("API_DEFAULT_SORT_ORDER", str),
    "scenario_sort_order": ("API_SCENARIO_SORT_ORDER", str),
    "request_timeout_seconds": ("API_REQUEST_TIMEOUT_SECONDS", int),
    "enable_request_logging": ("API_ENABLE_REQUEST_LOGGING", _parse_bool),
    "allowed_origins": ("API_ALLOWED_ORIGINS", _parse_list),
    "services_table_name": ("API_SERVICES_TABLE_NAME", str),
    "categories_table_name": ("API_CATEGORIES_TABLE_NAME", str),
    "tags_table_name": ("API_TAGS_TABLE_NAME", str),
    "scenarios_table_name": ("API_SCENARIOS_TABLE_NAME", str),
    "guest_submissions_table_name": ("API_GUEST_SUBMISSIONS_TABLE_NAME", str),
    "request_log_table_name": ("API_REQUEST_LOG_TABLE_NAME", str),
    "guest_hourly_limit": ("API_GUEST_HOURLY_LIMIT", int),
    "guest_daily_limit": ("API_GUEST_DAILY_LIMIT", int),
    "submission_code_prefix": ("API_SUBMISSION_CODE_PREFIX", str),
    "engine_config_path": ("PRICING_ENGINE_CONFIG_PATH", str),
}


def values_from_env(environ: dict[str, str] | None = None) -> dict[str, Any]:
    source = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for field_name, (env_name, parse) in ENV_FIELDS.items():
        raw = source.get(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError as exc:
            raise ValueError(f"{env_name}: {exc}") from exc
    return values


def build_allowed_table_names(config: ApiConfig, extra: list[str]) -> set[str]:
    names = {*DEFAULT_TABLE_NAMES, *extra}
    names.update(getattr(config, field_name) for field_name in TABLE_NAME_FIELDS)
    unsafe = sorted(name for name in names if not _IDENTIFIER_RE.match(name))
    if unsafe:
        raise ValueError(f"Unsafe SQL identifier in allowlist: {unsafe[0]!r}")
    return names


def load_api_config(*, load_env: bool = True, environ: dict[str, str] | None = None) -> ApiConfig:
    """Build the config from the environment; configured table names join the allowlist automatically."""

    if load_env:
        load_dotenv()

    values = values_from_env(environ)
    if not values.get("database_url"):
        raise RuntimeError("DATABASE_URL is required for API startup.")

    config = ApiConfig.model_validate(values)
    source = os.environ if environ is None else environ
    extra_tables = _parse_list(source.get("API_ALLOWED_TABLE_NAMES", ""))
    return config.model_copy(update={"allowed_table_names": build_allowed_table_names(config, extra_tables)})


@lru_cache(maxsize=1)
def get_api_config() -> ApiConfig:
    return load_api_config()
