"""
Unit tests for API configuration loading and table-name allowlisting.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.api.api_config import DEFAULT_TABLE_NAMES, ApiConfig, load_api_config

BASE_ENV = {"DATABASE_URL": "postgresql+psycopg2://u:p@localhost:5432/db"}


def test_defaults_apply_when_only_database_url_is_set() -> None:
    config = load_api_config(load_env=False, environ=dict(BASE_ENV))

    assert config.api_version_path == "/api/v1"
    assert config.guest_hourly_limit == 5
    assert config.guest_daily_limit == 20
    assert config.enable_request_logging is False
    assert DEFAULT_TABLE_NAMES <= config.allowed_table_names


def test_environment_values_are_parsed() -> None:
    config = load_api_config(
        load_env=False,
        environ={
            **BASE_ENV,
            "API_PORT": "9001",
            "API_ENABLE_REQUEST_LOGGING": "yes",
            "API_ALLOWED_ORIGINS": "http://a.test, http://b.test,",
            "API_SERVICES_TABLE_NAME": "pricing_items",
            "API_ALLOWED_TABLE_NAMES": "legacy_quotes",
            "API_VERSION_PATH": "/api/v2/",
        },
    )

    assert config.port == 9001
    assert config.enable_request_logging is True
    assert config.allowed_origins == ["http://a.test", "http://b.test"]
    assert config.api_version_path == "/api/v2"
    assert config.validate_table_name("pricing_items") == "pricing_items"
    assert "legacy_quotes" in config.allowed_table_names


def test_missing_database_url_fails_startup() -> None:
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        load_api_config(load_env=False, environ={})


def test_bad_boolean_names_the_variable() -> None:
    with pytest.raises(ValueError, match="API_ENABLE_REQUEST_LOGGING"):
        load_api_config(load_env=False, environ={**BASE_ENV, "API_ENABLE_REQUEST_LOGGING": "maybe"})


def test_unsafe_table_names_are_rejected() -> None:
    with pytest.raises(ValidationError):
        ApiConfig(database_url="sqlite://", services_table_name="items; DROP TABLE x")

    config = ApiConfig(database_url="sqlite://", allowed_table_names={"simulator_services"})
    with pytest.raises(ValueError, match="allowlist"):
        config.validate_table_name("simulator_tags")


def test_code_prefix_must_be_short_uppercase() -> None:
    with pytest.raises(ValidationError):
        ApiConfig(database_url="sqlite://", submission_code_prefix="iss")
