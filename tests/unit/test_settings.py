"""
Unit tests for environment settings and logging level resolution.
"""

import logging

import pytest

from src.common import settings as settings_module
from src.common.logging import resolve_level


def test_settings_load_from_test_environment() -> None:
    settings_module.get_settings.cache_clear()
    settings = settings_module.get_settings()
    assert settings.PROJECT_NAME == "test-project"
    assert settings.DATABASE_URL.startswith("postgresql")


def test_missing_required_variables_are_listed(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROJECT_NAME", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(RuntimeError, match="DATABASE_URL, PROJECT_NAME"):
        settings_module.load_settings(load_env=False)


def test_api_port_is_optional_but_must_be_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("API_PORT", raising=False)
    assert settings_module.load_settings(load_env=False).API_PORT == 8000

    monkeypatch.setenv("API_PORT", "eighty")
    with pytest.raises(RuntimeError, match="Invalid environment configuration"):
        settings_module.load_settings(load_env=False)


def test_engine_config_path_has_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PRICING_ENGINE_CONFIG_PATH", raising=False)
    settings = settings_module.load_settings(load_env=False)
    assert settings.PRICING_ENGINE_CONFIG_PATH == "configs/pricing_engine.yaml"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("debug", logging.DEBUG), (" Warning ", logging.WARNING), ("chatty", logging.INFO), (None, logging.INFO)],
)
def test_resolve_level(name: str | None, expected: int) -> None:
    assert resolve_level(name) == expected
