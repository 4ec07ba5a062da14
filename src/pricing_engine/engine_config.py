# This file defines the calculation policy used by the pricing engine.
# It exists so bucketing rules, currency display, and the recurring horizon are set in one place.
# The loader merges YAML defaults with PRICING_* environment overrides and validates the result.
# Every field has a default so pure calculations work without any config file on disk.

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = "configs/pricing_engine.yaml"
DEFAULT_ONE_TIME_UNITS: tuple[str, ...] = (
    "onetime",
    "one_time",
    "per_setup",
    "per_installation",
    "per_project",
)


def _load_yaml(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config at {path} must be a mapping, got: {type(loaded).__name__}")
    return dict(loaded)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def normalize_unit_token(unit: str | None) -> str:
    """Lowercase a unit and turn spaces/hyphens into underscores."""

    if not unit:
        return ""
    return "_".join(str(unit).strip().lower().replace("-", " ").split())


@dataclass(frozen=True)
class EngineConfig:
    currency: str = "USD"
    currency_symbol: str = "$"
    months_per_year: int = 12
    min_price_fraction_digits: int = 2
    max_price_fraction_digits: int = 6
    setup_category_ids: frozenset[str] = field(default_factory=lambda: frozenset({"setup"}))
    one_time_units: frozenset[str] = field(default_factory=lambda: frozenset(DEFAULT_ONE_TIME_UNITS))

    def __post_init__(self) -> None:
        if self.months_per_year <= 0:
            raise ValueError("months_per_year must be greater than 0.")
        if self.min_price_fraction_digits < 0:
            raise ValueError("min_price_fraction_digits must be >= 0.")
        if self.max_price_fraction_digits < self.min_price_fraction_digits:
            raise ValueError("max_price_fraction_digits must be >= min_price_fraction_digits.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "currency_symbol": self.currency_symbol,
            "months_per_year": self.months_per_year,
            "min_price_fraction_digits": self.min_price_fraction_digits,
            "max_price_fraction_digits": self.max_price_fraction_digits,
            "setup_category_ids": sorted(self.setup_category_ids),
            "one_time_units": sorted(self.one_time_units),
        }


def load_engine_config(*, config_path: str | None = None) -> EngineConfig:
    path = config_path or _env_str("PRICING_ENGINE_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    cfg = _load_yaml(path) if Path(path).exists() else {}

    setup_ids = _env_list(
        "PRICING_SETUP_CATEGORY_IDS",
        [str(item) for item in cfg.get("setup_category_ids", ["setup"])],
    )
    one_time_units = _env_list(
        "PRICING_ONE_TIME_UNITS",
        [str(item) for item in cfg.get("one_time_units", list(DEFAULT_ONE_TIME_UNITS))],
    )

    return EngineConfig(
        currency=_env_str("PRICING_CURRENCY", str(cfg.get("currency", "USD"))),
        currency_symbol=_env_str("PRICING_CURRENCY_SYMBOL", str(cfg.get("currency_symbol", "$"))),
        months_per_year=_env_int("PRICING_MONTHS_PER_YEAR", int(cfg.get("months_per_year", 12))),
        min_price_fraction_digits=_env_int(
            "PRICING_MIN_PRICE_FRACTION_DIGITS", int(cfg.get("min_price_fraction_digits", 2))
        ),
        max_price_fraction_digits=_env_int(
            "PRICING_MAX_PRICE_FRACTION_DIGITS", int(cfg.get("max_price_fraction_digits", 6))
        ),
        setup_category_ids=frozenset(item.strip().lower() for item in setup_ids),
        one_time_units=frozenset(normalize_unit_token(item) for item in one_time_units),
    )


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    """Cached accessor for the engine calculation policy."""

    return load_engine_config()
