# This file collects small formatting helpers used by quote exports and reports.
# It exists so prices, quantities, and percentages print identically in CSV and HTML output.
# Keeping these helpers centralized avoids repeated formatting code and subtle inconsistencies.
# The functions return plain strings; parsing helpers return 0 for unparseable input.

from __future__ import annotations

import re

from src.pricing_engine.engine_config import EngineConfig

_INT_PREFIX_RE = re.compile(r"^\s*([-+]?\d+)")
_FLOAT_PREFIX_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def _grouped(value: float, *, min_digits: int, max_digits: int) -> str:
    rendered = f"{abs(value):,.{max_digits}f}"
    if max_digits > min_digits and "." in rendered:
        whole, fraction = rendered.split(".")
        fraction = fraction.rstrip("0")
        if len(fraction) < min_digits:
            fraction = fraction.ljust(min_digits, "0")
        rendered = f"{whole}.{fraction}" if fraction else whole
    sign = "-" if value < 0 and float(rendered.replace(",", "")) != 0 else ""
    return f"{sign}{rendered}"


def format_price(value: float | int | None, config: EngineConfig | None = None) -> str:
    resolved = config or EngineConfig()
    amount = float(value or 0)
    body = _grouped(
        amount,
        min_digits=resolved.min_price_fraction_digits,
        max_digits=resolved.max_price_fraction_digits,
    )
    if body.startswith("-"):
        return f"-{resolved.currency_symbol}{body[1:]}"
    return f"{resolved.currency_symbol}{body}"


def format_number(value: float | int | None) -> str:
    return _grouped(float(value or 0), min_digits=0, max_digits=3)


def format_decimal_number(value: float | int | None) -> str:
    return _grouped(float(value or 0), min_digits=0, max_digits=6)


def format_percent(value: float | int | None, *, digits: int = 1) -> str:
    if value is None:
        return "-"
    return f"{float(value):.{digits}f}%"


def format_discount(value: float, discount_type: str, config: EngineConfig | None = None) -> str:
    if value <= 0:
        return "-"
    if discount_type == "percentage":
        return f"{format_decimal_number(value)}%"
    return format_price(value, config)


def parse_formatted_number(value: str | None) -> int:
    match = _INT_PREFIX_RE.match((value or "").replace(",", ""))
    return int(match.group(1)) if match else 0


def parse_formatted_decimal(value: str | None) -> float:
    match = _FLOAT_PREFIX_RE.match((value or "").replace(",", ""))
    return float(match.group(1)) if match else 0.0
