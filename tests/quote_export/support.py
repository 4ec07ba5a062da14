# This file provides shared quote builders for export tests.
# The sample quote mixes a discounted recurring row, a tiered row, a setup fee, and a free row.

from __future__ import annotations

from datetime import UTC, datetime

from src.pricing_engine.engine_config import EngineConfig
from src.pricing_engine.models import (
    Category,
    ClientConfig,
    ConfigurationField,
    GlobalDiscount,
    SelectedItem,
)
from src.quote_export.quote import QuoteDocument, build_quote

GENERATED_AT = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


def selected_row(item_id: str, *, item: dict[str, object] | None = None, **row: object) -> SelectedItem:
    values: dict[str, object] = {
        "id": item_id,
        "name": item_id.replace("_", " ").title(),
        "description": f"{item_id} service",
        "category": "platform",
        "unit": "per_month",
        "default_price": 100.0,
    }
    values.update(item or {})
    return SelectedItem.from_dict({"id": f"row-{item_id}", "item": values, "quantity": 1, **row})


def build_sample_quote() -> QuoteDocument:
    rows = [
        selected_row("hosting", quantity=2, discount=10),
        selected_row(
            "authorizations",
            quantity=250,
            item={
                "unit": "per_transaction",
                "default_price": 1.0,
                "pricing_type": "tiered",
                "tiers": [
                    {"id": "t1", "name": "Starter", "min_quantity": 1, "max_quantity": 100, "unit_price": 0.5},
                    {"id": "t2", "name": "Growth", "min_quantity": 101, "max_quantity": None, "unit_price": 0.4},
                ],
            },
        ),
        selected_row("setup_fee", item={"category": "setup", "unit": "per_project", "default_price": 500.0}),
        selected_row("support", is_free=True, item={"default_price": 50.0}),
    ]
    return build_quote(
        client=ClientConfig(
            client_name="Acme Corp",
            project_name="Card Rollout",
            prepared_by="Sales Desk",
            config_values={"debitCards": 1000, "hasDebitCards": True},
        ),
        selected_items=rows,
        global_discount=GlobalDiscount(value=10, discount_type="percentage", application="monthly"),
        categories=[
            Category(id="platform", name="Platform", order=0),
            Category(id="setup", name="Setup", order=1),
        ],
        configuration_fields=[ConfigurationField(id="debitCards", name="debitCards", label="Debit Cards")],
        config=EngineConfig(),
        generated_at=GENERATED_AT,
    )
