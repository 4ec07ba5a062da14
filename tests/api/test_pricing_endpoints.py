# This file tests the stateless pricing calculation endpoints.
# It exists so scenario summaries, tier breakdowns, and auto-add results keep their envelope contracts.
# Requests run through the real pricing service with default engine settings.

from __future__ import annotations

from typing import Any

import pytest

from tests.api.support import api_test_client, build_test_config


def _item(item_id: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": item_id,
        "name": item_id.title(),
        "category": "platform",
        "unit": "per_month",
        "default_price": 100,
        **extra,
    }


TIERED_ITEM = _item(
    "auth",
    unit="per_transaction",
    default_price=1,
    pricing_type="tiered",
    tiers=[
        {"id": "t1", "min_quantity": 1, "max_quantity": 100, "unit_price": 0.5},
        {"id": "t2", "min_quantity": 101, "max_quantity": None, "unit_price": 0.4},
    ],
)


def test_calculate_returns_summary_envelope() -> None:
    body = {
        "selected_items": [
            {"id": "row-1", "item": _item("hosting"), "quantity": 2, "discount": 10},
            {"id": "row-2", "item": _item("setup", category="setup", unit="per_project", default_price=500), "quantity": 1},
        ],
        "global_discount": {"value": 10, "discount_type": "percentage", "application": "monthly"},
    }
    with api_test_client(config=build_test_config()) as client:
        response = client.post("/api/v1/pricing/calculate", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert payload["api_version"] == "v1"
    assert payload["request_id"]
    data = payload["data"]
    assert data["one_time_total"] == pytest.approx(500)
    assert data["monthly_total"] == pytest.approx(162)
    assert data["yearly_total"] == pytest.approx(1944)
    assert data["total_project_cost"] == pytest.approx(2444)
    assert [line["selected_id"] for line in data["lines"]] == ["row-1", "row-2"]


def test_calculate_accepts_camel_case_keys() -> None:
    body = {
        "selectedItems": [
            {
                "item": {"id": "seats", "name": "Seats", "category": "platform", "unit": "per_user", "defaultPrice": 5},
                "quantity": 3,
                "isFree": True,
            },
        ],
        "globalDiscount": {"value": 0, "discountType": "fixed", "application": "none"},
    }
    with api_test_client(config=build_test_config()) as client:
        response = client.post("/api/v1/pricing/calculate", json=body)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["monthly_total"] == 0
    assert data["savings"]["free_savings"] == pytest.approx(15)


def test_negative_quantity_is_rejected_by_validation() -> None:
    body = {"selected_items": [{"item": _item("hosting"), "quantity": -1}]}
    with api_test_client(config=build_test_config()) as client:
        response = client.post("/api/v1/pricing/calculate", json=body)

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_tiered_price_reports_breakdown_and_ranges() -> None:
    with api_test_client(config=build_test_config()) as client:
        response = client.post("/api/v1/pricing/tiered-price", json={"item": TIERED_ITEM, "quantity": 250})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_price"] == pytest.approx(110)
    assert [line["tier_id"] for line in data["tier_breakdown"]] == ["t1", "t2"]
    assert data["effective_unit_price"] == pytest.approx(0.4)
    assert data["average_unit_price"] == pytest.approx(0.44)
    assert data["best_tier"]["id"] == "t2"
    assert data["tier_ranges"] == {"t1": "1 - 100", "t2": "101+"}


def test_auto_add_reports_added_and_removed_rows() -> None:
    body = {
        "selected_items": [{"id": "row-sms", "item": _item("sms_service", unit="per_sms"), "quantity": 10}],
        "client_config": {"client_name": "Acme", "config_values": {"monthlySMS": 0, "hasDebitCards": True, "debitCards": 40}},
        "services": [
            _item("sms_service", unit="per_sms"),
            _item("card_fee", unit="per_card", auto_add_services=["hasDebitCards"], quantity_source_fields=["debitCards"]),
        ],
        "auto_add_config": {
            "auto_add_rules": {"monthlySMS": ["sms_service"]},
            "quantity_rules": {"sms_service": {"field": "monthlySMS"}},
        },
        "remove_untriggered": True,
    }
    with api_test_client(config=build_test_config()) as client:
        response = client.post("/api/v1/pricing/auto-add", json=body)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["removed_item_ids"] == ["row-sms"]
    assert len(data["added_item_ids"]) == 1
    assert data["added_item_ids"][0].startswith("card_fee-")
    assert [row["item"]["id"] for row in data["selected_items"]] == ["card_fee"]
    assert data["selected_items"][0]["quantity"] == 40
