# This test file validates auto-add triggers, quantity derivation, and removal of untriggered rows.
# It exists so enabling a client configuration field reliably pulls in the services it implies.

from __future__ import annotations

from src.pricing_engine.auto_add import (
    apply_auto_add_logic,
    calculate_service_quantity,
    is_triggered,
    remove_auto_added_services,
)
from src.pricing_engine.models import AutoAddConfig, ClientConfig, PricingItem, SelectedItem, ServiceMapping


def _service(service_id: str, **extra: object) -> PricingItem:
    return PricingItem.from_dict(
        {
            "id": service_id,
            "name": service_id,
            "category": "processing",
            "unit": "per_transaction",
            "default_price": 0.5,
            **extra,
        }
    )


SERVICES = [
    _service("debit_card_fee", unit="per_card", auto_add_services=["hasDebitCards"], quantity_source_fields=["debitCards"]),
    _service("sms_service", unit="per_sms"),
    _service("three_ds"),
    _service("unrelated"),
]
RULES = AutoAddConfig.from_dict(
    {
        "auto_add_rules": {"monthlySMS": ["sms_service"]},
        "quantity_rules": {"sms_service": {"field": "monthlySMS", "multiplier": 1}},
    }
)
MAPPINGS = {
    "three_ds": ServiceMapping(
        service_id="three_ds",
        config_field="monthly3DS",
        auto_add=True,
        sync_quantity=True,
        trigger_condition="number",
    )
}


def _client(**values: object) -> ClientConfig:
    return ClientConfig(client_name="Acme", config_values=dict(values))


def test_is_triggered_semantics() -> None:
    assert is_triggered(True) is True
    assert is_triggered(False) is False
    assert is_triggered(3) is True
    assert is_triggered(0) is False
    assert is_triggered("  ") is False
    assert is_triggered("visa") is True
    assert is_triggered(None) is False


def test_all_trigger_sources_add_services_with_derived_quantities() -> None:
    client = _client(hasDebitCards=True, debitCards=1000, monthlySMS=200, monthly3DS=50)

    rows = apply_auto_add_logic([], client, SERVICES, RULES, MAPPINGS)

    quantities = {row.item.id: row.quantity for row in rows}
    assert quantities == {"debit_card_fee": 1000, "sms_service": 200, "three_ds": 50}
    assert all(row.id.startswith(f"{row.item.id}-") for row in rows)


def test_untriggered_services_are_not_added() -> None:
    client = _client(hasDebitCards=False, monthlySMS=0, monthly3DS=0)

    assert apply_auto_add_logic([], client, SERVICES, RULES, MAPPINGS) == []


def test_existing_rows_are_not_duplicated_and_quantities_refresh() -> None:
    existing = SelectedItem(id="row-1", item=SERVICES[0], quantity=10, unit_price=0.5)
    client = _client(hasDebitCards=True, debitCards=750)

    rows = apply_auto_add_logic([existing], client, SERVICES, RULES, MAPPINGS)

    assert len(rows) == 1
    assert rows[0].id == "row-1"
    assert rows[0].quantity == 750


def test_boolean_mapping_requires_true() -> None:
    mapping = {
        "unrelated": ServiceMapping(service_id="unrelated", config_field="flag", auto_add=True)
    }

    assert apply_auto_add_logic([], _client(flag="yes"), SERVICES, None, mapping) == []
    added = apply_auto_add_logic([], _client(flag=True), SERVICES, None, mapping)
    assert [row.item.id for row in added] == ["unrelated"]


def test_calculate_service_quantity_falls_back_to_one() -> None:
    assert calculate_service_quantity(SERVICES[3], _client(), RULES, MAPPINGS) == 1.0
    assert calculate_service_quantity(SERVICES[1], _client(monthlySMS=0.2), RULES, MAPPINGS) == 1.0


def test_remove_drops_rows_whose_trigger_was_switched_off() -> None:
    rows = [
        SelectedItem(id="r-sms", item=SERVICES[1], quantity=200, unit_price=0.5),
        SelectedItem(id="r-3ds", item=SERVICES[2], quantity=50, unit_price=0.5),
        SelectedItem(id="r-other", item=SERVICES[3], quantity=1, unit_price=0.5),
    ]

    kept = remove_auto_added_services(rows, _client(monthlySMS=0, monthly3DS=0), RULES, MAPPINGS)

    assert [row.id for row in kept] == ["r-other"]
