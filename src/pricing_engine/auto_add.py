# This module keeps a selection in sync with the client configuration.
# It exists so enabling a config field (cards, volumes, features) pulls in the services it implies.
# Three trigger sources are honored: per-service trigger fields, field->service rules, and service mappings.
# Quantities of already-selected rows are refreshed from the same config values on every pass.

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from src.pricing_engine.models import (
    AutoAddConfig,
    ClientConfig,
    PricingItem,
    SelectedItem,
    ServiceMapping,
)
from src.pricing_engine.tiered_pricing import get_config_based_quantity, get_effective_unit_price

LOGGER = logging.getLogger("pricing.auto_add")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_triggered(value: Any) -> bool:
    """Boolean True, a number above zero, or a non-blank string."""

    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value > 0
    if isinstance(value, str):
        return value.strip() != ""
    return False


def _mapping_triggered(mapping: ServiceMapping, value: Any) -> bool:
    if mapping.trigger_condition == "boolean":
        return value is True
    if mapping.trigger_condition == "number":
        return _is_number(value) and value > 0
    return isinstance(value, str) and value.strip() != ""


def _unit_price_for(service: PricingItem, quantity: float) -> float:
    if service.has_tiers:
        return get_effective_unit_price(service, quantity)
    return service.default_price


def _new_row_id(service_id: str) -> str:
    return f"{service_id}-{uuid.uuid4().hex[:12]}"


def calculate_service_quantity(
    service: PricingItem,
    client_config: ClientConfig,
    auto_add_config: AutoAddConfig,
    service_mappings: Mapping[str, ServiceMapping],
) -> float:
    values = client_config.config_values

    if service.quantity_source_fields:
        multiplier = service.quantity_multiplier or 1
        total = sum(
            float(values[field_id]) * multiplier
            for field_id in service.quantity_source_fields
            if _is_number(values.get(field_id)) and values[field_id] > 0
        )
        if total > 0:
            return total

    rule = auto_add_config.quantity_rules.get(service.id)
    if rule is not None and _is_number(values.get(rule.field)):
        return max(1.0, float(values[rule.field]) * (rule.multiplier or 1))

    mapping = service_mappings.get(service.id)
    if mapping is not None and mapping.sync_quantity and _is_number(values.get(mapping.config_field)):
        return max(1.0, float(values[mapping.config_field]))

    if service.quantity_source_fields:
        return get_config_based_quantity(service, values)
    return 1.0


def _services_to_add(
    selected_ids: set[str],
    client_config: ClientConfig,
    services: Sequence[PricingItem],
    auto_add_config: AutoAddConfig,
    service_mappings: Mapping[str, ServiceMapping],
) -> list[str]:
    values = client_config.config_values
    known_ids = {service.id for service in services}
    to_add: list[str] = []

    def add(service_id: str) -> None:
        if service_id in known_ids and service_id not in selected_ids and service_id not in to_add:
            to_add.append(service_id)

    for service in services:
        if any(is_triggered(values.get(field_id)) for field_id in service.auto_add_services):
            add(service.id)

    for field_id, service_ids in auto_add_config.auto_add_rules.items():
        if is_triggered(values.get(field_id)):
            for service_id in service_ids:
                add(service_id)

    for mapping in service_mappings.values():
        if not (mapping.auto_add and mapping.service_id and mapping.config_field):
            continue
        if _mapping_triggered(mapping, values.get(mapping.config_field)):
            add(mapping.service_id)

    return to_add


def _refreshed_quantity(
    selected: SelectedItem,
    client_config: ClientConfig,
    auto_add_config: AutoAddConfig,
    service_mappings: Mapping[str, ServiceMapping],
) -> float:
    values = client_config.config_values
    quantity = selected.quantity

    rule = auto_add_config.quantity_rules.get(selected.item.id)
    if rule is not None and _is_number(values.get(rule.field)):
        quantity = float(values[rule.field]) * (rule.multiplier or 1)

    mapping = service_mappings.get(selected.item.id)
    if mapping is not None and mapping.sync_quantity and _is_number(values.get(mapping.config_field)):
        quantity = float(values[mapping.config_field])

    if selected.item.quantity_source_fields:
        quantity = get_config_based_quantity(selected.item, values)

    return max(0.0, quantity)


def apply_auto_add_logic(
    selected_items: Sequence[SelectedItem],
    client_config: ClientConfig,
    services: Sequence[PricingItem],
    auto_add_config: AutoAddConfig | None = None,
    service_mappings: Mapping[str, ServiceMapping] | None = None,
) -> list[SelectedItem]:
    """Add triggered services and refresh config-driven quantities."""

    rules = auto_add_config or AutoAddConfig()
    mappings = dict(service_mappings or {})
    by_id = {service.id: service for service in services}
    selected_ids = {selected.item.id for selected in selected_items}

    updated: list[SelectedItem] = list(selected_items)
    for service_id in _services_to_add(selected_ids, client_config, services, rules, mappings):
        service = by_id[service_id]
        quantity = calculate_service_quantity(service, client_config, rules, mappings)
        updated.append(
            SelectedItem(
                id=_new_row_id(service.id),
                item=service,
                quantity=quantity,
                unit_price=_unit_price_for(service, quantity),
            )
        )
        LOGGER.debug("Auto-added service %s with quantity %s", service.id, quantity)

    refreshed: list[SelectedItem] = []
    for selected in updated:
        quantity = _refreshed_quantity(selected, client_config, rules, mappings)
        if quantity == selected.quantity:
            refreshed.append(selected)
            continue
        unit_price = _unit_price_for(selected.item, quantity) if selected.item.has_tiers else selected.unit_price
        refreshed.append(replace(selected, quantity=quantity, unit_price=unit_price))
    return refreshed


def remove_auto_added_services(
    selected_items: Sequence[SelectedItem],
    client_config: ClientConfig,
    auto_add_config: AutoAddConfig | None = None,
    service_mappings: Mapping[str, ServiceMapping] | None = None,
) -> list[SelectedItem]:
    """Drop rows whose auto-add trigger has been switched off or zeroed."""

    rules = auto_add_config or AutoAddConfig()
    mappings = dict(service_mappings or {})
    values = client_config.config_values

    def switched_off(value: Any) -> bool:
        return not value or (_is_number(value) and value <= 0)

    kept: list[SelectedItem] = []
    for selected in selected_items:
        service_id = selected.item.id
        rule_off = any(
            service_id in service_ids and switched_off(values.get(field_id))
            for field_id, service_ids in rules.auto_add_rules.items()
        )
        mapping = mappings.get(service_id)
        mapping_off = (
            mapping is not None and mapping.auto_add and switched_off(values.get(mapping.config_field))
        )
        if rule_off or mapping_off:
            LOGGER.debug("Removing auto-added service %s", service_id)
            continue
        kept.append(selected)
    return kept
