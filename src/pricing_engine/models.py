# This file defines the value types shared by the pricing engine, the API, and the exporters.
# It exists so catalog items, selections, and computed summaries have one validated shape.
# Loaders accept both camelCase payloads from browser clients and snake_case rows from the database.
# Results are frozen dataclasses with explicit to_dict methods for JSON responses and exports.

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

VALID_PRICING_TYPES = {"fixed", "tiered"}
VALID_DISCOUNT_TYPES = {"percentage", "fixed"}
VALID_DISCOUNT_APPLICATIONS = {"total", "unit"}
VALID_GLOBAL_DISCOUNT_APPLICATIONS = {"none", "both", "monthly", "onetime"}
VALID_TRIGGER_CONDITIONS = {"boolean", "number", "string"}

_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def _as_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be numeric, got a boolean")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{field_name} must be numeric, got {value!r}") from exc


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _str_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class PricingTier:
    id: str
    min_quantity: float
    max_quantity: float | None
    unit_price: float
    name: str | None = None
    description: str | None = None
    config_reference: str | None = None

    def __post_init__(self) -> None:
        if self.min_quantity < 0:
            raise ValueError(f"Tier {self.id!r} min_quantity must be >= 0")
        if self.max_quantity is not None and self.max_quantity < self.min_quantity:
            raise ValueError(f"Tier {self.id!r} max_quantity must be >= min_quantity")
        if self.unit_price < 0:
            raise ValueError(f"Tier {self.id!r} unit_price must be >= 0")

    @property
    def is_unlimited(self) -> bool:
        return self.max_quantity is None

    def contains(self, quantity: float) -> bool:
        return self.min_quantity <= quantity and (
            self.max_quantity is None or quantity <= self.max_quantity
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PricingTier:
        raw_max = _pick(data, "max_quantity", "maxQuantity")
        return cls(
            id=str(_pick(data, "id", default="")),
            min_quantity=_as_float(_pick(data, "min_quantity", "minQuantity", default=0), "min_quantity"),
            max_quantity=None if raw_max is None else _as_float(raw_max, "max_quantity"),
            unit_price=_as_float(_pick(data, "unit_price", "unitPrice", default=0), "unit_price"),
            name=_optional_str(_pick(data, "name")),
            description=_optional_str(_pick(data, "description")),
            config_reference=_optional_str(_pick(data, "config_reference", "configReference")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "min_quantity": self.min_quantity,
            "max_quantity": self.max_quantity,
            "unit_price": self.unit_price,
            "name": self.name,
            "description": self.description,
            "config_reference": self.config_reference,
        }


@dataclass(frozen=True)
class PricingItem:
    id: str
    name: str
    category: str
    unit: str
    default_price: float
    description: str | None = None
    pricing_type: str = "fixed"
    tiers: tuple[PricingTier, ...] = ()
    tags: tuple[str, ...] = ()
    is_active: bool = True
    is_archived: bool = False
    auto_add_services: tuple[str, ...] = ()
    quantity_source_fields: tuple[str, ...] = ()
    quantity_multiplier: float | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self) -> None:
        if self.pricing_type not in VALID_PRICING_TYPES:
            raise ValueError(
                f"pricing_type must be one of {sorted(VALID_PRICING_TYPES)}, got {self.pricing_type!r}"
            )
        if self.default_price < 0:
            raise ValueError(f"Item {self.id!r} default_price must be >= 0")

    @property
    def has_tiers(self) -> bool:
        return self.pricing_type == "tiered" and len(self.tiers) > 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PricingItem:
        raw_multiplier = _pick(data, "quantity_multiplier", "quantityMultiplier")
        created_at = _pick(data, "created_at", "createdAt")
        updated_at = _pick(data, "updated_at", "updatedAt")
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            description=_optional_str(_pick(data, "description")),
            category=str(_pick(data, "category", "category_id", "categoryId", default="")),
            unit=str(_pick(data, "unit", default="")),
            default_price=_as_float(_pick(data, "default_price", "defaultPrice", default=0), "default_price"),
            pricing_type=str(_pick(data, "pricing_type", "pricingType", default="fixed")),
            tiers=tuple(PricingTier.from_dict(tier) for tier in _pick(data, "tiers", default=[])),
            tags=_str_tuple(_pick(data, "tags")),
            is_active=bool(_pick(data, "is_active", "isActive", default=True)),
            is_archived=bool(_pick(data, "is_archived", "isArchived", default=False)),
            auto_add_services=_str_tuple(
                _pick(data, "auto_add_services", "autoAddServices", "auto_add_trigger_fields")
            ),
            quantity_source_fields=_str_tuple(
                _pick(data, "quantity_source_fields", "quantitySourceFields")
            ),
            quantity_multiplier=(
                None if raw_multiplier is None else _as_float(raw_multiplier, "quantity_multiplier")
            ),
            created_at=None if created_at is None else str(created_at),
            updated_at=None if updated_at is None else str(updated_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "unit": self.unit,
            "default_price": self.default_price,
            "pricing_type": self.pricing_type,
            "tiers": [tier.to_dict() for tier in self.tiers],
            "tags": list(self.tags),
            "is_active": self.is_active,
            "is_archived": self.is_archived,
            "auto_add_services": list(self.auto_add_services),
            "quantity_source_fields": list(self.quantity_source_fields),
            "quantity_multiplier": self.quantity_multiplier,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class SelectedItem:
    id: str
    item: PricingItem
    quantity: float
    unit_price: float
    discount: float = 0.0
    discount_type: str = "percentage"
    discount_application: str = "total"
    is_free: bool = False

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Selected item {self.id!r} quantity must be >= 0")
        if self.unit_price < 0:
            raise ValueError(f"Selected item {self.id!r} unit_price must be >= 0")
        if self.discount < 0:
            raise ValueError(f"Selected item {self.id!r} discount must be >= 0")
        if self.discount_type not in VALID_DISCOUNT_TYPES:
            raise ValueError(
                f"discount_type must be one of {sorted(VALID_DISCOUNT_TYPES)}, got {self.discount_type!r}"
            )
        if self.discount_application not in VALID_DISCOUNT_APPLICATIONS:
            raise ValueError(
                "discount_application must be one of "
                f"{sorted(VALID_DISCOUNT_APPLICATIONS)}, got {self.discount_application!r}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SelectedItem:
        item = PricingItem.from_dict(_pick(data, "item", default={}))
        return cls(
            id=str(_pick(data, "id", default=item.id)),
            item=item,
            quantity=_as_float(_pick(data, "quantity", default=0), "quantity"),
            unit_price=_as_float(
                _pick(data, "unit_price", "unitPrice", default=item.default_price), "unit_price"
            ),
            discount=_as_float(_pick(data, "discount", default=0), "discount"),
            discount_type=str(_pick(data, "discount_type", "discountType", default="percentage")),
            discount_application=str(
                _pick(data, "discount_application", "discountApplication", default="total")
            ),
            is_free=bool(_pick(data, "is_free", "isFree", default=False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "item": self.item.to_dict(),
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "discount": self.discount,
            "discount_type": self.discount_type,
            "discount_application": self.discount_application,
            "is_free": self.is_free,
        }


@dataclass(frozen=True)
class GlobalDiscount:
    value: float = 0.0
    discount_type: str = "percentage"
    application: str = "none"

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("global discount value must be >= 0")
        if self.discount_type not in VALID_DISCOUNT_TYPES:
            raise ValueError(
                f"global discount type must be one of {sorted(VALID_DISCOUNT_TYPES)}, "
                f"got {self.discount_type!r}"
            )
        if self.application not in VALID_GLOBAL_DISCOUNT_APPLICATIONS:
            raise ValueError(
                "global discount application must be one of "
                f"{sorted(VALID_GLOBAL_DISCOUNT_APPLICATIONS)}, got {self.application!r}"
            )

    @property
    def is_active(self) -> bool:
        return self.application != "none" and self.value > 0

    def applies_to(self, *, is_one_time: bool) -> bool:
        if not self.is_active:
            return False
        if self.application == "both":
            return True
        return self.application == ("onetime" if is_one_time else "monthly")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GlobalDiscount:
        if not data:
            return cls()
        return cls(
            value=_as_float(
                _pick(data, "value", "global_discount", "globalDiscount", default=0), "global_discount"
            ),
            discount_type=str(
                _pick(
                    data,
                    "discount_type",
                    "global_discount_type",
                    "globalDiscountType",
                    default="percentage",
                )
            ),
            application=str(
                _pick(
                    data,
                    "application",
                    "global_discount_application",
                    "globalDiscountApplication",
                    default="none",
                )
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "discount_type": self.discount_type,
            "application": self.application,
        }


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str | None = None
    order: int = 0
    color: str | None = None
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Category:
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            description=_optional_str(_pick(data, "description")),
            order=int(_pick(data, "order", "order_index", "display_order", default=0)),
            color=_optional_str(_pick(data, "color")),
            is_active=bool(_pick(data, "is_active", "isActive", default=True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "order": self.order,
            "color": self.color,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    color: str | None = None
    description: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tag:
        return cls(
            id=str(_pick(data, "id", default="")),
            name=str(_pick(data, "name", default="")),
            color=_optional_str(_pick(data, "color")),
            description=_optional_str(_pick(data, "description")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color, "description": self.description}


_CLIENT_IDENTITY_KEYS = {
    "client_name",
    "clientName",
    "project_name",
    "projectName",
    "prepared_by",
    "preparedBy",
    "config_values",
    "configValues",
}


@dataclass(frozen=True)
class ClientConfig:
    client_name: str = ""
    project_name: str = ""
    prepared_by: str = ""
    config_values: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ClientConfig:
        """Build from the dynamic shape, folding legacy flat fields into config_values."""

        if not data:
            return cls()
        values: dict[str, Any] = {
            str(key): value for key, value in data.items() if key not in _CLIENT_IDENTITY_KEYS
        }
        values.update(dict(_pick(data, "config_values", "configValues", default={})))
        return cls(
            client_name=str(_pick(data, "client_name", "clientName", default="")),
            project_name=str(_pick(data, "project_name", "projectName", default="")),
            prepared_by=str(_pick(data, "prepared_by", "preparedBy", default="")),
            config_values=values,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "client_name": self.client_name,
            "project_name": self.project_name,
            "prepared_by": self.prepared_by,
            "config_values": dict(self.config_values),
        }


@dataclass(frozen=True)
class ConfigurationField:
    id: str
    name: str
    label: str
    field_type: str = "number"
    default_value: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfigurationField:
        name = str(_pick(data, "name", default=""))
        return cls(
            id=str(_pick(data, "id", default=name)),
            name=name,
            label=str(_pick(data, "label", default=name)),
            field_type=str(_pick(data, "field_type", "type", default="number")),
            default_value=_pick(data, "default_value", "defaultValue"),
        )


@dataclass(frozen=True)
class ServiceMapping:
    service_id: str
    config_field: str
    auto_add: bool = False
    sync_quantity: bool = False
    trigger_condition: str = "boolean"
    quantity_multiplier: float | None = None

    def __post_init__(self) -> None:
        if self.trigger_condition not in VALID_TRIGGER_CONDITIONS:
            raise ValueError(
                "trigger_condition must be one of "
                f"{sorted(VALID_TRIGGER_CONDITIONS)}, got {self.trigger_condition!r}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServiceMapping:
        raw_multiplier = _pick(data, "quantity_multiplier", "quantityMultiplier")
        return cls(
            service_id=str(_pick(data, "service_id", "serviceId", default="")),
            config_field=str(_pick(data, "config_field", "configField", default="")),
            auto_add=bool(_pick(data, "auto_add", "autoAdd", default=False)),
            sync_quantity=bool(_pick(data, "sync_quantity", "syncQuantity", default=False)),
            trigger_condition=str(_pick(data, "trigger_condition", "triggerCondition", default="boolean")),
            quantity_multiplier=(
                None if raw_multiplier is None else _as_float(raw_multiplier, "quantity_multiplier")
            ),
        )


@dataclass(frozen=True)
class QuantityRule:
    field: str
    multiplier: float | None = None


@dataclass(frozen=True)
class AutoAddConfig:
    auto_add_rules: dict[str, tuple[str, ...]] = field(default_factory=dict)
    quantity_rules: dict[str, QuantityRule] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AutoAddConfig:
        if not data:
            return cls()
        rules = dict(_pick(data, "auto_add_rules", "autoAddRules", default={}))
        quantity_rules = dict(_pick(data, "quantity_rules", "quantityRules", default={}))
        return cls(
            auto_add_rules={str(key): _str_tuple(value) for key, value in rules.items()},
            quantity_rules={
                str(service_id): QuantityRule(
                    field=str(rule["field"]),
                    multiplier=None if rule.get("multiplier") is None else float(rule["multiplier"]),
                )
                for service_id, rule in quantity_rules.items()
            },
        )


@dataclass(frozen=True)
class TierLine:
    tier_id: str
    tier_name: str
    tier_quantity: float
    tier_unit_price: float
    tier_total: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier_id": self.tier_id,
            "tier_name": self.tier_name,
            "tier_quantity": self.tier_quantity,
            "tier_unit_price": self.tier_unit_price,
            "tier_total": self.tier_total,
        }


@dataclass(frozen=True)
class TierCalculationResult:
    total_price: float
    tier_breakdown: tuple[TierLine, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_price": self.total_price,
            "tier_breakdown": [line.to_dict() for line in self.tier_breakdown],
        }


@dataclass(frozen=True)
class LineBreakdown:
    selected_id: str
    item_id: str
    item_name: str
    category: str
    unit: str
    quantity: float
    unit_price: float
    subtotal: float
    discount_amount: float
    total: float
    is_free: bool
    is_one_time: bool
    tier_lines: tuple[TierLine, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_id": self.selected_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "category": self.category,
            "unit": self.unit,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "total": self.total,
            "is_free": self.is_free,
            "is_one_time": self.is_one_time,
            "tier_lines": [line.to_dict() for line in self.tier_lines],
        }


@dataclass(frozen=True)
class SavingsBreakdown:
    original_price: float
    total_savings: float
    free_savings: float
    discount_savings: float
    savings_rate: float
    row_discount_total: float
    global_discount_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_price": self.original_price,
            "total_savings": self.total_savings,
            "free_savings": self.free_savings,
            "discount_savings": self.discount_savings,
            "savings_rate": self.savings_rate,
            "row_discount_total": self.row_discount_total,
            "global_discount_amount": self.global_discount_amount,
        }


@dataclass(frozen=True)
class CategoryTotal:
    category_id: str
    category_name: str
    total: float
    item_count: int
    free_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "total": self.total,
            "item_count": self.item_count,
            "free_count": self.free_count,
        }


@dataclass(frozen=True)
class ScenarioSummary:
    one_time_subtotal: float
    monthly_subtotal: float
    one_time_total: float
    monthly_total: float
    yearly_total: float
    total_project_cost: float
    item_count: int
    savings: SavingsBreakdown
    global_discount: GlobalDiscount
    category_totals: tuple[CategoryTotal, ...] = ()
    lines: tuple[LineBreakdown, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "one_time_subtotal": self.one_time_subtotal,
            "monthly_subtotal": self.monthly_subtotal,
            "one_time_total": self.one_time_total,
            "monthly_total": self.monthly_total,
            "yearly_total": self.yearly_total,
            "total_project_cost": self.total_project_cost,
            "item_count": self.item_count,
            "savings": self.savings.to_dict(),
            "global_discount": self.global_discount.to_dict(),
            "category_totals": [entry.to_dict() for entry in self.category_totals],
            "lines": [line.to_dict() for line in self.lines],
        }
