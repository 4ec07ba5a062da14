# This file implements catalog services for pricing items, categories, and tags.
# It exists so routers can stay transport-focused while SQL and row shaping live in one layer.
# Filters mirror the in-memory catalog filters: category, any-tag match, text search, and archived visibility.
# Every write is validated through the engine models so stored items are always priceable.

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, json_param
from src.api.error_handlers import APIError, not_found
from src.api.pagination import SortSpec, page_bind_params
from src.api.schemas.catalog_schemas import (
    CategoryCreateV1,
    CategoryUpdateV1,
    ServiceCreateV1,
    ServiceUpdateV1,
    TagCreateV1,
    TagUpdateV1,
)
from src.pricing_engine.models import Category, PricingItem, Tag

LOGGER = logging.getLogger("catalog")

SERVICE_SORT_FIELD_MAP: dict[str, str] = {
    "name": "LOWER(s.name)",
    "price": "s.default_price",
    "category": "s.category",
    "created_at": "s.created_at",
}

_SERVICE_COLUMNS = """
    s.id,
    s.name,
    s.description,
    s.category,
    s.unit,
    s.default_price,
    s.pricing_type,
    s.tiers,
    s.tags,
    s.is_active,
    s.is_archived,
    s.auto_add_services,
    s.quantity_source_fields,
    s.quantity_multiplier,
    s.created_at,
    s.updated_at
"""


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def shape_service_row(row: dict[str, Any]) -> dict[str, Any]:
    shaped = {key: _iso(value) for key, value in row.items()}
    if isinstance(shaped.get("tiers"), str):
        shaped["tiers"] = json.loads(shaped["tiers"])
    return PricingItem.from_dict(shaped).to_dict()


def shape_category_row(row: dict[str, Any]) -> dict[str, Any]:
    return Category.from_dict(row).to_dict()


def shape_tag_row(row: dict[str, Any]) -> dict[str, Any]:
    return Tag.from_dict(row).to_dict()


def _validated_item(values: dict[str, Any]) -> PricingItem:
    try:
        item = PricingItem.from_dict(values)
    except ValueError as exc:
        raise APIError(status_code=400, error_code="INVALID_SERVICE", message=str(exc)) from exc
    if item.pricing_type == "tiered" and not item.tiers:
        raise APIError(
            status_code=400,
            error_code="INVALID_SERVICE",
            message="Tiered services must define at least one tier.",
        )
    return item


class CatalogService:
    """Catalog reads and writes for the simulator admin and pricing screens."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient) -> None:
        self.config = config
        self.db = db
        self.services_table = self.config.validate_table_name(self.config.services_table_name)
        self.categories_table = self.config.validate_table_name(self.config.categories_table_name)
        self.tags_table = self.config.validate_table_name(self.config.tags_table_name)

    # services

    def list_services(
        self,
        *,
        category_id: str | None,
        tags: list[str] | None,
        search: str | None,
        show_archived: bool,
        page: int,
        page_size: int,
        sort: SortSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["TRUE"]
        params: dict[str, Any] = {}

        if category_id:
            where_clauses.append("s.category = :category_id")
            params["category_id"] = category_id
        if tags:
            where_clauses.append("s.tags && CAST(:tags AS TEXT[])")
            params["tags"] = list(tags)
        if search and search.strip():
            where_clauses.append("(s.name ILIKE :search OR COALESCE(s.description, '') ILIKE :search)")
            params["search"] = f"%{search.strip()}%"
        if not show_archived:
            where_clauses.append("s.is_archived = FALSE")

        where_sql = " AND ".join(where_clauses)
        total_count_row = self.db.fetch_one(
            f"SELECT COUNT(*) AS total_count FROM {self.services_table} s WHERE {where_sql}",
            params,
        ) or {"total_count": 0}

        data_query = f"""
        SELECT {_SERVICE_COLUMNS}
        FROM {self.services_table} s
        WHERE {where_sql}
        ORDER BY {sort.order_by(SERVICE_SORT_FIELD_MAP, tiebreaker="s.id")}
        LIMIT :limit OFFSET :offset
        """
        page_params = {**params, **page_bind_params(page=page, page_size=page_size)}
        rows = [shape_service_row(row) for row in self.db.fetch_all(data_query, page_params)]
        return {"rows": rows, "total_count": int(total_count_row["total_count"]), "warnings": None}

    def get_service(self, service_id: str) -> dict[str, Any] | None:
        row = self.db.fetch_one(
            f"SELECT {_SERVICE_COLUMNS} FROM {self.services_table} s WHERE s.id = :id",
            {"id": service_id},
        )
        return shape_service_row(row) if row is not None else None

    def load_items(self, service_ids: list[str] | None = None) -> list[PricingItem]:
        """Active, unarchived catalog items, optionally restricted to `service_ids`."""

        where_sql = "s.is_active = TRUE AND s.is_archived = FALSE"
        params: dict[str, Any] = {}
        if service_ids is not None:
            where_sql += " AND s.id = ANY(CAST(:ids AS TEXT[]))"
            params["ids"] = list(service_ids)
        rows = self.db.fetch_all(
            f"SELECT {_SERVICE_COLUMNS} FROM {self.services_table} s WHERE {where_sql} ORDER BY s.id",
            params,
        )
        return [PricingItem.from_dict(shape_service_row(row)) for row in rows]

    def create_service(self, payload: ServiceCreateV1) -> dict[str, Any]:
        values = payload.model_dump()
        values["id"] = values.get("id") or uuid.uuid4().hex
        item = _validated_item(values)
        self._require_category(item.category)
        if self.get_service(item.id) is not None:
            raise APIError(
                status_code=409,
                error_code="SERVICE_ALREADY_EXISTS",
                message=f"Service id already exists: {item.id}",
            )

        query = f"""
        INSERT INTO {self.services_table} (
            id, name, description, category, unit, default_price, pricing_type, tiers, tags,
            is_active, is_archived, auto_add_services, quantity_source_fields, quantity_multiplier
        )
        VALUES (
            :id, :name, :description, :category, :unit, :default_price, :pricing_type,
            CAST(:tiers AS JSONB), :tags, :is_active, :is_archived, :auto_add_services,
            :quantity_source_fields, :quantity_multiplier
        )
        RETURNING id
        """
        self.db.execute_returning(query, self._service_params(item))
        LOGGER.info("Created service %s (%s)", item.id, item.name)
        return self.get_service(item.id) or item.to_dict()

    def update_service(self, service_id: str, payload: ServiceUpdateV1) -> dict[str, Any]:
        existing = self.get_service(service_id)
        if existing is None:
            raise not_found("service", service_id)

        merged = {**existing, **payload.model_dump(exclude_unset=True)}
        item = _validated_item(merged)
        if item.category != existing["category"]:
            self._require_category(item.category)

        query = f"""
        UPDATE {self.services_table}
        SET name = :name,
            description = :description,
            category = :category,
            unit = :unit,
            default_price = :default_price,
            pricing_type = :pricing_type,
            tiers = CAST(:tiers AS JSONB),
            tags = :tags,
            is_active = :is_active,
            is_archived = :is_archived,
            auto_add_services = :auto_add_services,
            quantity_source_fields = :quantity_source_fields,
            quantity_multiplier = :quantity_multiplier,
            updated_at = NOW()
        WHERE id = :id
        RETURNING id
        """
        self.db.execute_returning(query, self._service_params(item))
        LOGGER.info("Updated service %s", service_id)
        return self.get_service(service_id) or item.to_dict()

    def delete_service(self, service_id: str) -> bool:
        deleted = self.db.execute_returning(
            f"DELETE FROM {self.services_table} WHERE id = :id RETURNING id",
            {"id": service_id},
        )
        if deleted is not None:
            LOGGER.info("Deleted service %s", service_id)
        return deleted is not None

    # categories

    def list_categories(self, *, include_inactive: bool = False) -> list[dict[str, Any]]:
        where_sql = "TRUE" if include_inactive else "is_active = TRUE"
        rows = self.db.fetch_all(
            f"""
            SELECT id, name, description, display_order AS "order", color, is_active
            FROM {self.categories_table}
            WHERE {where_sql}
            ORDER BY display_order ASC, id ASC
            """
        )
        return [shape_category_row(row) for row in rows]

    def get_category(self, category_id: str) -> dict[str, Any] | None:
        row = self.db.fetch_one(
            f"""
            SELECT id, name, description, display_order AS "order", color, is_active
            FROM {self.categories_table}
            WHERE id = :id
            """,
            {"id": category_id},
        )
        return shape_category_row(row) if row is not None else None

    def create_category(self, payload: CategoryCreateV1) -> dict[str, Any]:
        if self.get_category(payload.id) is not None:
            raise APIError(
                status_code=409,
                error_code="CATEGORY_ALREADY_EXISTS",
                message=f"Category id already exists: {payload.id}",
            )
        row = self.db.execute_returning(
            f"""
            INSERT INTO {self.categories_table} (id, name, description, display_order, color, is_active)
            VALUES (:id, :name, :description, :order, :color, :is_active)
            RETURNING id, name, description, display_order AS "order", color, is_active
            """,
            payload.model_dump(),
        )
        LOGGER.info("Created category %s", payload.id)
        return shape_category_row(row or payload.model_dump())

    def update_category(self, category_id: str, payload: CategoryUpdateV1) -> dict[str, Any]:
        existing = self.get_category(category_id)
        if existing is None:
            raise not_found("category", category_id)
        merged = {**existing, **payload.model_dump(exclude_unset=True)}
        row = self.db.execute_returning(
            f"""
            UPDATE {self.categories_table}
            SET name = :name,
                description = :description,
                display_order = :order,
                color = :color,
                is_active = :is_active,
                updated_at = NOW()
            WHERE id = :id
            RETURNING id, name, description, display_order AS "order", color, is_active
            """,
            merged,
        )
        return shape_category_row(row or merged)

    def delete_category(self, category_id: str) -> bool:
        in_use = self.db.fetch_scalar(
            f"SELECT COUNT(*) FROM {self.services_table} WHERE category = :id",
            {"id": category_id},
        )
        if int(in_use or 0) > 0:
            raise APIError(
                status_code=409,
                error_code="CATEGORY_IN_USE",
                message=f"Category {category_id} is used by {int(in_use)} service(s).",
            )
        deleted = self.db.execute_returning(
            f"DELETE FROM {self.categories_table} WHERE id = :id RETURNING id",
            {"id": category_id},
        )
        return deleted is not None

    # tags

    def list_tags(self) -> list[dict[str, Any]]:
        rows = self.db.fetch_all(
            f"SELECT id, name, color, description FROM {self.tags_table} ORDER BY LOWER(name) ASC, id ASC"
        )
        return [shape_tag_row(row) for row in rows]

    def get_tag(self, tag_id: str) -> dict[str, Any] | None:
        row = self.db.fetch_one(
            f"SELECT id, name, color, description FROM {self.tags_table} WHERE id = :id",
            {"id": tag_id},
        )
        return shape_tag_row(row) if row is not None else None

    def create_tag(self, payload: TagCreateV1) -> dict[str, Any]:
        values = payload.model_dump()
        values["id"] = values.get("id") or uuid.uuid4().hex
        existing = self.db.fetch_one(
            f"SELECT id FROM {self.tags_table} WHERE id = :id OR LOWER(name) = LOWER(:name)",
            {"id": values["id"], "name": values["name"]},
        )
        if existing is not None:
            raise APIError(
                status_code=409,
                error_code="TAG_ALREADY_EXISTS",
                message=f"Tag already exists: {values['name']}",
            )
        row = self.db.execute_returning(
            f"""
            INSERT INTO {self.tags_table} (id, name, color, description)
            VALUES (:id, :name, :color, :description)
            RETURNING id, name, color, description
            """,
            values,
        )
        return shape_tag_row(row or values)

    def update_tag(self, tag_id: str, payload: TagUpdateV1) -> dict[str, Any]:
        existing = self.get_tag(tag_id)
        if existing is None:
            raise not_found("tag", tag_id)
        merged = {**existing, **payload.model_dump(exclude_unset=True)}
        row = self.db.execute_returning(
            f"""
            UPDATE {self.tags_table}
            SET name = :name, color = :color, description = :description, updated_at = NOW()
            WHERE id = :id
            RETURNING id, name, color, description
            """,
            merged,
        )
        if merged["name"] != existing["name"]:
            self.db.execute(
                f"""
                UPDATE {self.services_table}
                SET tags = array_replace(tags, :old_name, :new_name), updated_at = NOW()
                WHERE :old_name = ANY(tags)
                """,
                {"old_name": existing["name"], "new_name": merged["name"]},
            )
        return shape_tag_row(row or merged)

    def delete_tag(self, tag_id: str) -> bool:
        deleted = self.db.execute_returning(
            f"DELETE FROM {self.tags_table} WHERE id = :id RETURNING id, name",
            {"id": tag_id},
        )
        if deleted is None:
            return False
        self.db.execute(
            f"""
            UPDATE {self.services_table}
            SET tags = array_remove(tags, :name), updated_at = NOW()
            WHERE :name = ANY(tags)
            """,
            {"name": deleted["name"]},
        )
        return True

    def _require_category(self, category_id: str) -> None:
        if self.get_category(category_id) is None:
            raise APIError(
                status_code=400,
                error_code="UNKNOWN_CATEGORY",
                message=f"Unknown category id: {category_id}",
            )

    @staticmethod
    def _service_params(item: PricingItem) -> dict[str, Any]:
        values = item.to_dict()
        return {
            "id": item.id,
            "name": item.name,
            "description": item.description,
            "category": item.category,
            "unit": item.unit,
            "default_price": item.default_price,
            "pricing_type": item.pricing_type,
            "tiers": json_param(values["tiers"]),
            "tags": list(item.tags),
            "is_active": item.is_active,
            "is_archived": item.is_archived,
            "auto_add_services": list(item.auto_add_services),
            "quantity_source_fields": list(item.quantity_source_fields),
            "quantity_multiplier": item.quantity_multiplier,
        }
