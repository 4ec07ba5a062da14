# This file tests catalog endpoints for services, categories, and tags.
# It exists so filtering, validation, and not-found contracts stay stable for the simulator screens.
# Requests run through the real catalog service backed by a scripted fake database client.

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from src.api.services.catalog_service import CatalogService
from tests.api.support import FakeDBClient, api_test_client, build_test_config

SERVICE_ROW: dict[str, Any] = {
    "id": "auth",
    "name": "Authorizations",
    "description": "Card authorizations",
    "category": "processing",
    "unit": "per_transaction",
    "default_price": 1.0,
    "pricing_type": "tiered",
    "tiers": '[{"id": "t1", "min_quantity": 1, "max_quantity": 100, "unit_price": 0.5}]',
    "tags": ["cards"],
    "is_active": True,
    "is_archived": False,
    "auto_add_services": [],
    "quantity_source_fields": [],
    "quantity_multiplier": None,
    "created_at": datetime(2026, 1, 5, 12, 0, tzinfo=UTC),
    "updated_at": datetime(2026, 1, 6, 12, 0, tzinfo=UTC),
}
CATEGORY_ROW: dict[str, Any] = {
    "id": "processing",
    "name": "Processing",
    "description": None,
    "order": 2,
    "color": "#336699",
    "is_active": True,
}


def _client_for(db: FakeDBClient, **config_overrides: Any) -> Any:
    config = build_test_config(**config_overrides)
    return api_test_client(config=config, db_client=db, catalog_service=CatalogService(config=config, db=db))


def test_list_services_applies_filters_and_shapes_rows() -> None:
    db = FakeDBClient(responses=[{"total_count": 3}, [SERVICE_ROW]])
    with _client_for(db) as client:
        response = client.get(
            "/api/v1/services?category_id=processing&tag=cards&tag=sms&search=auth&sort=price:desc"
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"] == {
        "page": 1,
        "page_size": 2,
        "total_count": 3,
        "total_pages": 2,
        "sort": "price:desc",
    }
    row = payload["data"][0]
    assert row["tiers"][0]["unit_price"] == 0.5
    assert row["created_at"] == "2026-01-05T12:00:00+00:00"

    _, count_query, count_params = db.calls[0]
    assert "s.tags && CAST(:tags AS TEXT[])" in count_query
    assert "s.is_archived = FALSE" in count_query
    assert count_params == {"category_id": "processing", "tags": ["cards", "sms"], "search": "%auth%"}
    _, data_query, data_params = db.calls[1]
    assert "ORDER BY s.default_price DESC, s.id ASC" in data_query
    assert data_params["limit"] == 2
    assert data_params["offset"] == 0


def test_show_archived_drops_archive_filter() -> None:
    db = FakeDBClient(responses=[{"total_count": 0}, []])
    with _client_for(db) as client:
        response = client.get("/api/v1/services?show_archived=true")

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert "is_archived" not in db.calls[0][1]


def test_unknown_sort_field_returns_400() -> None:
    with _client_for(FakeDBClient()) as client:
        response = client.get("/api/v1/services?sort=cost:asc")

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_QUERY_PARAM"


def test_get_missing_service_returns_404() -> None:
    with _client_for(FakeDBClient(responses=[None])) as client:
        response = client.get("/api/v1/services/missing")

    assert response.status_code == 404
    assert response.json()["error_code"] == "SERVICE_NOT_FOUND"


def test_create_service_validates_category_and_returns_stored_row() -> None:
    db = FakeDBClient(responses=[CATEGORY_ROW, None, {"id": "auth"}, SERVICE_ROW])
    body = {
        "id": "auth",
        "name": "Authorizations",
        "category": "processing",
        "unit": "per_transaction",
        "defaultPrice": 1.0,
        "pricingType": "tiered",
        "tiers": [{"id": "t1", "minQuantity": 1, "maxQuantity": 100, "unitPrice": 0.5}],
        "tags": ["cards"],
    }
    with _client_for(db) as client:
        response = client.post("/api/v1/services", json=body)

    assert response.status_code == 201
    assert response.json()["data"]["id"] == "auth"
    method, query, params = db.calls[2]
    assert method == "execute_returning"
    assert query.startswith("INSERT INTO simulator_services")
    assert params["tiers"].startswith('[{"id":"t1"')
    assert params["tags"] == ["cards"]


def test_create_tiered_service_without_tiers_is_rejected() -> None:
    body = {
        "name": "Broken",
        "category": "processing",
        "unit": "per_transaction",
        "default_price": 1.0,
        "pricing_type": "tiered",
    }
    with _client_for(FakeDBClient()) as client:
        response = client.post("/api/v1/services", json=body)

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_SERVICE"


def test_create_service_with_unknown_category_is_rejected() -> None:
    body = {"name": "Seats", "category": "nope", "unit": "per_user", "default_price": 5}
    with _client_for(FakeDBClient(responses=[None])) as client:
        response = client.post("/api/v1/services", json=body)

    assert response.status_code == 400
    assert response.json()["error_code"] == "UNKNOWN_CATEGORY"


def test_update_service_merges_partial_changes() -> None:
    updated_row = {**SERVICE_ROW, "is_archived": True}
    db = FakeDBClient(responses=[SERVICE_ROW, {"id": "auth"}, updated_row])
    with _client_for(db) as client:
        response = client.put("/api/v1/services/auth", json={"isArchived": True})

    assert response.status_code == 200
    assert response.json()["data"]["is_archived"] is True
    _, _, params = db.calls[1]
    assert params["is_archived"] is True
    assert params["name"] == "Authorizations"


def test_delete_service_reports_missing_rows() -> None:
    with _client_for(FakeDBClient(responses=[{"id": "auth"}, None])) as client:
        deleted = client.delete("/api/v1/services/auth")
        missing = client.delete("/api/v1/services/auth")

    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"id": "auth", "deleted": True}
    assert missing.status_code == 404


def test_categories_list_and_conflicts() -> None:
    db = FakeDBClient(responses=[[CATEGORY_ROW], CATEGORY_ROW])
    with _client_for(db) as client:
        listed = client.get("/api/v1/categories")
        conflict = client.post("/api/v1/categories", json={"id": "processing", "name": "Processing"})

    assert listed.status_code == 200
    assert listed.json()["data"][0]["order"] == 2
    assert "is_active = TRUE" in db.calls[0][1]
    assert conflict.status_code == 409
    assert conflict.json()["error_code"] == "CATEGORY_ALREADY_EXISTS"


def test_category_in_use_cannot_be_deleted() -> None:
    with _client_for(FakeDBClient(responses=[4])) as client:
        response = client.delete("/api/v1/categories/processing")

    assert response.status_code == 409
    assert response.json()["error_code"] == "CATEGORY_IN_USE"


def test_tag_rename_propagates_to_services() -> None:
    tag_row = {"id": "tag-1", "name": "cards", "color": None, "description": None}
    renamed = {**tag_row, "name": "payment-cards"}
    db = FakeDBClient(responses=[tag_row, renamed, 3])
    with _client_for(db) as client:
        response = client.put("/api/v1/tags/tag-1", json={"name": "payment-cards"})

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "payment-cards"
    method, query, params = db.calls[2]
    assert method == "execute"
    assert "array_replace(tags, :old_name, :new_name)" in query
    assert params == {"old_name": "cards", "new_name": "payment-cards"}


def test_delete_unknown_tag_returns_404() -> None:
    with _client_for(FakeDBClient(responses=[None])) as client:
        response = client.delete("/api/v1/tags/ghost")

    assert response.status_code == 404
    assert response.json()["error_code"] == "TAG_NOT_FOUND"
