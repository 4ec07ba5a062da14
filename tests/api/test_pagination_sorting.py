# This file tests pagination and sorting behavior for deterministic list responses.
# It exists to validate both helper-level normalization and endpoint-level metadata output.
# The tests cover partial-page behavior and invalid sort/page size validation.

from __future__ import annotations

from src.api.pagination import compute_total_pages, normalize_pagination, parse_sort
from tests.api.support import FakeDBClient, api_test_client, build_test_config


class CapturingCatalogService:
    def __init__(self) -> None:
        self.last_kwargs: dict[str, object] = {}

    def list_services(self, **kwargs: object) -> dict[str, object]:
        self.last_kwargs = kwargs
        rows = []
        if int(kwargs["page"]) == 2:
            rows = [
                {
                    "id": "sms",
                    "name": "SMS Notifications",
                    "description": None,
                    "category": "messaging",
                    "unit": "per_sms",
                    "default_price": 0.02,
                    "pricing_type": "fixed",
                    "tiers": [],
                    "tags": [],
                    "is_active": True,
                    "is_archived": False,
                    "auto_add_services": [],
                    "quantity_source_fields": ["monthlySMS"],
                    "quantity_multiplier": None,
                }
            ]
        return {"rows": rows, "total_count": 3, "warnings": None}


def test_normalize_pagination_and_sort_helpers() -> None:
    pagination = normalize_pagination(
        page=2,
        page_size=2,
        limit=None,
        default_page_size=10,
        max_page_size=100,
    )
    sort = parse_sort(
        requested_sort="price:DESC",
        default_sort="name:asc",
        allowed_fields={"name", "price"},
    )

    assert pagination.page == 2
    assert pagination.page_size == 2
    assert pagination.offset == 2
    assert sort.field == "price"
    assert sort.order == "desc"
    assert parse_sort(requested_sort=None, default_sort="name", allowed_fields={"name"}).as_text == "name:asc"
    assert compute_total_pages(total_count=0, page_size=5) == 0
    assert compute_total_pages(total_count=11, page_size=5) == 3


def test_limit_takes_precedence_over_page_size() -> None:
    pagination = normalize_pagination(page=1, page_size=50, limit=3, default_page_size=10, max_page_size=100)

    assert pagination.page_size == 3


def test_partial_page_pagination_metadata_is_deterministic() -> None:
    fake_service = CapturingCatalogService()
    with api_test_client(
        config=build_test_config(),
        db_client=FakeDBClient(),
        catalog_service=fake_service,
    ) as client:
        response = client.get("/api/v1/services?page=2&page_size=2&sort=category:asc")

    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"]["page"] == 2
    assert payload["pagination"]["page_size"] == 2
    assert payload["pagination"]["total_count"] == 3
    assert payload["pagination"]["total_pages"] == 2
    assert payload["pagination"]["sort"] == "category:asc"
    assert [row["id"] for row in payload["data"]] == ["sms"]
    assert fake_service.last_kwargs["page"] == 2
    assert fake_service.last_kwargs["page_size"] == 2
    assert fake_service.last_kwargs["show_archived"] is False


def test_invalid_page_size_returns_400() -> None:
    with api_test_client(
        config=build_test_config(),
        db_client=FakeDBClient(),
        catalog_service=CapturingCatalogService(),
    ) as client:
        response = client.get("/api/v1/services?page_size=99")

    assert response.status_code == 400
    assert response.json()["error_code"] == "INVALID_QUERY_PARAM"
