# This file tests the public guest submission endpoint and the internal review listing.
# It exists so validation, rate limiting, and submission codes behave predictably for prospects.
# Requests run through the real guest service with a scripted fake database client.

from __future__ import annotations

import json
import re
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

import pytest

from src.api.services.guest_service import GuestSubmissionService, generate_submission_code
from src.api.submission_limiter import SubmissionRateLimiter
from src.pricing_engine.engine_config import EngineConfig
from tests.api.support import FakeDBClient, api_test_client, build_test_config

CODE_RE = re.compile(r"^ISS-\d{8}-[A-Z0-9]{5}$")
SUBMISSION_ID = "0b6f8c52-52a4-4a38-9d55-6f0d0c7e9a11"

CONTACT = {
    "email": "Buyer@Example.com",
    "phoneNumber": "+1 (555) 010-2030",
    "firstName": "Jordan",
    "lastName": "Lee",
    "companyName": "Acme Corp",
}
SUBMISSION = {
    **CONTACT,
    "clientConfig": {"clientName": "Acme Corp", "projectName": "Rollout"},
    "selectedItems": [
        {
            "id": "row-1",
            "item": {"id": "seats", "name": "Seats", "category": "platform", "unit": "per_user", "defaultPrice": 5},
            "quantity": 10,
        }
    ],
}
GUEST_ROW: dict[str, Any] = {
    "id": SUBMISSION_ID,
    "submission_code": "ISS-20260301-AB12C",
    "email": "buyer@example.com",
    "phone_number": "+1 (555) 010-2030",
    "first_name": "Jordan",
    "last_name": "Lee",
    "company_name": "Acme Corp",
    "scenario_name": "Acme Corp - Rollout",
    "scenario_data": json.dumps({"summary": {"total_project_cost": 600.0}}),
    "total_price": Decimal("600"),
    "status": "submitted",
    "client_ip": "203.0.113.9",
    "created_at": datetime(2026, 3, 1, 10, 0, tzinfo=UTC),
}


def _client_for(db: FakeDBClient, *, hourly_limit: int = 5) -> Any:
    config = build_test_config()
    service = GuestSubmissionService(
        config=config,
        db=db,
        engine_config=EngineConfig(),
        limiter=SubmissionRateLimiter(hourly_limit=hourly_limit, daily_limit=20),
    )
    return api_test_client(config=config, db_client=db, guest_service=service)


def test_generate_submission_code_format() -> None:
    code = generate_submission_code("ISS", today=date(2024, 1, 15))

    assert code.startswith("ISS-20240115-")
    assert CODE_RE.match(code)


def test_valid_submission_is_priced_and_stored() -> None:
    db = FakeDBClient(responses=[0, GUEST_ROW])
    with _client_for(db) as client:
        response = client.post(
            "/api/v1/guest-scenarios",
            json=SUBMISSION,
            headers={"x-forwarded-for": "203.0.113.9, 10.0.0.1"},
        )

    assert response.status_code == 201
    assert response.json()["data"] == {
        "id": SUBMISSION_ID,
        "submission_code": "ISS-20260301-AB12C",
        "scenario_name": "Acme Corp - Rollout",
        "total_price": 600.0,
        "status": "submitted",
        "created_at": "2026-03-01T10:00:00+00:00",
    }
    method, query, params = db.calls[1]
    assert method == "execute_returning"
    assert query.startswith("INSERT INTO guest_scenarios")
    assert CODE_RE.match(params["submission_code"])
    assert params["email"] == "buyer@example.com"
    assert params["client_ip"] == "203.0.113.9"
    assert params["scenario_name"] == "Acme Corp - Rollout"
    assert params["total_price"] == pytest.approx(600)
    assert json.loads(params["scenario_data"])["summary"]["monthly_total"] == pytest.approx(50)


def test_missing_and_invalid_contact_fields_are_all_reported() -> None:
    body = {**SUBMISSION, "email": "not-an-email", "phoneNumber": "call me", "lastName": "  "}
    with _client_for(FakeDBClient()) as client:
        response = client.post("/api/v1/guest-scenarios", json=body)

    assert response.status_code == 400
    payload = response.json()
    assert payload["error_code"] == "INVALID_GUEST_SUBMISSION"
    assert {error["field"] for error in payload["details"]} == {"email", "phone_number", "last_name"}


def test_rejected_submissions_do_not_consume_rate_limit() -> None:
    db = FakeDBClient(responses=[0, GUEST_ROW])
    with _client_for(db, hourly_limit=1) as client:
        rejected = client.post("/api/v1/guest-scenarios", json={**SUBMISSION, "email": None})
        accepted = client.post("/api/v1/guest-scenarios", json=SUBMISSION)

    assert rejected.status_code == 400
    assert accepted.status_code == 201


def test_invalid_pricing_input_does_not_consume_rate_limit() -> None:
    bad_tier = {"id": "t", "min_quantity": 10, "max_quantity": 5, "unit_price": 1}
    bad_item = {**SUBMISSION["selectedItems"][0]["item"], "pricing_type": "tiered", "tiers": [bad_tier]}
    body = {**SUBMISSION, "selectedItems": [{"id": "row-1", "item": bad_item, "quantity": 7}]}
    db = FakeDBClient(responses=[0, GUEST_ROW])
    headers = {"x-forwarded-for": "192.0.2.44"}
    with _client_for(db, hourly_limit=1) as client:
        rejected = client.post("/api/v1/guest-scenarios", json=body, headers=headers)
        accepted = client.post("/api/v1/guest-scenarios", json=SUBMISSION, headers=headers)

    assert rejected.status_code == 400
    assert rejected.json()["error_code"] == "INVALID_PRICING_INPUT"
    assert accepted.status_code == 201


def test_stored_categories_are_sanitized() -> None:
    category = {"id": "platform", "name": "<b>Platform</b> ", "description": " <i>Core</i>"}
    body = {**SUBMISSION, "categories": [category]}
    db = FakeDBClient(responses=[0, GUEST_ROW])
    with _client_for(db) as client:
        response = client.post("/api/v1/guest-scenarios", json=body)

    assert response.status_code == 201
    stored = json.loads(db.calls[1][2]["scenario_data"])
    assert stored["categories"][0]["name"] == "Platform"
    assert stored["categories"][0]["description"] == "Core"


def test_second_submission_within_the_hour_is_rate_limited() -> None:
    db = FakeDBClient(responses=[0, GUEST_ROW])
    headers = {"x-forwarded-for": "198.51.100.7"}
    with _client_for(db, hourly_limit=1) as client:
        first = client.post("/api/v1/guest-scenarios", json=SUBMISSION, headers=headers)
        second = client.post("/api/v1/guest-scenarios", json=SUBMISSION, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 429
    payload = second.json()
    assert payload["error_code"] == "RATE_LIMITED"
    assert payload["details"]["retry_after_seconds"] >= 1
    assert second.headers["retry-after"] == str(payload["details"]["retry_after_seconds"])
    assert len(db.calls) == 2


def test_exhausted_submission_codes_return_503() -> None:
    db = FakeDBClient(responses=[1, 1, 1, 1, 1])
    with _client_for(db) as client:
        response = client.post("/api/v1/guest-scenarios", json=SUBMISSION)

    assert response.status_code == 503
    assert response.json()["error_code"] == "SUBMISSION_CODE_UNAVAILABLE"
    assert [call[0] for call in db.calls] == ["fetch_scalar"] * 5


def test_list_submissions_is_newest_first() -> None:
    db = FakeDBClient(responses=[{"total_count": 1}, [GUEST_ROW]])
    with _client_for(db) as client:
        response = client.get("/api/v1/guest-submissions?status=submitted")

    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"]["sort"] == "created_at:desc"
    assert payload["data"][0]["company_name"] == "Acme Corp"
    assert "scenario_data" not in payload["data"][0]
    assert db.calls[0][2] == {"status": "submitted"}
    assert "ORDER BY created_at DESC, id ASC" in db.calls[1][1]


def test_get_submission_includes_scenario_data() -> None:
    db = FakeDBClient(responses=[GUEST_ROW])
    with _client_for(db) as client:
        found = client.get(f"/api/v1/guest-submissions/{SUBMISSION_ID}")
        invalid = client.get("/api/v1/guest-submissions/not-a-uuid")

    assert found.status_code == 200
    data = found.json()["data"]
    assert data["scenario_data"] == {"summary": {"total_project_cost": 600.0}}
    assert data["client_ip"] == "203.0.113.9"
    assert invalid.status_code == 404
    assert invalid.json()["error_code"] == "SUBMISSION_NOT_FOUND"
