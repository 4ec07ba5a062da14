# This file implements guest scenario submissions and the internal review listing.
# It exists so the unauthenticated flow validates, rate-limits, and prices submissions in one place.
# Contact details are sanitized before storage and the quote total is recomputed server side.
# Submission codes look like ISS-20240115-AB12C and are unique per stored row.

from __future__ import annotations

import json
import logging
import secrets
import string
import uuid
from datetime import UTC, date, datetime
from typing import Any

from prometheus_client import Counter

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, json_param
from src.api.error_handlers import APIError
from src.api.pagination import page_bind_params
from src.api.sanitize import MAX_LENGTHS, sanitize_object, sanitize_string, validate_guest_contact
from src.api.schemas.guest_schemas import GuestScenarioCreateV1
from src.api.services.pricing_service import to_global_discount, to_selected_items, to_stored_categories
from src.api.submission_limiter import SubmissionRateLimiter
from src.pricing_engine.engine_config import EngineConfig
from src.pricing_engine.models import ClientConfig
from src.quote_export.quote import build_quote

LOGGER = logging.getLogger("guest_submissions")

GUEST_SUBMISSIONS_TOTAL = Counter(
    "guest_submissions_total",
    "Guest scenario submissions by outcome.",
    ["outcome"],
)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_SUFFIX_LENGTH = 5
MAX_CODE_ATTEMPTS = 5

_CONTACT_FIELDS = ("email", "phone_number", "first_name", "last_name", "company_name")
_RESULT_FIELDS = ("id", "submission_code", "scenario_name", "total_price", "status", "created_at")

_GUEST_COLUMNS = """
    id,
    submission_code,
    email,
    phone_number,
    first_name,
    last_name,
    company_name,
    scenario_name,
    scenario_data,
    total_price,
    status,
    client_ip,
    created_at
"""


def generate_submission_code(prefix: str, *, today: date | None = None) -> str:
    day = (today or datetime.now(tz=UTC).date()).strftime("%Y%m%d")
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"{prefix}-{day}-{suffix}"


def shape_guest_row(row: dict[str, Any], *, include_details: bool = False) -> dict[str, Any]:
    created_at = row.get("created_at")
    shaped: dict[str, Any] = {
        "id": str(row["id"]),
        "submission_code": str(row["submission_code"]),
        "scenario_name": str(row["scenario_name"]),
        "total_price": float(row["total_price"]),
        "status": str(row["status"]),
        "created_at": created_at.isoformat() if isinstance(created_at, datetime) else created_at,
    }
    for field_name in _CONTACT_FIELDS:
        shaped[field_name] = str(row.get(field_name) or "")
    if include_details:
        scenario_data = row.get("scenario_data") or {}
        if isinstance(scenario_data, (str, bytes)):
            scenario_data = json.loads(scenario_data)
        shaped["scenario_data"] = scenario_data
        shaped["client_ip"] = row.get("client_ip")
    return shaped


class GuestSubmissionService:
    def __init__(
        self,
        *,
        config: ApiConfig,
        db: DatabaseClient,
        engine_config: EngineConfig,
        limiter: SubmissionRateLimiter,
    ) -> None:
        self.config = config
        self.db = db
        self.engine_config = engine_config
        self.limiter = limiter
        self.guest_table = self.config.validate_table_name(self.config.guest_submissions_table_name)

    def submit(self, payload: GuestScenarioCreateV1, *, client_ip: str | None) -> dict[str, Any]:
        """Validate, price, rate-limit, and store one guest submission."""

        contact, errors = validate_guest_contact(payload.model_dump(include=set(_CONTACT_FIELDS)))
        if errors:
            GUEST_SUBMISSIONS_TOTAL.labels(outcome="invalid").inc()
            raise APIError(
                status_code=400,
                error_code="INVALID_GUEST_SUBMISSION",
                message="Guest submission failed validation.",
                details=errors,
            )

        raw_client = ClientConfig.from_dict(payload.client_config.model_dump())
        client = ClientConfig(
            client_name=sanitize_string(raw_client.client_name, MAX_LENGTHS["client_name"]),
            project_name=sanitize_string(raw_client.project_name, MAX_LENGTHS["project_name"]),
            prepared_by=sanitize_string(raw_client.prepared_by, MAX_LENGTHS["prepared_by"]),
            config_values=sanitize_object(raw_client.config_values),
        )
        try:
            quote = build_quote(
                client=client,
                selected_items=to_selected_items(payload.selected_items),
                global_discount=to_global_discount(payload.global_discount),
                categories=to_stored_categories(payload.categories),
                config=self.engine_config,
            )
        except ValueError as exc:
            GUEST_SUBMISSIONS_TOTAL.labels(outcome="invalid").inc()
            raise APIError(
                status_code=400,
                error_code="INVALID_PRICING_INPUT",
                message=str(exc),
            ) from exc

        # Only submissions that passed every check count against the client's windows.
        decision = self.limiter.check_and_record(client_ip or "unknown")
        if not decision.allowed:
            GUEST_SUBMISSIONS_TOTAL.labels(outcome="rate_limited").inc()
            LOGGER.warning("Guest submission rate limited for %s: %s", client_ip, decision.reason)
            raise APIError(
                status_code=429,
                error_code="RATE_LIMITED",
                message=decision.reason or "Too many submissions.",
                details={"retry_after_seconds": decision.retry_after_seconds},
            )

        scenario_name = sanitize_string(payload.scenario_name, MAX_LENGTHS["scenario_name"])
        if not scenario_name:
            scenario_name = f"{contact['company_name']} - {client.project_name or 'Quote'}"

        scenario_data = {
            "client_config": client.to_dict(),
            "selected_items": sanitize_object([item.to_dict() for item in quote.selected_items]),
            "global_discount": quote.global_discount.to_dict(),
            "categories": [category.to_dict() for category in quote.categories],
            "summary": quote.summary.to_dict(),
        }

        row = self.db.execute_returning(
            f"""
            INSERT INTO {self.guest_table} (
                submission_code, email, phone_number, first_name, last_name, company_name,
                scenario_name, scenario_data, total_price, status, client_ip
            )
            VALUES (
                :submission_code, :email, :phone_number, :first_name, :last_name, :company_name,
                :scenario_name, CAST(:scenario_data AS JSONB), :total_price, 'submitted', :client_ip
            )
            RETURNING {_GUEST_COLUMNS}
            """,
            {
                **contact,
                "submission_code": self._unique_code(),
                "scenario_name": scenario_name,
                "scenario_data": json_param(scenario_data),
                "total_price": quote.summary.total_project_cost,
                "client_ip": client_ip,
            },
        )
        if row is None:
            raise APIError(
                status_code=500,
                error_code="SUBMISSION_NOT_SAVED",
                message="The guest submission could not be saved.",
            )

        GUEST_SUBMISSIONS_TOTAL.labels(outcome="accepted").inc()
        LOGGER.info(
            "Stored guest submission %s total_price=%.2f",
            row["submission_code"],
            quote.summary.total_project_cost,
        )
        shaped = shape_guest_row(row)
        return {key: shaped[key] for key in _RESULT_FIELDS}

    def list_submissions(self, *, status: str | None, page: int, page_size: int) -> dict[str, Any]:
        where_sql = "TRUE"
        params: dict[str, Any] = {}
        if status:
            where_sql = "status = :status"
            params["status"] = status

        total_count_row = self.db.fetch_one(
            f"SELECT COUNT(*) AS total_count FROM {self.guest_table} WHERE {where_sql}",
            params,
        ) or {"total_count": 0}
        rows = self.db.fetch_all(
            f"""
            SELECT {_GUEST_COLUMNS}
            FROM {self.guest_table}
            WHERE {where_sql}
            ORDER BY created_at DESC, id ASC
            LIMIT :limit OFFSET :offset
            """,
            {**params, **page_bind_params(page=page, page_size=page_size)},
        )
        return {
            "rows": [shape_guest_row(row) for row in rows],
            "total_count": int(total_count_row["total_count"]),
            "warnings": None,
        }

    def get_submission(self, submission_id: str) -> dict[str, Any] | None:
        try:
            parsed_id = str(uuid.UUID(str(submission_id)))
        except ValueError:
            return None
        row = self.db.fetch_one(
            f"SELECT {_GUEST_COLUMNS} FROM {self.guest_table} WHERE id = CAST(:id AS UUID)",
            {"id": parsed_id},
        )
        return shape_guest_row(row, include_details=True) if row is not None else None

    def _unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_submission_code(self.config.submission_code_prefix)
            taken = self.db.fetch_scalar(
                f"SELECT COUNT(*) FROM {self.guest_table} WHERE submission_code = :code",
                {"code": code},
            )
            if not taken:
                return code
        raise APIError(
            status_code=503,
            error_code="SUBMISSION_CODE_UNAVAILABLE",
            message="Could not allocate a unique submission code; retry shortly.",
        )
