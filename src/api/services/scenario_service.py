# This file implements saved-scenario persistence and export assembly for the /scenarios routes.
# It exists so the router never trusts client-computed totals: every save recomputes the summary server side.
# Client configuration, selections, and the computed summary are stored as JSONB next to headline totals.
# Exports rebuild a quote document from the stored row so CSV and HTML share one computation.

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any

from src.api.api_config import ApiConfig
from src.api.db_access import DatabaseClient, json_param
from src.api.error_handlers import APIError
from src.api.pagination import SortSpec, page_bind_params
from src.api.sanitize import MAX_LENGTHS, sanitize_object, sanitize_string
from src.api.schemas.scenario_schemas import ScenarioCreateV1
from src.api.services.pricing_service import to_global_discount, to_selected_items, to_stored_categories
from src.pricing_engine.engine_config import EngineConfig
from src.pricing_engine.models import ClientConfig, ConfigurationField
from src.quote_export.quote import QuoteDocument, build_quote, quote_from_payload

LOGGER = logging.getLogger("scenarios")

SCENARIO_SORT_FIELD_MAP: dict[str, str] = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "client_name": "LOWER(client_name)",
    "total_project_cost": "total_project_cost",
}

_SCENARIO_COLUMNS = """
    submission_id,
    client_name,
    project_name,
    prepared_by,
    status,
    client_configuration,
    selected_services,
    global_discount,
    global_discount_type,
    global_discount_application,
    one_time_total,
    monthly_total,
    yearly_total,
    total_project_cost,
    created_at,
    updated_at
"""

_EXTRA_CONFIGURATION_KEYS = ("categories", "configuration_fields")


def parse_scenario_id(value: str) -> str | None:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def _json_column(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


def shape_scenario_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(row["submission_id"]),
        "client_name": str(row["client_name"]),
        "project_name": str(row["project_name"]),
        "prepared_by": str(row["prepared_by"]),
        "status": str(row["status"]),
        "one_time_total": float(row["one_time_total"]),
        "monthly_total": float(row["monthly_total"]),
        "yearly_total": float(row["yearly_total"]),
        "total_project_cost": float(row["total_project_cost"]),
        "created_at": _iso(row.get("created_at")),
        "updated_at": _iso(row.get("updated_at")),
    }


def _payload_from_row(row: dict[str, Any]) -> dict[str, Any]:
    stored_configuration = dict(_json_column(row.get("client_configuration"), {}))
    extras = {key: stored_configuration.pop(key, None) or [] for key in _EXTRA_CONFIGURATION_KEYS}
    return {
        "client_config": stored_configuration,
        "selected_items": _json_column(row.get("selected_services"), []),
        "global_discount": {
            "value": row.get("global_discount") or 0,
            "discount_type": row.get("global_discount_type") or "percentage",
            "application": row.get("global_discount_application") or "none",
        },
        **extras,
    }


class ScenarioService:
    """Saved scenario CRUD plus quote assembly for exports."""

    def __init__(self, *, config: ApiConfig, db: DatabaseClient, engine_config: EngineConfig) -> None:
        self.config = config
        self.db = db
        self.engine_config = engine_config
        self.scenarios_table = self.config.validate_table_name(self.config.scenarios_table_name)

    def list_scenarios(
        self,
        *,
        search: str | None,
        status: str | None,
        page: int,
        page_size: int,
        sort: SortSpec,
    ) -> dict[str, Any]:
        where_clauses: list[str] = ["TRUE"]
        params: dict[str, Any] = {}
        if search and search.strip():
            where_clauses.append("(client_name ILIKE :search OR project_name ILIKE :search)")
            params["search"] = f"%{search.strip()}%"
        if status:
            where_clauses.append("status = :status")
            params["status"] = status

        where_sql = " AND ".join(where_clauses)
        total_count_row = self.db.fetch_one(
            f"SELECT COUNT(*) AS total_count FROM {self.scenarios_table} WHERE {where_sql}",
            params,
        ) or {"total_count": 0}

        data_query = f"""
        SELECT {_SCENARIO_COLUMNS}
        FROM {self.scenarios_table}
        WHERE {where_sql}
        ORDER BY {sort.order_by(SCENARIO_SORT_FIELD_MAP, tiebreaker="submission_id")}
        LIMIT :limit OFFSET :offset
        """
        page_params = {**params, **page_bind_params(page=page, page_size=page_size)}
        rows = [shape_scenario_row(row) for row in self.db.fetch_all(data_query, page_params)]
        return {"rows": rows, "total_count": int(total_count_row["total_count"]), "warnings": None}

    def get_scenario(self, scenario_id: str) -> dict[str, Any] | None:
        row = self._fetch_row(scenario_id)
        return self._shape_detail(row) if row is not None else None

    def build_quote(self, scenario_id: str) -> QuoteDocument | None:
        row = self._fetch_row(scenario_id)
        if row is None:
            return None
        return quote_from_payload(_payload_from_row(row), config=self.engine_config)

    def save_scenario(self, payload: ScenarioCreateV1) -> dict[str, Any]:
        raw_client = ClientConfig.from_dict(payload.client_config.model_dump())
        client = ClientConfig(
            client_name=self._identity_value(raw_client.client_name, "client_name"),
            project_name=self._identity_value(raw_client.project_name, "project_name"),
            prepared_by=self._identity_value(raw_client.prepared_by, "prepared_by"),
            config_values=sanitize_object(raw_client.config_values),
        )

        try:
            quote = build_quote(
                client=client,
                selected_items=to_selected_items(payload.selected_items),
                global_discount=to_global_discount(payload.global_discount),
                categories=to_stored_categories(payload.categories),
                configuration_fields=[
                    ConfigurationField.from_dict(sanitize_object(field.model_dump()))
                    for field in payload.configuration_fields
                ],
                config=self.engine_config,
            )
        except ValueError as exc:
            raise APIError(
                status_code=400,
                error_code="INVALID_PRICING_INPUT",
                message=str(exc),
            ) from exc

        summary = quote.summary
        client_configuration = {
            **client.to_dict(),
            "categories": [category.to_dict() for category in quote.categories],
            "configuration_fields": sanitize_object([field.model_dump() for field in payload.configuration_fields]),
        }
        query = f"""
        INSERT INTO {self.scenarios_table} (
            client_name, project_name, prepared_by, status, client_configuration, selected_services,
            global_discount, global_discount_type, global_discount_application, cost_summary,
            one_time_total, monthly_total, yearly_total, total_project_cost
        )
        VALUES (
            :client_name, :project_name, :prepared_by, :status, CAST(:client_configuration AS JSONB),
            CAST(:selected_services AS JSONB), :global_discount, :global_discount_type,
            :global_discount_application, CAST(:cost_summary AS JSONB), :one_time_total,
            :monthly_total, :yearly_total, :total_project_cost
        )
        RETURNING {_SCENARIO_COLUMNS}
        """
        row = self.db.execute_returning(
            query,
            {
                "client_name": client.client_name,
                "project_name": client.project_name,
                "prepared_by": client.prepared_by,
                "status": sanitize_string(payload.status, 50) or "submitted",
                "client_configuration": json_param(client_configuration),
                "selected_services": json_param([item.to_dict() for item in quote.selected_items]),
                "global_discount": quote.global_discount.value,
                "global_discount_type": quote.global_discount.discount_type,
                "global_discount_application": quote.global_discount.application,
                "cost_summary": json_param(summary.to_dict()),
                "one_time_total": summary.one_time_total,
                "monthly_total": summary.monthly_total,
                "yearly_total": summary.yearly_total,
                "total_project_cost": summary.total_project_cost,
            },
        )
        if row is None:
            raise APIError(
                status_code=500,
                error_code="SCENARIO_NOT_SAVED",
                message="The scenario could not be saved.",
            )
        LOGGER.info(
            "Saved scenario %s items=%s total_project_cost=%.2f",
            row["submission_id"],
            summary.item_count,
            summary.total_project_cost,
        )
        return self._shape_detail(row)

    def delete_scenario(self, scenario_id: str) -> bool:
        parsed_id = parse_scenario_id(scenario_id)
        if parsed_id is None:
            return False
        deleted = self.db.execute_returning(
            f"DELETE FROM {self.scenarios_table} WHERE submission_id = CAST(:id AS UUID) RETURNING submission_id",
            {"id": parsed_id},
        )
        return deleted is not None

    def _fetch_row(self, scenario_id: str) -> dict[str, Any] | None:
        parsed_id = parse_scenario_id(scenario_id)
        if parsed_id is None:
            return None
        return self.db.fetch_one(
            f"SELECT {_SCENARIO_COLUMNS} FROM {self.scenarios_table} WHERE submission_id = CAST(:id AS UUID)",
            {"id": parsed_id},
        )

    def _shape_detail(self, row: dict[str, Any]) -> dict[str, Any]:
        payload = _payload_from_row(row)
        quote = quote_from_payload(payload, config=self.engine_config)
        return {
            **shape_scenario_row(row),
            "client_config": quote.client.to_dict(),
            "selected_items": [item.to_dict() for item in quote.selected_items],
            "global_discount": quote.global_discount.to_dict(),
            "categories": [category.to_dict() for category in quote.categories],
            "configuration_fields": list(payload["configuration_fields"]),
            "summary": quote.summary.to_dict(),
        }

    @staticmethod
    def _identity_value(value: str, field_name: str) -> str:
        return sanitize_string(value, MAX_LENGTHS[field_name]) or "Unknown"
