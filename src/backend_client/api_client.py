# This file implements the HTTP client for the pricing simulator API.
# It exists so scripts and other services can call versioned endpoints without embedding request details everywhere.
# The client unwraps response envelopes and converts transport failures into one clear exception type.
# Rejected requests surface the API error code so callers can branch on it.

from __future__ import annotations

import logging
import re
from typing import Any

import requests
from requests.utils import quote

LOGGER = logging.getLogger("backend_client")

_VERSION_SUFFIX_RE = re.compile(r"/api/v\d+$")


def _resource_path(collection: str, resource_id: str, *suffix: str) -> str:
    # The id is always a single path segment.
    segments = [collection, quote(str(resource_id), safe=""), *suffix]
    return "/" + "/".join(segments)


class ApiUnavailableError(RuntimeError):
    """Raised when the API cannot be reached or responds with server errors."""


class ApiRequestError(ValueError):
    """Raised when the API rejects a request with a 4xx status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        error_code: str | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.details = details


class SimulatorApiClient:
    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: int = 8,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def health_check(self, *, health_url: str | None = None, retries: int = 1) -> bool:
        """True when `/health` answers with status ok within `retries` attempts."""

        url = health_url or f"{self._root_url()}/health"
        for _ in range(max(1, retries)):
            try:
                response = self.session.request(
                    "GET", url, params=None, json=None, timeout=self.timeout_seconds
                )
            except requests.RequestException as exc:
                LOGGER.debug("Health check attempt failed for %s: %s", url, exc)
                continue
            if response.status_code == 200:
                try:
                    return response.json().get("status") == "ok"
                except ValueError:
                    return False
        return False

    # catalog

    def list_services(
        self,
        *,
        category_id: str | None = None,
        tags: list[str] | None = None,
        search: str | None = None,
        show_archived: bool = False,
        page: int = 1,
        page_size: int = 200,
        sort: str = "name:asc",
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "page": page,
            "page_size": page_size,
            "sort": sort,
            "show_archived": show_archived,
        }
        if category_id:
            params["category_id"] = category_id
        if tags:
            params["tag"] = list(tags)
        if search:
            params["search"] = search
        return list(self._request_json("GET", "/services", params=params).get("data", []))

    def get_service(self, service_id: str) -> dict[str, Any] | None:
        return self._optional_data("GET", _resource_path("services", service_id))

    def create_service(self, service: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/services", json_body=service)

    def update_service(self, service_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self._data("PUT", _resource_path("services", service_id), json_body=changes)

    def delete_service(self, service_id: str) -> bool:
        return self._optional_data("DELETE", _resource_path("services", service_id)) is not None

    def list_categories(self, *, include_inactive: bool = False) -> list[dict[str, Any]]:
        payload = self._request_json("GET", "/categories", params={"include_inactive": include_inactive})
        return list(payload.get("data", []))

    def create_category(self, category: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/categories", json_body=category)

    def update_category(self, category_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self._data("PUT", _resource_path("categories", category_id), json_body=changes)

    def delete_category(self, category_id: str) -> bool:
        return self._optional_data("DELETE", _resource_path("categories", category_id)) is not None

    def list_tags(self) -> list[dict[str, Any]]:
        return list(self._request_json("GET", "/tags").get("data", []))

    def create_tag(self, tag: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/tags", json_body=tag)

    def update_tag(self, tag_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self._data("PUT", _resource_path("tags", tag_id), json_body=changes)

    def delete_tag(self, tag_id: str) -> bool:
        return self._optional_data("DELETE", _resource_path("tags", tag_id)) is not None

    # pricing

    def calculate_summary(
        self,
        *,
        selected_items: list[dict[str, Any]],
        global_discount: dict[str, Any] | None = None,
        categories: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"selected_items": selected_items, "categories": categories or []}
        if global_discount is not None:
            body["global_discount"] = global_discount
        return self._data("POST", "/pricing/calculate", json_body=body)

    def get_tiered_price(self, *, item: dict[str, Any], quantity: float) -> dict[str, Any]:
        return self._data("POST", "/pricing/tiered-price", json_body={"item": item, "quantity": quantity})

    def evaluate_auto_add(self, request_body: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/pricing/auto-add", json_body=request_body)

    # scenarios

    def save_scenario(self, scenario: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/scenarios", json_body=scenario)

    def list_scenarios(
        self,
        *,
        search: str | None = None,
        page: int = 1,
        page_size: int = 50,
        sort: str = "created_at:desc",
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"page": page, "page_size": page_size, "sort": sort}
        if search:
            params["search"] = search
        return list(self._request_json("GET", "/scenarios", params=params).get("data", []))

    def get_scenario(self, scenario_id: str) -> dict[str, Any] | None:
        return self._optional_data("GET", _resource_path("scenarios", scenario_id))

    def delete_scenario(self, scenario_id: str) -> bool:
        return self._optional_data("DELETE", _resource_path("scenarios", scenario_id)) is not None

    def download_export(self, scenario_id: str, fmt: str = "csv") -> str:
        if fmt not in {"csv", "html"}:
            raise ValueError(f"Unsupported export format: {fmt!r}")
        path = _resource_path("scenarios", scenario_id, f"export.{fmt}")
        response = self._send("GET", path, params=None, json_body=None)
        return str(response.text)

    # guest submissions

    def submit_guest_scenario(self, submission: dict[str, Any]) -> dict[str, Any]:
        return self._data("POST", "/guest-scenarios", json_body=submission)

    def list_guest_submissions(
        self, *, status: str | None = None, page: int = 1, page_size: int = 50
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"page": page, "page_size": page_size}
        if status:
            params["status"] = status
        return list(self._request_json("GET", "/guest-submissions", params=params).get("data", []))

    def get_guest_submission(self, submission_id: str) -> dict[str, Any] | None:
        return self._optional_data("GET", _resource_path("guest-submissions", submission_id))

    def _root_url(self) -> str:
        # Health routes are mounted outside the versioned prefix.
        return _VERSION_SUFFIX_RE.sub("", self.base_url)

    def _data(
        self, method: str, path: str, *, json_body: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        data = self._request_json(method, path, json_body=json_body).get("data")
        if not isinstance(data, dict):
            raise ApiUnavailableError(f"Unexpected payload shape from {self.base_url}{path}")
        return dict(data)

    def _optional_data(self, method: str, path: str) -> dict[str, Any] | None:
        try:
            return self._data(method, path)
        except ApiRequestError as exc:
            if exc.status_code == 404:
                return None
            raise

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None,
        json_body: dict[str, Any] | None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=json_body, timeout=self.timeout_seconds
            )
        except requests.RequestException as exc:
            LOGGER.warning("%s %s failed: %s", method, url, exc)
            raise ApiUnavailableError(f"API request failed for {url}: {exc}") from exc

        if response.status_code >= 500:
            raise ApiUnavailableError(
                f"API request failed with status {response.status_code} for {url}"
            )
        if response.status_code >= 400:
            error_code: str | None = None
            details: Any | None = None
            message = f"API request was rejected with status {response.status_code} for {url}"
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                error_code = body.get("error_code")
                details = body.get("details")
                if body.get("message"):
                    message = f"{message}: {body['message']}"
            raise ApiRequestError(
                message,
                status_code=response.status_code,
                error_code=error_code,
                details=details,
            )
        return response

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        response = self._send(method, path, params=params, json_body=json_body)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiUnavailableError(f"API did not return valid JSON for {url}") from exc

        if not isinstance(payload, dict):
            raise ApiUnavailableError(f"Unexpected payload shape from {url}")
        return payload
