# This file wraps the SQLAlchemy engine behind the small query surface the services use.
# Every statement is parameterized text; identifiers are only ever interpolated after allowlist checks.
# Reads share a plain connection while writes run inside `engine.begin()` so they commit or roll back together.
# JSON payloads are bound as compact text and cast to JSONB in the SQL itself.

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, CursorResult, Engine
from sqlalchemy.exc import SQLAlchemyError

LOGGER = logging.getLogger("api.db")

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
Params = Mapping[str, Any] | None


def json_param(value: Any) -> str:
    """Serialize a payload for a `CAST(:param AS JSONB)` bind."""

    return json.dumps(value, default=str, separators=(",", ":"))


def safe_identifier(identifier: str) -> str:
    if not _IDENTIFIER_RE.match(identifier):
        raise ValueError(f"Unsafe SQL identifier: {identifier!r}")
    return identifier


class DatabaseClient:
    def __init__(self, *, database_url: str) -> None:
        self._engine: Engine = create_engine(database_url, pool_pre_ping=True, future=True)
        self._known_tables: dict[str, bool] = {}

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _connection(self, *, write: bool) -> Iterator[Connection]:
        context = self._engine.begin() if write else self._engine.connect()
        with context as connection:
            yield connection

    def _run(self, connection: Connection, query: str, params: Params) -> CursorResult[Any]:
        return connection.execute(text(query), dict(params or {}))

    def can_connect(self) -> bool:
        try:
            with self._connection(write=False) as connection:
                self._run(connection, "SELECT 1", None)
        except SQLAlchemyError as exc:
            LOGGER.warning("Database connectivity check failed: %s", exc)
            return False
        return True

    def table_exists(self, table_name: str) -> bool:
        with self._connection(write=False) as connection:
            found = self._run(
                connection,
                "SELECT to_regclass(:table_name) IS NOT NULL",
                {"table_name": safe_identifier(table_name)},
            ).scalar_one()
        return bool(found)

    def fetch_all(self, query: str, params: Params = None) -> list[dict[str, Any]]:
        with self._connection(write=False) as connection:
            return [dict(row) for row in self._run(connection, query, params).mappings()]

    def fetch_one(self, query: str, params: Params = None) -> dict[str, Any] | None:
        with self._connection(write=False) as connection:
            row = self._run(connection, query, params).mappings().first()
        return None if row is None else dict(row)

    def fetch_scalar(self, query: str, params: Params = None) -> Any:
        with self._connection(write=False) as connection:
            return self._run(connection, query, params).scalar_one()

    def execute(self, query: str, params: Params = None) -> int:
        """Run a write and return the affected row count."""

        with self._connection(write=True) as connection:
            return int(self._run(connection, query, params).rowcount or 0)

    def execute_returning(self, query: str, params: Params = None) -> dict[str, Any] | None:
        """Run an INSERT/UPDATE/DELETE ... RETURNING and hand back the first returned row."""

        with self._connection(write=True) as connection:
            row = self._run(connection, query, params).mappings().first()
        return None if row is None else dict(row)

    def log_request(
        self,
        *,
        table_name: str,
        request_id: str,
        path: str,
        method: str,
        status_code: int,
        duration_ms: float,
    ) -> None:
        """Append one request log row; silently skipped while the log table is absent."""

        table = safe_identifier(table_name)
        if not self._known_tables.get(table):
            self._known_tables[table] = self.table_exists(table)
            if not self._known_tables[table]:
                return

        self.execute(
            f"""
            INSERT INTO {table} (request_id, path, method, status_code, duration_ms, created_at)
            VALUES (:request_id, :path, :method, :status_code, :duration_ms, NOW())
            """,
            {
                "request_id": request_id,
                "path": path,
                "method": method,
                "status_code": status_code,
                "duration_ms": duration_ms,
            },
        )
