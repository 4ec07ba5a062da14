"""DDL helpers for simulator tables."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine

DDL_ORDER = [
    "001_create_simulator_categories.sql",
    "002_create_simulator_tags.sql",
    "003_create_simulator_services.sql",
    "004_create_simulator_submissions.sql",
    "005_create_guest_scenarios.sql",
    "006_create_api_request_log.sql",
]


def apply_simulator_ddl(engine: Engine, ddl_dir: Path | None = None) -> list[str]:
    """Apply simulator DDL files in deterministic order and return the files applied."""

    ddl_path = ddl_dir or Path("sql/ddl")
    applied: list[str] = []
    with engine.begin() as connection:
        for ddl_file in DDL_ORDER:
            sql_text = (ddl_path / ddl_file).read_text(encoding="utf-8")
            connection.exec_driver_sql(sql_text)
            applied.append(ddl_file)
    return applied
