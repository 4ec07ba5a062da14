#!/usr/bin/env python3
"""
Create or refresh the simulator tables in the configured database.
Run it directly before the first API start; it is idempotent and prints the files applied.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sqlalchemy import create_engine

from src.common.ddl import apply_simulator_ddl
from src.common.settings import get_settings


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply simulator DDL")
    parser.add_argument("--ddl-dir", default=str(ROOT_DIR / "sql" / "ddl"))
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    engine = create_engine(get_settings().DATABASE_URL, pool_pre_ping=True, future=True)
    applied = apply_simulator_ddl(engine, Path(args.ddl_dir))
    print(json.dumps({"applied": applied}, indent=2))


if __name__ == "__main__":
    main()
