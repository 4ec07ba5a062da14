# This file exposes quote exports as a command-line entrypoint.
# It exists so a saved scenario JSON file can be turned into CSV or HTML without running the API.
# Output defaults to the standard export file name in the current directory.

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from src.common.logging import configure_logging
from src.pricing_engine.engine_config import load_engine_config
from src.quote_export.csv_export import csv_file_name, generate_csv_data
from src.quote_export.html_report import generate_html_report, html_file_name
from src.quote_export.quote import quote_from_payload

LOGGER = logging.getLogger("quote_export")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a pricing scenario as CSV or HTML")
    parser.add_argument("--input", required=True, help="Path to a scenario JSON file")
    parser.add_argument("--format", choices=["csv", "html"], default="csv")
    parser.add_argument("--output", default=None, help="Output file path (default: generated name)")
    parser.add_argument("--engine-config", default=None, help="Path to pricing engine YAML config")
    parser.add_argument("--system-version", default=None, help="Version label printed in the HTML footer")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(level_name=args.log_level)

    with open(args.input, encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Scenario file {args.input} must contain a JSON object")

    quote = quote_from_payload(payload, config=load_engine_config(config_path=args.engine_config))
    if args.format == "csv":
        content = generate_csv_data(quote)
        default_name = csv_file_name(quote)
    else:
        content = generate_html_report(quote, system_version=args.system_version)
        default_name = html_file_name(quote)

    output_path = Path(args.output or default_name)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    LOGGER.info(
        "Exported %s quote for %s to %s (total project cost %.2f)",
        args.format,
        quote.client.client_name or "unnamed client",
        output_path,
        quote.summary.total_project_cost,
    )
    print(json.dumps({"output": str(output_path), "format": args.format}))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
