# This file renders a quote as a sectioned CSV document for spreadsheets.
# It exists so sales users can hand clients an editable breakdown alongside the printable report.
# Sections follow the simulator export layout: client info, configuration, items, and cost summary.
# The item table is built as a DataFrame so quoting and column order are handled by pandas.

from __future__ import annotations

import csv
import io
from datetime import date
from typing import Any

import pandas as pd

from src.quote_export.formatting import (
    format_decimal_number,
    format_discount,
    format_number,
    format_price,
)
from src.quote_export.quote import QuoteDocument, export_file_name

ITEM_COLUMNS = ["Item Name", "Description", "Quantity", "Unit Price", "Discount", "Is Free", "Row Total"]


def _format_config_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return format_number(value)
    if value is None:
        return ""
    return str(value)


def _global_discount_display(quote: QuoteDocument) -> str:
    discount = quote.global_discount
    if discount.discount_type == "percentage":
        return f"{format_decimal_number(discount.value)}%"
    return format_price(discount.value, quote.engine_config)


def build_items_frame(quote: QuoteDocument) -> pd.DataFrame:
    config = quote.engine_config
    rows = [
        {
            "Item Name": selected.item.name,
            "Description": selected.item.description or "",
            "Quantity": format_number(selected.quantity),
            "Unit Price": format_price(selected.unit_price, config),
            "Discount": format_discount(selected.discount, selected.discount_type, config),
            "Is Free": "Yes" if selected.is_free else "No",
            "Row Total": format_price(line.total, config),
        }
        for selected, line in zip(quote.selected_items, quote.summary.lines, strict=True)
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def generate_csv_data(quote: QuoteDocument) -> str:
    config = quote.engine_config
    summary = quote.summary
    labels = quote.field_labels()

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Pricing Simulator Export"])
    writer.writerow([])

    writer.writerow(["CLIENT INFORMATION"])
    writer.writerow(["Client Name", quote.client.client_name])
    writer.writerow(["Project Name", quote.client.project_name])
    writer.writerow(["Prepared By", quote.client.prepared_by])
    writer.writerow(["Global Discount", _global_discount_display(quote)])
    writer.writerow([])

    if quote.client.config_values:
        writer.writerow(["CONFIGURATION"])
        for field_id, value in quote.client.config_values.items():
            writer.writerow([labels.get(field_id, field_id), _format_config_value(value)])
        writer.writerow([])

    writer.writerow(["SELECTED ITEMS"])
    buffer.write(build_items_frame(quote).to_csv(index=False, lineterminator="\n"))
    writer.writerow([])

    writer.writerow(["COST SUMMARY"])
    writer.writerow(["One-time Total", format_price(summary.one_time_total, config)])
    writer.writerow(["Monthly Total", format_price(summary.monthly_total, config)])
    writer.writerow(["Yearly Total", format_price(summary.yearly_total, config)])
    writer.writerow(["Total Project Cost", format_price(summary.total_project_cost, config)])
    return buffer.getvalue()


def csv_file_name(quote: QuoteDocument, *, on_date: date | None = None) -> str:
    return export_file_name(quote, extension="csv", on_date=on_date)
