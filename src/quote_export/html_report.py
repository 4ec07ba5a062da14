# This file renders a quote as a standalone printable HTML document.
# It exists so a browser "print to PDF" of the report produces the client-facing proposal.
# Every user-supplied string is HTML-escaped; styling is inline so the file has no external assets.
# Sections: header, service details with tier breakdowns, category totals, discounts, savings, cost summary.

from __future__ import annotations

from html import escape

from src.pricing_engine.models import LineBreakdown, SelectedItem
from src.pricing_engine.tiered_pricing import get_quantity_source_description
from src.quote_export.formatting import (
    format_decimal_number,
    format_discount,
    format_number,
    format_percent,
    format_price,
)
from src.quote_export.quote import QuoteDocument, export_file_name

_STYLE = """
body { font-family: Arial, Helvetica, sans-serif; color: #1f2933; margin: 32px; }
h1 { font-size: 28px; margin-bottom: 4px; }
h2 { font-size: 18px; margin-top: 32px; border-bottom: 2px solid #e4e7eb; padding-bottom: 6px; }
table { width: 100%; border-collapse: collapse; margin-top: 12px; }
th, td { border: 1px solid #cbd2d9; padding: 8px 10px; font-size: 13px; }
th { background: #f5f7fa; text-align: left; }
td.num { text-align: right; white-space: nowrap; }
tr.tier-row td { background: #fafbfc; font-size: 12px; color: #52606d; }
.meta p { margin: 2px 0; }
.price-free { color: #2f8132; font-weight: bold; }
.price-original { text-decoration: line-through; color: #9aa5b1; }
.price-discount { color: #c63737; }
.total-row td { font-weight: bold; background: #f0f4f8; }
.footer { margin-top: 40px; font-size: 11px; color: #7b8794; }
@media print { body { margin: 12mm; } h2 { page-break-after: avoid; } }
"""


def _cell(value: str, *, numeric: bool = False) -> str:
    class_attr = ' class="num"' if numeric else ""
    return f"<td{class_attr}>{value}</td>"


def _service_rows(quote: QuoteDocument, selected: SelectedItem, line: LineBreakdown) -> list[str]:
    config = quote.engine_config
    labels = quote.field_labels()

    description = escape(selected.item.description or "")
    source = get_quantity_source_description(selected.item, labels)
    if source:
        description = f"{description}<br><small>{escape(source)}</small>" if description else f"<small>{escape(source)}</small>"

    if line.is_free:
        total_html = '<span class="price-free">FREE</span>'
    elif line.discount_amount > 0:
        total_html = (
            f'<span class="price-original">{escape(format_price(line.subtotal, config))}</span> '
            f'<span class="price-discount">{escape(format_price(line.total, config))}</span>'
        )
    else:
        total_html = escape(format_price(line.total, config))

    rows = [
        "<tr>"
        + _cell(escape(selected.item.name))
        + _cell(description)
        + _cell(escape(format_number(selected.quantity)), numeric=True)
        + _cell(escape(format_price(selected.unit_price, config)), numeric=True)
        + _cell(escape(format_discount(selected.discount, selected.discount_type, config)), numeric=True)
        + _cell(total_html, numeric=True)
        + "</tr>"
    ]
    for tier_line in line.tier_lines:
        rows.append(
            '<tr class="tier-row">'
            + _cell("")
            + _cell(f"&nbsp;&nbsp;{escape(tier_line.tier_name)}")
            + _cell(escape(format_number(tier_line.tier_quantity)), numeric=True)
            + _cell(escape(format_price(tier_line.tier_unit_price, config)), numeric=True)
            + _cell("")
            + _cell(escape(format_price(tier_line.tier_total, config)), numeric=True)
            + "</tr>"
        )
    return rows


def _summary_table(rows: list[tuple[str, str]], *, total_label: str | None = None) -> str:
    body = []
    for label, value in rows:
        row_class = ' class="total-row"' if label == total_label else ""
        body.append(f"<tr{row_class}><th>{escape(label)}</th>{_cell(escape(value), numeric=True)}</tr>")
    return "<table>" + "".join(body) + "</table>"


def generate_html_report(quote: QuoteDocument, *, system_version: str | None = None) -> str:
    config = quote.engine_config
    summary = quote.summary
    client = quote.client
    generated_on = quote.generated_at.strftime("%B %d, %Y")

    parts: list[str] = [
        "<!DOCTYPE html>",
        '<html lang="en"><head><meta charset="utf-8">',
        f"<title>Pricing Proposal - {escape(client.client_name or 'Client')}</title>",
        f"<style>{_STYLE}</style></head><body>",
        "<h1>Pricing Proposal</h1>",
        '<div class="meta">',
        f"<p><strong>Client:</strong> {escape(client.client_name)}</p>",
        f"<p><strong>Project:</strong> {escape(client.project_name)}</p>",
        f"<p><strong>Prepared by:</strong> {escape(client.prepared_by)}</p>",
        f"<p><strong>Date:</strong> {escape(generated_on)}</p>",
        "</div>",
    ]

    parts.append("<h2>Service Details</h2>")
    if quote.selected_items:
        parts.append(
            "<table><tr><th>Service</th><th>Description</th><th>Quantity</th>"
            "<th>Unit Price</th><th>Discount</th><th>Total</th></tr>"
        )
        for selected, line in zip(quote.selected_items, summary.lines, strict=True):
            parts.extend(_service_rows(quote, selected, line))
        parts.append("</table>")
    else:
        parts.append("<p>No services selected.</p>")

    if summary.category_totals:
        parts.append("<h2>Cost by Category</h2>")
        parts.append(
            "<table><tr><th>Category</th><th>Services</th><th>Free</th><th>Total</th></tr>"
        )
        for entry in summary.category_totals:
            parts.append(
                "<tr>"
                + _cell(escape(entry.category_name))
                + _cell(str(entry.item_count), numeric=True)
                + _cell(str(entry.free_count), numeric=True)
                + _cell(escape(format_price(entry.total, config)), numeric=True)
                + "</tr>"
            )
        parts.append("</table>")

    savings = summary.savings
    discount = quote.global_discount
    if savings.row_discount_total > 0 or discount.is_active:
        parts.append("<h2>Discounts</h2>")
        discount_rows = [("Service Discounts", format_price(savings.row_discount_total, config))]
        if discount.is_active:
            value = (
                f"{format_decimal_number(discount.value)}%"
                if discount.discount_type == "percentage"
                else format_price(discount.value, config)
            )
            target = {"both": "all costs", "monthly": "monthly costs", "onetime": "one-time costs"}[
                discount.application
            ]
            discount_rows.append((f"Global Discount ({value} on {target})", format_price(savings.global_discount_amount, config)))
        parts.append(_summary_table(discount_rows))

    if savings.total_savings > 0:
        parts.append("<h2>Total Savings</h2>")
        parts.append(
            _summary_table(
                [
                    ("Original Price", format_price(savings.original_price, config)),
                    ("Free Services", format_price(savings.free_savings, config)),
                    ("Discounts", format_price(savings.discount_savings, config)),
                    ("Total Savings", format_price(savings.total_savings, config)),
                    ("Savings Rate", format_percent(savings.savings_rate)),
                ],
                total_label="Total Savings",
            )
        )

    parts.append("<h2>Cost Summary</h2>")
    parts.append(
        _summary_table(
            [
                ("One-time Total", format_price(summary.one_time_total, config)),
                ("Monthly Total", format_price(summary.monthly_total, config)),
                (f"Yearly Total ({config.months_per_year} months)", format_price(summary.yearly_total, config)),
                ("Total Project Cost", format_price(summary.total_project_cost, config)),
            ],
            total_label="Total Project Cost",
        )
    )

    footer = f"Generated {escape(quote.generated_at.isoformat())}. Prices in {escape(config.currency)}."
    if system_version:
        footer += f" Platform version {escape(system_version)}."
    parts.append(f'<p class="footer">{footer}</p>')
    parts.append("</body></html>")
    return "\n".join(parts)


def html_file_name(quote: QuoteDocument) -> str:
    return export_file_name(quote, extension="html")
