"""Quote rendering and export for finished estimates.

Everything here reads a consistent estimate and rounds to cents only for
display. Exporting an estimate whose totals are stale is refused.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from .errors import StaleEstimateError
from .estimate import Estimate
from .models import EstimateTotals
from .pricing_config import CompanyInfo

CENT = Decimal("0.01")
PAYLOAD_VERSION = 1

logger = logging.getLogger(__name__)


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"${round_money(value):,.2f}"


def format_number(value: Decimal) -> str:
    """Render quantities and percentages without trailing zeros (``12.50`` -> ``12.5``)."""
    return f"{Decimal(value).normalize():f}"


def _require_consistent(estimate: Estimate) -> EstimateTotals:
    if not estimate.is_consistent:
        raise StaleEstimateError("Refusing to export an estimate with stale totals")
    return estimate.totals


def total_labor_hours(estimate: Estimate) -> Decimal:
    """Install hours from line items plus hours on labor items."""
    totals = _require_consistent(estimate)
    return totals.material_labor_hours + sum((labor.hours for labor in estimate.labor_items), Decimal("0"))


def quote_lines(
    estimate: Estimate,
    company: Optional[CompanyInfo] = None,
    terms: Sequence[str] = (),
    issued: Optional[date] = None,
) -> List[str]:
    totals = _require_consistent(estimate)
    company = company or CompanyInfo()
    pct = estimate.percentages
    project = estimate.project
    issued = issued or date.today()

    lines: List[str] = [f"{company.name.upper()} - PROFESSIONAL QUOTE", f"Generated: {issued.isoformat()}", ""]
    if project.project_name:
        lines.append(f"Project: {project.project_name}")
    customer = [
        project.customer_name,
        project.project_address,
        project.customer_phone,
        project.customer_email,
    ]
    if any(customer):
        lines.append("Customer Information:")
        lines.extend(value for value in customer if value)
    lines.append("")

    lines.append("ITEMIZED QUOTE:")
    for item in estimate.line_items:
        line = (
            f"{item.source_description} x{format_number(item.quantity)} {item.unit} "
            f"@ {format_money(item.resolved_unit_price)} = {format_money(item.line_total)}"
        )
        if item.total_labor_hours > 0:
            line += f" (+{format_number(item.total_labor_hours)} hrs install)"
        lines.append(line)
    for labor in estimate.labor_items:
        lines.append(
            f"{labor.description} ({format_number(labor.hours)} hrs @ {format_money(labor.rate)}/hr) "
            f"= {format_money(labor.cost)}"
        )
    for custom in estimate.custom_items:
        lines.append(
            f"{custom.description} x{format_number(custom.quantity)} "
            f"@ {format_money(custom.unit_price)} = {format_money(custom.total)}"
        )
    if not (estimate.line_items or estimate.labor_items or estimate.custom_items):
        lines.append("(no items)")
    lines.append("")

    lines.append("TOTALS:")
    lines.append(f"Materials: {format_money(totals.materials_subtotal)}")
    lines.append(f"Labor: {format_money(totals.labor_subtotal)}")
    hours = total_labor_hours(estimate)
    if hours > 0:
        lines.append(f"Labor Hours: {format_number(hours)}")
    if estimate.custom_items:
        lines.append(f"Custom Items: {format_money(totals.custom_subtotal)}")
    lines.append(f"Subtotal: {format_money(totals.subtotal)}")
    lines.append(f"Overhead ({format_number(pct.overhead)}%): {format_money(totals.overhead_amount)}")
    lines.append(f"Markup ({format_number(pct.markup)}%): {format_money(totals.markup_amount)}")
    if pct.discount > 0:
        lines.append(f"Discount ({format_number(pct.discount)}%): -{format_money(totals.discount_amount)}")
    lines.append(f"Tax ({format_number(pct.tax)}%): {format_money(totals.tax_amount)}")
    lines.append("")
    lines.append(f"TOTAL: {format_money(totals.total)}")

    if terms:
        lines.append("")
        lines.append("Terms:")
        lines.extend(f"- {term}" for term in terms)
    if project.notes:
        lines.append("")
        lines.append(f"Notes: {project.notes}")

    lines.append("")
    lines.extend(value for value in (company.name, company.city, company.phone) if value)
    return lines


def quote_text(
    estimate: Estimate,
    company: Optional[CompanyInfo] = None,
    terms: Sequence[str] = (),
    issued: Optional[date] = None,
) -> str:
    return "\n".join(quote_lines(estimate, company, terms, issued)) + "\n"


def estimate_payload(estimate: Estimate) -> Dict[str, object]:
    """JSON-safe snapshot of an estimate; decimals are written as plain strings."""
    totals = _require_consistent(estimate)
    project = estimate.project
    return {
        "version": PAYLOAD_VERSION,
        "project": {
            "project_name": project.project_name,
            "customer_name": project.customer_name,
            "customer_email": project.customer_email,
            "customer_phone": project.customer_phone,
            "project_address": project.project_address,
            "notes": project.notes,
        },
        "percentages": {key: format_number(value) for key, value in estimate.percentages.as_dict().items()},
        "materials": [
            {
                "id": item.id,
                "stock_number": item.stock_number,
                "description": item.source_description,
                "category": item.category,
                "unit": item.unit,
                "unit_cost": format_number(item.unit_cost),
                "multiplier": format_number(item.multiplier),
                "multiplier_source": item.multiplier_source,
                "unit_price": format_number(item.resolved_unit_price),
                "quantity": format_number(item.quantity),
                "line_total": format_number(item.line_total),
                "labor_hours": format_number(item.labor_hours),
                "total_labor_hours": format_number(item.total_labor_hours),
            }
            for item in estimate.line_items
        ],
        "labor": [
            {
                "id": item.id,
                "description": item.description,
                "hours": format_number(item.hours),
                "rate": format_number(item.rate),
                "cost": format_number(item.cost),
            }
            for item in estimate.labor_items
        ],
        "custom": [
            {
                "id": item.id,
                "description": item.description,
                "unit_price": format_number(item.unit_price),
                "quantity": format_number(item.quantity),
                "total": format_number(item.total),
            }
            for item in estimate.custom_items
        ],
        "totals": {key: format_number(value) for key, value in totals.as_dict().items()},
        "labor_hours": format_number(total_labor_hours(estimate)),
    }


def write_payload(estimate: Estimate, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(estimate_payload(estimate), f, indent=2, sort_keys=True)
    logger.info("Wrote estimate payload %s", path)
    return path


def write_text(
    estimate: Estimate,
    path: Path,
    company: Optional[CompanyInfo] = None,
    terms: Sequence[str] = (),
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(quote_text(estimate, company, terms), encoding="utf-8")
    logger.info("Wrote quote text %s", path)
    return path


def wrap_lines(lines: Sequence[str], font: str, size: float, max_width: float) -> List[str]:
    """Split each line so it fits ``max_width`` points; blank lines are kept."""
    wrapped: List[str] = []
    for line in lines:
        wrapped.extend(simpleSplit(line, font, size, max_width) or [""])
    return wrapped


def write_pdf(
    estimate: Estimate,
    path: Path,
    company: Optional[CompanyInfo] = None,
    terms: Sequence[str] = (),
) -> Path:
    """Render the quote onto letter-size pages with a fixed-width font."""
    lines = quote_lines(estimate, company, terms)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    width, height = letter
    margin = 54
    leading = 13
    max_width = width - 2 * margin
    header = wrap_lines(lines[:1], "Courier-Bold", 11, max_width)
    body = wrap_lines(lines[1:], "Courier", 9, max_width)
    canv = canvas.Canvas(str(path), pagesize=letter)
    canv.setTitle(estimate.project.project_name or "HVAC Estimate")
    canv.setFont("Courier-Bold", 11)
    y = height - margin
    for index, line in enumerate(header + body):
        if y < margin:
            canv.showPage()
            canv.setFont("Courier", 9)
            y = height - margin
        canv.drawString(margin, y, line)
        if index == len(header) - 1:
            canv.setFont("Courier", 9)
        y -= leading
    canv.save()
    logger.info("Wrote quote PDF %s", path)
    return path


def _money_float(value: Decimal) -> float:
    return float(round_money(value))


def write_workbook(estimate: Estimate, path: Path) -> Path:
    """Write ``Items`` and ``Totals`` sheets; amounts are rounded to cents."""
    totals = _require_consistent(estimate)
    rows: List[Dict[str, object]] = []
    for item in estimate.line_items:
        rows.append(
            {
                "TYPE": "MATERIAL",
                "STOCK_NUMBER": item.stock_number,
                "DESCRIPTION": item.source_description,
                "CATEGORY": item.category,
                "UNIT": item.unit,
                "QUANTITY": float(item.quantity),
                "UNIT_COST": _money_float(item.unit_cost),
                "MULTIPLIER": float(item.multiplier),
                "UNIT_PRICE": _money_float(item.resolved_unit_price),
                "TOTAL": _money_float(item.line_total),
                "LABOR_HOURS": float(item.total_labor_hours),
            }
        )
    for labor in estimate.labor_items:
        rows.append(
            {
                "TYPE": "LABOR",
                "DESCRIPTION": labor.description,
                "UNIT": "hr",
                "QUANTITY": float(labor.hours),
                "UNIT_PRICE": _money_float(labor.rate),
                "TOTAL": _money_float(labor.cost),
                "LABOR_HOURS": float(labor.hours),
            }
        )
    for custom in estimate.custom_items:
        rows.append(
            {
                "TYPE": "CUSTOM",
                "DESCRIPTION": custom.description,
                "QUANTITY": float(custom.quantity),
                "UNIT_PRICE": _money_float(custom.unit_price),
                "TOTAL": _money_float(custom.total),
            }
        )
    items_df = pd.DataFrame(
        rows,
        columns=[
            "TYPE",
            "STOCK_NUMBER",
            "DESCRIPTION",
            "CATEGORY",
            "UNIT",
            "QUANTITY",
            "UNIT_COST",
            "MULTIPLIER",
            "UNIT_PRICE",
            "TOTAL",
            "LABOR_HOURS",
        ],
    )
    totals_df = pd.DataFrame(
        [{"LINE": key.upper(), "AMOUNT": _money_float(value)} for key, value in totals.as_dict().items()]
    )
    percent_df = pd.DataFrame(
        [{"LINE": f"{key.upper()}_PERCENT", "AMOUNT": float(value)} for key, value in estimate.percentages.as_dict().items()]
    )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        items_df.to_excel(writer, sheet_name="Items", index=False)
        pd.concat([percent_df, totals_df], ignore_index=True).to_excel(writer, sheet_name="Totals", index=False)
    logger.info("Wrote quote workbook %s", path)
    return path


__all__ = [
    "round_money",
    "format_money",
    "format_number",
    "total_labor_hours",
    "wrap_lines",
    "quote_lines",
    "quote_text",
    "estimate_payload",
    "write_payload",
    "write_text",
    "write_pdf",
    "write_workbook",
]
