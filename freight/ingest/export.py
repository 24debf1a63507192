"""Result export — batch results to an XLSX workbook."""

from __future__ import annotations

import io
from datetime import date
from typing import Iterable

import pandas as pd

from freight.schemas.order import CalculationResult
from freight.schemas.region import REGION_NAMES, lookup_region

SHEET_NAME = "freight results"

COLUMNS = [
    "Waybill",
    "Destination",
    "Original weight (kg)",
    "Billing weight (kg)",
    "Base fee",
    "Continued/weight fee",
    "Area charge",
    "Total",
    "Note",
]


def _destination_label(code: str) -> str:
    region = lookup_region(code)
    if region is None:
        return code
    return f"{REGION_NAMES[region]} ({code})"


def results_frame(results: Iterable[CalculationResult]) -> pd.DataFrame:
    """One row per result, in result order."""
    rows = [
        [
            r.waybill_id,
            _destination_label(r.destination),
            float(r.original_weight),
            float(r.billing_weight),
            float(r.breakdown.base_fee),
            float(r.breakdown.continued_fee),
            float(r.breakdown.area_charge),
            float(r.total_price),
            r.error or "",
        ]
        for r in results
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def export_results(results: Iterable[CalculationResult]) -> bytes:
    """Render results as XLSX bytes."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        results_frame(results).to_excel(writer, sheet_name=SHEET_NAME, index=False)
    return buffer.getvalue()


def export_filename(rule_name: str, today: date | None = None) -> str:
    """e.g. ``freight_Standard_2024-06-01.xlsx``."""
    today = today or date.today()
    return f"freight_{rule_name}_{today.isoformat()}.xlsx"
