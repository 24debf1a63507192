"""Order file import — CSV/Excel rows to normalized orders."""

from __future__ import annotations

import io
import zipfile
from decimal import Decimal, InvalidOperation
from typing import Optional

import pandas as pd
import structlog

from freight.schemas.order import Order
from freight.schemas.region import normalize_region

logger = structlog.get_logger()

# Accepted header names, first match wins
WAYBILL_COLUMNS = ["运单号", "单号", "订单号", "waybill", "order_no", "waybillNo", "waybill_id"]
DESTINATION_COLUMNS = ["目的地", "省份", "收货省份", "省", "destination", "province", "region"]
WEIGHT_COLUMNS = ["重量", "重量(kg)", "重量（kg）", "weight", "包裹重量"]


class OrderFileError(ValueError):
    """The uploaded order file cannot be turned into orders."""


def find_column(headers: list[str], candidates: list[str]) -> Optional[str]:
    """Return the first header matching a candidate (case-insensitive, trimmed)."""
    lowered = [str(h).strip().lower() for h in headers]
    for candidate in candidates:
        try:
            return headers[lowered.index(candidate.lower())]
        except ValueError:
            continue
    return None


def _read_frame(filename: str, content: bytes) -> pd.DataFrame:
    name = filename.lower()
    try:
        if name.endswith(".csv"):
            return pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding="utf-8-sig",
            )
        if name.endswith((".xlsx", ".xls")):
            return pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=str).fillna("")
    except pd.errors.EmptyDataError as e:
        raise OrderFileError(f"{filename} is empty") from e
    except (ValueError, UnicodeDecodeError, zipfile.BadZipFile) as e:
        raise OrderFileError(f"could not read {filename}: {e}") from e

    raise OrderFileError("unsupported file format, upload a CSV or Excel file")


def _cell(row: pd.Series, column: str) -> str:
    value = row[column]
    if value is None:
        return ""
    return str(value).strip()


def _parse_weight(raw: str) -> Optional[Decimal]:
    try:
        weight = Decimal(raw)
    except InvalidOperation:
        return None
    if not weight.is_finite() or weight <= 0:
        return None
    return weight


def parse_order_file(filename: str, content: bytes) -> list[Order]:
    """Parse an uploaded order file.

    Args:
        filename: Original file name, used to pick CSV or Excel
        content: Raw file bytes

    Returns:
        Orders in file order

    Raises:
        OrderFileError: unsupported format, missing column, or a row with
            an unrecognized region or invalid weight
    """
    df = _read_frame(filename, content)

    if df.empty:
        raise OrderFileError(f"{filename} is empty")

    headers = [str(c) for c in df.columns]
    df.columns = headers

    waybill_col = find_column(headers, WAYBILL_COLUMNS)
    if waybill_col is None:
        raise OrderFileError("no waybill column found, expected one of: " + ", ".join(WAYBILL_COLUMNS))
    dest_col = find_column(headers, DESTINATION_COLUMNS)
    if dest_col is None:
        raise OrderFileError("no destination column found, expected one of: " + ", ".join(DESTINATION_COLUMNS))
    weight_col = find_column(headers, WEIGHT_COLUMNS)
    if weight_col is None:
        raise OrderFileError("no weight column found, expected one of: " + ", ".join(WEIGHT_COLUMNS))

    orders = []
    for index, row in df.iterrows():
        waybill = _cell(row, waybill_col)
        raw_region = _cell(row, dest_col)
        raw_weight = _cell(row, weight_col)

        if not (waybill or raw_region or raw_weight):
            continue

        line = index + 2  # header is row 1
        region = normalize_region(raw_region)
        if region is None:
            raise OrderFileError(f'row {line}: unrecognized region "{raw_region}"')
        weight = _parse_weight(raw_weight)
        if weight is None:
            raise OrderFileError(f'row {line}: invalid weight "{raw_weight}"')

        orders.append(
            Order(
                waybill_id=waybill or f"unknown_{index}",
                destination=region.value,
                weight=weight,
            )
        )

    logger.info("order_file_parsed", filename=filename, orders=len(orders))
    return orders
