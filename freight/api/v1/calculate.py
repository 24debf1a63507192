"""Calculation API — quick quotes and batch pricing of uploaded files."""

from decimal import Decimal
from typing import Annotated, Optional
from urllib.parse import quote as url_quote

import structlog
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from freight.api.dependencies import get_rule_repository, load_rule
from freight.config import settings
from freight.ingest.export import export_filename, export_results
from freight.ingest.parser import OrderFileError, parse_order_file
from freight.pricing.engine import calculate_batch, calculate_freight
from freight.repositories.rule import RuleRepository
from freight.schemas.order import BatchResult, CalculationResult, Order

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["calculate"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class QuoteRequest(BaseModel):
    rule_id: str
    destination: str
    weight: Annotated[Decimal, Field(gt=0)]
    waybill_id: Optional[str] = None


@router.post("/quote")
async def quote(
    data: QuoteRequest,
    repo: RuleRepository = Depends(get_rule_repository),
) -> CalculationResult:
    """Price a single parcel without uploading a file."""
    rule = await load_rule(repo, data.rule_id)
    order = Order(
        waybill_id=data.waybill_id or "QUERY",
        destination=data.destination,
        weight=data.weight,
    )
    return calculate_freight(rule, order)


async def _orders_from_upload(file: UploadFile) -> list[Order]:
    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"File larger than {settings.max_upload_mb} MB",
        )

    filename = file.filename or ""
    try:
        return parse_order_file(filename, content)
    except OrderFileError as e:
        logger.warning("order_file_rejected", filename=filename, error=str(e))
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/batch")
async def batch(
    rule_id: str = Form(...),
    file: UploadFile = File(...),
    repo: RuleRepository = Depends(get_rule_repository),
) -> BatchResult:
    """Price every order in an uploaded CSV or Excel file."""
    rule = await load_rule(repo, rule_id)
    orders = await _orders_from_upload(file)
    return calculate_batch(rule, orders)


@router.post("/batch/export")
async def batch_export(
    rule_id: str = Form(...),
    file: UploadFile = File(...),
    repo: RuleRepository = Depends(get_rule_repository),
) -> Response:
    """Price an uploaded file and return the results as a workbook."""
    rule = await load_rule(repo, rule_id)
    orders = await _orders_from_upload(file)
    result = calculate_batch(rule, orders)

    filename = export_filename(result.rule_name)
    return Response(
        content=export_results(result.results),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{url_quote(filename)}"},
    )
