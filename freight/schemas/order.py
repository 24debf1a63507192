"""Order and calculation result schemas."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, Field

ZERO = Decimal("0")


class Order(BaseModel):
    """A parcel to price.

    ``destination`` is a region code. It is kept as plain text so an order
    for an unknown region still reaches the calculator and fails on its own.
    """

    waybill_id: str
    destination: str
    weight: Annotated[Decimal, Field(gt=0)]


class ErrorCode(str, Enum):
    """Why a single order could not be priced."""

    MISSING_TIER_PRICE = "missing_tier_price"
    MISSING_FIRST_WEIGHT_PRICE = "missing_first_weight_price"
    MISSING_OVERWEIGHT_FIRST_PRICE = "missing_overweight_first_price"
    MISSING_CONTINUED_WEIGHT_PRICE = "missing_continued_weight_price"
    MISSING_FIXED_PRICE = "missing_fixed_price"
    MISSING_WEIGHT_RATE = "missing_weight_rate"
    UNKNOWN_REGION = "unknown_region"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MISSING_TIER_PRICE: "region {region} has no tier price configured",
    ErrorCode.MISSING_FIRST_WEIGHT_PRICE: "region {region} has no first-weight price configured",
    ErrorCode.MISSING_OVERWEIGHT_FIRST_PRICE: "region {region} has no overweight first-weight price configured",
    ErrorCode.MISSING_CONTINUED_WEIGHT_PRICE: "region {region} has no continued-weight price configured",
    ErrorCode.MISSING_FIXED_PRICE: "region {region} has no fixed price configured",
    ErrorCode.MISSING_WEIGHT_RATE: "region {region} has no weight rate configured",
    ErrorCode.UNKNOWN_REGION: "region {region} is not a known billing region",
}


class FeeBreakdown(BaseModel):
    base_fee: Decimal = ZERO
    continued_fee: Decimal = ZERO
    area_charge: Decimal = ZERO


class CalculationResult(BaseModel):
    """Priced order. When ``error`` is set every amount is zero and meaningless."""

    waybill_id: str
    destination: str
    billing_weight: Decimal
    original_weight: Decimal
    total_price: Decimal = ZERO
    breakdown: FeeBreakdown = FeeBreakdown()
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchResult(BaseModel):
    """Summary of one rule applied to an ordered list of orders."""

    rule_name: str
    total_orders: int
    success_count: int
    error_count: int
    total_price: Decimal
    results: list[CalculationResult] = []
