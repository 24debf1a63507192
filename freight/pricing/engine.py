"""Freight engine — prices single orders and batches against one rule."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

import structlog

from freight.pricing.tiers import resolve_tier_price
from freight.schemas.order import (
    ERROR_MESSAGES,
    ZERO,
    BatchResult,
    CalculationResult,
    ErrorCode,
    FeeBreakdown,
    Order,
)
from freight.schemas.region import Region, lookup_region
from freight.schemas.rule import FlatPlusRateRule, PricingRule, ThresholdTieredRule

logger = structlog.get_logger()

ONE = Decimal("1")
CENTS = Decimal("0.01")


def ceil_kg(weight: Decimal) -> Decimal:
    """Round up to a whole kilogram (0.1 -> 1, 3.1 -> 4, 2 -> 2)."""
    return weight.to_integral_value(rounding=ROUND_CEILING)


def format_price(amount: Decimal) -> str:
    """Format an amount with exactly two decimals."""
    return str(Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP))


def _failed(
    order: Order,
    code: ErrorCode,
    billing_weight: Decimal,
) -> CalculationResult:
    return CalculationResult(
        waybill_id=order.waybill_id,
        destination=order.destination,
        billing_weight=billing_weight,
        original_weight=order.weight,
        error=ERROR_MESSAGES[code].format(region=order.destination),
        error_code=code,
    )


def _priced(
    order: Order,
    billing_weight: Decimal,
    base_fee: Decimal,
    continued_fee: Decimal,
    area_charge: Decimal,
) -> CalculationResult:
    return CalculationResult(
        waybill_id=order.waybill_id,
        destination=order.destination,
        billing_weight=billing_weight,
        original_weight=order.weight,
        total_price=base_fee + continued_fee + area_charge,
        breakdown=FeeBreakdown(
            base_fee=base_fee,
            continued_fee=continued_fee,
            area_charge=area_charge,
        ),
    )


def _calculate_threshold_tiered(
    rule: ThresholdTieredRule,
    order: Order,
    region: Region,
) -> CalculationResult:
    """Price an order under a threshold-tiered rule.

    At or under the threshold (inclusive) the first-weight price applies to
    the raw weight: a tier price when step pricing is on, otherwise the flat
    first-weight price.

    Above the threshold the parcel pays the overweight first-kilogram price
    plus ``ceil(weight - 1)`` continued kilograms, e.g. 4.1 kg is billed as
    1 + 4 = 5 kg.
    """
    weight = order.weight
    area_charge = rule.area_charges.get(region, ZERO)

    if weight <= rule.first_weight_threshold:
        if rule.use_step_pricing and rule.weight_tiers:
            base_fee = resolve_tier_price(weight, rule.weight_tiers, region)
            if base_fee is None:
                return _failed(order, ErrorCode.MISSING_TIER_PRICE, weight)
        else:
            base_fee = rule.first_weight_prices.get(region)
            if base_fee is None:
                return _failed(order, ErrorCode.MISSING_FIRST_WEIGHT_PRICE, weight)
        return _priced(order, weight, base_fee, ZERO, area_charge)

    overweight_first = rule.overweight_first_prices.get(region)
    if overweight_first is None:
        return _failed(order, ErrorCode.MISSING_OVERWEIGHT_FIRST_PRICE, weight)
    continued_price = rule.continued_weight_prices.get(region)
    if continued_price is None:
        return _failed(order, ErrorCode.MISSING_CONTINUED_WEIGHT_PRICE, weight)

    continued_kg = ceil_kg(weight - ONE)
    if continued_kg <= ZERO:
        # Threshold under 1 kg and weight in (threshold, 1]
        continued_kg = ZERO
    return _priced(
        order,
        ONE + continued_kg,
        overweight_first,
        continued_kg * continued_price,
        area_charge,
    )


def _calculate_flat_plus_rate(
    rule: FlatPlusRateRule,
    order: Order,
    region: Region,
) -> CalculationResult:
    """Fixed fee plus rate times the weight rounded up to whole kg."""
    billing_weight = ceil_kg(order.weight)

    fixed_price = rule.fixed_prices.get(region)
    if fixed_price is None:
        return _failed(order, ErrorCode.MISSING_FIXED_PRICE, billing_weight)
    weight_rate = rule.weight_rates.get(region)
    if weight_rate is None:
        return _failed(order, ErrorCode.MISSING_WEIGHT_RATE, billing_weight)

    return _priced(
        order,
        billing_weight,
        fixed_price,
        billing_weight * weight_rate,
        rule.area_charges.get(region, ZERO),
    )


def calculate_freight(rule: PricingRule, order: Order) -> CalculationResult:
    """Price one order against one rule.

    Configuration gaps never raise: they come back as a result with
    ``error`` set and all amounts zero.

    Raises:
        ValueError: if ``rule`` or ``order`` is None
        TypeError: if ``rule`` is not a known rule variant
    """
    if rule is None:
        raise ValueError("rule is required")
    if order is None:
        raise ValueError("order is required")

    if not isinstance(rule, (ThresholdTieredRule, FlatPlusRateRule)):
        raise TypeError(f"unsupported rule type: {type(rule).__name__}")

    region = lookup_region(order.destination)
    if region is None:
        return _failed(order, ErrorCode.UNKNOWN_REGION, order.weight)

    if isinstance(rule, ThresholdTieredRule):
        return _calculate_threshold_tiered(rule, order, region)
    return _calculate_flat_plus_rate(rule, order, region)


def calculate_batch(
    rule: PricingRule,
    orders: Optional[Sequence[Order]],
) -> BatchResult:
    """Price every order in input order and summarize.

    A failed order is kept in ``results`` but adds nothing to
    ``total_price``; it never stops the orders after it.

    Raises:
        ValueError: if ``rule`` or ``orders`` is None
    """
    if rule is None:
        raise ValueError("rule is required")
    if orders is None:
        raise ValueError("orders is required")

    results = [calculate_freight(rule, order) for order in orders]
    succeeded = [r for r in results if r.ok]

    batch = BatchResult(
        rule_name=rule.name,
        total_orders=len(results),
        success_count=len(succeeded),
        error_count=len(results) - len(succeeded),
        total_price=sum((r.total_price for r in succeeded), ZERO),
        results=results,
    )

    logger.info(
        "batch_calculated",
        rule_id=rule.id,
        rule=rule.name,
        orders=batch.total_orders,
        errors=batch.error_count,
        total=format_price(batch.total_price),
    )

    return batch
