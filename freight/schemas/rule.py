"""Pricing rule schemas — one discriminated union, two variants."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

from freight.schemas.region import Region

Amount = Annotated[Decimal, Field(ge=0)]

# Absent key means "unconfigured", which is not the same as a zero price.
RegionPriceTable = dict[Region, Amount]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_rule_id() -> str:
    """Generate a unique rule identifier, e.g. ``rule_1718000000000_k3j9x0a1b``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"rule_{int(time.time() * 1000)}_{suffix}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WeightTier(BaseModel):
    """Pricing bracket: applies to weights up to and including ``ceiling`` kg."""

    ceiling: Annotated[Decimal, Field(gt=0)]
    prices: RegionPriceTable = {}


class RuleBase(BaseModel):
    """Fields shared by both rule variants."""

    id: str = Field(default_factory=generate_rule_id)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    area_charges: RegionPriceTable = {}
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def check_timestamps(self):
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not be earlier than created_at")
        return self


class ThresholdTieredRule(RuleBase):
    """First-weight allowance (flat or tiered) plus an overweight formula.

    At or under ``first_weight_threshold`` the parcel pays the first-weight
    price. Above it, the parcel pays ``overweight_first_prices`` for the first
    kilogram and ``continued_weight_prices`` per started kilogram after that.
    """

    type: Literal["threshold_tiered"] = "threshold_tiered"
    first_weight_threshold: Annotated[Decimal, Field(gt=0)]
    use_step_pricing: bool = False
    first_weight_prices: RegionPriceTable = {}
    weight_tiers: list[WeightTier] = []
    overweight_first_prices: RegionPriceTable = {}
    continued_weight_prices: RegionPriceTable = {}

    @model_validator(mode="after")
    def check_tiers(self):
        if self.use_step_pricing and not self.weight_tiers:
            raise ValueError("step pricing requires at least one weight tier")
        return self


class FlatPlusRateRule(RuleBase):
    """Fixed per-shipment fee plus a per-kg rate on the rounded-up weight."""

    type: Literal["flat_plus_rate"] = "flat_plus_rate"
    fixed_prices: RegionPriceTable = {}
    weight_rates: RegionPriceTable = {}


PricingRule = Annotated[
    Union[ThresholdTieredRule, FlatPlusRateRule],
    Field(discriminator="type"),
]

pricing_rule_adapter: TypeAdapter[PricingRule] = TypeAdapter(PricingRule)
pricing_rule_list_adapter: TypeAdapter[list[PricingRule]] = TypeAdapter(list[PricingRule])
