"""Seed the rule store with one sample rule per pricing mode."""

import asyncio
from decimal import Decimal

from freight.redis_client import get_redis_client
from freight.repositories.rule import RuleRepository
from freight.schemas.region import Region
from freight.schemas.rule import FlatPlusRateRule, ThresholdTieredRule, WeightTier

# Remote regions pay more
REMOTE = {Region.XZ, Region.XJ, Region.QH, Region.NX, Region.GS, Region.NM, Region.HI}


def _table(standard: str, remote: str) -> dict[Region, Decimal]:
    return {r: Decimal(remote if r in REMOTE else standard) for r in Region}


def sample_rules() -> list:
    return [
        ThresholdTieredRule(
            name="Standard e-commerce",
            description="Tiered first weight up to 3 kg, then 1 kg + continued weight",
            first_weight_threshold=Decimal("3"),
            use_step_pricing=True,
            weight_tiers=[
                WeightTier(ceiling=Decimal("0.5"), prices=_table("2.3", "8")),
                WeightTier(ceiling=Decimal("1"), prices=_table("2.6", "10")),
                WeightTier(ceiling=Decimal("2"), prices=_table("3.2", "14")),
                WeightTier(ceiling=Decimal("3"), prices=_table("3.8", "18")),
            ],
            overweight_first_prices=_table("2.8", "12"),
            continued_weight_prices=_table("0.8", "8"),
            area_charges={Region.XZ: Decimal("5"), Region.XJ: Decimal("5")},
        ),
        FlatPlusRateRule(
            name="Bulky goods",
            description="Waybill fee plus per-kg rate",
            fixed_prices=_table("1.5", "6"),
            weight_rates=_table("1.2", "9"),
        ),
    ]


async def seed():
    """Write the sample rules through the repository."""
    repo = RuleRepository(get_redis_client())
    for rule in sample_rules():
        stored = await repo.add_rule(rule)
        print(f"  + Rule: {stored.name} ({stored.type}) -> {stored.id}")

    print("\nSeed completed!")


if __name__ == "__main__":
    asyncio.run(seed())
