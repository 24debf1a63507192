"""Weight tier lookup for step-priced first-weight fees."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from freight.schemas.region import Region
from freight.schemas.rule import WeightTier


def resolve_tier_price(
    weight: Decimal,
    tiers: Sequence[WeightTier],
    region: Region,
) -> Optional[Decimal]:
    """Find the tier price for a parcel.

    Tiers are sorted by ceiling first (stable, so the earlier of two equal
    ceilings wins). The first tier whose ceiling reaches ``weight`` applies.
    A weight above every ceiling is priced with the top tier.

    Args:
        weight: Actual parcel weight in kg
        tiers: Tiers in any order
        region: Destination region

    Returns:
        The configured price, or None if there are no tiers or the
        resolved tier has no price for ``region``
    """
    if not tiers:
        return None

    ordered = sorted(tiers, key=lambda t: t.ceiling)
    chosen = ordered[-1]
    for tier in ordered:
        if weight <= tier.ceiling:
            chosen = tier
            break

    return chosen.prices.get(region)
