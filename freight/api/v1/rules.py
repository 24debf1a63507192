"""Rules API — CRUD for pricing rules."""

from typing import Annotated, Optional, Union

from fastapi import APIRouter, Body, Depends, HTTPException

from freight.api.dependencies import get_rule_repository, load_rule
from freight.repositories.rule import RuleExistsError, RuleRepository
from freight.schemas.region import REGION_NAMES, Region
from freight.schemas.rule import FlatPlusRateRule, PricingRule, ThresholdTieredRule

router = APIRouter(prefix="/api/v1", tags=["rules"])

RuleBody = Annotated[
    Union[ThresholdTieredRule, FlatPlusRateRule],
    Body(discriminator="type"),
]


@router.get("/rules")
async def list_rules(
    q: Optional[str] = None,
    repo: RuleRepository = Depends(get_rule_repository),
) -> list[PricingRule]:
    """List all rules, oldest first.

    ``q`` keeps only rules whose name contains it, ignoring case.
    """
    rules = await repo.list_rules()
    if q:
        needle = q.lower()
        rules = [r for r in rules if needle in r.name.lower()]
    return rules


@router.get("/rules/{rule_id}")
async def get_rule(
    rule_id: str,
    repo: RuleRepository = Depends(get_rule_repository),
) -> PricingRule:
    """Get a single rule."""
    return await load_rule(repo, rule_id)


@router.post("/rules", status_code=201)
async def create_rule(
    rule: RuleBody,
    repo: RuleRepository = Depends(get_rule_repository),
) -> PricingRule:
    """Create a rule.

    The body is either variant, selected by its ``type`` field. The id is
    generated when omitted; timestamps are always set by the server. An id
    that is already taken is a 409, use PUT to change an existing rule.
    """
    try:
        return await repo.add_rule(rule)
    except RuleExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/rules/{rule_id}")
async def update_rule(
    rule_id: str,
    rule: RuleBody,
    repo: RuleRepository = Depends(get_rule_repository),
) -> PricingRule:
    """Replace a rule, keeping its id and creation time."""
    updated = await repo.update_rule(rule_id, rule)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    return updated


@router.delete("/rules/{rule_id}")
async def delete_rule(
    rule_id: str,
    repo: RuleRepository = Depends(get_rule_repository),
) -> dict:
    """Delete a rule."""
    if not await repo.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    return {"deleted": True, "id": rule_id}


@router.get("/regions")
async def list_regions() -> list[dict]:
    """Billing regions in display order."""
    return [{"code": region.value, "name": REGION_NAMES[region]} for region in Region]
