"""FastAPI dependencies shared by the v1 routers."""

from __future__ import annotations

import redis.asyncio as redis
from fastapi import Depends, HTTPException

from freight.redis_client import get_redis
from freight.repositories.rule import RuleRepository
from freight.schemas.rule import PricingRule


async def get_rule_repository(
    redis_client: redis.Redis = Depends(get_redis),
) -> RuleRepository:
    """Rule repository bound to the shared Redis client."""
    return RuleRepository(redis_client)


async def load_rule(repo: RuleRepository, rule_id: str) -> PricingRule:
    """Fetch a rule or fail the request with 404."""
    rule = await repo.get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail=f"Rule {rule_id} not found")
    return rule
