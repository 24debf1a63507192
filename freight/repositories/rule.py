"""Rule repository — Redis hash CRUD with a local file fallback."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import redis.asyncio as redis
import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError

from freight.config import settings
from freight.repositories.local import LocalRuleStore
from freight.schemas.rule import PricingRule, ThresholdTieredRule, pricing_rule_adapter

logger = structlog.get_logger()


class RuleExistsError(Exception):
    """A rule with this id is already stored."""

    def __init__(self, rule_id: str):
        super().__init__(f"Rule {rule_id} already exists")
        self.rule_id = rule_id


def _prepare_for_save(rule: PricingRule) -> PricingRule:
    """Sort tiers by ceiling; drop tiers when step pricing is off."""
    if isinstance(rule, ThresholdTieredRule):
        tiers = sorted(rule.weight_tiers, key=lambda t: t.ceiling) if rule.use_step_pricing else []
        return rule.model_copy(update={"weight_tiers": tiers})
    return rule


class RuleRepository:
    """Stores pricing rules in a Redis hash keyed by rule id.

    Any Redis failure switches that call to the local JSON file, so rules
    stay editable while Redis is down.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        local_store: Optional[LocalRuleStore] = None,
        key: Optional[str] = None,
    ):
        self.redis = redis_client
        self.local = local_store or LocalRuleStore(settings.rules_fallback_path)
        self.key = key or settings.rules_key

    def _decode(self, raw: str) -> Optional[PricingRule]:
        try:
            return pricing_rule_adapter.validate_json(raw)
        except ValidationError as e:
            logger.warning("stored_rule_invalid", source="redis", error=str(e))
            return None

    def _encode(self, rule: PricingRule) -> str:
        return pricing_rule_adapter.dump_json(rule).decode("utf-8")

    async def list_rules(self) -> list[PricingRule]:
        """All rules, oldest first."""
        try:
            raw = await self.redis.hgetall(self.key)
        except RedisError as e:
            logger.warning("rule_store_unavailable", op="list", error=str(e))
            rules = self.local.load()
        else:
            rules = [r for r in (self._decode(v) for v in raw.values()) if r is not None]
            self._warn_unsynced(raw.keys())

        rules.sort(key=lambda r: r.created_at)
        return rules

    def _warn_unsynced(self, stored_ids) -> None:
        # Rules written to the local file during an outage are not replayed
        missing = [r.id for r in self.local.load() if r.id not in stored_ids]
        if missing:
            logger.warning(
                "local_rules_not_synced",
                count=len(missing),
                rule_ids=missing,
                path=str(self.local.path),
            )

    async def get_rule(self, rule_id: str) -> Optional[PricingRule]:
        """Rule by id, or None."""
        try:
            raw = await self.redis.hget(self.key, rule_id)
        except RedisError as e:
            logger.warning("rule_store_unavailable", op="get", error=str(e))
            return next((r for r in self.local.load() if r.id == rule_id), None)

        if not raw:
            return None
        return self._decode(raw)

    async def add_rule(self, rule: PricingRule) -> PricingRule:
        """Store a new rule, stamping its created/updated time.

        Args:
            rule: Rule as authored in the editor (id already generated)

        Returns:
            The stored rule

        Raises:
            RuleExistsError: if a rule with the same id is already stored
        """
        now = datetime.now(timezone.utc)
        rule = _prepare_for_save(rule.model_copy(update={"created_at": now, "updated_at": now}))

        try:
            created = await self.redis.hsetnx(self.key, rule.id, self._encode(rule))
        except RedisError as e:
            logger.warning("rule_store_unavailable", op="add", error=str(e))
            rules = self.local.load()
            created = all(r.id != rule.id for r in rules)
            if created:
                rules.append(rule)
                self.local.save(rules)

        if not created:
            raise RuleExistsError(rule.id)

        logger.info("rule_created", rule_id=rule.id, rule_type=rule.type, name=rule.name)
        return rule

    async def update_rule(self, rule_id: str, rule: PricingRule) -> Optional[PricingRule]:
        """Replace an existing rule in place.

        The identifier and original creation time are kept; the update
        time is set to now, never earlier than the previous one.

        Returns:
            The stored rule, or None if ``rule_id`` is unknown
        """
        existing = await self.get_rule(rule_id)
        if existing is None:
            return None

        now = max(datetime.now(timezone.utc), existing.created_at, existing.updated_at)
        rule = _prepare_for_save(
            rule.model_copy(
                update={"id": rule_id, "created_at": existing.created_at, "updated_at": now}
            )
        )

        try:
            await self.redis.hset(self.key, rule_id, self._encode(rule))
        except RedisError as e:
            logger.warning("rule_store_unavailable", op="update", error=str(e))
            rules = [rule if r.id == rule_id else r for r in self.local.load()]
            self.local.save(rules)

        logger.info("rule_updated", rule_id=rule_id, rule_type=rule.type)
        return rule

    async def delete_rule(self, rule_id: str) -> bool:
        """Remove a rule. Returns False if it did not exist."""
        try:
            removed = bool(await self.redis.hdel(self.key, rule_id))
        except RedisError as e:
            logger.warning("rule_store_unavailable", op="delete", error=str(e))
            rules = self.local.load()
            remaining = [r for r in rules if r.id != rule_id]
            removed = len(remaining) != len(rules)
            if removed:
                self.local.save(remaining)

        if removed:
            logger.info("rule_deleted", rule_id=rule_id)
        return removed
