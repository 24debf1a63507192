"""Test fixtures and configuration."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from freight.repositories.local import LocalRuleStore
from freight.repositories.rule import RuleRepository
from freight.schemas.region import Region
from freight.schemas.rule import FlatPlusRateRule, ThresholdTieredRule, WeightTier


@pytest.fixture
def mock_redis():
    """Mock Redis client holding an empty rules hash."""
    redis = AsyncMock()
    redis.hgetall = AsyncMock(return_value={})
    redis.hget = AsyncMock(return_value=None)
    redis.hset = AsyncMock(return_value=1)
    redis.hsetnx = AsyncMock(return_value=True)
    redis.hdel = AsyncMock(return_value=0)
    return redis


@pytest.fixture
def unavailable_redis():
    """Mock Redis client whose every call fails to connect."""
    redis = AsyncMock()
    error = RedisConnectionError("Connection refused")
    for name in ("hgetall", "hget", "hset", "hsetnx", "hdel"):
        setattr(redis, name, AsyncMock(side_effect=error))
    return redis


@pytest.fixture
def local_store(tmp_path):
    """Fallback store writing into a temp directory."""
    return LocalRuleStore(tmp_path / "data" / "rules.json")


@pytest.fixture
def rule_repository(mock_redis, local_store):
    return RuleRepository(mock_redis, local_store=local_store, key="test:rules")


@pytest.fixture
def offline_repository(unavailable_redis, local_store):
    """Repository that always ends up on the local file."""
    return RuleRepository(unavailable_redis, local_store=local_store, key="test:rules")


@pytest.fixture
def threshold_rule():
    """Flat first-weight rule with a 3 kg threshold, priced for BJ only."""
    return ThresholdTieredRule(
        name="Standard",
        first_weight_threshold=Decimal("3"),
        use_step_pricing=False,
        first_weight_prices={Region.BJ: Decimal("10")},
        overweight_first_prices={Region.BJ: Decimal("12")},
        continued_weight_prices={Region.BJ: Decimal("2")},
        area_charges={Region.BJ: Decimal("0")},
    )


@pytest.fixture
def tiered_rule():
    """Step-priced rule with tiers at 0.5 / 1 / 2 kg, stored out of order."""
    return ThresholdTieredRule(
        name="Tiered",
        first_weight_threshold=Decimal("10"),
        use_step_pricing=True,
        weight_tiers=[
            WeightTier(ceiling=Decimal("2"), prices={Region.BJ: Decimal("6"), Region.SH: Decimal("7")}),
            WeightTier(ceiling=Decimal("0.5"), prices={Region.BJ: Decimal("3")}),
            WeightTier(ceiling=Decimal("1"), prices={Region.BJ: Decimal("4")}),
        ],
        overweight_first_prices={Region.BJ: Decimal("12")},
        continued_weight_prices={Region.BJ: Decimal("2")},
    )


@pytest.fixture
def flat_rule():
    """Fixed fee + per-kg rate, priced for SH only."""
    return FlatPlusRateRule(
        name="Bulky",
        fixed_prices={Region.SH: Decimal("5")},
        weight_rates={Region.SH: Decimal("3")},
        area_charges={Region.SH: Decimal("1")},
    )
