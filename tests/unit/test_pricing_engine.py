"""Tests for freight calculation and batch aggregation."""

from __future__ import annotations

from decimal import Decimal

import pytest

from freight.pricing.engine import calculate_batch, calculate_freight, ceil_kg, format_price
from freight.schemas.order import ErrorCode, Order
from freight.schemas.region import Region
from freight.schemas.rule import FlatPlusRateRule, ThresholdTieredRule


def _order(weight: str, destination: str = "BJ", waybill_id: str = "SF001") -> Order:
    return Order(waybill_id=waybill_id, destination=destination, weight=Decimal(weight))


def _assert_zeroed(result):
    assert result.total_price == 0
    assert result.breakdown.base_fee == 0
    assert result.breakdown.continued_fee == 0
    assert result.breakdown.area_charge == 0


class TestThresholdTieredFlat:
    """Threshold rule with a flat first-weight price."""

    def test_under_threshold(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("2"))

        assert result.ok
        assert result.breakdown.base_fee == Decimal("10")
        assert result.breakdown.continued_fee == 0
        assert result.breakdown.area_charge == 0
        assert result.total_price == Decimal("10")
        assert result.billing_weight == Decimal("2")
        assert result.original_weight == Decimal("2")

    def test_fractional_weight_is_not_rounded_under_threshold(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("0.37"))
        assert result.billing_weight == Decimal("0.37")

    def test_threshold_is_inclusive(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("3"))

        assert result.breakdown.base_fee == Decimal("10")
        assert result.breakdown.continued_fee == 0
        assert result.billing_weight == Decimal("3")

    def test_just_over_threshold(self, threshold_rule):
        """3.001 kg: 1 kg first + ceil(2.001) = 3 continued kg."""
        result = calculate_freight(threshold_rule, _order("3.001"))

        assert result.breakdown.base_fee == Decimal("12")
        assert result.breakdown.continued_fee == Decimal("6")
        assert result.billing_weight == Decimal("4")

    def test_over_threshold(self, threshold_rule):
        """4.1 kg: ceil(3.1) = 4 continued kg at 2 each."""
        result = calculate_freight(threshold_rule, _order("4.1"))

        assert result.ok
        assert result.breakdown.base_fee == Decimal("12")
        assert result.breakdown.continued_fee == Decimal("8")
        assert result.total_price == Decimal("20")
        assert result.billing_weight == Decimal("5")
        assert result.original_weight == Decimal("4.1")

    def test_whole_weight_over_threshold(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("5"))
        assert result.breakdown.continued_fee == Decimal("8")
        assert result.billing_weight == Decimal("5")

    def test_area_charge_added(self, threshold_rule):
        rule = threshold_rule.model_copy(update={"area_charges": {Region.BJ: Decimal("1.5")}})
        result = calculate_freight(rule, _order("4.1"))

        assert result.breakdown.area_charge == Decimal("1.5")
        assert result.total_price == Decimal("21.5")

    def test_missing_first_weight_price(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("1", destination="GD"))

        assert not result.ok
        assert result.error_code == ErrorCode.MISSING_FIRST_WEIGHT_PRICE
        assert "GD" in result.error
        _assert_zeroed(result)

    def test_missing_overweight_first_price_checked_first(self, threshold_rule):
        result = calculate_freight(threshold_rule, _order("4", destination="GD"))
        assert result.error_code == ErrorCode.MISSING_OVERWEIGHT_FIRST_PRICE
        _assert_zeroed(result)

    def test_missing_continued_weight_price(self, threshold_rule):
        rule = threshold_rule.model_copy(
            update={"overweight_first_prices": {Region.BJ: Decimal("12"), Region.GD: Decimal("13")}}
        )
        result = calculate_freight(rule, _order("4", destination="GD"))
        assert result.error_code == ErrorCode.MISSING_CONTINUED_WEIGHT_PRICE
        assert "continued-weight" in result.error

    def test_area_charge_not_applied_on_error(self, threshold_rule):
        rule = threshold_rule.model_copy(update={"area_charges": {Region.GD: Decimal("3")}})
        result = calculate_freight(rule, _order("1", destination="GD"))
        _assert_zeroed(result)

    def test_configured_zero_price_is_free(self, threshold_rule):
        rule = threshold_rule.model_copy(
            update={"first_weight_prices": {Region.BJ: Decimal("10"), Region.GD: Decimal("0")}}
        )
        result = calculate_freight(rule, _order("1", destination="GD"))
        assert result.ok
        assert result.total_price == 0

    def test_weight_between_one_and_two_over_threshold(self, threshold_rule):
        rule = threshold_rule.model_copy(update={"first_weight_threshold": Decimal("1")})
        result = calculate_freight(rule, _order("1.5"))

        assert result.breakdown.continued_fee == Decimal("2")
        assert result.billing_weight == Decimal("2")

    def test_threshold_below_one_kg(self, threshold_rule):
        """0.8 kg over a 0.5 kg threshold pays the first kilogram only."""
        rule = threshold_rule.model_copy(update={"first_weight_threshold": Decimal("0.5")})
        result = calculate_freight(rule, _order("0.8"))

        assert result.ok
        assert result.breakdown.continued_fee == 0
        assert result.billing_weight == Decimal("1")
        assert result.total_price == Decimal("12")


class TestThresholdTieredSteps:
    """Threshold rule with step pricing under the threshold."""

    def test_resolves_tier(self, tiered_rule):
        result = calculate_freight(tiered_rule, _order("0.7"))

        assert result.ok
        assert result.breakdown.base_fee == Decimal("4")
        assert result.billing_weight == Decimal("0.7")

    def test_weight_above_all_tiers_uses_top_tier(self, tiered_rule):
        result = calculate_freight(tiered_rule, _order("5"))

        assert result.ok
        assert result.breakdown.base_fee == Decimal("6")
        assert result.breakdown.continued_fee == 0

    def test_missing_tier_price(self, tiered_rule):
        result = calculate_freight(tiered_rule, _order("0.3", destination="SH"))

        assert result.error_code == ErrorCode.MISSING_TIER_PRICE
        assert result.error == "region SH has no tier price configured"
        _assert_zeroed(result)

    def test_over_threshold_ignores_tiers(self, tiered_rule):
        result = calculate_freight(tiered_rule, _order("10.2"))
        assert result.breakdown.base_fee == Decimal("12")
        assert result.breakdown.continued_fee == Decimal("20")

    def test_empty_tiers_fall_back_to_flat_price(self):
        rule = ThresholdTieredRule.model_construct(
            name="No tiers",
            first_weight_threshold=Decimal("3"),
            use_step_pricing=True,
            weight_tiers=[],
            first_weight_prices={Region.BJ: Decimal("7")},
        )
        result = calculate_freight(rule, _order("1"))
        assert result.breakdown.base_fee == Decimal("7")


class TestFlatPlusRate:
    def test_rounds_weight_up(self, flat_rule):
        result = calculate_freight(flat_rule, _order("0.5", destination="SH"))

        assert result.ok
        assert result.billing_weight == Decimal("1")
        assert result.original_weight == Decimal("0.5")
        assert result.breakdown.base_fee == Decimal("5")
        assert result.breakdown.continued_fee == Decimal("3")
        assert result.breakdown.area_charge == Decimal("1")
        assert result.total_price == Decimal("9")

    def test_small_excess_rounds_up(self, flat_rule):
        result = calculate_freight(flat_rule, _order("2.1", destination="SH"))
        assert result.billing_weight == Decimal("3")
        assert result.total_price == Decimal("15")

    def test_whole_weight_unchanged(self, flat_rule):
        result = calculate_freight(flat_rule, _order("2", destination="SH"))
        assert result.billing_weight == Decimal("2")

    def test_missing_fixed_price_checked_first(self, flat_rule):
        result = calculate_freight(flat_rule, _order("1", destination="BJ"))
        assert result.error_code == ErrorCode.MISSING_FIXED_PRICE
        _assert_zeroed(result)

    def test_missing_weight_rate(self, flat_rule):
        rule = flat_rule.model_copy(update={"fixed_prices": {Region.BJ: Decimal("5")}})
        result = calculate_freight(rule, _order("1", destination="BJ"))
        assert result.error_code == ErrorCode.MISSING_WEIGHT_RATE
        assert result.error == "region BJ has no weight rate configured"

    def test_missing_area_charge_defaults_to_zero(self, flat_rule):
        rule = flat_rule.model_copy(update={"area_charges": {}})
        result = calculate_freight(rule, _order("1", destination="SH"))
        assert result.breakdown.area_charge == 0
        assert result.total_price == Decimal("8")


class TestDispatch:
    def test_unknown_region_is_an_error_result(self, threshold_rule, flat_rule):
        for rule in (threshold_rule, flat_rule):
            result = calculate_freight(rule, _order("1", destination="ZZ"))
            assert result.error_code == ErrorCode.UNKNOWN_REGION
            _assert_zeroed(result)

    def test_total_is_sum_of_breakdown(self, threshold_rule, tiered_rule, flat_rule):
        cases = [
            (threshold_rule, _order("2")),
            (threshold_rule, _order("7.3")),
            (tiered_rule, _order("1.2")),
            (flat_rule, _order("3.4", destination="SH")),
        ]
        for rule, order in cases:
            result = calculate_freight(rule, order)
            b = result.breakdown
            assert result.total_price == b.base_fee + b.continued_fee + b.area_charge

    def test_idempotent(self, tiered_rule):
        order = _order("0.7")
        assert calculate_freight(tiered_rule, order) == calculate_freight(tiered_rule, order)

    def test_rule_is_not_mutated(self, tiered_rule):
        before = tiered_rule.model_dump()
        calculate_freight(tiered_rule, _order("0.7"))
        assert tiered_rule.model_dump() == before

    def test_none_rule_raises(self):
        with pytest.raises(ValueError):
            calculate_freight(None, _order("1"))

    def test_unsupported_rule_type_raises(self):
        with pytest.raises(TypeError):
            calculate_freight(object(), _order("1"))


class TestCalculateBatch:
    def test_counts_and_total(self, threshold_rule):
        orders = [
            _order("2", waybill_id="A"),
            _order("1", destination="GD", waybill_id="B"),
            _order("4.1", waybill_id="C"),
        ]
        batch = calculate_batch(threshold_rule, orders)

        assert batch.rule_name == "Standard"
        assert batch.total_orders == 3
        assert batch.success_count == 2
        assert batch.error_count == 1
        assert batch.total_price == Decimal("30")

    def test_preserves_order_and_keeps_failures(self, threshold_rule):
        orders = [
            _order("1", destination="GD", waybill_id="B"),
            _order("1", destination="ZZ", waybill_id="X"),
            _order("2", waybill_id="A"),
        ]
        batch = calculate_batch(threshold_rule, orders)

        assert [r.waybill_id for r in batch.results] == ["B", "X", "A"]
        assert batch.results[2].ok
        assert batch.total_price == Decimal("10")

    def test_invariants(self, tiered_rule):
        orders = [_order(w, destination=d) for w, d in [("0.3", "BJ"), ("0.3", "SH"), ("1.5", "SH"), ("12", "GD")]]
        batch = calculate_batch(tiered_rule, orders)

        assert batch.success_count + batch.error_count == batch.total_orders == len(batch.results)
        assert batch.total_price == sum(r.total_price for r in batch.results if r.error is None)

    def test_empty_batch(self, flat_rule):
        batch = calculate_batch(flat_rule, [])
        assert batch.total_orders == 0
        assert batch.total_price == 0
        assert batch.results == []

    def test_none_orders_raises(self, flat_rule):
        with pytest.raises(ValueError):
            calculate_batch(flat_rule, None)


class TestHelpers:
    def test_ceil_kg(self):
        assert ceil_kg(Decimal("0.1")) == 1
        assert ceil_kg(Decimal("3.1")) == 4
        assert ceil_kg(Decimal("2")) == 2

    def test_format_price(self):
        assert format_price(Decimal("9")) == "9.00"
        assert format_price(Decimal("2.345")) == "2.35"
        assert format_price(Decimal("0.1")) == "0.10"
