"""
Pricing computation tests.
"""

import pytest

from marketplace.core.exceptions import ValidationError
from marketplace.domain.pricing import (
    PricingKind,
    PricingPolicy,
    SubscriptionPeriod,
    apply_discount,
    apply_discounts,
    calculate_total,
    describe,
    quote,
    select_bulk_tier,
)


class TestDiscounts:
    def test_single_discount(self):
        assert apply_discount(100, 25) == 75

    def test_layers_stack_multiplicatively(self):
        """20% then 20% off 100 is 64, not 60."""
        assert apply_discounts(100, [20, 20]) == pytest.approx(64)

    def test_no_layers_keeps_price(self):
        assert apply_discounts(42.5, []) == 42.5

    @pytest.mark.parametrize("discount", [-1, 100.5, 150])
    def test_out_of_range_discount_rejected(self, discount):
        with pytest.raises(ValidationError):
            apply_discount(100, discount)

    @pytest.mark.parametrize("discount,expected", [(0, 100), (100, 0)])
    def test_range_bounds_accepted(self, discount, expected):
        assert apply_discount(100, discount) == expected


class TestBulkTiers:
    @pytest.mark.parametrize(
        "quantity,tier",
        [(0, (1, 0.0)), (1, (1, 0.0)), (2, (1, 0.0)), (3, (3, 10.0)), (5, (3, 10.0)), (6, (6, 20.0)), (50, (6, 20.0))],
    )
    def test_tier_selection(self, quantity, tier):
        assert select_bulk_tier(quantity) == tier

    def test_five_courses_get_ten_percent(self):
        assert calculate_total(PricingPolicy.tiered_bulk(), 99, 5) == pytest.approx(445.5)

    def test_six_courses_get_twenty_percent(self):
        assert calculate_total(PricingPolicy.tiered_bulk(), 100, 6) == pytest.approx(480)


class TestPolicies:
    def test_flat(self):
        assert calculate_total(PricingPolicy.flat(), 99, 3) == 297

    def test_subscription_ignores_price_and_quantity(self):
        policy = PricingPolicy.subscription(29, SubscriptionPeriod.MONTHLY)

        assert calculate_total(policy, 99, 100) == 29
        assert calculate_total(policy, 0, 0) == 29

    def test_coupon_uncapped(self):
        policy = PricingPolicy.coupon("SAVE10", 10)

        assert calculate_total(policy, 50, 4) == pytest.approx(180)

    def test_coupon_cap_applies(self):
        policy = PricingPolicy.coupon("HALF", 50, max_discount=20)

        assert calculate_total(policy, 100, 1) == pytest.approx(80)

    def test_coupon_zero_cap_is_a_real_cap(self):
        policy = PricingPolicy.coupon("NOTHING", 50, max_discount=0)

        assert calculate_total(policy, 100, 1) == 100

    def test_coupon_percent_validated(self):
        with pytest.raises(ValidationError):
            PricingPolicy.coupon("BAD", 120)

    def test_subscription_requires_price(self):
        with pytest.raises(ValidationError):
            PricingPolicy(kind=PricingKind.SUBSCRIPTION)

    @pytest.mark.parametrize("base_price,quantity", [(-1, 1), (10, -1)])
    def test_negative_inputs_rejected(self, base_price, quantity):
        with pytest.raises(ValidationError):
            calculate_total(PricingPolicy.flat(), base_price, quantity)


class TestQuote:
    def test_quote_carries_description(self):
        result = quote(PricingPolicy.tiered_bulk(), 99, 5)

        assert result.total == 445.5
        assert result.description == "Bulk discount - save more when buying multiple courses"

    def test_descriptions(self):
        assert describe(PricingPolicy.flat()) == "Regular pricing - pay per course"
        assert (
            describe(PricingPolicy.subscription(199, SubscriptionPeriod.YEARLY))
            == "Yearly subscription - unlimited access"
        )
        assert describe(PricingPolicy.coupon("SPRING", 15)) == 'Coupon "SPRING" - 15% off'
