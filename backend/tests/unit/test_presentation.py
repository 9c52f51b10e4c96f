"""
Course presentation modifier tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from marketplace.core.exceptions import ValidationError
from marketplace.domain.presentation import (
    base_presentation,
    bestseller,
    default_modifiers,
    extra_discount,
    featured,
    limited_time,
    new_course,
    present_course,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def base():
    return base_presentation(price=100.0, discount=10, description="Learn React")


class TestModifiers:
    def test_base_applies_course_discount(self, base):
        assert base.display_price == 90.0
        assert base.badges == ()
        assert base.is_featured is False

    def test_featured(self, base):
        result = present_course(base, [featured()])

        assert result.description == "FEATURED: Learn React"
        assert result.badges == ("Featured",)
        assert result.is_featured is True

    def test_extra_discount_stacks_on_display_price(self, base):
        result = present_course(base, [extra_discount(50)])

        assert result.display_price == pytest.approx(45.0)
        assert result.description == "Learn React Extra 50% OFF!"
        assert result.badges == ("50% OFF",)

    def test_extra_discount_rejects_bad_percent_when_built(self):
        with pytest.raises(ValidationError):
            extra_discount(101)

    def test_bestseller_formats_student_count(self, base):
        result = present_course(base, [bestseller(12500)])

        assert result.description == "BESTSELLER (12,500 students): Learn React"
        assert result.badges == ("Bestseller",)

    def test_new_course(self, base):
        assert present_course(base, [new_course()]).description == "NEW: Learn React"

    def test_limited_time_rounds_days_up(self, base):
        expires = NOW + timedelta(days=2, hours=1)

        result = present_course(base, [limited_time(expires, now=NOW)])

        assert result.description == "3 DAYS LEFT: Learn React"
        assert result.badges == ("Limited Time",)

    def test_modifiers_apply_in_order(self, base):
        result = present_course(base, [new_course(), featured()])

        assert result.description == "FEATURED: NEW: Learn React"
        assert result.badges == ("New", "Featured")

    def test_modifiers_do_not_mutate_input(self, base):
        present_course(base, [featured(), extra_discount(20)])

        assert base.description == "Learn React"
        assert base.display_price == 90.0


class TestDefaultModifiers:
    def _apply(self, base, **kwargs):
        params = dict(
            is_featured=False,
            created_at=NOW - timedelta(days=365),
            enrollment_count=0,
            now=NOW,
            bestseller_threshold=1000,
            new_course_days=30,
        )
        params.update(kwargs)
        return present_course(base, default_modifiers(**params))

    def test_plain_course_gets_no_badges(self, base):
        assert self._apply(base).badges == ()

    def test_featured_bestseller_and_new(self, base):
        result = self._apply(
            base,
            is_featured=True,
            enrollment_count=1000,
            created_at=NOW - timedelta(days=3),
        )

        assert result.badges == ("Featured", "Bestseller", "New")

    def test_naive_created_at_is_treated_as_utc(self, base):
        naive = (NOW - timedelta(days=1)).replace(tzinfo=None)

        assert self._apply(base, created_at=naive).badges == ("New",)

    def test_running_promotion_stacks_discount_and_countdown(self, base):
        result = self._apply(
            base, promo_discount=25, promo_ends_at=NOW + timedelta(days=7)
        )

        assert result.display_price == 67.5
        assert result.badges == ("25% OFF", "Limited Time")
        assert result.description.startswith("7 DAYS LEFT: Learn React")

    def test_ended_promotion_is_ignored(self, base):
        result = self._apply(
            base, promo_discount=25, promo_ends_at=NOW - timedelta(seconds=1)
        )

        assert result.display_price == 90.0
        assert result.badges == ()

    def test_countdown_without_extra_discount(self, base):
        result = self._apply(base, promo_ends_at=NOW + timedelta(hours=5))

        assert result.display_price == 90.0
        assert result.badges == ("Limited Time",)
