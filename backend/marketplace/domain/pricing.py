"""
Pricing Computation

Pure pricing math. Policies are tagged variants (``PricingKind`` plus the
data each kind needs) dispatched through ``calculate_total``.

Discount layers stack multiplicatively: each layer discounts the already
discounted price, so 20% then 20% off 100 is 64, not 60.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..core.exceptions import ValidationError

# (min_quantity, discount percent), highest tier first
BULK_TIERS: tuple[tuple[int, float], ...] = ((6, 20.0), (3, 10.0), (1, 0.0))


class PricingKind(str, Enum):
    FLAT = "flat"
    TIERED_BULK = "tiered_bulk"
    SUBSCRIPTION = "subscription"
    COUPON = "coupon"


class SubscriptionPeriod(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class PricingPolicy:
    """A pricing policy; only the fields of its kind are meaningful."""

    kind: PricingKind = PricingKind.FLAT
    subscription_price: Optional[float] = None
    period: SubscriptionPeriod = SubscriptionPeriod.MONTHLY
    coupon_code: Optional[str] = None
    coupon_percent: Optional[float] = None
    max_discount: Optional[float] = None

    def __post_init__(self) -> None:
        if self.kind == PricingKind.SUBSCRIPTION:
            if self.subscription_price is None or self.subscription_price < 0:
                raise ValidationError(
                    "Subscription price must be a non-negative number"
                )
        elif self.kind == PricingKind.COUPON:
            if not self.coupon_code:
                raise ValidationError("Coupon code is required")
            _check_percent(self.coupon_percent)
            if self.max_discount is not None and self.max_discount < 0:
                raise ValidationError("Maximum discount cannot be negative")

    @classmethod
    def flat(cls) -> "PricingPolicy":
        return cls(kind=PricingKind.FLAT)

    @classmethod
    def tiered_bulk(cls) -> "PricingPolicy":
        return cls(kind=PricingKind.TIERED_BULK)

    @classmethod
    def subscription(
        cls, price: float, period: SubscriptionPeriod = SubscriptionPeriod.MONTHLY
    ) -> "PricingPolicy":
        return cls(
            kind=PricingKind.SUBSCRIPTION, subscription_price=price, period=period
        )

    @classmethod
    def coupon(
        cls, code: str, percent: float, max_discount: Optional[float] = None
    ) -> "PricingPolicy":
        return cls(
            kind=PricingKind.COUPON,
            coupon_code=code,
            coupon_percent=percent,
            max_discount=max_discount,
        )


@dataclass(frozen=True)
class PriceQuote:
    total: float
    description: str


def _check_percent(discount: Optional[float]) -> float:
    if discount is None or discount < 0 or discount > 100:
        raise ValidationError(
            "Discount must be between 0 and 100",
            details={"discount": discount},
        )
    return discount


def apply_discount(price: float, discount: float) -> float:
    """Take ``discount`` percent off ``price``; out-of-range discounts are rejected."""
    _check_percent(discount)
    return price - price * (discount / 100)


def apply_discounts(price: float, discounts: Iterable[float]) -> float:
    """Apply discount layers one after another."""
    for discount in discounts:
        price = apply_discount(price, discount)
    return price


def select_bulk_tier(quantity: int) -> tuple[int, float]:
    """Highest tier whose minimum quantity is reached; the last tier otherwise."""
    for tier in BULK_TIERS:
        if quantity >= tier[0]:
            return tier
    return BULK_TIERS[-1]


def calculate_total(policy: PricingPolicy, base_price: float, quantity: int) -> float:
    if base_price < 0:
        raise ValidationError("Base price cannot be negative")
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative")

    subtotal = base_price * quantity

    if policy.kind == PricingKind.FLAT:
        return subtotal

    if policy.kind == PricingKind.TIERED_BULK:
        _, percent = select_bulk_tier(quantity)
        return subtotal - subtotal * (percent / 100)

    if policy.kind == PricingKind.SUBSCRIPTION:
        return policy.subscription_price

    if policy.kind == PricingKind.COUPON:
        discount_amount = subtotal * (policy.coupon_percent / 100)
        if policy.max_discount is not None:
            discount_amount = min(discount_amount, policy.max_discount)
        return subtotal - discount_amount

    raise ValidationError(f"Unknown pricing kind: {policy.kind}")


def describe(policy: PricingPolicy) -> str:
    if policy.kind == PricingKind.FLAT:
        return "Regular pricing - pay per course"
    if policy.kind == PricingKind.TIERED_BULK:
        return "Bulk discount - save more when buying multiple courses"
    if policy.kind == PricingKind.SUBSCRIPTION:
        label = "Monthly" if policy.period == SubscriptionPeriod.MONTHLY else "Yearly"
        return f"{label} subscription - unlimited access"
    return f'Coupon "{policy.coupon_code}" - {policy.coupon_percent:g}% off'


def quote(policy: PricingPolicy, base_price: float, quantity: int) -> PriceQuote:
    """Total plus a human-readable description of the policy used."""
    return PriceQuote(
        total=round(calculate_total(policy, base_price, quantity), 2),
        description=describe(policy),
    )
