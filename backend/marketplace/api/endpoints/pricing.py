"""
Pricing API endpoints

Checkout-style quotes: optional stacked discounts on the base price, then a
pricing policy over the quantity.
"""

from fastapi import APIRouter
import structlog

from ...domain.pricing import PricingPolicy, apply_discounts, quote
from ...schemas import PricingQuoteRequest, PricingQuoteResponse

logger = structlog.get_logger()
router = APIRouter(prefix="/api/pricing")


@router.post("/quote", response_model=PricingQuoteResponse)
async def price_quote(request: PricingQuoteRequest):
    policy = PricingPolicy(
        kind=request.kind,
        subscription_price=request.subscription_price,
        period=request.period,
        coupon_code=request.coupon_code,
        coupon_percent=request.coupon_percent,
        max_discount=request.max_discount,
    )
    base_price = apply_discounts(request.base_price, request.extra_discounts)
    result = quote(policy, base_price, request.quantity)

    logger.debug(
        "Price quoted", kind=request.kind.value, quantity=request.quantity, total=result.total
    )
    return PricingQuoteResponse(total=result.total, description=result.description)
