"""
Course Presentation

Badges, display price and description layering for course cards. Each
modifier takes a presentation and returns a new one; ``present_course``
folds a list of modifiers over the base record, in order.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from functools import reduce
import math
from typing import Callable, Iterable, Optional

from .pricing import apply_discount


@dataclass(frozen=True)
class CoursePresentation:
    display_price: float
    description: str
    badges: tuple[str, ...] = ()
    is_featured: bool = False


Modifier = Callable[[CoursePresentation], CoursePresentation]


def base_presentation(
    price: float, discount: float, description: str, is_featured: bool = False
) -> CoursePresentation:
    """Presentation of a course with only its own discount applied."""
    return CoursePresentation(
        display_price=apply_discount(price, discount),
        description=description,
        is_featured=is_featured,
    )


def featured() -> Modifier:
    def apply(p: CoursePresentation) -> CoursePresentation:
        return replace(
            p,
            description=f"FEATURED: {p.description}",
            badges=p.badges + ("Featured",),
            is_featured=True,
        )

    return apply


def extra_discount(percent: float) -> Modifier:
    """Additional discount stacked on top of the current display price."""
    # Validate eagerly so a bad percent fails where the modifier is built
    apply_discount(0.0, percent)

    def apply(p: CoursePresentation) -> CoursePresentation:
        return replace(
            p,
            display_price=apply_discount(p.display_price, percent),
            description=f"{p.description} Extra {percent:g}% OFF!",
            badges=p.badges + (f"{percent:g}% OFF",),
        )

    return apply


def bestseller(enrollment_count: int) -> Modifier:
    def apply(p: CoursePresentation) -> CoursePresentation:
        return replace(
            p,
            description=f"BESTSELLER ({enrollment_count:,} students): {p.description}",
            badges=p.badges + ("Bestseller",),
        )

    return apply


def new_course() -> Modifier:
    def apply(p: CoursePresentation) -> CoursePresentation:
        return replace(
            p, description=f"NEW: {p.description}", badges=p.badges + ("New",)
        )

    return apply


def limited_time(expires_at: datetime, now: Optional[datetime] = None) -> Modifier:
    def apply(p: CoursePresentation) -> CoursePresentation:
        current = now or datetime.now(timezone.utc)
        seconds_left = (_as_utc(expires_at) - _as_utc(current)).total_seconds()
        days_left = math.ceil(seconds_left / 86400)
        return replace(
            p,
            description=f"{days_left} DAYS LEFT: {p.description}",
            badges=p.badges + ("Limited Time",),
        )

    return apply


def present_course(
    base: CoursePresentation, modifiers: Iterable[Modifier]
) -> CoursePresentation:
    return reduce(lambda presentation, modifier: modifier(presentation), modifiers, base)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def default_modifiers(
    is_featured: bool,
    created_at: Optional[datetime],
    enrollment_count: int,
    now: datetime,
    bestseller_threshold: int,
    new_course_days: int,
    promo_discount: int = 0,
    promo_ends_at: Optional[datetime] = None,
) -> list[Modifier]:
    """Modifiers a catalog course earns from its own state."""
    modifiers: list[Modifier] = []
    if is_featured:
        modifiers.append(featured())
    if enrollment_count >= bestseller_threshold:
        modifiers.append(bestseller(enrollment_count))
    if created_at is not None and _as_utc(now) - _as_utc(created_at) <= timedelta(
        days=new_course_days
    ):
        modifiers.append(new_course())
    if promo_ends_at is not None and _as_utc(now) < _as_utc(promo_ends_at):
        if promo_discount:
            modifiers.append(extra_discount(promo_discount))
        modifiers.append(limited_time(promo_ends_at, now))
    return modifiers
