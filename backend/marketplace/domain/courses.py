"""
Course Factory

Builds validated course records for the different course variants the
catalog offers (video, featured, free, discounted, promotional).
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from ..core.exceptions import ValidationError
from ..models import CourseLevel, Language

DEFAULT_THUMBNAILS = {
    "video": "https://images.unsplash.com/photo-1516321318423-f06f85e504b3",
    "featured": "https://images.unsplash.com/photo-1522202176988-66273c2fd55f",
    "free": "https://images.unsplash.com/photo-1501504905252-473c47e087f8",
    "discount": "https://images.unsplash.com/photo-1553877522-43269d4ea984",
}

_NON_WORD = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


@dataclass(frozen=True)
class CourseData:
    title: str
    description: str
    price: float
    level: CourseLevel
    category_id: Optional[UUID]
    instructor_id: Optional[UUID]
    thumbnail: Optional[str] = None
    language: Language = Language.ENGLISH
    discount: int = 0
    is_featured: bool = False


def validate_course_data(data: CourseData) -> None:
    if not data.title or len(data.title) < 5:
        raise ValidationError("Course title must be at least 5 characters")
    if not data.description or len(data.description) < 20:
        raise ValidationError("Course description must be at least 20 characters")
    if data.price < 0:
        raise ValidationError("Course price cannot be negative")
    if not data.instructor_id:
        raise ValidationError("Instructor ID is required")
    if not data.category_id:
        raise ValidationError("Category ID is required")


def generate_slug(title: str, now: Optional[datetime] = None) -> str:
    """URL-friendly slug with a millisecond timestamp suffix.

    "Learn React JS" -> "learn-react-js-1700000000000"
    """
    moment = now or datetime.now(timezone.utc)
    slug = _NON_WORD.sub("", title.lower().strip())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return f"{slug}-{int(moment.timestamp() * 1000)}"


def _base_fields(data: CourseData, now: Optional[datetime]) -> Dict[str, Any]:
    validate_course_data(data)
    return {
        "title": data.title.strip(),
        "slug": generate_slug(data.title, now),
        "description": data.description.strip(),
        "price": max(0.0, float(data.price)),
        "discount": data.discount or 0,
        "level": data.level.value,
        "language": data.language.value,
        "thumbnail": data.thumbnail or "",
        "is_published": True,
        "is_featured": data.is_featured,
        "instructor_id": data.instructor_id,
        "category_id": data.category_id,
        "duration": 0,
    }


def create_video_course(data: CourseData, now: Optional[datetime] = None) -> Dict[str, Any]:
    fields = _base_fields(data, now)
    fields["thumbnail"] = data.thumbnail or DEFAULT_THUMBNAILS["video"]
    return fields


def create_featured_course(
    data: CourseData, now: Optional[datetime] = None
) -> Dict[str, Any]:
    fields = _base_fields(data, now)
    fields["thumbnail"] = data.thumbnail or DEFAULT_THUMBNAILS["featured"]
    fields["is_featured"] = True
    return fields


def create_free_course(data: CourseData, now: Optional[datetime] = None) -> Dict[str, Any]:
    fields = _base_fields(data, now)
    fields.update(
        thumbnail=data.thumbnail or DEFAULT_THUMBNAILS["free"],
        level=CourseLevel.BEGINNER.value,
        price=0.0,
        discount=0,
    )
    return fields


def create_discounted_course(
    data: CourseData, discount_percentage: int, now: Optional[datetime] = None
) -> Dict[str, Any]:
    if discount_percentage < 0 or discount_percentage > 100:
        raise ValidationError("Discount must be between 0 and 100")

    fields = _base_fields(data, now)
    fields["thumbnail"] = data.thumbnail or DEFAULT_THUMBNAILS["discount"]
    fields["discount"] = discount_percentage
    return fields


def create_promotional_course(
    data: CourseData,
    promo_discount: int,
    ends_at: datetime,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Video course with a time-boxed extra discount; ``ends_at`` must be aware."""
    if promo_discount < 0 or promo_discount > 100:
        raise ValidationError("Promotion discount must be between 0 and 100")
    if ends_at <= (now or datetime.now(timezone.utc)):
        raise ValidationError("Promotion must end in the future")

    fields = create_video_course(data, now)
    fields["promo_discount"] = promo_discount
    fields["promo_ends_at"] = ends_at
    return fields
