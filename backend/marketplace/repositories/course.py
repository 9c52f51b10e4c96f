"""
Course Repository

Catalog queries: filtered listing, featured set, detail by slug and the
average-rating aggregate used for course enrichment.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
import structlog

from ..models import Course, Enrollment, Review, Category
from .base import BaseRepository

logger = structlog.get_logger()

SORT_OPTIONS = ("popular", "newest", "price-low", "price-high")


@dataclass(frozen=True)
class CourseFilter:
    """Listing filter; unset fields are not applied."""

    category: Optional[str] = None
    level: Optional[str] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    skip: int = 0
    take: int = 20


class CourseRepository(BaseRepository):
    """Course-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Course)

    def _summary_options(self):
        return (selectinload(Course.instructor), selectinload(Course.category))

    async def find_many(self, course_filter: CourseFilter) -> list[Course]:
        """List published courses with filters, sorting and pagination."""
        stmt = (
            select(Course)
            .where(Course.is_published.is_(True))
            .options(*self._summary_options())
        )

        if course_filter.category:
            # Accept either a category id or a category slug
            try:
                stmt = stmt.where(Course.category_id == UUID(course_filter.category))
            except ValueError:
                stmt = stmt.join(Category, Course.category_id == Category.id).where(
                    Category.slug == course_filter.category
                )
        if course_filter.level:
            stmt = stmt.where(Course.level == course_filter.level)
        if course_filter.search:
            pattern = f"%{course_filter.search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Course.title).like(pattern),
                    func.lower(Course.description).like(pattern),
                )
            )

        if course_filter.sort == "popular":
            enrollment_count = (
                select(func.count(Enrollment.id))
                .where(Enrollment.course_id == Course.id)
                .correlate(Course)
                .scalar_subquery()
            )
            stmt = stmt.order_by(enrollment_count.desc(), Course.created_at.desc())
        elif course_filter.sort == "price-low":
            stmt = stmt.order_by(Course.price.asc())
        elif course_filter.sort == "price-high":
            stmt = stmt.order_by(Course.price.desc())
        else:
            stmt = stmt.order_by(Course.created_at.desc())

        stmt = stmt.offset(course_filter.skip).limit(course_filter.take)
        result = await self._execute(stmt, "find_many")
        courses = list(result.scalars().all())

        logger.debug(
            "CourseRepository: Courses listed",
            count=len(courses),
            skip=course_filter.skip,
            take=course_filter.take,
        )
        return courses

    async def find_featured(self, limit: int = 6) -> list[Course]:
        """Published featured courses."""
        stmt = (
            select(Course)
            .where(Course.is_published.is_(True), Course.is_featured.is_(True))
            .options(*self._summary_options())
            .order_by(Course.created_at.desc())
            .limit(limit)
        )
        result = await self._execute(stmt, "find_featured")
        return list(result.scalars().all())

    async def find_by_slug(self, slug: str) -> Optional[Course]:
        """Course detail with instructor, category, lessons and reviews."""
        stmt = (
            select(Course)
            .where(Course.slug == slug)
            .options(
                *self._summary_options(),
                selectinload(Course.lessons),
                selectinload(Course.reviews).selectinload(Review.user),
            )
        )
        result = await self._execute(stmt, "find_by_slug")
        return result.scalar_one_or_none()

    async def get_with_lessons(self, course_id: UUID) -> Optional[Course]:
        stmt = (
            select(Course)
            .where(Course.id == course_id)
            .options(selectinload(Course.lessons))
        )
        result = await self._execute(stmt, "get_with_lessons")
        return result.scalar_one_or_none()

    async def get_average_rating(self, course_id: UUID) -> float:
        """Average review rating, 0 when the course has no reviews."""
        stmt = select(func.avg(Review.rating)).where(Review.course_id == course_id)
        result = await self._execute(stmt, "get_average_rating")
        average = result.scalar()
        return round(float(average), 2) if average is not None else 0.0

    async def count_enrollments(self, course_ids: list[UUID]) -> dict[UUID, int]:
        """Enrollment counts keyed by course id (missing ids count 0)."""
        if not course_ids:
            return {}

        stmt = (
            select(Enrollment.course_id, func.count(Enrollment.id))
            .where(Enrollment.course_id.in_(course_ids))
            .group_by(Enrollment.course_id)
        )
        result = await self._execute(stmt, "count_enrollments")
        counts = {course_id: 0 for course_id in course_ids}
        counts.update({row[0]: row[1] for row in result.all()})
        return counts

    async def count_reviews(self, course_ids: list[UUID]) -> dict[UUID, int]:
        if not course_ids:
            return {}

        stmt = (
            select(Review.course_id, func.count(Review.id))
            .where(Review.course_id.in_(course_ids))
            .group_by(Review.course_id)
        )
        result = await self._execute(stmt, "count_reviews")
        counts = {course_id: 0 for course_id in course_ids}
        counts.update({row[0]: row[1] for row in result.all()})
        return counts
