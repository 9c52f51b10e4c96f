"""
Catalog Service

Request orchestration for the course catalog: cached reads, enrollment,
reviews and lesson progress.

Reads check the cache, fall back to the database on a miss and repopulate
the cache. Writes commit first, then invalidate the affected cache
patterns, then publish a domain event. Nothing is invalidated or published
for a write that did not commit.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import COURSE_DETAIL_PATTERN, COURSE_LIST_PATTERN
from ..core.config import Settings
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..domain.cache.value_objects import CacheKey
from ..domain.events import CourseCompleted, CourseEnrolled, LessonCompleted, ReviewCreated
from ..domain.presentation import base_presentation, default_modifiers, present_course
from ..models import Course, utcnow
from ..repositories import (
    CategoryRepository,
    CourseFilter,
    CourseRepository,
    EnrollmentRepository,
    LessonProgressRepository,
    ReviewRepository,
    SORT_OPTIONS,
)
from .. import schemas
from .cache.cache_manager import CacheManager
from .events.event_bus import EventBus

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class CourseQuery:
    """Listing query as received from the API."""

    category: Optional[str] = None
    level: Optional[str] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    page: int = 1
    limit: int = 20

    def validate(self) -> None:
        if self.page < 1:
            raise ValidationError("page must be at least 1")
        if self.limit < 1 or self.limit > MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if self.sort is not None and self.sort not in SORT_OPTIONS:
            raise ValidationError(
                f"sort must be one of: {', '.join(SORT_OPTIONS)}",
                details={"sort": self.sort},
            )

    def to_filter(self) -> CourseFilter:
        return CourseFilter(
            category=self.category,
            level=self.level,
            search=self.search,
            sort=self.sort,
            skip=(self.page - 1) * self.limit,
            take=self.limit,
        )

    def signature(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "level": self.level,
            "search": self.search,
            "sort": self.sort,
            "page": self.page,
            "limit": self.limit,
        }


class CatalogService:
    """Catalog operations for one request scope (one database session)."""

    def __init__(
        self,
        session: AsyncSession,
        cache: CacheManager,
        event_bus: EventBus,
        settings: Settings,
    ):
        self.session = session
        self.cache = cache
        self.event_bus = event_bus
        self.settings = settings
        self.courses = CourseRepository(session)
        self.enrollments = EnrollmentRepository(session)
        self.lesson_progress = LessonProgressRepository(session)
        self.reviews = ReviewRepository(session)
        self.categories = CategoryRepository(session)

    # Reads

    async def list_courses(self, query: CourseQuery) -> Dict[str, Any]:
        query.validate()
        key = CacheKey.course_list(query.signature())

        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        courses = await self.courses.find_many(query.to_filter())
        summaries = await self._summaries(courses)
        result = schemas.CourseList(
            courses=summaries, page=query.page, limit=query.limit
        ).model_dump(by_alias=True, mode="json")

        await self.cache.set(key, result, self.settings.COURSE_LIST_TTL_SECONDS)
        return result

    async def featured_courses(self) -> List[Dict[str, Any]]:
        key = CacheKey.featured_courses()

        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        courses = await self.courses.find_featured(self.settings.FEATURED_LIMIT)
        result = [
            summary.model_dump(by_alias=True, mode="json")
            for summary in await self._summaries(courses)
        ]

        await self.cache.set(key, result, self.settings.FEATURED_TTL_SECONDS)
        return result

    async def get_course(self, slug: str) -> Dict[str, Any]:
        key = CacheKey.course_detail(slug)

        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        course = await self.courses.find_by_slug(slug)
        if course is None:
            logger.debug("Course not found", slug=slug)
            raise NotFoundError("Course", slug)

        avg_rating = await self.courses.get_average_rating(course.id)
        enrollment_counts = await self.courses.count_enrollments([course.id])

        detail = schemas.CourseDetail(
            **self._summary_fields(
                course,
                enrollment_count=enrollment_counts.get(course.id, 0),
                review_count=len(course.reviews),
            ),
            lessons=[schemas.LessonRead.model_validate(l) for l in course.lessons],
            reviews=[schemas.ReviewRead.model_validate(r) for r in course.reviews],
            avg_rating=avg_rating,
        )
        result = detail.model_dump(by_alias=True, mode="json")

        await self.cache.set(key, result, self.settings.COURSE_DETAIL_TTL_SECONDS)
        return result

    async def list_categories(self) -> List[schemas.CategoryRead]:
        rows = await self.categories.list_with_course_counts()
        return [
            schemas.CategoryRead(
                id=category.id,
                name=category.name,
                slug=category.slug,
                icon=category.icon,
                course_count=count,
            )
            for category, count in rows
        ]

    # Writes

    async def enroll(self, user_id: UUID, course_id: UUID) -> schemas.EnrollmentRead:
        with tracer.start_as_current_span("catalog.enroll") as span:
            span.set_attribute("course_id", str(course_id))

            existing = await self.enrollments.find_by_user_and_course(user_id, course_id)
            if existing is not None:
                raise ConflictError("Already enrolled in this course")

            course = await self.courses.get(course_id)
            if course is None:
                raise NotFoundError("Course", course_id)

            enrollment = await self.enrollments.create(
                {"user_id": user_id, "course_id": course_id}
            )
            await self.enrollments.commit()

            logger.info(
                "User enrolled", user_id=str(user_id), course_id=str(course_id)
            )

            await self.cache.delete_pattern(COURSE_LIST_PATTERN)
            await self._publish(
                CourseEnrolled(
                    user_id=str(user_id),
                    course_id=str(course_id),
                    course_name=course.title,
                )
            )
            return schemas.EnrollmentRead.model_validate(enrollment)

    async def create_review(
        self, user_id: UUID, course_id: UUID, rating: int, comment: str = ""
    ) -> schemas.ReviewCreated:
        if rating is None or rating < 1 or rating > 5:
            raise ValidationError(
                "Rating must be between 1 and 5", details={"rating": rating}
            )

        with tracer.start_as_current_span("catalog.create_review") as span:
            span.set_attribute("course_id", str(course_id))

            enrollment = await self.enrollments.find_by_user_and_course(
                user_id, course_id
            )
            if enrollment is None:
                raise AuthorizationError("Must be enrolled to review")

            review = await self.reviews.create(
                {
                    "user_id": user_id,
                    "course_id": course_id,
                    "rating": rating,
                    "comment": comment or "",
                }
            )
            await self.reviews.commit()

            logger.info(
                "Review created", course_id=str(course_id), rating=rating
            )

            await self.cache.delete_pattern(COURSE_DETAIL_PATTERN)
            await self._publish(
                ReviewCreated(
                    course_id=str(course_id), rating=rating, comment=comment or ""
                )
            )
            return schemas.ReviewCreated.model_validate(review)

    async def complete_lesson(
        self, user_id: UUID, course_id: UUID, lesson_id: UUID
    ) -> schemas.LessonCompletion:
        """
        Mark a lesson complete and recompute course progress.

        Completing an already-completed lesson changes nothing and publishes
        nothing. Reaching 100% also marks the enrollment completed.
        """
        enrollment = await self.enrollments.find_by_user_and_course(user_id, course_id)
        if enrollment is None:
            raise AuthorizationError("Must be enrolled to track progress")

        course = await self.courses.get_with_lessons(course_id)
        if course is None:
            raise NotFoundError("Course", course_id)
        if not any(lesson.id == lesson_id for lesson in course.lessons):
            raise NotFoundError("Lesson", lesson_id)

        if await self.lesson_progress.find(user_id, lesson_id) is not None:
            return schemas.LessonCompletion(
                lesson_id=lesson_id,
                course_id=course_id,
                progress=enrollment.progress,
                completed=enrollment.completed_at is not None,
            )

        await self.lesson_progress.create({"user_id": user_id, "lesson_id": lesson_id})
        completed_lessons = await self.lesson_progress.count_completed(user_id, course_id)
        progress = min(100, completed_lessons * 100 // len(course.lessons))

        course_finished = progress == 100 and enrollment.completed_at is None
        enrollment.progress = progress
        if course_finished:
            enrollment.completed_at = utcnow()
        await self.enrollments.commit()

        await self._publish(
            LessonCompleted(
                user_id=str(user_id), lesson_id=str(lesson_id), progress=progress
            )
        )
        if course_finished:
            await self._publish(
                CourseCompleted(user_id=str(user_id), course_id=str(course_id))
            )

        return schemas.LessonCompletion(
            lesson_id=lesson_id,
            course_id=course_id,
            progress=progress,
            completed=enrollment.completed_at is not None,
        )

    # Helpers

    async def _publish(self, event) -> None:
        await self.event_bus.publish(event.event_name, event.to_payload())

    async def _summaries(self, courses: List[Course]) -> List[schemas.CourseSummary]:
        ids = [course.id for course in courses]
        enrollment_counts = await self.courses.count_enrollments(ids)
        review_counts = await self.courses.count_reviews(ids)
        return [
            schemas.CourseSummary(
                **self._summary_fields(
                    course,
                    enrollment_count=enrollment_counts.get(course.id, 0),
                    review_count=review_counts.get(course.id, 0),
                )
            )
            for course in courses
        ]

    def _summary_fields(
        self, course: Course, enrollment_count: int, review_count: int
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        presentation = present_course(
            base_presentation(
                course.price, course.discount, course.description, course.is_featured
            ),
            default_modifiers(
                is_featured=course.is_featured,
                created_at=course.created_at,
                enrollment_count=enrollment_count,
                now=now,
                bestseller_threshold=self.settings.BESTSELLER_THRESHOLD,
                new_course_days=self.settings.NEW_COURSE_DAYS,
                promo_discount=course.promo_discount,
                promo_ends_at=course.promo_ends_at,
            ),
        )
        return {
            "id": course.id,
            "title": course.title,
            "slug": course.slug,
            "description": course.description,
            "price": course.price,
            "discount": course.discount,
            "level": course.level,
            "language": course.language,
            "thumbnail": course.thumbnail,
            "duration": course.duration,
            "is_featured": course.is_featured,
            "created_at": course.created_at,
            "instructor": schemas.InstructorSummary.model_validate(course.instructor),
            "category": schemas.CategorySummary.model_validate(course.category),
            "enrollment_count": enrollment_count,
            "review_count": review_count,
            "presentation": schemas.PresentationRead(
                display_price=round(presentation.display_price, 2),
                description=presentation.description,
                badges=list(presentation.badges),
                is_featured=presentation.is_featured,
            ),
        }
