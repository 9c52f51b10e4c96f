"""
Enrollment Repository

Enrollment and lesson-progress persistence.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ..models import Enrollment, Lesson, LessonProgress
from .base import BaseRepository


class EnrollmentRepository(BaseRepository):
    """Enrollment-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Enrollment)

    async def find_by_user_and_course(
        self, user_id: UUID, course_id: UUID
    ) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.user_id == user_id, Enrollment.course_id == course_id
        )
        result = await self._execute(stmt, "find_by_user_and_course")
        return result.scalar_one_or_none()


class LessonProgressRepository(BaseRepository):
    """Per-lesson completion markers."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, LessonProgress)

    async def find(self, user_id: UUID, lesson_id: UUID) -> Optional[LessonProgress]:
        stmt = select(LessonProgress).where(
            LessonProgress.user_id == user_id, LessonProgress.lesson_id == lesson_id
        )
        result = await self._execute(stmt, "find_lesson_progress")
        return result.scalar_one_or_none()

    async def count_completed(self, user_id: UUID, course_id: UUID) -> int:
        """Number of lessons of a course the user has completed."""
        stmt = (
            select(func.count(LessonProgress.id))
            .join(Lesson, LessonProgress.lesson_id == Lesson.id)
            .where(LessonProgress.user_id == user_id, Lesson.course_id == course_id)
        )
        result = await self._execute(stmt, "count_completed_lessons")
        return int(result.scalar() or 0)
