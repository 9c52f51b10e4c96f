"""
Review and Category Repositories
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ..models import Review, Category, Course
from .base import BaseRepository


class ReviewRepository(BaseRepository):
    """Review-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Review)


class CategoryRepository(BaseRepository):
    """Category listing with course counts."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Category)

    async def list_with_course_counts(self) -> list[tuple[Category, int]]:
        course_count = (
            select(func.count(Course.id))
            .where(Course.category_id == Category.id)
            .correlate(Category)
            .scalar_subquery()
        )
        stmt = select(Category, course_count).order_by(Category.name.asc())
        result = await self._execute(stmt, "list_with_course_counts")
        return [(row[0], int(row[1] or 0)) for row in result.all()]
