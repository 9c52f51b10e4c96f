"""
User Repository

Account lookups. Email lookups normalize exactly the way account
provisioning normalizes before storage.
"""

from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
import structlog

from ..domain.accounts import normalize_email
from ..models import User, Enrollment, Course
from .base import BaseRepository

logger = structlog.get_logger()


class UserRepository(BaseRepository):
    """User-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def find_by_email(self, email: str) -> Optional[User]:
        """Find a user by email, case- and whitespace-insensitively."""
        if not email:
            return None

        stmt = select(User).where(User.email == normalize_email(email))
        result = await self._execute(stmt, "find_by_email")
        return result.scalar_one_or_none()

    async def get_with_enrollments(self, user_id: UUID) -> Optional[User]:
        """Load a user with enrollments and each enrolled course's summary."""
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(
                selectinload(User.enrollments)
                .selectinload(Enrollment.course)
                .selectinload(Course.instructor),
                selectinload(User.enrollments)
                .selectinload(Enrollment.course)
                .selectinload(Course.category),
            )
        )
        result = await self._execute(stmt, "get_with_enrollments")
        user = result.scalar_one_or_none()

        if user is None:
            logger.debug("UserRepository: User not found", user_id=str(user_id))
        return user
