"""
Account Service

Registration, login and profile lookup. Login failures never reveal which
half of the email/password pair was wrong.
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from ..core.security import create_access_token
from ..domain.accounts import (
    AccountData,
    provision_account,
    validate_account_data,
    verify_password,
)
from ..domain.pricing import apply_discount
from ..models import User, UserRole
from ..repositories import UserRepository
from .. import schemas

logger = structlog.get_logger()


class AccountService:
    def __init__(self, session: AsyncSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.users = UserRepository(session)

    def _issue_token(self, user: User) -> str:
        return create_access_token(user.id, user.email, user.role, self.settings)

    async def register(self, request: schemas.RegisterRequest) -> schemas.AuthResponse:
        data = AccountData(
            email=request.email,
            password=request.password,
            name=request.name,
            role=UserRole(request.role),
            avatar=request.avatar,
            bio=request.bio,
        )
        validate_account_data(data)
        if await self.users.find_by_email(data.email) is not None:
            raise ConflictError("Email already registered")

        account = await provision_account(data, rounds=self.settings.BCRYPT_ROUNDS)

        user = await self.users.create(account.to_record())
        await self.users.commit()

        logger.info("User registered", user_id=str(user.id), role=user.role)
        return schemas.AuthResponse(
            message="User registered successfully",
            user=schemas.UserRead.model_validate(user),
            token=self._issue_token(user),
        )

    async def login(self, email: str, password: str) -> schemas.AuthResponse:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = await self.users.find_by_email(email)
        if user is None or not await verify_password(password, user.password_hash):
            logger.info("Login rejected")
            raise AuthenticationError("Invalid credentials")

        logger.info("User logged in", user_id=str(user.id))
        return schemas.AuthResponse(
            message="Login successful",
            user=schemas.UserRead.model_validate(user),
            token=self._issue_token(user),
        )

    async def profile(self, user_id: UUID) -> schemas.ProfileResponse:
        user = await self.users.get_with_enrollments(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        enrollments = [
            schemas.EnrolledCourse(
                id=enrollment.id,
                progress=enrollment.progress,
                enrolled_at=enrollment.enrolled_at,
                completed_at=enrollment.completed_at,
                course=_course_card(enrollment.course),
            )
            for enrollment in user.enrollments
        ]
        return schemas.ProfileResponse(
            user=schemas.ProfileRead(
                id=user.id,
                email=user.email,
                name=user.name,
                role=user.role,
                avatar=user.avatar,
                bio=user.bio,
                enrollments=enrollments,
            )
        )


def _course_card(course) -> schemas.CourseSummary:
    # Profile cards show the course's own discount only, no badges
    return schemas.CourseSummary(
        id=course.id,
        title=course.title,
        slug=course.slug,
        description=course.description,
        price=course.price,
        discount=course.discount,
        level=course.level,
        language=course.language,
        thumbnail=course.thumbnail,
        duration=course.duration,
        is_featured=course.is_featured,
        created_at=course.created_at,
        instructor=schemas.InstructorSummary.model_validate(course.instructor),
        category=schemas.CategorySummary.model_validate(course.category),
        presentation=schemas.PresentationRead(
            display_price=round(apply_discount(course.price, course.discount), 2),
            description=course.description,
            is_featured=course.is_featured,
        ),
    )
