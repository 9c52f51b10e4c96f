"""
Demo data seed.

Resets all tables and inserts demo accounts, categories, courses with
lessons, one enrollment and one review.

Usage:
    python -m marketplace.seed
"""

import asyncio
from datetime import datetime, timedelta, timezone

import structlog

from .core.config import get_settings
from .core.database import DatabaseManager
from .core.logging import configure_logging
from .domain.accounts import AccountData, provision_account
from .domain.courses import (
    CourseData,
    create_discounted_course,
    create_featured_course,
    create_free_course,
    create_promotional_course,
)
from .models import Category, Course, Enrollment, Lesson, Review, User, UserRole, CourseLevel

logger = structlog.get_logger()

DEMO_PASSWORD = "password123"
PROMO_DISCOUNT = 25
PROMO_DAYS = 7

CATEGORIES = [
    ("Web Development", "web-development", "code"),
    ("Data Science", "data-science", "chart"),
    ("Design", "design", "palette"),
    ("Business", "business", "briefcase"),
]


async def seed(database: DatabaseManager) -> None:
    settings = database.settings

    await database.drop_all()
    await database.create_all()

    async with database.get_session() as session:
        accounts = [
            AccountData(
                email="student@example.com",
                password=DEMO_PASSWORD,
                name="Sam Student",
            ),
            AccountData(
                email="instructor@example.com",
                password=DEMO_PASSWORD,
                name="Ivy Instructor",
                role=UserRole.INSTRUCTOR,
                bio=(
                    "Full-stack engineer with ten years of experience teaching "
                    "web development to beginners and professionals."
                ),
            ),
            AccountData(
                email="admin@example.com",
                password=DEMO_PASSWORD,
                name="Ada Admin",
                role=UserRole.ADMIN,
            ),
        ]
        users = []
        for data in accounts:
            account = await provision_account(data, rounds=settings.BCRYPT_ROUNDS)
            users.append(User(**account.to_record()))
        session.add_all(users)

        categories = [Category(name=n, slug=s, icon=i) for n, s, i in CATEGORIES]
        session.add_all(categories)
        await session.flush()

        student, instructor, _ = users
        web, data_science, design, _ = categories

        def course_data(title, description, price, level, category, **extra):
            return CourseData(
                title=title,
                description=description,
                price=price,
                level=level,
                category_id=category.id,
                instructor_id=instructor.id,
                **extra,
            )

        courses = [
            Course(
                **create_featured_course(
                    course_data(
                        "Complete React Developer",
                        "Build modern single-page applications with React and hooks.",
                        89.99,
                        CourseLevel.INTERMEDIATE,
                        web,
                    )
                )
            ),
            Course(
                **create_promotional_course(
                    course_data(
                        "Python for Data Analysis",
                        "Learn pandas, NumPy and visualization from the ground up.",
                        59.99,
                        CourseLevel.BEGINNER,
                        data_science,
                    ),
                    promo_discount=PROMO_DISCOUNT,
                    ends_at=datetime.now(timezone.utc) + timedelta(days=PROMO_DAYS),
                )
            ),
            Course(
                **create_discounted_course(
                    course_data(
                        "UI Design Fundamentals",
                        "Typography, color and layout principles for product designers.",
                        49.99,
                        CourseLevel.ALL_LEVELS,
                        design,
                    ),
                    discount_percentage=30,
                )
            ),
            Course(
                **create_free_course(
                    course_data(
                        "HTML and CSS Basics",
                        "Your first steps into building web pages that look great.",
                        0,
                        CourseLevel.BEGINNER,
                        web,
                    )
                )
            ),
        ]
        session.add_all(courses)
        await session.flush()

        for course in courses:
            session.add_all(
                Lesson(
                    course_id=course.id,
                    title=f"{course.title}: Part {order}",
                    order=order,
                    duration=15 * order,
                )
                for order in range(1, 5)
            )

        session.add(Enrollment(user_id=student.id, course_id=courses[0].id))
        session.add(
            Review(
                user_id=student.id,
                course_id=courses[0].id,
                rating=5,
                comment="Clear explanations and great projects.",
            )
        )

    logger.info(
        "Database seeded",
        users=len(users),
        categories=len(categories),
        courses=len(courses),
    )


async def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    database = DatabaseManager(settings)
    await database.initialize()
    try:
        await seed(database)
    finally:
        await database.close()


if __name__ == "__main__":
    asyncio.run(main())
