"""
Repository tests against an in-memory SQLite database.
"""

import pytest

from marketplace.core.exceptions import ConflictError
from marketplace.domain.accounts import AccountData, provision_account
from marketplace.models import Enrollment, Review
from marketplace.repositories import (
    CategoryRepository,
    CourseFilter,
    CourseRepository,
    EnrollmentRepository,
    LessonProgressRepository,
    UserRepository,
)


class TestUserRepository:
    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, session, settings):
        users = UserRepository(session)
        account = await provision_account(
            AccountData(email="Foo@Bar.COM", password="password123", name="Foo"),
            settings.BCRYPT_ROUNDS,
        )
        await users.create(account.to_record())
        await users.commit()

        found = await users.find_by_email("foo@bar.com")
        assert found is not None
        assert found.email == "foo@bar.com"
        assert (await users.find_by_email("  FOO@bar.com ")).id == found.id

    @pytest.mark.asyncio
    async def test_duplicate_email_is_a_conflict(self, session, settings):
        users = UserRepository(session)
        account = await provision_account(
            AccountData(email="dup@example.com", password="password123", name="Dup"),
            settings.BCRYPT_ROUNDS,
        )
        await users.create(account.to_record())
        await users.commit()

        with pytest.raises(ConflictError):
            await users.create(account.to_record())

    @pytest.mark.asyncio
    async def test_unknown_email(self, session):
        assert await UserRepository(session).find_by_email("nobody@example.com") is None
        assert await UserRepository(session).find_by_email("") is None


class TestCourseRepository:
    @pytest.mark.asyncio
    async def test_filters(self, seeded, session):
        courses = CourseRepository(session)

        web = await courses.find_many(CourseFilter(category="web-development"))
        assert {c.title for c in web} == {"Complete React Developer", "HTML and CSS Basics"}

        by_id = await courses.find_many(
            CourseFilter(category=str(seeded.categories["web-development"].id))
        )
        assert {c.id for c in by_id} == {c.id for c in web}

        beginner = await courses.find_many(CourseFilter(level="BEGINNER"))
        assert len(beginner) == 2

        search = await courses.find_many(CourseFilter(search="PANDAS"))
        assert [c.title for c in search] == ["Python for Data Analysis"]

    @pytest.mark.asyncio
    async def test_sorting_and_paging(self, seeded, session):
        courses = CourseRepository(session)

        by_price = await courses.find_many(CourseFilter(sort="price-high"))
        assert [c.price for c in by_price] == sorted(
            (c.price for c in by_price), reverse=True
        )

        popular = await courses.find_many(CourseFilter(sort="popular"))
        assert popular[0].title == "Complete React Developer"

        page = await courses.find_many(CourseFilter(skip=1, take=2))
        assert len(page) == 2

    @pytest.mark.asyncio
    async def test_featured_and_detail(self, seeded, session):
        courses = CourseRepository(session)

        featured = await courses.find_featured(6)
        assert [c.title for c in featured] == ["Complete React Developer"]

        react = seeded.courses["Complete React Developer"]
        detail = await courses.find_by_slug(react.slug)
        assert len(detail.lessons) == 4
        assert [lesson.order for lesson in detail.lessons] == [1, 2, 3, 4]
        assert detail.reviews[0].user.email == "student@example.com"

        assert await courses.find_by_slug("no-such-course") is None

    @pytest.mark.asyncio
    async def test_aggregates(self, seeded, session):
        courses = CourseRepository(session)
        react = seeded.courses["Complete React Developer"]
        css = seeded.courses["HTML and CSS Basics"]
        instructor = seeded.users["instructor@example.com"]

        session.add(Enrollment(user_id=instructor.id, course_id=react.id))
        session.add(Review(user_id=instructor.id, course_id=react.id, rating=2))
        await session.commit()

        assert await courses.get_average_rating(react.id) == 3.5
        assert await courses.get_average_rating(css.id) == 0.0
        assert await courses.count_enrollments([react.id, css.id]) == {
            react.id: 2,
            css.id: 0,
        }
        assert await courses.count_reviews([react.id]) == {react.id: 2}
        assert await courses.count_enrollments([]) == {}


class TestEnrollmentRepositories:
    @pytest.mark.asyncio
    async def test_duplicate_enrollment_is_a_conflict(self, seeded, session):
        enrollments = EnrollmentRepository(session)
        student = seeded.users["student@example.com"]
        react = seeded.courses["Complete React Developer"]

        assert await enrollments.find_by_user_and_course(student.id, react.id) is not None
        with pytest.raises(ConflictError):
            await enrollments.create({"user_id": student.id, "course_id": react.id})

    @pytest.mark.asyncio
    async def test_progress_counts_only_this_course(self, seeded, session):
        progress = LessonProgressRepository(session)
        student = seeded.users["student@example.com"]
        react = seeded.courses["Complete React Developer"]
        css = seeded.courses["HTML and CSS Basics"]

        await progress.create({"user_id": student.id, "lesson_id": react.lessons[0].id})
        await progress.create({"user_id": student.id, "lesson_id": react.lessons[1].id})
        await progress.create({"user_id": student.id, "lesson_id": css.lessons[0].id})
        await progress.commit()

        assert await progress.count_completed(student.id, react.id) == 2
        assert await progress.count_completed(student.id, css.id) == 1
        assert await progress.find(student.id, react.lessons[0].id) is not None
        assert await progress.find(student.id, react.lessons[3].id) is None


class TestCategoryRepository:
    @pytest.mark.asyncio
    async def test_course_counts(self, seeded, session):
        rows = await CategoryRepository(session).list_with_course_counts()

        counts = {category.slug: count for category, count in rows}
        assert counts == {
            "web-development": 2,
            "data-science": 1,
            "design": 1,
            "business": 0,
        }
