"""
Courses API endpoints

Catalog reads are served from the cache when possible. Mutations require a
bearer token and trigger cache invalidation plus a domain event.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ...core.security import TokenClaims
from ...schemas import (
    CourseDetail,
    CourseList,
    CourseSummary,
    EnrollmentResponse,
    LessonCompletion,
    ReviewCreate,
    ReviewResponse,
)
from ...services.catalog import CatalogService, CourseQuery
from ..dependencies import get_catalog_service, get_current_claims

router = APIRouter(prefix="/api/courses")


@router.get("", response_model=CourseList)
async def list_courses(
    category: Optional[str] = Query(None, description="Category id or slug"),
    level: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None, description="popular, newest, price-low, price-high"),
    page: int = Query(1),
    limit: int = Query(20),
    catalog: CatalogService = Depends(get_catalog_service),
):
    query = CourseQuery(
        category=category,
        level=level,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return await catalog.list_courses(query)


@router.get("/featured", response_model=List[CourseSummary])
async def featured_courses(catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.featured_courses()


@router.get("/{slug}", response_model=CourseDetail)
async def get_course(slug: str, catalog: CatalogService = Depends(get_catalog_service)):
    """Course detail with lessons, reviews and average rating."""
    return await catalog.get_course(slug)


@router.post("/{course_id}/enroll", response_model=EnrollmentResponse, status_code=201)
async def enroll(
    course_id: UUID,
    claims: TokenClaims = Depends(get_current_claims),
    catalog: CatalogService = Depends(get_catalog_service),
):
    enrollment = await catalog.enroll(claims.user_id, course_id)
    return EnrollmentResponse(message="Enrolled successfully", enrollment=enrollment)


@router.post("/{course_id}/reviews", response_model=ReviewResponse, status_code=201)
async def create_review(
    course_id: UUID,
    review: ReviewCreate,
    claims: TokenClaims = Depends(get_current_claims),
    catalog: CatalogService = Depends(get_catalog_service),
):
    created = await catalog.create_review(
        claims.user_id, course_id, review.rating, review.comment
    )
    return ReviewResponse(message="Review created", review=created)


@router.post(
    "/{course_id}/lessons/{lesson_id}/complete", response_model=LessonCompletion
)
async def complete_lesson(
    course_id: UUID,
    lesson_id: UUID,
    claims: TokenClaims = Depends(get_current_claims),
    catalog: CatalogService = Depends(get_catalog_service),
):
    return await catalog.complete_lesson(claims.user_id, course_id, lesson_id)
