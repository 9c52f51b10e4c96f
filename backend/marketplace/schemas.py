"""
API Schemas

Pydantic request/response models. Field names are snake_case in Python and
camelCase on the wire.
"""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain.pricing import PricingKind, SubscriptionPeriod


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# Accounts


class RegisterRequest(APIModel):
    # Plain strings: account provisioning owns email/password validation
    email: str
    password: str
    name: str
    role: Literal["STUDENT", "INSTRUCTOR"] = "STUDENT"
    bio: Optional[str] = None
    avatar: Optional[str] = None


class LoginRequest(APIModel):
    email: str = ""
    password: str = ""


class UserRead(APIModel):
    id: UUID
    email: str
    name: str
    role: str
    avatar: Optional[str] = None


class AuthResponse(APIModel):
    message: str
    user: UserRead
    token: str


# Catalog


class InstructorSummary(APIModel):
    id: UUID
    name: str
    avatar: Optional[str] = None


class CategorySummary(APIModel):
    id: UUID
    name: str
    slug: str


class PresentationRead(APIModel):
    display_price: float
    description: str
    badges: List[str] = Field(default_factory=list)
    is_featured: bool = False


class CourseSummary(APIModel):
    id: UUID
    title: str
    slug: str
    description: str
    price: float
    discount: int
    level: str
    language: str
    thumbnail: str
    duration: int
    is_featured: bool
    created_at: datetime
    instructor: InstructorSummary
    category: CategorySummary
    enrollment_count: int = 0
    review_count: int = 0
    presentation: PresentationRead


class LessonRead(APIModel):
    id: UUID
    title: str
    order: int
    duration: int


class ReviewerRead(APIModel):
    id: UUID
    name: str
    avatar: Optional[str] = None


class ReviewRead(APIModel):
    id: UUID
    rating: int
    comment: str
    created_at: datetime
    user: Optional[ReviewerRead] = None


class CourseDetail(CourseSummary):
    lessons: List[LessonRead] = Field(default_factory=list)
    reviews: List[ReviewRead] = Field(default_factory=list)
    avg_rating: float = 0.0


class CourseList(APIModel):
    courses: List[CourseSummary]
    page: int
    limit: int


class EnrollmentRead(APIModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    progress: int
    enrolled_at: datetime
    completed_at: Optional[datetime] = None


class EnrollmentResponse(APIModel):
    message: str
    enrollment: EnrollmentRead


class ReviewCreate(APIModel):
    # Range is checked by the catalog service so the error body stays uniform
    rating: int
    comment: str = ""


class ReviewCreated(APIModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    rating: int
    comment: str
    created_at: datetime


class ReviewResponse(APIModel):
    message: str
    review: ReviewCreated


class LessonCompletion(APIModel):
    lesson_id: UUID
    course_id: UUID
    progress: int
    completed: bool


class EnrolledCourse(APIModel):
    id: UUID
    progress: int
    enrolled_at: datetime
    completed_at: Optional[datetime] = None
    course: CourseSummary


class ProfileRead(UserRead):
    bio: Optional[str] = None
    enrollments: List[EnrolledCourse] = Field(default_factory=list)


class ProfileResponse(APIModel):
    user: ProfileRead


class CategoryRead(APIModel):
    id: UUID
    name: str
    slug: str
    icon: Optional[str] = None
    course_count: int = 0


# Pricing


class PricingQuoteRequest(APIModel):
    kind: PricingKind = PricingKind.FLAT
    base_price: float = Field(ge=0)
    quantity: int = Field(default=1, ge=0)
    subscription_price: Optional[float] = None
    period: SubscriptionPeriod = SubscriptionPeriod.MONTHLY
    coupon_code: Optional[str] = None
    coupon_percent: Optional[float] = None
    max_discount: Optional[float] = None
    extra_discounts: List[float] = Field(default_factory=list)


class PricingQuoteResponse(APIModel):
    total: float
    description: str
