"""
Repository Pattern Implementation

All data access goes through repositories so that gateway failures are
translated into the marketplace error taxonomy in one place.
"""

from .base import BaseRepository
from .user import UserRepository
from .course import CourseRepository, CourseFilter, SORT_OPTIONS
from .enrollment import EnrollmentRepository, LessonProgressRepository
from .review import ReviewRepository, CategoryRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "CourseRepository",
    "CourseFilter",
    "SORT_OPTIONS",
    "EnrollmentRepository",
    "LessonProgressRepository",
    "ReviewRepository",
    "CategoryRepository",
]
