"""
Course Marketplace Global Constants

Centralized location for all system-wide constants used across the application.
"""

# Domain event names (publisher/subscriber contract, must not change)
EVENT_COURSE_ENROLLED = "course:enrolled"
EVENT_COURSE_COMPLETED = "course:completed"
EVENT_LESSON_COMPLETED = "lesson:completed"
EVENT_REVIEW_CREATED = "review:created"

# Cache key prefixes and invalidation patterns
COURSE_LIST_PREFIX = "courses:"
COURSE_DETAIL_PREFIX = "course:"
FEATURED_COURSES_KEY = "courses:featured"
COURSE_LIST_PATTERN = "courses:*"
COURSE_DETAIL_PATTERN = "course:*"

# Progress milestones announced on lesson completion
PROGRESS_MILESTONES = {
    25: "25% Progress",
    50: "Halfway There",
    75: "Almost Done",
}

# Ratings at or below this value are flagged for moderation
MODERATION_RATING_THRESHOLD = 2


# Application Constants
APP_NAME = "Course Marketplace"
