"""
Built-in Event Observers

Side-effect handlers registered at startup. The integrations they stand in
for (email, analytics, certificates, moderation) are not wired up yet, so
each step is recorded as a structured log event.
"""

from typing import Any, List, Mapping

import structlog

from ...constants import (
    EVENT_COURSE_COMPLETED,
    EVENT_COURSE_ENROLLED,
    EVENT_LESSON_COMPLETED,
    EVENT_REVIEW_CREATED,
    MODERATION_RATING_THRESHOLD,
    PROGRESS_MILESTONES,
)
from .event_bus import EventBus, Unsubscribe

logger = structlog.get_logger()


class EnrollmentObserver:
    """Reacts to enrollments, lesson progress and course completion."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self._unsubscribers: List[Unsubscribe] = []

    def register(self) -> "EnrollmentObserver":
        self._unsubscribers = [
            self.event_bus.subscribe(EVENT_COURSE_ENROLLED, self.handle_enrollment),
            self.event_bus.subscribe(EVENT_COURSE_COMPLETED, self.handle_completion),
            self.event_bus.subscribe(
                EVENT_LESSON_COMPLETED, self.handle_lesson_completion
            ),
        ]
        return self

    def unregister(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    async def handle_enrollment(self, payload: Mapping[str, Any]) -> None:
        logger.info(
            "Sending welcome email",
            user_id=payload["userId"],
            course_id=payload["courseId"],
            course_name=payload["courseName"],
        )
        logger.info("Updating enrollment statistics", course_id=payload["courseId"])
        logger.info("Notifying instructor about new student", course_id=payload["courseId"])

    async def handle_completion(self, payload: Mapping[str, Any]) -> None:
        logger.info(
            "Generating certificate",
            user_id=payload["userId"],
            course_id=payload["courseId"],
        )
        logger.info("Course marked as completed", course_id=payload["courseId"])

    async def handle_lesson_completion(self, payload: Mapping[str, Any]) -> None:
        progress = payload["progress"]
        logger.info(
            "Updating progress",
            user_id=payload["userId"],
            lesson_id=payload["lessonId"],
            progress=progress,
        )

        milestone = PROGRESS_MILESTONES.get(progress)
        if milestone:
            logger.info(
                "Achievement unlocked", user_id=payload["userId"], achievement=milestone
            )


class ReviewObserver:
    """Reacts to new reviews; low ratings are flagged for moderation."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self._unsubscribers: List[Unsubscribe] = []

    def register(self) -> "ReviewObserver":
        self._unsubscribers = [
            self.event_bus.subscribe(EVENT_REVIEW_CREATED, self.handle_review_created)
        ]
        return self

    def unregister(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def needs_moderation(self, rating: int) -> bool:
        return rating <= MODERATION_RATING_THRESHOLD

    async def handle_review_created(self, payload: Mapping[str, Any]) -> None:
        rating = payload["rating"]
        logger.info(
            "New review received", course_id=payload["courseId"], rating=rating
        )
        logger.info("Recalculating course average rating", course_id=payload["courseId"])

        if self.needs_moderation(rating):
            logger.warning(
                "Low rating flagged for moderation",
                course_id=payload["courseId"],
                rating=rating,
            )


def register_default_observers(event_bus: EventBus) -> list:
    """Attach the built-in observers to ``event_bus``."""
    observers = [
        EnrollmentObserver(event_bus).register(),
        ReviewObserver(event_bus).register(),
    ]
    logger.info("Default event observers registered", count=len(observers))
    return observers
