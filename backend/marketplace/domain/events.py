"""
Domain Event Payloads

Payload shapes published on the event bus. Keys are camelCase on the wire
(``model_dump(by_alias=True)``) because subscribers depend on them verbatim.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..constants import (
    EVENT_COURSE_ENROLLED,
    EVENT_COURSE_COMPLETED,
    EVENT_LESSON_COMPLETED,
    EVENT_REVIEW_CREATED,
)


class EventPayload(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class CourseEnrolled(EventPayload):
    event_name: ClassVar[str] = EVENT_COURSE_ENROLLED

    user_id: str
    course_id: str
    course_name: str


class CourseCompleted(EventPayload):
    event_name: ClassVar[str] = EVENT_COURSE_COMPLETED

    user_id: str
    course_id: str


class LessonCompleted(EventPayload):
    event_name: ClassVar[str] = EVENT_LESSON_COMPLETED

    user_id: str
    lesson_id: str
    progress: int = Field(ge=0, le=100)


class ReviewCreated(EventPayload):
    event_name: ClassVar[str] = EVENT_REVIEW_CREATED

    course_id: str
    rating: int = Field(ge=1, le=5)
    comment: str = ""
