"""
Event bus and built-in observer tests.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from prometheus_client import REGISTRY

from marketplace.constants import (
    EVENT_COURSE_COMPLETED,
    EVENT_COURSE_ENROLLED,
    EVENT_LESSON_COMPLETED,
    EVENT_REVIEW_CREATED,
)
from marketplace.domain.events import CourseEnrolled, LessonCompleted, ReviewCreated
from marketplace.services.events import event_bus as event_bus_module
from marketplace.services.events import observers as observers_module
from marketplace.services.events.event_bus import get_event_bus
from marketplace.services.events.observers import (
    EnrollmentObserver,
    ReviewObserver,
    register_default_observers,
)


class TestPublishOrdering:
    @pytest.mark.asyncio
    async def test_handlers_run_in_subscription_order(self, event_bus):
        """Three handlers appending 1, 2, 3 leave [1, 2, 3]."""
        sequence = []
        for n in (1, 2, 3):
            event_bus.subscribe("evt", lambda payload, n=n: sequence.append(n))

        await event_bus.publish("evt", {})

        assert sequence == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers_are_awaited_in_order(self, event_bus):
        sequence = []

        async def slow(payload):
            await asyncio.sleep(0.01)
            sequence.append("async")

        event_bus.subscribe("evt", slow)
        event_bus.subscribe("evt", lambda payload: sequence.append("sync"))

        await event_bus.publish("evt", {"x": 1})

        assert sequence == ["async", "sync"]

    @pytest.mark.asyncio
    async def test_payload_is_passed_through(self, event_bus):
        handler = AsyncMock()
        event_bus.subscribe(EVENT_REVIEW_CREATED, handler)

        await event_bus.publish(EVENT_REVIEW_CREATED, {"rating": 4})

        handler.assert_awaited_once_with({"rating": 4})

    @pytest.mark.asyncio
    async def test_unknown_event_is_a_noop(self, event_bus):
        await event_bus.publish("nobody:listens", {"a": 1})

        assert event_bus.subscriber_count("nobody:listens") == 0


class TestHandlerIsolation:
    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_siblings(self, event_bus):
        effects = []

        def broken(payload):
            raise RuntimeError("boom")

        event_bus.subscribe("evt", broken)
        event_bus.subscribe("evt", lambda payload: effects.append("ran"))

        await event_bus.publish("evt", {})

        assert effects == ["ran"]

    @pytest.mark.asyncio
    async def test_rejecting_coroutine_is_swallowed(self, event_bus):
        effects = []

        async def broken(payload):
            raise ValueError("async boom")

        async def healthy(payload):
            effects.append("ran")

        event_bus.subscribe("evt", broken)
        event_bus.subscribe("evt", healthy)

        await event_bus.publish("evt", {})

        assert effects == ["ran"]

    @pytest.mark.asyncio
    async def test_failure_is_counted_and_publish_returns(self, event_bus):
        def broken(payload):
            raise RuntimeError("boom")

        event_bus.subscribe("evt:counted", broken)
        labels = {"event": "evt:counted"}
        before = REGISTRY.get_sample_value(
            "marketplace_event_subscriber_failures_total", labels
        ) or 0.0

        await event_bus.publish("evt:counted", {})

        after = REGISTRY.get_sample_value(
            "marketplace_event_subscriber_failures_total", labels
        )
        assert after == before + 1

    @pytest.mark.asyncio
    async def test_failure_log_names_the_event(self, event_bus):
        def broken(payload):
            raise RuntimeError("boom")

        with patch.object(event_bus_module, "logger") as logger:
            event_bus.subscribe("evt", broken)
            await event_bus.publish("evt", {})

        assert logger.debug.call_args.kwargs["event_name"] == "evt"
        message = logger.error.call_args.args[0]
        fields = logger.error.call_args.kwargs
        assert message == "Event handler failed"
        assert fields["event_name"] == "evt"
        assert fields["error"] == "boom"
        assert "event" not in fields


class TestSubscriptionManagement:
    def test_unsubscribe_is_idempotent(self, event_bus):
        unsubscribe = event_bus.subscribe("evt", lambda payload: None)
        event_bus.subscribe("evt", lambda payload: None)

        unsubscribe()
        unsubscribe()

        assert event_bus.subscriber_count("evt") == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_removes_one_registration_of_same_handler(self, event_bus):
        calls = []

        def handler(payload):
            calls.append(payload["n"])

        first = event_bus.subscribe("evt", handler)
        event_bus.subscribe("evt", handler)
        assert event_bus.subscriber_count("evt") == 2

        first()
        await event_bus.publish("evt", {"n": 1})

        assert event_bus.subscriber_count("evt") == 1
        assert calls == [1]

    def test_unsubscribe_all_and_clear(self, event_bus):
        event_bus.subscribe("a", lambda payload: None)
        event_bus.subscribe("a", lambda payload: None)
        event_bus.subscribe("b", lambda payload: None)

        event_bus.unsubscribe_all("a")
        assert event_bus.subscriber_count("a") == 0
        assert event_bus.subscriber_count("b") == 1

        event_bus.clear()
        assert event_bus.subscriber_count("b") == 0

    @pytest.mark.asyncio
    async def test_handler_subscribed_during_publish_waits_for_next_publish(
        self, event_bus
    ):
        late_calls = []

        def late(payload):
            late_calls.append(payload)

        def subscribes_another(payload):
            event_bus.subscribe("evt", late)

        event_bus.subscribe("evt", subscribes_another)

        await event_bus.publish("evt", {"n": 1})
        assert late_calls == []

        await event_bus.publish("evt", {"n": 2})
        assert late_calls == [{"n": 2}]

    def test_process_wide_bus_is_a_single_instance(self):
        assert get_event_bus() is get_event_bus()


class TestEventPayloads:
    def test_payload_keys_are_camel_case(self):
        payload = CourseEnrolled(
            user_id="u1", course_id="c1", course_name="React"
        ).to_payload()

        assert payload == {"userId": "u1", "courseId": "c1", "courseName": "React"}
        assert CourseEnrolled.event_name == EVENT_COURSE_ENROLLED

    def test_lesson_and_review_payloads(self):
        assert LessonCompleted(user_id="u", lesson_id="l", progress=50).to_payload() == {
            "userId": "u",
            "lessonId": "l",
            "progress": 50,
        }
        assert ReviewCreated(course_id="c", rating=2, comment="meh").to_payload() == {
            "courseId": "c",
            "rating": 2,
            "comment": "meh",
        }


class TestObservers:
    def test_default_observers_subscribe_to_all_events(self, event_bus):
        observers = register_default_observers(event_bus)

        assert event_bus.subscriber_count(EVENT_COURSE_ENROLLED) == 1
        assert event_bus.subscriber_count(EVENT_COURSE_COMPLETED) == 1
        assert event_bus.subscriber_count(EVENT_LESSON_COMPLETED) == 1
        assert event_bus.subscriber_count(EVENT_REVIEW_CREATED) == 1

        for observer in observers:
            observer.unregister()
        assert event_bus.subscriber_count(EVENT_COURSE_ENROLLED) == 0
        assert event_bus.subscriber_count(EVENT_REVIEW_CREATED) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "progress,achievement",
        [(25, "25% Progress"), (50, "Halfway There"), (75, "Almost Done"), (60, None)],
    )
    async def test_lesson_milestones(self, event_bus, progress, achievement):
        EnrollmentObserver(event_bus).register()

        with patch.object(observers_module, "logger") as logger:
            await event_bus.publish(
                EVENT_LESSON_COMPLETED,
                {"userId": "u", "lessonId": "l", "progress": progress},
            )

        unlocked = [
            c.kwargs.get("achievement")
            for c in logger.info.call_args_list
            if c.args and c.args[0] == "Achievement unlocked"
        ]
        assert unlocked == ([achievement] if achievement else [])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating,flagged", [(1, True), (2, True), (3, False), (5, False)])
    async def test_low_ratings_flagged_for_moderation(self, event_bus, rating, flagged):
        ReviewObserver(event_bus).register()

        with patch.object(observers_module, "logger") as logger:
            await event_bus.publish(
                EVENT_REVIEW_CREATED, {"courseId": "c", "rating": rating, "comment": ""}
            )

        assert logger.warning.called is flagged

    @pytest.mark.asyncio
    async def test_observer_failure_does_not_reach_publisher(self, event_bus):
        EnrollmentObserver(event_bus).register()
        effects = []
        event_bus.subscribe(EVENT_COURSE_ENROLLED, lambda payload: effects.append(1))

        # Missing keys make the enrollment observer raise KeyError
        await event_bus.publish(EVENT_COURSE_ENROLLED, {})

        assert effects == [1]
