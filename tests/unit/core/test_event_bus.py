"""Tests for the notification event bus."""

from __future__ import annotations

from emcy_agent.core.event_bus import EventBus
from emcy_agent.models.event_models import (
    ContentDeltaNotification,
    LoadingNotification,
    ThinkingNotification,
)

from ...conftest import Recorder


class TestEventBus:
    """Tests for EventBus subscribe/publish."""

    def test_delivers_to_matching_type_only(self) -> None:
        """Test handlers only receive their own notification class."""
        bus = EventBus()
        loading = Recorder()
        thinking = Recorder()
        bus.subscribe(LoadingNotification, loading)
        bus.subscribe(ThinkingNotification, thinking)

        bus.publish(LoadingNotification(loading=True))

        assert loading.events == [LoadingNotification(loading=True)]
        assert thinking.events == []

    def test_registration_order(self) -> None:
        """Test handlers run in the order they were subscribed."""
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe(ContentDeltaNotification, lambda e: calls.append("first"))
        bus.subscribe(ContentDeltaNotification, lambda e: calls.append("second"))

        bus.publish(ContentDeltaNotification(text="x"))

        assert calls == ["first", "second"]

    def test_duplicate_subscribe_is_noop(self) -> None:
        """Test subscribing the same handler twice delivers once."""
        bus = EventBus()
        recorder = Recorder()
        bus.subscribe(LoadingNotification, recorder)
        bus.subscribe(LoadingNotification, recorder)

        bus.publish(LoadingNotification(loading=False))

        assert len(recorder.events) == 1
        assert bus.handler_count(LoadingNotification) == 1

    def test_unsubscribe(self) -> None:
        """Test removed handlers stop receiving and unknown handlers are ignored."""
        bus = EventBus()
        recorder = Recorder()
        bus.subscribe(LoadingNotification, recorder)

        bus.unsubscribe(LoadingNotification, recorder)
        bus.unsubscribe(LoadingNotification, recorder)
        bus.unsubscribe(ThinkingNotification, recorder)
        bus.publish(LoadingNotification(loading=True))

        assert recorder.events == []

    def test_unsubscribe_during_dispatch(self) -> None:
        """Test a handler may remove itself while an event is delivered."""
        bus = EventBus()
        calls: list[str] = []

        def once(event: ContentDeltaNotification) -> None:
            calls.append(event.text)
            bus.unsubscribe(ContentDeltaNotification, once)

        bus.subscribe(ContentDeltaNotification, once)
        bus.subscribe(ContentDeltaNotification, lambda e: calls.append("other"))

        bus.publish(ContentDeltaNotification(text="a"))
        bus.publish(ContentDeltaNotification(text="b"))

        assert calls == ["a", "other", "other"]

    def test_publish_without_handlers(self) -> None:
        """Test publishing with no subscribers does nothing."""
        bus = EventBus()

        bus.publish(LoadingNotification(loading=True))

        assert bus.handler_count(LoadingNotification) == 0

    def test_clear(self) -> None:
        """Test clear removes every handler."""
        bus = EventBus()
        bus.subscribe(LoadingNotification, Recorder())
        bus.subscribe(ThinkingNotification, Recorder())

        bus.clear()

        assert bus.handler_count(LoadingNotification) == 0
        assert bus.handler_count(ThinkingNotification) == 0
